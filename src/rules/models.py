from pydantic import BaseModel, Field


class RedirectSourceRules(BaseModel):
    status_code: int = Field(default=301, ge=300, le=399)
    max_path_length: int = Field(default=2048, gt=0)
    content_entity_kinds: list[str] = Field(default_factory=lambda: ["content"])
    canonical_schemes: list[str] = Field(default_factory=lambda: ["internal", "base"])
    edit_form_path: str = "/api/admin/redirects/{id}"
    internal_path_pattern: str = "node/{id}"

class LoggingRules(BaseModel):
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"

class StorageRules(BaseModel):
    migrations_dir: str = "migrations"
    db_filename: str = "redirects.db"

class Rules(BaseModel):
    redirect_source: RedirectSourceRules = Field(default_factory=RedirectSourceRules)
    logging: LoggingRules = Field(default_factory=LoggingRules)
    storage: StorageRules = Field(default_factory=StorageRules)

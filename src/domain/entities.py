from datetime import UTC, datetime
from typing import Any, Literal
from urllib.parse import urlencode

from pydantic import BaseModel, Field

# --- Enums / Literals ---
EntityKind = Literal["content", "config"]
MessageSeverity = Literal["status", "error"]

# --- Redirect source field ---

class RedirectSourceValue(BaseModel):
    """Field value attached to a host entity: the path a redirect triggers on."""

    path: str | None = None
    query: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def main_property_name(cls) -> str:
        return "path"

    def is_empty(self) -> bool:
        return self.path is None or self.path == ""

    def get_url(self) -> str:
        """
        `base:` URI for the source path, query map appended.

        Nested mappings and lists use bracket keys (`f[type]=news`,
        `tag[0]=x`).
        """
        url = f"base:{self.path or ''}"
        pairs = _flatten_query(self.query)
        if pairs:
            url += "?" + urlencode(pairs)
        return url


def _flatten_query(query: dict[Any, Any], prefix: str | None = None) -> list[tuple[str, str]]:
    pairs: list[tuple[str, str]] = []
    for key, value in query.items():
        name = key if prefix is None else f"{prefix}[{key}]"
        if isinstance(value, dict):
            pairs.extend(_flatten_query(value, name))
        elif isinstance(value, (list, tuple)):
            pairs.extend(_flatten_query(dict(enumerate(value)), name))
        elif isinstance(value, bool):
            pairs.append((name, "1" if value else "0"))
        elif value is not None:
            pairs.append((name, str(value)))
    return pairs

# --- Redirects ---

class RedirectDestination(BaseModel):
    uri: str
    title: str | None = None

class RedirectRecord(BaseModel):
    id: int | None = None  # Assigned by the store on create
    source_path: str
    source_query: dict[str, Any] = Field(default_factory=dict)
    destination: RedirectDestination
    status_code: int = 301
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

# --- Host entities ---

class HostEntity(BaseModel):
    id: int | None = None
    kind: EntityKind = "content"
    title: str | None = None
    internal_path: str = ""
    is_new: bool = True

    redirect_source: RedirectSourceValue | None = None

    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

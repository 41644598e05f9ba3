import os
from functools import lru_cache
from pathlib import Path

from fastapi import Depends

from src.adapters.messenger import InMemoryMessenger
from src.adapters.sqlite.repos import SQLiteHostEntityRepo, SQLiteRedirectRepo
from src.rules.loader import load_rules
from src.rules.models import Rules
from src.services.content import ContentService


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("REDIRECTS_DATA_DIR", "./data"))
        self.rules_path = Path(os.environ.get("REDIRECTS_RULES_PATH", self.base_dir / "rules.yaml"))

    def db_path(self, rules: Rules) -> str:
        return str(self.data_dir / rules.storage.db_filename)


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return load_rules(settings.rules_path)


# --- Repos ---
def get_redirect_repo(
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
) -> SQLiteRedirectRepo:
    return SQLiteRedirectRepo(settings.db_path(rules))


def get_host_entity_repo(
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
) -> SQLiteHostEntityRepo:
    return SQLiteHostEntityRepo(settings.db_path(rules))


# --- Messaging ---
def get_messenger() -> InMemoryMessenger:
    """One messenger per request; FastAPI caches it within the request."""
    return InMemoryMessenger()


# --- Services ---
def get_content_service(
    repo: SQLiteHostEntityRepo = Depends(get_host_entity_repo),
    redirect_repo: SQLiteRedirectRepo = Depends(get_redirect_repo),
    messenger: InMemoryMessenger = Depends(get_messenger),
    rules: Rules = Depends(get_rules),
) -> ContentService:
    return ContentService(
        repo=repo,
        redirect_store=redirect_repo,
        messenger=messenger,
        rules=rules,
    )

from pathlib import Path

import pytest

from src.adapters.messenger import InMemoryMessenger
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.domain.entities import RedirectRecord
from src.rules.loader import load_rules
from src.rules.models import Rules

PROJECT_ROOT = Path(__file__).parent.parent


class MockRedirectStore:
    """In-memory redirect store for testing."""

    def __init__(self) -> None:
        self._records: dict[int, RedirectRecord] = {}
        self._next_id = 1
        self.queries: list[str] = []

    def add(self, record: RedirectRecord) -> RedirectRecord:
        """Preload a record, keeping its id if it has one."""
        if record.id is None:
            record = record.model_copy(update={"id": self._next_id})
        self._records[record.id] = record
        self._next_id = max(self._next_id, record.id + 1)
        return record

    def find_by_source_path(self, path: str) -> list[RedirectRecord]:
        self.queries.append(path)
        return [r for r in self._records.values() if r.source_path == path]

    def create(self, record: RedirectRecord) -> RedirectRecord:
        return self.add(record.model_copy(update={"id": None}))

    def get_by_id(self, redirect_id: int) -> RedirectRecord | None:
        return self._records.get(redirect_id)

    def list_all(self) -> list[RedirectRecord]:
        return list(self._records.values())


@pytest.fixture
def store() -> MockRedirectStore:
    """Fresh in-memory redirect store."""
    return MockRedirectStore()


@pytest.fixture
def messenger() -> InMemoryMessenger:
    """Fresh messenger."""
    return InMemoryMessenger()


@pytest.fixture
def rules() -> Rules:
    """Rules loaded from the project's real rules.yaml."""
    return load_rules(PROJECT_ROOT / "rules.yaml")


@pytest.fixture
def db_path(tmp_path) -> str:
    """Temporary SQLite database with all migrations applied."""
    path = str(tmp_path / "redirects.db")
    SQLiteMigrator(path, str(PROJECT_ROOT / "migrations")).run_migrations()
    return path

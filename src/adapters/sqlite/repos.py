import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any

from src.adapters.sqlite.codec import decode_query, encode_query
from src.domain.entities import (
    HostEntity,
    RedirectDestination,
    RedirectRecord,
    RedirectSourceValue,
)

logger = logging.getLogger(__name__)


# Length of the source path prefix covered by the substr() expression
# indexes in migrations/0001_redirect_source.sql; lookups must use the
# same expression for SQLite to pick the index.
SOURCE_PATH_INDEX_PREFIX = 50


class RedirectStoreError(RuntimeError):
    """Redirect store query or write failed."""


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


class _SQLiteRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    @contextmanager
    def _conn(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise RedirectStoreError(f"Cannot open database {self.db_path}: {e}") from e

        conn.row_factory = dict_factory
        try:
            conn.execute("PRAGMA foreign_keys = ON;")
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise RedirectStoreError(str(e)) from e
        finally:
            conn.close()


class SQLiteRedirectRepo(_SQLiteRepo):
    def find_by_source_path(self, path: str) -> list[RedirectRecord]:
        with self._conn() as conn:
            rows = conn.execute(
                "SELECT * FROM redirects "
                f"WHERE substr(source_path, 1, {SOURCE_PATH_INDEX_PREFIX}) = ? "
                "AND source_path = ? "
                "ORDER BY id",
                (path[:SOURCE_PATH_INDEX_PREFIX], path),
            ).fetchall()
        return [self._map_row(r) for r in rows]

    def create(self, record: RedirectRecord) -> RedirectRecord:
        with self._conn() as conn:
            cursor = conn.execute(
                """
                INSERT INTO redirects (
                    source_path, source_query, redirect_uri,
                    redirect_title, status_code, created_at
                ) VALUES (?, ?, ?, ?, ?, ?)
            """,
                (
                    record.source_path,
                    encode_query(record.source_query),
                    record.destination.uri,
                    record.destination.title,
                    record.status_code,
                    record.created_at.isoformat(),
                ),
            )
            new_id = cursor.lastrowid

        logger.debug("Inserted redirect %s for %s", new_id, record.source_path)
        return record.model_copy(update={"id": new_id})

    def get_by_id(self, redirect_id: int) -> RedirectRecord | None:
        with self._conn() as conn:
            row = conn.execute("SELECT * FROM redirects WHERE id = ?", (redirect_id,)).fetchone()
        return self._map_row(row) if row else None

    def list_all(self) -> list[RedirectRecord]:
        with self._conn() as conn:
            rows = conn.execute("SELECT * FROM redirects ORDER BY id").fetchall()
        return [self._map_row(r) for r in rows]

    def _map_row(self, row: dict[str, Any]) -> RedirectRecord:
        return RedirectRecord(
            id=row["id"],
            source_path=row["source_path"],
            source_query=decode_query(row["source_query"]),
            destination=RedirectDestination(
                uri=row["redirect_uri"],
                title=row["redirect_title"],
            ),
            status_code=row["status_code"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )


class SQLiteHostEntityRepo(_SQLiteRepo):
    def save(self, entity: HostEntity) -> HostEntity:
        """Insert or update. Returns the stored entity with its id assigned."""
        value = entity.redirect_source or RedirectSourceValue()
        now = datetime.now(UTC)
        params = (
            entity.kind,
            entity.title,
            entity.internal_path,
            value.path,
            encode_query(value.query),
        )

        with self._conn() as conn:
            if entity.id is None:
                cursor = conn.execute(
                    """
                    INSERT INTO host_entities (
                        kind, title, internal_path,
                        redirect_source_path, redirect_source_query,
                        created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                    (*params, entity.created_at.isoformat(), now.isoformat()),
                )
                entity_id = cursor.lastrowid
            else:
                conn.execute(
                    """
                    UPDATE host_entities SET
                        kind = ?, title = ?, internal_path = ?,
                        redirect_source_path = ?, redirect_source_query = ?,
                        updated_at = ?
                    WHERE id = ?
                """,
                    (*params, now.isoformat(), entity.id),
                )
                entity_id = entity.id

        return entity.model_copy(update={"id": entity_id, "updated_at": now})

    def set_internal_path(self, entity_id: int, internal_path: str) -> None:
        with self._conn() as conn:
            conn.execute(
                "UPDATE host_entities SET internal_path = ? WHERE id = ?",
                (internal_path, entity_id),
            )

    def get_by_id(self, entity_id: int) -> HostEntity | None:
        with self._conn() as conn:
            row = conn.execute(
                "SELECT * FROM host_entities WHERE id = ?", (entity_id,)
            ).fetchone()
        return self._map_row(row) if row else None

    def _map_row(self, row: dict[str, Any]) -> HostEntity:
        redirect_source = None
        if row["redirect_source_path"] is not None:
            redirect_source = RedirectSourceValue(
                path=row["redirect_source_path"],
                query=decode_query(row["redirect_source_query"]),
            )

        return HostEntity(
            id=row["id"],
            kind=row["kind"],
            title=row["title"],
            internal_path=row["internal_path"],
            is_new=False,
            redirect_source=redirect_source,
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

"""
Redirect source component port definitions.

The reconciler never looks these collaborators up itself; they are
injected by the caller.
"""

from __future__ import annotations

from typing import Protocol

from src.domain.entities import RedirectRecord


class RedirectStorePort(Protocol):
    """Store of redirect records, queryable by source path."""

    def find_by_source_path(self, path: str) -> list[RedirectRecord]:
        """Get redirects whose source path equals `path` exactly."""
        ...

    def create(self, record: RedirectRecord) -> RedirectRecord:
        """Persist a new redirect and return it with its assigned id."""
        ...

    def get_by_id(self, redirect_id: int) -> RedirectRecord | None:
        """Get redirect by ID."""
        ...

    def list_all(self) -> list[RedirectRecord]:
        """List all redirects."""
        ...


class MessengerPort(Protocol):
    """Fire-and-forget notification channel to the acting user."""

    def emit(self, message: str, severity: str = "status") -> None:
        """Queue a message with severity `status` or `error`."""
        ...


class HostEntityPort(Protocol):
    """Read-only view of the entity that owns the field value."""

    @property
    def id(self) -> int | None: ...

    @property
    def kind(self) -> str: ...

    @property
    def is_new(self) -> bool: ...

    @property
    def internal_path(self) -> str: ...

    @property
    def title(self) -> str | None: ...


class RulesPort(Protocol):
    """Port for redirect source rules configuration."""

    def get_status_code(self) -> int:
        """Get HTTP status code for auto-created redirects."""
        ...

    def get_content_entity_kinds(self) -> list[str]:
        """Get the entity kinds that carry field-based content storage."""
        ...

    def get_canonical_schemes(self) -> list[str]:
        """Get URI schemes accepted by canonicalization."""
        ...

    def get_edit_form_path(self) -> str:
        """Get the edit link template for an existing redirect."""
        ...

    def get_max_path_length(self) -> int:
        """Get the maximum source path length."""
        ...

"""
Redirect source component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from src.domain.entities import HostEntity, RedirectRecord, RedirectSourceValue

# --- Validation Error ---


@dataclass(frozen=True)
class RedirectSourceValidationError:
    """Redirect source field validation error."""

    code: str
    message: str
    field: str | None = None


# --- Outcome ---


class OutcomeKind(str, Enum):
    """Which reconciliation branch fired."""

    SELF_LOOP = "self_loop"
    DUPLICATE = "duplicate"
    CREATED = "created"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class Message:
    """User-facing notice emitted during reconciliation."""

    text: str
    severity: str  # "status" or "error"


@dataclass(frozen=True)
class ReconciliationOutcome:
    """
    Result of one reconciliation.

    `redirect` is the record created, or the existing record that
    claimed the source path (duplicate / unchanged).
    """

    kind: OutcomeKind
    source_path: str
    redirect_uri: str
    message: Message | None = None
    redirect: RedirectRecord | None = None


# --- Input Models ---


@dataclass(frozen=True)
class ReconcileInput:
    """Input for reconciling a source path against the redirect store."""

    source_path: str
    host_entity: HostEntity
    query: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PostSaveInput:
    """Input for the host entity post-save hook."""

    host_entity: HostEntity


@dataclass(frozen=True)
class ValidateSourceInput:
    """Input for validating a field value before the host save."""

    value: RedirectSourceValue


# --- Output Models ---


@dataclass(frozen=True)
class ReconcileOutput:
    """Output of reconcile / post-save. `outcome` is None when skipped."""

    outcome: ReconciliationOutcome | None


@dataclass(frozen=True)
class ValidateSourceOutput:
    """Output of field value validation."""

    errors: list[RedirectSourceValidationError] = field(default_factory=list)
    success: bool = True

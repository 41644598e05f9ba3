"""
RedirectReconciler - keeps the redirect store in step with redirect source fields.

Runs after a host entity is saved. Compares the field's source path with
the host entity's own canonical path and the existing redirects, then
either warns or auto-creates a redirect to the host entity.

Key behaviors:
- Self-loop (source canonicalizes to the host's own URL) is an error, nothing created
- Existing redirect on the same source path is an error, unless it is the
  host entity re-saving its own redirect
- Otherwise a 301 redirect to `internal:/<host path>` is created
- Malformed paths never raise; they only disable the self-loop comparison
- At most one message and at most one new record per call
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qsl, quote, unquote, urlencode, urlsplit

from src.domain.entities import (
    HostEntity,
    RedirectDestination,
    RedirectRecord,
    RedirectSourceValue,
)

from .models import (
    Message,
    OutcomeKind,
    ReconciliationOutcome,
    RedirectSourceValidationError,
)
from .ports import HostEntityPort, MessengerPort, RedirectStorePort

logger = logging.getLogger(__name__)

# --- Configuration ---


@dataclass(frozen=True)
class RedirectSourceConfig:
    """Redirect source configuration from rules."""

    status_code: int = 301
    max_path_length: int = 2048
    content_entity_kinds: tuple[str, ...] = ("content",)
    canonical_schemes: tuple[str, ...] = ("internal", "base")
    edit_form_path: str = "/api/admin/redirects/{id}"


DEFAULT_CONFIG = RedirectSourceConfig()

SELF_LOOP_MESSAGE = (
    "The source path {source} is attempting to redirect the page to itself. "
    "This will result in an infinite loop."
)
DUPLICATE_MESSAGE = (
    "The source path {source} is already being redirected. "
    "Do you want to edit the existing redirect ({edit_url})?"
)
CREATED_MESSAGE = "The redirect {source} has been saved."


# --- Canonical URLs ---


@dataclass(frozen=True)
class CanonicalUrl:
    """Normalized, comparable form of an internal URI."""

    path: str
    query: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if not self.query:
            return self.path
        return f"{self.path}?{urlencode(self.query)}"


@dataclass(frozen=True)
class Malformed:
    """A URI that could not be canonicalized."""

    uri: str
    reason: str


ParseResult = CanonicalUrl | Malformed

# Control characters only; spaces and stray "%" are encoded instead
_INVALID_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_SAFE_PATH_CHARS = "/:@!$&'()*+,;=-._~"


def _normalize_path(path: str) -> str:
    # Collapse repeated slashes, then drop the trailing one (except root).
    # unquote() leaves a "%" that starts no valid escape alone, so quote()
    # turns it into %25 and "/50%" and "/50%25" compare equal.
    path = re.sub(r"/{2,}", "/", path)
    path = path.rstrip("/") or "/"
    return quote(unquote(path), safe=_SAFE_PATH_CHARS)


def parse_internal_uri(
    uri: str,
    schemes: tuple[str, ...] = DEFAULT_CONFIG.canonical_schemes,
) -> ParseResult:
    """
    Canonicalize an `internal:` / `base:` URI.

    Returns Malformed instead of raising for anything that is not a
    rooted, authority-free URI in one of the accepted schemes.
    """
    if not uri:
        return Malformed(uri, "empty uri")

    if _INVALID_CHARS.search(uri):
        return Malformed(uri, "invalid characters")

    try:
        parts = urlsplit(uri)
    except ValueError as e:
        return Malformed(uri, str(e))

    if parts.scheme not in schemes:
        return Malformed(uri, f"unsupported scheme '{parts.scheme}'")

    if parts.netloc:
        return Malformed(uri, "authority not allowed")

    if not parts.path.startswith("/"):
        return Malformed(uri, "path must start with /")

    query = tuple(parse_qsl(parts.query, keep_blank_values=True))
    return CanonicalUrl(path=_normalize_path(parts.path), query=query)


def source_to_internal_uri(source_path: str) -> str:
    """Interpret a stored source path as an internal URI."""
    return "internal:/" + source_path.lstrip("/")


def host_redirect_uri(host_entity: HostEntityPort) -> str:
    """Canonical destination for redirects to the host entity."""
    return "internal:/" + host_entity.internal_path.lstrip("/")


def urls_equal(left: ParseResult, right: ParseResult) -> bool:
    """Compare two parse results; Malformed on either side is never equal."""
    if isinstance(left, Malformed) or isinstance(right, Malformed):
        return False
    return str(left) == str(right)


# --- Field Validation ---


def validate_source_value(
    value: RedirectSourceValue,
    config: RedirectSourceConfig = DEFAULT_CONFIG,
) -> list[RedirectSourceValidationError]:
    """Validate a redirect source field value before it is stored."""
    errors: list[RedirectSourceValidationError] = []

    if value.path is not None and len(value.path) > config.max_path_length:
        errors.append(
            RedirectSourceValidationError(
                code="path_too_long",
                message=f"Source path exceeds {config.max_path_length} characters",
                field="path",
            )
        )

    return errors


# --- Reconciler ---


class RedirectReconciler:
    """
    Redirect reconciler.

    Decides between self-loop warning, duplicate warning and redirect
    creation for one host entity save.
    """

    def __init__(
        self,
        store: RedirectStorePort,
        messenger: MessengerPort,
        config: RedirectSourceConfig | None = None,
    ) -> None:
        """Initialize reconciler."""
        self._store = store
        self._messenger = messenger
        self._config = config or DEFAULT_CONFIG

    def _emit(self, text: str, severity: str) -> Message:
        self._messenger.emit(text, severity)
        return Message(text=text, severity=severity)

    def is_content_entity(self, host_entity: HostEntityPort) -> bool:
        """Only entities with field-based content storage are reconciled."""
        return host_entity.kind in self._config.content_entity_kinds

    def post_save(self, host_entity: HostEntity) -> ReconciliationOutcome | None:
        """
        Post-save hook for the host entity.

        Returns None when the entity is not a content entity or its
        redirect source field is empty.
        """
        if not self.is_content_entity(host_entity):
            logger.debug("Skipping reconciliation for %s entity", host_entity.kind)
            return None

        value = host_entity.redirect_source
        if value is None or value.is_empty():
            return None

        return self.reconcile(str(value.path), value.query, host_entity)

    def reconcile(
        self,
        source_path: str,
        query: dict[str, Any],
        host_entity: HostEntityPort,
    ) -> ReconciliationOutcome:
        """
        Reconcile one source path against the redirect store.

        The duplicate query runs even when a self-loop was found; the
        self-loop message then takes precedence.
        """
        redirect_uri = host_redirect_uri(host_entity)
        schemes = self._config.canonical_schemes

        source_url = parse_internal_uri(source_to_internal_uri(source_path), schemes)
        redirect_url = parse_internal_uri(redirect_uri, schemes)
        for parsed in (source_url, redirect_url):
            if isinstance(parsed, Malformed):
                logger.debug("Self-loop check skipped for %r: %s", parsed.uri, parsed.reason)

        message: Message | None = None
        same = urls_equal(source_url, redirect_url)
        if same:
            logger.warning("Redirect source %s points at itself (%s)", source_path, redirect_uri)
            message = self._emit(SELF_LOOP_MESSAGE.format(source=source_path), "error")

        matches = self._store.find_by_source_path(source_path)

        if matches:
            existing = matches[0]
            if same:
                kind = OutcomeKind.SELF_LOOP
            elif host_entity.is_new or existing.id != host_entity.id:
                logger.warning(
                    "Redirect source %s already claimed by redirect %s",
                    source_path,
                    existing.id,
                )
                edit_url = self._config.edit_form_path.format(id=existing.id)
                message = self._emit(
                    DUPLICATE_MESSAGE.format(source=source_path, edit_url=edit_url),
                    "error",
                )
                kind = OutcomeKind.DUPLICATE
            else:
                kind = OutcomeKind.UNCHANGED

            return ReconciliationOutcome(
                kind=kind,
                source_path=source_path,
                redirect_uri=redirect_uri,
                message=message,
                redirect=existing if kind != OutcomeKind.SELF_LOOP else None,
            )

        if same:
            return ReconciliationOutcome(
                kind=OutcomeKind.SELF_LOOP,
                source_path=source_path,
                redirect_uri=redirect_uri,
                message=message,
            )

        destination = RedirectDestination(uri=redirect_uri, title=host_entity.title or None)
        created = self._store.create(
            RedirectRecord(
                source_path=source_path,
                source_query=dict(query),
                destination=destination,
                status_code=self._config.status_code,
            )
        )
        logger.info("Created redirect %s: %s -> %s", created.id, source_path, redirect_uri)
        message = self._emit(CREATED_MESSAGE.format(source=source_path), "status")

        return ReconciliationOutcome(
            kind=OutcomeKind.CREATED,
            source_path=source_path,
            redirect_uri=redirect_uri,
            message=message,
            redirect=created,
        )


# --- Factory ---


def create_reconciler(
    store: RedirectStorePort,
    messenger: MessengerPort,
    config: RedirectSourceConfig | None = None,
) -> RedirectReconciler:
    """Create a RedirectReconciler."""
    return RedirectReconciler(
        store=store,
        messenger=messenger,
        config=config,
    )

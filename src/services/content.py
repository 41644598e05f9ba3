from dataclasses import dataclass
from typing import Any, Protocol

from src.components.redirect_source import (
    MessengerPort,
    PostSaveInput,
    ReconciliationOutcome,
    RedirectSourceValidationError,
    RedirectStorePort,
    ValidateSourceInput,
    run_post_save,
    run_validate,
)
from src.domain.entities import EntityKind, HostEntity, RedirectSourceValue
from src.rules.adapters import RedirectSourceRulesAdapter
from src.rules.models import Rules

UPDATABLE_FIELDS = ("title", "internal_path", "redirect_source")


class HostEntityRepoPort(Protocol):
    def save(self, entity: HostEntity) -> HostEntity: ...

    def get_by_id(self, entity_id: int) -> HostEntity | None: ...

    def set_internal_path(self, entity_id: int, internal_path: str) -> None: ...


class ContentNotFoundError(LookupError):
    pass


class InvalidRedirectSourceError(ValueError):
    def __init__(self, errors: list[RedirectSourceValidationError]):
        super().__init__("; ".join(e.message for e in errors))
        self.errors = errors


@dataclass(frozen=True)
class SaveResult:
    entity: HostEntity
    outcome: ReconciliationOutcome | None


class ContentService:
    """Saves host entities and runs redirect reconciliation after each save."""

    def __init__(
        self,
        repo: HostEntityRepoPort,
        redirect_store: RedirectStorePort,
        messenger: MessengerPort,
        rules: Rules | None = None,
    ):
        self.repo = repo
        self.redirect_store = redirect_store
        self.messenger = messenger
        self.rules = RedirectSourceRulesAdapter(rules or Rules())

    def _validate(self, value: RedirectSourceValue | None) -> None:
        if value is None:
            return
        result = run_validate(ValidateSourceInput(value=value), rules=self.rules)
        if not result.success:
            raise InvalidRedirectSourceError(result.errors)

    def _post_save(self, entity: HostEntity) -> SaveResult:
        # Reconciliation sees the entity as it was saved (is_new included)
        output = run_post_save(
            PostSaveInput(host_entity=entity),
            store=self.redirect_store,
            messenger=self.messenger,
            rules=self.rules,
        )
        return SaveResult(
            entity=entity.model_copy(update={"is_new": False}),
            outcome=output.outcome,
        )

    def get(self, entity_id: int) -> HostEntity | None:
        return self.repo.get_by_id(entity_id)

    def create(
        self,
        title: str | None = None,
        kind: EntityKind = "content",
        internal_path: str | None = None,
        redirect_source: RedirectSourceValue | None = None,
    ) -> SaveResult:
        self._validate(redirect_source)

        entity = HostEntity(
            kind=kind,
            title=title,
            internal_path=internal_path or "",
            is_new=True,
            redirect_source=redirect_source,
        )
        saved = self.repo.save(entity)

        # The default path depends on the id assigned by the insert
        if not internal_path and saved.id is not None:
            path = self.rules.get_internal_path_pattern().format(id=saved.id)
            self.repo.set_internal_path(saved.id, path)
            saved = saved.model_copy(update={"internal_path": path})

        return self._post_save(saved)

    def update(self, entity_id: int, updates: dict[str, Any]) -> SaveResult:
        existing = self.repo.get_by_id(entity_id)
        if existing is None:
            raise ContentNotFoundError(f"Content {entity_id} not found")

        unknown = set(updates) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        if "redirect_source" in updates:
            self._validate(updates["redirect_source"])

        entity = existing.model_copy(update={**updates, "is_new": False})
        saved = self.repo.save(entity)
        return self._post_save(saved)

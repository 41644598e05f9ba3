"""
Tests for RedirectReconciler.

Covers the self-loop, duplicate, creation and unchanged branches, and the
component entry points.
"""

from __future__ import annotations

import pytest

from src.adapters.messenger import InMemoryMessenger
from src.adapters.sqlite.repos import RedirectStoreError
from src.components.redirect_source import (
    CREATED_MESSAGE,
    SELF_LOOP_MESSAGE,
    OutcomeKind,
    PostSaveInput,
    ReconcileInput,
    RedirectReconciler,
    RedirectSourceConfig,
    create_reconciler,
    run,
    run_post_save,
    run_reconcile,
)
from src.domain.entities import (
    HostEntity,
    RedirectDestination,
    RedirectRecord,
    RedirectSourceValue,
)
from src.rules.adapters import RedirectSourceRulesAdapter
from src.rules.models import RedirectSourceRules, Rules

# --- Helpers ---


def make_entity(
    entity_id: int | None = 9,
    internal_path: str = "node/9",
    is_new: bool = False,
    title: str | None = "About us",
    kind: str = "content",
    path: str | None = None,
) -> HostEntity:
    return HostEntity(
        id=entity_id,
        kind=kind,
        title=title,
        internal_path=internal_path,
        is_new=is_new,
        redirect_source=RedirectSourceValue(path=path) if path is not None else None,
    )


def make_record(record_id: int, source_path: str, uri: str = "internal:/node/1") -> RedirectRecord:
    return RedirectRecord(
        id=record_id,
        source_path=source_path,
        destination=RedirectDestination(uri=uri),
    )


class FailingStore:
    """Store whose every call fails."""

    def find_by_source_path(self, path: str) -> list[RedirectRecord]:
        raise RedirectStoreError("database is locked")

    def create(self, record: RedirectRecord) -> RedirectRecord:
        raise RedirectStoreError("database is locked")

    def get_by_id(self, redirect_id: int) -> RedirectRecord | None:
        return None

    def list_all(self) -> list[RedirectRecord]:
        return []


class CreateFailingStore:
    """Lookups succeed and find nothing, writes fail."""

    def __init__(self) -> None:
        self.queries: list[str] = []

    def find_by_source_path(self, path: str) -> list[RedirectRecord]:
        self.queries.append(path)
        return []

    def create(self, record: RedirectRecord) -> RedirectRecord:
        raise RedirectStoreError("disk I/O error")

    def get_by_id(self, redirect_id: int) -> RedirectRecord | None:
        return None

    def list_all(self) -> list[RedirectRecord]:
        return []


# --- Fixtures ---


@pytest.fixture
def reconciler(store, messenger: InMemoryMessenger) -> RedirectReconciler:
    """Reconciler with default config."""
    return RedirectReconciler(store=store, messenger=messenger)


# --- Creation ---


class TestCreation:
    """No match and no self-loop creates a redirect."""

    def test_creates_redirect(self, reconciler, store, messenger) -> None:
        entity = make_entity(entity_id=5, internal_path="node/5")

        outcome = reconciler.reconcile("/old-page", {}, entity)

        assert outcome.kind == OutcomeKind.CREATED
        assert outcome.redirect_uri == "internal:/node/5"
        records = store.list_all()
        assert len(records) == 1
        assert records[0].source_path == "/old-page"
        assert records[0].destination.uri == "internal:/node/5"
        assert records[0].status_code == 301
        assert outcome.redirect == records[0]

    def test_emits_status_message(self, reconciler, messenger) -> None:
        outcome = reconciler.reconcile("/old-page", {}, make_entity())

        assert messenger.message_count == 1
        last = messenger.get_last_message()
        assert last is not None
        assert last.severity == "status"
        assert last.message == CREATED_MESSAGE.format(source="/old-page")
        assert outcome.message is not None
        assert outcome.message.text == last.message

    def test_title_copied(self, reconciler, store) -> None:
        reconciler.reconcile("/old-page", {}, make_entity(title="About us"))
        assert store.list_all()[0].destination.title == "About us"

    @pytest.mark.parametrize("title", [None, ""])
    def test_empty_title_not_copied(self, reconciler, store, title) -> None:
        reconciler.reconcile("/old-page", {}, make_entity(title=title))
        assert store.list_all()[0].destination.title is None

    def test_query_carried_to_record(self, reconciler, store) -> None:
        reconciler.reconcile("/old-page", {"utm_source": "mail"}, make_entity())
        assert store.list_all()[0].source_query == {"utm_source": "mail"}

    def test_configured_status_code(self, store, messenger) -> None:
        reconciler = create_reconciler(store, messenger, RedirectSourceConfig(status_code=302))
        reconciler.reconcile("/old-page", {}, make_entity())
        assert store.list_all()[0].status_code == 302

    def test_new_entity_without_match_creates(self, reconciler, store) -> None:
        outcome = reconciler.reconcile("/old-page", {}, make_entity(is_new=True))
        assert outcome.kind == OutcomeKind.CREATED
        assert len(store.list_all()) == 1

    def test_malformed_source_still_creates(self, reconciler, store, messenger) -> None:
        outcome = reconciler.reconcile("/bad\x01path", {}, make_entity())

        assert outcome.kind == OutcomeKind.CREATED
        assert store.list_all()[0].source_path == "/bad\x01path"
        assert messenger.get_last_message().severity == "status"


# --- Self-loop ---


class TestSelfLoop:
    """Source that canonicalizes to the host's own URL."""

    def test_self_loop_error(self, reconciler, store, messenger) -> None:
        entity = make_entity(entity_id=5, internal_path="node/5")

        outcome = reconciler.reconcile("/node/5", {}, entity)

        assert outcome.kind == OutcomeKind.SELF_LOOP
        assert outcome.redirect is None
        assert store.list_all() == []
        assert messenger.message_count == 1
        last = messenger.get_last_message()
        assert last.severity == "error"
        assert last.message == SELF_LOOP_MESSAGE.format(source="/node/5")

    def test_self_loop_after_normalization(self, reconciler, store) -> None:
        entity = make_entity(entity_id=5, internal_path="node/5")
        outcome = reconciler.reconcile("node//5/", {}, entity)
        assert outcome.kind == OutcomeKind.SELF_LOOP
        assert store.list_all() == []

    def test_duplicate_query_still_runs(self, reconciler, store) -> None:
        reconciler.reconcile("/node/9", {}, make_entity())
        assert store.queries == ["/node/9"]

    def test_self_loop_takes_precedence_over_duplicate(self, reconciler, store, messenger) -> None:
        store.add(make_record(7, "/node/9"))

        outcome = reconciler.reconcile("/node/9", {}, make_entity())

        assert outcome.kind == OutcomeKind.SELF_LOOP
        assert messenger.message_count == 1
        assert "itself" in messenger.get_last_message().message
        assert len(store.list_all()) == 1

    def test_path_with_space_is_a_loop(self, reconciler, store, messenger) -> None:
        entity = make_entity(internal_path="about us")

        outcome = reconciler.reconcile("/about us", {}, entity)

        assert outcome.kind == OutcomeKind.SELF_LOOP
        assert store.list_all() == []
        assert messenger.get_last_message().severity == "error"

    def test_encoded_space_is_a_loop(self, reconciler, store) -> None:
        entity = make_entity(internal_path="about us")
        outcome = reconciler.reconcile("/about%20us", {}, entity)
        assert outcome.kind == OutcomeKind.SELF_LOOP
        assert store.list_all() == []

    def test_lone_percent_is_a_loop(self, reconciler, store) -> None:
        entity = make_entity(internal_path="sale/50%")
        outcome = reconciler.reconcile("/sale/50%", {}, entity)
        assert outcome.kind == OutcomeKind.SELF_LOOP

    def test_identical_control_char_paths_are_not_a_loop(self, reconciler, store) -> None:
        entity = make_entity(internal_path="node\t9")
        outcome = reconciler.reconcile("/node\t9", {}, entity)
        assert outcome.kind == OutcomeKind.CREATED
        assert len(store.list_all()) == 1


# --- Duplicate ---


class TestDuplicate:
    """Existing redirect on the same source path."""

    def test_duplicate_error(self, reconciler, store, messenger) -> None:
        store.add(make_record(7, "/old-page"))

        outcome = reconciler.reconcile("/old-page", {}, make_entity(entity_id=9))

        assert outcome.kind == OutcomeKind.DUPLICATE
        assert outcome.redirect is not None
        assert outcome.redirect.id == 7
        assert len(store.list_all()) == 1
        last = messenger.get_last_message()
        assert last.severity == "error"
        assert "/old-page" in last.message
        assert "/api/admin/redirects/7" in last.message

    def test_edit_link_from_config(self, store, messenger) -> None:
        store.add(make_record(7, "/old-page"))
        config = RedirectSourceConfig(edit_form_path="/admin/config/redirect/edit/{id}")
        reconciler = RedirectReconciler(store, messenger, config)

        reconciler.reconcile("/old-page", {}, make_entity())

        assert "/admin/config/redirect/edit/7" in messenger.get_last_message().message

    def test_first_match_wins(self, reconciler, store) -> None:
        store.add(make_record(3, "/old-page"))
        store.add(make_record(4, "/old-page"))

        outcome = reconciler.reconcile("/old-page", {}, make_entity())

        assert outcome.redirect.id == 3

    def test_match_is_exact(self, reconciler, store) -> None:
        store.add(make_record(7, "/old-page/"))
        outcome = reconciler.reconcile("/old-page", {}, make_entity())
        assert outcome.kind == OutcomeKind.CREATED

    def test_new_entity_with_same_id_is_duplicate(self, reconciler, store, messenger) -> None:
        store.add(make_record(9, "/old-page"))

        outcome = reconciler.reconcile("/old-page", {}, make_entity(entity_id=9, is_new=True))

        assert outcome.kind == OutcomeKind.DUPLICATE
        assert messenger.message_count == 1


# --- Unchanged ---


class TestUnchanged:
    """Updated entity re-saving its own redirect."""

    def test_same_id_on_update_is_silent(self, reconciler, store, messenger) -> None:
        store.add(make_record(9, "/old-page", uri="internal:/node/9"))

        outcome = reconciler.reconcile("/old-page", {}, make_entity(entity_id=9, is_new=False))

        assert outcome.kind == OutcomeKind.UNCHANGED
        assert outcome.message is None
        assert outcome.redirect.id == 9
        assert messenger.message_count == 0
        assert len(store.list_all()) == 1

    def test_idempotent_resave(self, reconciler, store, messenger) -> None:
        entity = make_entity(entity_id=1, internal_path="node/1")
        first = reconciler.reconcile("/old-page", {}, entity)
        assert first.kind == OutcomeKind.CREATED
        messenger.drain()

        for _ in range(3):
            again = reconciler.reconcile("/old-page", {}, entity)
            assert again.kind == OutcomeKind.UNCHANGED

        assert len(store.list_all()) == 1
        assert messenger.message_count == 0


# --- Post-save hook ---


class TestPostSave:
    """Post-save hook filtering."""

    def test_config_entity_skipped(self, reconciler, store, messenger) -> None:
        entity = make_entity(kind="config", path="/old-page")

        assert reconciler.post_save(entity) is None
        assert store.queries == []
        assert messenger.message_count == 0

    @pytest.mark.parametrize("path", [None, ""])
    def test_empty_field_skipped(self, reconciler, store, path) -> None:
        entity = make_entity()
        if path is not None:
            entity = entity.model_copy(update={"redirect_source": RedirectSourceValue(path=path)})

        assert reconciler.post_save(entity) is None
        assert store.queries == []

    def test_reconciles_field_value(self, reconciler, store) -> None:
        outcome = reconciler.post_save(make_entity(path="/old-page"))
        assert outcome is not None
        assert outcome.kind == OutcomeKind.CREATED
        assert store.list_all()[0].source_path == "/old-page"


# --- Store failures ---


class TestStoreFailures:
    """Store errors surface to the caller."""

    def test_query_failure_propagates(self, messenger) -> None:
        reconciler = RedirectReconciler(FailingStore(), messenger)

        with pytest.raises(RedirectStoreError):
            reconciler.reconcile("/old-page", {}, make_entity())

        assert messenger.message_count == 0

    def test_create_failure_propagates(self, messenger) -> None:
        store = CreateFailingStore()
        reconciler = RedirectReconciler(store, messenger)

        with pytest.raises(RedirectStoreError):
            reconciler.reconcile("/old-page", {}, make_entity())

        assert store.queries == ["/old-page"]
        assert messenger.message_count == 0
        assert messenger.get_messages_with_severity("status") == []


# --- Component entry points ---


class TestEntryPoints:
    """Test run_* functions."""

    def test_run_reconcile(self, store, messenger) -> None:
        inp = ReconcileInput(source_path="/old-page", host_entity=make_entity())
        output = run_reconcile(inp, store=store, messenger=messenger)
        assert output.outcome.kind == OutcomeKind.CREATED

    def test_run_reconcile_skips_config_entity(self, store, messenger) -> None:
        inp = ReconcileInput(source_path="/old-page", host_entity=make_entity(kind="config"))
        output = run_reconcile(inp, store=store, messenger=messenger)
        assert output.outcome is None
        assert store.list_all() == []

    def test_run_post_save(self, store, messenger) -> None:
        inp = PostSaveInput(host_entity=make_entity(path="/old-page"))
        output = run_post_save(inp, store=store, messenger=messenger)
        assert output.outcome.kind == OutcomeKind.CREATED

    def test_run_uses_rules(self, store, messenger) -> None:
        rules = RedirectSourceRulesAdapter(
            Rules(redirect_source=RedirectSourceRules(status_code=307))
        )
        inp = ReconcileInput(source_path="/old-page", host_entity=make_entity())

        run(inp, store=store, messenger=messenger, rules=rules)

        assert store.list_all()[0].status_code == 307

    def test_run_dispatches_post_save(self, store, messenger) -> None:
        output = run(
            PostSaveInput(host_entity=make_entity(kind="config", path="/x")),
            store=store,
            messenger=messenger,
        )
        assert output.outcome is None

    def test_run_rejects_unknown_input(self, store, messenger) -> None:
        with pytest.raises(ValueError, match="Unknown input type"):
            run("nope", store=store, messenger=messenger)  # type: ignore[arg-type]

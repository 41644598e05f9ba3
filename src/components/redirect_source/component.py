"""
Redirect source component - redirect reconciliation for host entity saves.

Invariants:
- I1: At most one redirect created per save
- I2: At most one message emitted per save
- I3: A source path that canonicalizes to the host's own URL never gets a redirect
- I4: A source path already claimed by another redirect never gets a second one
- I5: Malformed paths never raise
"""

from __future__ import annotations

from ._impl import (
    RedirectReconciler,
    RedirectSourceConfig,
    validate_source_value,
)
from .models import (
    PostSaveInput,
    ReconcileInput,
    ReconcileOutput,
    ValidateSourceInput,
    ValidateSourceOutput,
)
from .ports import MessengerPort, RedirectStorePort, RulesPort


def _build_config(rules: RulesPort | None) -> RedirectSourceConfig:
    """Build reconciler config from rules port."""
    if rules is None:
        return RedirectSourceConfig()

    return RedirectSourceConfig(
        status_code=rules.get_status_code(),
        max_path_length=rules.get_max_path_length(),
        content_entity_kinds=tuple(rules.get_content_entity_kinds()),
        canonical_schemes=tuple(rules.get_canonical_schemes()),
        edit_form_path=rules.get_edit_form_path(),
    )


def _create_reconciler(
    store: RedirectStorePort,
    messenger: MessengerPort,
    rules: RulesPort | None,
) -> RedirectReconciler:
    """Create reconciler from ports."""
    return RedirectReconciler(
        store=store,
        messenger=messenger,
        config=_build_config(rules),
    )


# --- Component Entry Points ---


def run_reconcile(
    inp: ReconcileInput,
    *,
    store: RedirectStorePort,
    messenger: MessengerPort,
    rules: RulesPort | None = None,
) -> ReconcileOutput:
    """
    Reconcile a source path for a host entity.

    Args:
        inp: Input containing source path, query and host entity.
        store: Redirect store port.
        messenger: Messaging sink port.
        rules: Optional rules port for configuration.

    Returns:
        ReconcileOutput with the outcome. Non-content entities are skipped.
    """
    reconciler = _create_reconciler(store, messenger, rules)

    if not reconciler.is_content_entity(inp.host_entity):
        return ReconcileOutput(outcome=None)

    outcome = reconciler.reconcile(inp.source_path, inp.query, inp.host_entity)
    return ReconcileOutput(outcome=outcome)


def run_post_save(
    inp: PostSaveInput,
    *,
    store: RedirectStorePort,
    messenger: MessengerPort,
    rules: RulesPort | None = None,
) -> ReconcileOutput:
    """
    Post-save hook: reconcile the host entity's own redirect source field.

    Args:
        inp: Input containing the saved host entity.
        store: Redirect store port.
        messenger: Messaging sink port.
        rules: Optional rules port for configuration.

    Returns:
        ReconcileOutput; outcome is None for skipped entities or empty fields.
    """
    reconciler = _create_reconciler(store, messenger, rules)
    return ReconcileOutput(outcome=reconciler.post_save(inp.host_entity))


def run_validate(
    inp: ValidateSourceInput,
    *,
    rules: RulesPort | None = None,
) -> ValidateSourceOutput:
    """Validate a redirect source field value before the host save."""
    errors = validate_source_value(inp.value, _build_config(rules))
    return ValidateSourceOutput(errors=errors, success=len(errors) == 0)


def run(
    inp: ReconcileInput | PostSaveInput,
    *,
    store: RedirectStorePort,
    messenger: MessengerPort,
    rules: RulesPort | None = None,
) -> ReconcileOutput:
    """
    Main entry point for the redirect source component.

    Dispatches to appropriate handler based on input type.
    """
    if isinstance(inp, ReconcileInput):
        return run_reconcile(inp, store=store, messenger=messenger, rules=rules)
    elif isinstance(inp, PostSaveInput):
        return run_post_save(inp, store=store, messenger=messenger, rules=rules)
    else:
        raise ValueError(f"Unknown input type: {type(inp)}")

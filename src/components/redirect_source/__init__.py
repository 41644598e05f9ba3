"""
Redirect source component - auto-created redirects for host entities.
"""

from ._impl import (
    CREATED_MESSAGE,
    DUPLICATE_MESSAGE,
    SELF_LOOP_MESSAGE,
    CanonicalUrl,
    Malformed,
    ParseResult,
    RedirectReconciler,
    RedirectSourceConfig,
    create_reconciler,
    host_redirect_uri,
    parse_internal_uri,
    source_to_internal_uri,
    urls_equal,
    validate_source_value,
)
from .component import (
    run,
    run_post_save,
    run_reconcile,
    run_validate,
)
from .models import (
    Message,
    OutcomeKind,
    PostSaveInput,
    ReconcileInput,
    ReconcileOutput,
    ReconciliationOutcome,
    RedirectSourceValidationError,
    ValidateSourceInput,
    ValidateSourceOutput,
)
from .ports import HostEntityPort, MessengerPort, RedirectStorePort, RulesPort

__all__ = [
    # Entry points
    "run",
    "run_post_save",
    "run_reconcile",
    "run_validate",
    # Input models
    "PostSaveInput",
    "ReconcileInput",
    "ValidateSourceInput",
    # Output models
    "Message",
    "OutcomeKind",
    "ReconcileOutput",
    "ReconciliationOutcome",
    "RedirectSourceValidationError",
    "ValidateSourceOutput",
    # Ports
    "HostEntityPort",
    "MessengerPort",
    "RedirectStorePort",
    "RulesPort",
    # _impl re-exports
    "CREATED_MESSAGE",
    "DUPLICATE_MESSAGE",
    "SELF_LOOP_MESSAGE",
    "CanonicalUrl",
    "Malformed",
    "ParseResult",
    "RedirectReconciler",
    "RedirectSourceConfig",
    "create_reconciler",
    "host_redirect_uri",
    "parse_internal_uri",
    "source_to_internal_uri",
    "urls_equal",
    "validate_source_value",
]

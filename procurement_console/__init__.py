"""Public API for the procurement_console package.

Only symbols imported here are considered part of the stable,
supported external interface.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

# ----------------------------------------------------------------------
# Config API
# ----------------------------------------------------------------------
from procurement_console.config.settings import ConsoleSettings

# ----------------------------------------------------------------------
# Authentication
# ----------------------------------------------------------------------
from procurement_console.core.auth.token_cache import TokenCache

# ----------------------------------------------------------------------
# Domain types and errors
# ----------------------------------------------------------------------
from procurement_console.core.domain.errors import (
    AuthenticationError,
    ConfigurationError,
    DependentEffectFailure,
    InvalidTransitionError,
    NoOpError,
    PersistenceError,
    ProcurementConsoleError,
    ServiceCallError,
)
from procurement_console.core.domain.status_normalizer import normalize
from procurement_console.core.domain.types import (
    LineItem,
    Notification,
    Order,
    OrderStatus,
    SideEffectOutcome,
    SideEffectResult,
    SideEffectTarget,
    Vendor,
    VendorData,
    VendorRef,
)

# ----------------------------------------------------------------------
# Services
# ----------------------------------------------------------------------
from procurement_console.core.orchestration.aggregation import (
    AggregateKind,
    AggregateOutcome,
    aggregate,
)
from procurement_console.core.orchestration.order_intake import (
    LineItemDraft,
    OrderDraft,
    OrderIntakeService,
)
from procurement_console.core.orchestration.transition_orchestrator import (
    OrderTransitionOrchestrator,
    TransitionResult,
    notification_for_error,
)
from procurement_console.core.orchestration.vendor_onboarding import VendorOnboardingService
from procurement_console.runtime.console import Console, build_console

# ----------------------------------------------------------------------
# Public API definition
# ----------------------------------------------------------------------

__all__ = [
    # Config
    "ConsoleSettings",
    "Console",
    "build_console",

    # Services
    "OrderTransitionOrchestrator",
    "TransitionResult",
    "OrderIntakeService",
    "OrderDraft",
    "LineItemDraft",
    "VendorOnboardingService",
    "TokenCache",
    "aggregate",
    "AggregateKind",
    "AggregateOutcome",
    "normalize",
    "notification_for_error",

    # Domain
    "Order",
    "OrderStatus",
    "LineItem",
    "Vendor",
    "VendorData",
    "VendorRef",
    "Notification",
    "SideEffectOutcome",
    "SideEffectResult",
    "SideEffectTarget",

    # Errors
    "ProcurementConsoleError",
    "ConfigurationError",
    "AuthenticationError",
    "InvalidTransitionError",
    "NoOpError",
    "PersistenceError",
    "ServiceCallError",
    "DependentEffectFailure",

    # Version
    "__version__",
]

# ----------------------------------------------------------------------
# Package version
# ----------------------------------------------------------------------

try:
    __version__ = version("procurement-console")
except PackageNotFoundError:
    __version__ = "0.0.0"

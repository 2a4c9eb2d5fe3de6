"""Typed errors raised by the console services and REST adapters.

Only PersistenceError aborts a status transition. Failures of dependent
effects are raised by the task and inventory adapters as
DependentEffectFailure and are always converted into SideEffectOutcome
values by the orchestrator.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from procurement_console.core.domain.types import OrderStatus


class ProcurementConsoleError(Exception):
    """Base class for all console errors."""


class ConfigurationError(ProcurementConsoleError):
    """Settings are missing or invalid."""


class AuthenticationError(ProcurementConsoleError):
    """CRM login failed or the CRM credentials are not configured."""


class InvalidTransitionError(ProcurementConsoleError):
    """The requested status change is not allowed from the current status."""

    def __init__(self, *, order_id: int, current: OrderStatus, requested: OrderStatus) -> None:
        self.order_id = order_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"Cannot change order {order_id} from {current.value} to {requested.value}"
        )


class NoOpError(ProcurementConsoleError):
    """The requested status equals the current status; callers skip silently."""

    def __init__(self, *, order_id: int, status: OrderStatus) -> None:
        self.order_id = order_id
        self.status = status
        super().__init__(f"Order {order_id} is already {status.value}")


class PersistenceError(ProcurementConsoleError):
    """The purchasing API did not persist the requested status."""

    def __init__(self, *, order_id: int, requested: OrderStatus, reason: str) -> None:
        self.order_id = order_id
        self.requested = requested
        self.reason = reason
        super().__init__(
            f"Could not persist status {requested.value} for order {order_id}: {reason}"
        )


class ServiceCallError(ProcurementConsoleError):
    """A REST backend call failed.

    status_code is None for transport failures (timeout, connection reset).
    """

    def __init__(self, *, service: str, message: str, status_code: int | None = None) -> None:
        self.service = service
        self.status_code = status_code
        self.message = message
        suffix = f" (HTTP {status_code})" if status_code is not None else ""
        super().__init__(f"{service}: {message}{suffix}")

    @property
    def is_server_error(self) -> bool:
        """True for 5xx answers and for transport failures."""
        return self.status_code is None or self.status_code >= 500


class DependentEffectFailure(ServiceCallError):
    """A best-effort call to the task or inventory service failed."""

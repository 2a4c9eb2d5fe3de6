"""Order status transition orchestrator.

A transition is a saga with one authoritative step and best-effort
followers:

1. persist the requested status through the purchasing API (authoritative;
   failure aborts the transition and restores the in-memory status)
2. normalize the status the backend reports back
3. fan out dependent effects keyed on the normalized status
   (task sync; for DELIVERED also one inventory adjustment per line item)
4. fold the inventory outcomes into one AggregateOutcome

Dependent effects never roll back step 1, and nothing here is retried:
replaying step 3 would duplicate inventory adjustments.
"""

from __future__ import annotations

import logging
from concurrent.futures import ALL_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable

from procurement_console.core.domain.errors import (
    InvalidTransitionError,
    NoOpError,
    PersistenceError,
    ProcurementConsoleError,
    ServiceCallError,
)
from procurement_console.core.domain.order_state_machine import (
    build_transition_table,
    is_terminal_state,
    is_valid_transition,
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
)
from procurement_console.core.events.events import (
    OrderStatusTransitionEvent,
    SideEffectSettledEvent,
    TransitionRejectedEvent,
    TransitionReportedEvent,
)
from procurement_console.core.orchestration.aggregation import (
    AggregateOutcome,
    aggregate,
    inventory_notification,
)
from procurement_console.core.orchestration.task_sync import TaskStatusSync

if TYPE_CHECKING:
    from procurement_console.core.events.event_bus import EventBus
    from procurement_console.core.ports.inventory_port import InventoryPort
    from procurement_console.core.ports.purchasing_port import PurchasingPort
    from procurement_console.core.ports.task_port import TaskPort

LOGGER = logging.getLogger(__name__)

INVENTORY_REASON_TEMPLATE = "Compra recibida OC-{order_id}"

TASK_UNAVAILABLE_MESSAGE = "Task service is unavailable"


@dataclass(slots=True)
class TransitionResult:
    """Outcome of one successful transition.

    - status: the normalized status the purchasing API persisted
    - effects_summary: inventory aggregate, None when the status adjusts no stock
    - task_outcome: task sync outcome, None when the status has no task counterpart
    - notifications: exactly one primary notification, plus a task warning
      when the task service failed server-side
    """

    order_id: int
    previous_status: OrderStatus
    status: OrderStatus
    effects_summary: AggregateOutcome | None
    task_outcome: SideEffectOutcome | None
    inventory_outcomes: list[SideEffectOutcome] = field(default_factory=list)
    notifications: list[Notification] = field(default_factory=list)


class OrderTransitionOrchestrator:
    """State machine governing legal order status changes and their consequences."""

    # pylint: disable=too-many-instance-attributes

    def __init__(
        self,
        *,
        purchasing: PurchasingPort,
        tasks: TaskPort,
        inventory: InventoryPort,
        event_bus: EventBus,
        allow_approved_to_rejected: bool = True,
        max_inventory_workers: int = 8,
        task_in_progress_state: str = "En Progreso",
        task_completed_state: str = "Completada",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if max_inventory_workers < 1:
            raise ValueError("max_inventory_workers must be >= 1")

        self._purchasing = purchasing
        self._inventory = inventory
        self._event_bus = event_bus
        self._transitions = build_transition_table(
            allow_approved_to_rejected=allow_approved_to_rejected,
        )
        self._max_inventory_workers = max_inventory_workers
        self._task_sync = TaskStatusSync(
            tasks=tasks,
            in_progress_state=task_in_progress_state,
            completed_state=task_completed_state,
        )
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def transition(self, order: Order, requested_status: OrderStatus) -> TransitionResult:
        """Change the order's status and run the dependent effects.

        Raises:
            NoOpError: requested status equals the current one (no calls made).
            InvalidTransitionError: current status is terminal or the edge is
                not allowed (no calls made).
            PersistenceError: the purchasing API did not persist the status;
                no dependent effect was attempted.
        """
        previous = order.status
        self._validate(order, requested_status)

        persisted = self._persist(order, requested_status)

        self._event_bus.emit(
            OrderStatusTransitionEvent(
                order_id=order.id,
                prev_status=previous.value,
                requested_status=requested_status.value,
                persisted_status=persisted.value,
            )
        )
        LOGGER.info(
            "order_status_persisted",
            extra={
                "order_id": order.id,
                "prev_status": previous.value,
                "status": persisted.value,
            },
        )

        task_outcome = self._task_sync.sync(order.id, persisted)
        if task_outcome is not None:
            self._emit_settled(order.id, task_outcome)

        inventory_outcomes: list[SideEffectOutcome] = []
        effects_summary: AggregateOutcome | None = None
        if persisted is OrderStatus.DELIVERED:
            inventory_outcomes = self._adjust_inventory(order.id, order.line_items)
            effects_summary = aggregate(inventory_outcomes)

        result = TransitionResult(
            order_id=order.id,
            previous_status=previous,
            status=persisted,
            effects_summary=effects_summary,
            task_outcome=task_outcome,
            inventory_outcomes=inventory_outcomes,
            notifications=self._notifications(order.id, persisted, effects_summary, task_outcome),
        )

        self._event_bus.emit(
            TransitionReportedEvent(
                order_id=order.id,
                status=persisted.value,
                aggregate=effects_summary.kind.value if effects_summary else None,
                success_count=effects_summary.success_count if effects_summary else 0,
                total_count=effects_summary.total_count if effects_summary else 0,
            )
        )
        return result

    def can_transition(self, order: Order, requested_status: OrderStatus) -> bool:
        """Return True if transition() would pass validation."""
        if requested_status is order.status or is_terminal_state(order.status):
            return False
        return is_valid_transition(order.status, requested_status, self._transitions)

    def available_transitions(self, order: Order) -> list[OrderStatus]:
        """Statuses a caller may offer for this order, in enum order."""
        return [status for status in OrderStatus if self.can_transition(order, status)]

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _validate(self, order: Order, requested_status: OrderStatus) -> None:
        if requested_status is order.status:
            self._reject(order, requested_status, "noop")
            raise NoOpError(order_id=order.id, status=order.status)

        if is_terminal_state(order.status) or not is_valid_transition(
            order.status, requested_status, self._transitions
        ):
            self._reject(order, requested_status, "invalid_transition")
            raise InvalidTransitionError(
                order_id=order.id,
                current=order.status,
                requested=requested_status,
            )

    def _persist(self, order: Order, requested_status: OrderStatus) -> OrderStatus:
        previous = order.status

        # Optimistic local update, restored if the backend does not confirm.
        order.status = requested_status
        try:
            raw_status = self._purchasing.update_order_status(order.id, requested_status)
        except ServiceCallError as exc:
            order.status = previous
            self._reject(order, requested_status, "persistence_failed")
            LOGGER.error(
                "order_status_persist_failed",
                extra={"order_id": order.id, "requested_status": requested_status.value},
            )
            raise PersistenceError(
                order_id=order.id,
                requested=requested_status,
                reason=str(exc),
            ) from exc
        except Exception:
            order.status = previous
            raise

        persisted = normalize(raw_status)
        if persisted is not requested_status:
            LOGGER.warning(
                "order_status_drift",
                extra={
                    "order_id": order.id,
                    "requested_status": requested_status.value,
                    "raw_status": raw_status,
                },
            )

        order.status = persisted
        order.last_status_change_at = self._clock()
        return persisted

    def _adjust_inventory(self, order_id: int, line_items: list[LineItem]) -> list[SideEffectOutcome]:
        """Issue one adjustment per line item concurrently and wait for all of them."""
        if not line_items:
            return []

        reason = INVENTORY_REASON_TEMPLATE.format(order_id=order_id)
        workers = min(len(line_items), self._max_inventory_workers)

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="inventory") as pool:
            futures: list[tuple[LineItem, Future[None]]] = [
                (
                    item,
                    pool.submit(
                        self._inventory.adjust,
                        product_id=item.product_id,
                        quantity=item.quantity,
                        reason=reason,
                    ),
                )
                for item in line_items
            ]
            wait([f for _, f in futures], return_when=ALL_COMPLETED)

        outcomes = [self._settle(order_id, item, future) for item, future in futures]
        for outcome in outcomes:
            self._emit_settled(order_id, outcome)
        return outcomes

    @staticmethod
    def _settle(order_id: int, item: LineItem, future: Future[None]) -> SideEffectOutcome:
        exc = future.exception()
        if exc is None:
            return SideEffectOutcome(
                target=SideEffectTarget.INVENTORY,
                result=SideEffectResult.SUCCESS,
                detail=f"product {item.product_id} +{item.quantity}",
            )

        if isinstance(exc, ProcurementConsoleError):
            LOGGER.error(
                "inventory_adjust_failed",
                extra={"order_id": order_id, "product_id": item.product_id, "error": str(exc)},
            )
        else:
            # A worker must not take the other adjustments down with it.
            LOGGER.error(
                "inventory_adjust_crashed",
                exc_info=exc,
                extra={"order_id": order_id, "product_id": item.product_id},
            )

        return SideEffectOutcome(
            target=SideEffectTarget.INVENTORY,
            result=SideEffectResult.FAILURE,
            detail=f"product {item.product_id}: {exc}",
        )

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    @staticmethod
    def _notifications(
        order_id: int,
        status: OrderStatus,
        effects_summary: AggregateOutcome | None,
        task_outcome: SideEffectOutcome | None,
    ) -> list[Notification]:
        if effects_summary is not None:
            notes = [inventory_notification(order_id, effects_summary)]
        else:
            notes = [Notification("success", f"Order {order_id} status updated to {status.value}")]

        if task_outcome is not None and not task_outcome.succeeded and task_outcome.user_visible:
            notes.append(Notification("warning", TASK_UNAVAILABLE_MESSAGE))
        return notes

    def _emit_settled(self, order_id: int, outcome: SideEffectOutcome) -> None:
        self._event_bus.emit(
            SideEffectSettledEvent(
                order_id=order_id,
                target=outcome.target.value,
                result=outcome.result.value,
                detail=outcome.detail,
            )
        )

    def _reject(self, order: Order, requested_status: OrderStatus, reason: str) -> None:
        self._event_bus.emit(
            TransitionRejectedEvent(
                order_id=order.id,
                current_status=order.status.value,
                requested_status=requested_status.value,
                reason=reason,
            )
        )


def notification_for_error(exc: ProcurementConsoleError) -> Notification | None:
    """User-facing message for a failed transition; None means skip silently."""
    if isinstance(exc, NoOpError):
        return None

    if isinstance(exc, InvalidTransitionError):
        if is_terminal_state(exc.current):
            return Notification("error", f"Cannot change a {exc.current.value} order")
        return Notification(
            "error",
            f"Cannot change order {exc.order_id} from {exc.current.value} to {exc.requested.value}",
        )

    if isinstance(exc, PersistenceError):
        return Notification("error", "Could not update status, try again")

    return Notification("error", str(exc))

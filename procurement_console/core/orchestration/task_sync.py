"""Synchronization of the auxiliary task attached to a purchase order.

There is no stored order -> task foreign key. The task created alongside an
order carries a title derived from the order id, and that title is the only
correlation key. TASK_TITLE_TEMPLATE must stay byte-identical to the one used
at order intake, otherwise lookups silently stop matching.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from procurement_console.core.domain.errors import ServiceCallError
from procurement_console.core.domain.types import (
    OrderStatus,
    SideEffectOutcome,
    SideEffectResult,
    SideEffectTarget,
)

if TYPE_CHECKING:
    from procurement_console.core.ports.task_port import TaskPort

LOGGER = logging.getLogger(__name__)

TASK_TITLE_TEMPLATE = "OC-{order_id} creada"


def task_title(order_id: int) -> str:
    return TASK_TITLE_TEMPLATE.format(order_id=order_id)


class TaskStatusSync:
    """Moves the order's task to the state matching a new order status."""

    def __init__(
        self,
        *,
        tasks: TaskPort,
        in_progress_state: str = "En Progreso",
        completed_state: str = "Completada",
    ) -> None:
        self._tasks = tasks
        self._target_states: dict[OrderStatus, str] = {
            OrderStatus.APPROVED: in_progress_state,
            OrderStatus.REJECTED: completed_state,
            OrderStatus.DELIVERED: completed_state,
        }

    def target_state(self, status: OrderStatus) -> str | None:
        """Return the task state for an order status, or None for no sync."""
        return self._target_states.get(status)

    def sync(self, order_id: int, status: OrderStatus) -> SideEffectOutcome | None:
        """Update the task; never raises, failures come back as a FAILURE outcome.

        Returns None when the order status has no task counterpart.
        """
        target_state = self.target_state(status)
        if target_state is None:
            return None

        title = task_title(order_id)
        try:
            task = self._tasks.find_by_title(title)
            if task is None:
                LOGGER.warning("task_not_found", extra={"order_id": order_id, "title": title})
                return SideEffectOutcome(
                    target=SideEffectTarget.TASK,
                    result=SideEffectResult.FAILURE,
                    detail=f"no task titled {title!r}",
                )

            self._tasks.update_status(task.id, target_state)
        except ServiceCallError as exc:
            LOGGER.error(
                "task_sync_failed",
                extra={"order_id": order_id, "status_code": exc.status_code, "error": str(exc)},
            )
            return SideEffectOutcome(
                target=SideEffectTarget.TASK,
                result=SideEffectResult.FAILURE,
                detail=str(exc),
                user_visible=exc.is_server_error,
            )
        except Exception as exc:  # pylint: disable=broad-except
            # The status is already persisted; a broken task client must not undo that.
            LOGGER.error("task_sync_crashed", exc_info=exc, extra={"order_id": order_id})
            return SideEffectOutcome(
                target=SideEffectTarget.TASK,
                result=SideEffectResult.FAILURE,
                detail=f"task sync crashed: {exc}",
                user_visible=True,
            )

        LOGGER.info(
            "task_status_updated",
            extra={"order_id": order_id, "task_id": task.id, "task_state": target_state},
        )
        return SideEffectOutcome(
            target=SideEffectTarget.TASK,
            result=SideEffectResult.SUCCESS,
            detail=f"task {task.id} moved to {target_state!r}",
        )

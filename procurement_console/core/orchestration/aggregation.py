"""Reduction of independent side-effect outcomes into one reportable class."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from procurement_console.core.domain.types import Notification, SideEffectOutcome


class AggregateKind(str, Enum):
    NOTHING_TO_ADJUST = "NOTHING_TO_ADJUST"
    ALL_SUCCEEDED = "ALL_SUCCEEDED"
    PARTIAL = "PARTIAL"
    ALL_FAILED = "ALL_FAILED"


@dataclass(frozen=True, slots=True)
class AggregateOutcome:
    kind: AggregateKind
    success_count: int
    total_count: int

    @property
    def ratio(self) -> str:
        return f"{self.success_count}/{self.total_count}"


def aggregate(outcomes: Iterable[SideEffectOutcome]) -> AggregateOutcome:
    """Classify a set of settled outcomes.

    - empty input -> NOTHING_TO_ADJUST (never ALL_SUCCEEDED)
    - every outcome succeeded -> ALL_SUCCEEDED
    - every outcome failed -> ALL_FAILED
    - otherwise PARTIAL, carrying success_count out of total_count
    """
    settled = list(outcomes)
    total = len(settled)
    successes = sum(1 for outcome in settled if outcome.succeeded)

    if total == 0:
        kind = AggregateKind.NOTHING_TO_ADJUST
    elif successes == total:
        kind = AggregateKind.ALL_SUCCEEDED
    elif successes == 0:
        kind = AggregateKind.ALL_FAILED
    else:
        kind = AggregateKind.PARTIAL

    return AggregateOutcome(kind=kind, success_count=successes, total_count=total)


def inventory_notification(order_id: int, outcome: AggregateOutcome) -> Notification:
    """User-facing message for the inventory fan-out of a delivered order."""
    if outcome.kind is AggregateKind.ALL_SUCCEEDED:
        return Notification("success", f"Inventory updated for order {order_id}")

    if outcome.kind is AggregateKind.PARTIAL:
        return Notification(
            "warning",
            f"Inventory partially updated ({outcome.ratio}) for order {order_id}",
        )

    if outcome.kind is AggregateKind.ALL_FAILED:
        return Notification("error", f"Could not update inventory for order {order_id}")

    return Notification("warning", f"Order {order_id}: no line items to adjust inventory")

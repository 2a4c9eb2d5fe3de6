"""
Domain event models.

These events record facts observed while a status transition runs. They
are consumed by the logging sink, the metrics sink and by tests.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class OrderStatusTransitionEvent:
    order_id: int
    prev_status: str
    requested_status: str
    persisted_status: str


@dataclass(slots=True)
class TransitionRejectedEvent:
    order_id: int
    current_status: str
    requested_status: str
    reason: str  # "noop", "invalid_transition", "persistence_failed"


@dataclass(slots=True)
class SideEffectSettledEvent:
    order_id: int
    target: str
    result: str
    detail: str


@dataclass(slots=True)
class TransitionReportedEvent:
    order_id: int
    status: str

    aggregate: str | None
    success_count: int
    total_count: int

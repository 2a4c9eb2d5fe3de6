"""
Semantic test: Prometheus counters follow transition events.

Invariant:
Each persisted transition increments the transitions counter for its
persisted status, each refusal increments the rejections counter for its
reason, and each settled dependent call increments the side-effects
counter for its target and result. Without a Pushgateway, pushing is a
no-op.
"""

from __future__ import annotations

import pytest

from procurement_console.core.domain.errors import NoOpError
from procurement_console.core.domain.types import OrderStatus
from procurement_console.core.events.event_bus import EventBus
from procurement_console.core.orchestration.transition_orchestrator import OrderTransitionOrchestrator
from procurement_console.runtime.metrics import TransitionMetricsSink


@pytest.fixture
def metrics() -> TransitionMetricsSink:
    return TransitionMetricsSink(environ={})


def test_counters_track_a_delivery(metrics, order_factory, inventory_factory, purchasing, tasks) -> None:
    tasks.add(1, "OC-42 creada")
    orchestrator = OrderTransitionOrchestrator(
        purchasing=purchasing,
        tasks=tasks,
        inventory=inventory_factory(fail_products={101}),
        event_bus=EventBus([metrics]),
    )

    orchestrator.transition(order_factory(42, OrderStatus.APPROVED, [2, 1, 5]), OrderStatus.DELIVERED)

    assert metrics.value("procurement_order_transitions", {"status": "DELIVERED"}) == 1.0
    assert metrics.value("procurement_side_effects", {"target": "INVENTORY", "result": "SUCCESS"}) == 2.0
    assert metrics.value("procurement_side_effects", {"target": "INVENTORY", "result": "FAILURE"}) == 1.0
    assert metrics.value("procurement_side_effects", {"target": "TASK", "result": "SUCCESS"}) == 1.0


def test_rejections_are_counted_by_reason(metrics, order_factory, purchasing, tasks, inventory) -> None:
    orchestrator = OrderTransitionOrchestrator(
        purchasing=purchasing,
        tasks=tasks,
        inventory=inventory,
        event_bus=EventBus([metrics]),
    )

    with pytest.raises(NoOpError):
        orchestrator.transition(order_factory(1, OrderStatus.PENDING), OrderStatus.PENDING)

    assert metrics.value("procurement_order_transition_rejections", {"reason": "noop"}) == 1.0
    assert metrics.value("procurement_order_transitions", {"status": "PENDING"}) == 0.0


def test_push_is_disabled_without_gateway(metrics) -> None:
    assert not metrics.is_enabled()
    metrics.close()


def test_invalid_grouping_key_is_ignored() -> None:
    sink = TransitionMetricsSink(
        environ={
            "PROMETHEUS_PUSHGATEWAY_URL": "http://127.0.0.1:9",
            "PROMETHEUS_PUSHGATEWAY_GROUPING_KEY_JSON": "{not json",
        }
    )

    assert sink.is_enabled()
    assert sink._grouping_key == {}

"""
Semantic test: order intake creates the order and its companion task.

Invariant:
Line prices include tax: total is the sum of line subtotals and the tax
is split out at the configured rate. The companion task is titled
"OC-{id} creada" so later status changes can find it. A task failure
only adds a warning; the created order is still returned.
"""

from __future__ import annotations

import random
import re
from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from procurement_console.config.settings import ConsoleSettings
from procurement_console.core.domain.errors import DependentEffectFailure, ServiceCallError
from procurement_console.core.domain.types import Notification
from procurement_console.core.orchestration.order_intake import (
    LineItemDraft,
    OrderDraft,
    OrderIntakeService,
    compute_totals,
    generate_order_number,
)

TODAY = date(2026, 3, 10)


@pytest.fixture
def settings() -> ConsoleSettings:
    return ConsoleSettings.from_json_obj(
        {
            "purchasing": {"base_url": "http://purchasing"},
            "inventory": {"base_url": "http://inventory"},
            "tasks": {"base_url": "http://tasks"},
        }
    )


@pytest.fixture
def service(purchasing, tasks, settings) -> OrderIntakeService:
    return OrderIntakeService(
        purchasing=purchasing,
        tasks=tasks,
        settings=settings,
        today=lambda: TODAY,
        rng=random.Random(7),
    )


def _draft(**kwargs) -> OrderDraft:
    return OrderDraft(
        vendor_id=3,
        lines=[LineItemDraft(product_id=5, quantity=2, unit_price=Decimal("56.00"))],
        **kwargs,
    )


def test_tax_is_split_out_of_inclusive_prices() -> None:
    totals = compute_totals(
        [LineItemDraft(product_id=1, quantity=2, unit_price=Decimal("56.00"))],
        Decimal("0.12"),
    )

    assert totals.total == Decimal("112.00")
    assert totals.subtotal == Decimal("100.00")
    assert totals.tax == Decimal("12.00")


def test_discount_and_rounding() -> None:
    totals = compute_totals(
        [LineItemDraft(product_id=1, quantity=1, unit_price=Decimal("100"), discount_pct=Decimal("10"))],
        Decimal("0.12"),
    )

    assert totals.total == Decimal("90.00")
    assert totals.subtotal == Decimal("80.36")
    assert totals.tax == Decimal("9.64")
    assert totals.subtotal + totals.tax == totals.total


def test_order_number_format() -> None:
    number = generate_order_number(TODAY, random.Random(1))
    assert re.fullmatch(r"OC-2026-\d{3}", number)


def test_payload_shape(service) -> None:
    payload = service.build_payload(_draft(expected_delivery_date=date(2026, 3, 20)))

    header = payload["orden"]
    assert header["id_proveedor"] == 3
    assert header["estado"] == "pendiente"
    assert header["fecha_orden"] == "2026-03-10"
    assert header["fecha_entrega_esperada"] == "2026-03-20"
    assert header["total"] == 112.0
    assert header["moneda"] == "GTQ"
    assert payload["detalles"] == [
        {
            "id_producto": 5,
            "cantidad": 2,
            "precio_unitario": 56.0,
            "descuento": 0.0,
            "descripcion_producto": "Producto 5",
            "numero_linea": 1,
        }
    ]


def test_create_order_creates_correlated_task(service, purchasing, tasks) -> None:
    result = service.create_order(_draft())

    assert result.order.id == 100
    assert result.task_created
    assert len(purchasing.created_orders) == 1

    task = tasks.created[0]
    assert task["titulo"] == "OC-100 creada"
    assert task["fecha_limite"] == "2026-03-13 12:00:00"
    assert task["estado"] == "Pendiente"
    assert task["prioridad"] == "Alta"
    assert task["asignado_a"] == "1"
    assert task["descripcion"] == "Orden de compra #100 para proveedor ACME. Total: 112.00"

    assert result.notifications == [
        Notification("success", "Order 100 created"),
        Notification("success", "Task created for order 100"),
    ]


def test_expected_delivery_date_is_the_task_deadline(service, tasks) -> None:
    service.create_order(_draft(expected_delivery_date=date(2026, 4, 1)))

    assert tasks.created[0]["fecha_limite"] == "2026-04-01 12:00:00"


def test_task_failure_keeps_the_order(service, tasks) -> None:
    tasks.fail_with = DependentEffectFailure(service="tasks", message="down", status_code=503)

    result = service.create_order(_draft())

    assert result.order.id == 100
    assert not result.task_created
    assert result.notifications[-1] == Notification(
        "warning", "Order 100 was created, but its task could not be created"
    )


def test_purchasing_failure_propagates(service, purchasing, tasks) -> None:
    purchasing.fail_with = ServiceCallError(service="purchasing", message="down", status_code=500)

    with pytest.raises(ServiceCallError):
        service.create_order(_draft())
    assert tasks.created == []


def test_draft_requires_lines() -> None:
    with pytest.raises(ValidationError):
        OrderDraft(vendor_id=1, lines=[])

    with pytest.raises(ValidationError):
        LineItemDraft(product_id=1, quantity=0, unit_price=Decimal("1"))

"""Purchase order intake.

Creating an order is a two-step flow: the order itself (authoritative) and
an auxiliary task in the task service (best-effort). The task title is the
correlation key later used by TaskStatusSync.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Any, Callable

from pydantic import BaseModel, ConfigDict, Field

from procurement_console.core.domain.errors import ServiceCallError
from procurement_console.core.domain.types import Notification, Order
from procurement_console.core.orchestration.task_sync import task_title

if TYPE_CHECKING:
    from procurement_console.config.settings import ConsoleSettings
    from procurement_console.core.ports.purchasing_port import PurchasingPort
    from procurement_console.core.ports.task_port import TaskPort

LOGGER = logging.getLogger(__name__)

CENTS = Decimal("0.01")


class LineItemDraft(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0)
    discount_pct: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    description: str | None = None

    model_config = ConfigDict(extra="forbid")

    @property
    def line_subtotal(self) -> Decimal:
        return self.quantity * self.unit_price * (1 - self.discount_pct / 100)


class OrderDraft(BaseModel):
    """Order as entered by a user, before the backend assigns an id."""

    vendor_id: int = Field(..., gt=0)
    expected_delivery_date: date | None = None
    lines: list[LineItemDraft] = Field(..., min_length=1)

    model_config = ConfigDict(extra="forbid")


@dataclass(frozen=True, slots=True)
class OrderTotals:
    subtotal: Decimal
    tax: Decimal
    total: Decimal


@dataclass(slots=True)
class IntakeResult:
    order: Order
    task_created: bool
    notifications: list[Notification] = field(default_factory=list)


def compute_totals(lines: list[LineItemDraft], tax_rate: Decimal) -> OrderTotals:
    """Split tax out of tax-inclusive line prices.

    total = sum of line subtotals; subtotal = total / (1 + tax_rate);
    tax = total - subtotal. Values are rounded to cents.
    """
    gross = sum((line.line_subtotal for line in lines), Decimal("0"))
    total = gross.quantize(CENTS, rounding=ROUND_HALF_UP)
    subtotal = (gross / (1 + tax_rate)).quantize(CENTS, rounding=ROUND_HALF_UP)
    return OrderTotals(subtotal=subtotal, tax=total - subtotal, total=total)


def generate_order_number(today: date, rng: random.Random | None = None) -> str:
    """Return an order number of the form OC-<year>-<NNN>."""
    rand = rng or random.Random()
    return f"OC-{today.year}-{rand.randint(0, 999):03d}"


class OrderIntakeService:
    """Creates purchase orders and their companion task."""

    def __init__(
        self,
        *,
        purchasing: PurchasingPort,
        tasks: TaskPort,
        settings: ConsoleSettings,
        today: Callable[[], date] = date.today,
        rng: random.Random | None = None,
        created_by: int = 1,
    ) -> None:
        self._purchasing = purchasing
        self._tasks = tasks
        self._settings = settings
        self._today = today
        self._rng = rng or random.Random()
        self._created_by = created_by

    def build_payload(self, draft: OrderDraft) -> dict[str, Any]:
        """Return the purchasing API payload for a draft."""
        today = self._today()
        totals = compute_totals(draft.lines, self._settings.tax_rate)

        return {
            "orden": {
                "id_proveedor": draft.vendor_id,
                "numero_orden": generate_order_number(today, self._rng),
                "fecha_orden": today.isoformat(),
                "fecha_entrega_esperada": (
                    draft.expected_delivery_date.isoformat() if draft.expected_delivery_date else None
                ),
                "estado": "pendiente",
                "subtotal": float(totals.subtotal),
                "impuestos": float(totals.tax),
                "total": float(totals.total),
                "moneda": self._settings.currency,
                "terminos_pago": self._settings.payment_terms,
                "observaciones": "Orden creada desde el sistema",
                "creado_por": self._created_by,
            },
            "detalles": [
                {
                    "id_producto": line.product_id,
                    "cantidad": line.quantity,
                    "precio_unitario": float(line.unit_price),
                    "descuento": float(line.discount_pct),
                    "descripcion_producto": line.description or f"Producto {line.product_id}",
                    "numero_linea": index,
                }
                for index, line in enumerate(draft.lines, start=1)
            ],
        }

    def create_order(self, draft: OrderDraft) -> IntakeResult:
        """Create the order, then try to create its task.

        A purchasing failure propagates as ServiceCallError. A task failure
        only adds a warning; the order is still returned.
        """
        order = self._purchasing.create_order(self.build_payload(draft))
        LOGGER.info("order_created", extra={"order_id": order.id, "vendor_id": draft.vendor_id})

        notifications = [Notification("success", f"Order {order.id} created")]
        totals = compute_totals(draft.lines, self._settings.tax_rate)

        try:
            self._tasks.create(self.build_task_payload(order, draft, totals.total))
        except ServiceCallError as exc:
            LOGGER.error("order_task_create_failed", extra={"order_id": order.id, "error": str(exc)})
            notifications.append(
                Notification("warning", f"Order {order.id} was created, but its task could not be created")
            )
            return IntakeResult(order=order, task_created=False, notifications=notifications)

        notifications.append(Notification("success", f"Task created for order {order.id}"))
        return IntakeResult(order=order, task_created=True, notifications=notifications)

    def build_task_payload(self, order: Order, draft: OrderDraft, total: Decimal) -> dict[str, Any]:
        task_settings = self._settings.tasks
        vendor_label = order.vendor.name or str(order.vendor.id)

        return {
            "titulo": task_title(order.id),
            "descripcion": f"Orden de compra #{order.id} para proveedor {vendor_label}. Total: {total:.2f}",
            "fecha_limite": self._due_date(draft.expected_delivery_date),
            "estado": task_settings.initial_state,
            "prioridad": task_settings.default_priority,
            "asignado_a": task_settings.default_assignee,
        }

    def _due_date(self, expected: date | None) -> str:
        due = expected or self._today() + timedelta(days=self._settings.tasks.default_due_days)
        return datetime(due.year, due.month, due.day, 12, 0, 0).strftime("%Y-%m-%d %H:%M:%S")

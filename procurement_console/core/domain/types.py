"""Core shared data models.

This module defines the canonical models used across the console: vendors,
purchase orders and their line items, and the transient values produced
while a status transition fans out to dependent services. Backend payloads
are mapped onto these models by the REST adapters; nothing here talks to
the network.
"""

# pylint: disable=missing-class-docstring
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class OrderStatus(str, Enum):
    """Closed set of canonical purchase order states."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    DELIVERED = "DELIVERED"


class SideEffectTarget(str, Enum):
    TASK = "TASK"
    INVENTORY = "INVENTORY"


class SideEffectResult(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


# ---------------------------------------------------------------------------
# Vendors
# ---------------------------------------------------------------------------


class VendorRef(BaseModel):
    """Vendor reference denormalized onto an order."""

    id: int
    name: str | None = None

    model_config = ConfigDict(extra="forbid", frozen=True)


class Vendor(BaseModel):
    id: int
    name: str = Field(..., min_length=1)
    tax_id: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    contact: str | None = None
    city: str | None = None
    country: str | None = None
    status: str | None = None
    registered_at: str | None = None

    model_config = ConfigDict(extra="forbid")


class VendorData(BaseModel):
    """Fields accepted when creating or updating a vendor."""

    name: str = Field(..., min_length=1)
    tax_id: str | None = None
    contact: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    country: str | None = None
    status: str = "Activo"

    model_config = ConfigDict(extra="forbid")


class Prospect(BaseModel):
    """CRM contact of type prospect, offered as a vendor's primary contact."""

    id: str | None = None
    name: str = Field(..., min_length=1)
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    country: str | None = None

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


class LineItem(BaseModel):
    """A quantity of a referenced product at a unit price.

    Line items are immutable once the order exists.
    """

    product_id: int
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0)
    discount_pct: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    description: str | None = None
    line_number: int | None = Field(default=None, ge=1)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def line_subtotal(self) -> Decimal:
        return self.quantity * self.unit_price * (1 - self.discount_pct / 100)


class Order(BaseModel):
    """Purchase order, the aggregate root whose status the console manages.

    Totals are owned by the purchasing backend (total = subtotal + tax) and
    are never recomputed here.
    """

    id: int
    status: OrderStatus = OrderStatus.PENDING
    vendor: VendorRef
    line_items: list[LineItem] = Field(default_factory=list)

    subtotal: Decimal = Field(default=Decimal("0"), ge=0)
    tax: Decimal = Field(default=Decimal("0"), ge=0)
    total: Decimal = Field(default=Decimal("0"), ge=0)

    order_number: str | None = None
    currency: str | None = None
    order_date: date | None = None
    expected_delivery_date: date | None = None
    last_status_change_at: datetime | None = None

    model_config = ConfigDict(extra="forbid", validate_assignment=True)


# ---------------------------------------------------------------------------
# Transient values
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SideEffectOutcome:
    """Settled result of one dependent call made during a transition.

    user_visible marks failures that must be surfaced as a warning
    (server-class task failures); everything else is only logged.
    """

    target: SideEffectTarget
    result: SideEffectResult
    detail: str
    user_visible: bool = False

    @property
    def succeeded(self) -> bool:
        return self.result is SideEffectResult.SUCCESS


@dataclass(frozen=True, slots=True)
class Notification:
    """User-facing message; level is one of success, info, warning, error."""

    level: str
    message: str

    def render(self) -> str:
        return f"[{self.level}] {self.message}"


@dataclass(frozen=True, slots=True)
class TaskRecord:
    id: int | str
    title: str
    status: str | None = None


@dataclass(frozen=True, slots=True)
class LoginResult:
    """Token returned by a CRM login; ttl_s is None when the CRM omits it."""

    token: str
    ttl_s: float | None = None

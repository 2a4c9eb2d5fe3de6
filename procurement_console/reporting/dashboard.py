"""Dashboard aggregates over vendors and orders.

Pure functions: callers fetch the data through the purchasing adapter and
pass it in.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from procurement_console.core.domain.types import Order, OrderStatus, Vendor

TOP_VENDOR_COUNT = 3
RECENT_ORDER_COUNT = 5


# ---------------------------------------------------------------------------
# Data models
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class VendorRanking:
    vendor_id: int
    name: str
    order_count: int
    total: Decimal


@dataclass(frozen=True, slots=True)
class StatusBucket:
    count: int
    total: Decimal


@dataclass(frozen=True, slots=True)
class DashboardSummary:
    vendor_count: int
    order_count: int
    orders_by_status: dict[OrderStatus, int]
    top_vendors: list[VendorRanking]
    recent_orders: list[Order]


@dataclass(frozen=True, slots=True)
class VendorOrderSummary:
    vendor_id: int
    order_count: int
    total_amount: Decimal
    by_status: dict[OrderStatus, StatusBucket]
    pending_amount: Decimal


# ---------------------------------------------------------------------------
# Summary builders
# ---------------------------------------------------------------------------

def summarize_dashboard(*, vendors: Iterable[Vendor], orders: Iterable[Order]) -> DashboardSummary:
    vendor_list = list(vendors)
    order_list = list(orders)

    by_status = {status: 0 for status in OrderStatus}
    for order in order_list:
        by_status[order.status] += 1

    recent = sorted(
        order_list,
        key=lambda o: (o.order_date is not None, o.order_date, o.id),
        reverse=True,
    )[:RECENT_ORDER_COUNT]

    return DashboardSummary(
        vendor_count=len(vendor_list),
        order_count=len(order_list),
        orders_by_status=by_status,
        top_vendors=rank_vendors(order_list),
        recent_orders=recent,
    )


def rank_vendors(orders: Iterable[Order], limit: int = TOP_VENDOR_COUNT) -> list[VendorRanking]:
    """Top vendors by order count, total amount breaking ties."""
    counts: dict[int, int] = {}
    totals: dict[int, Decimal] = {}
    names: dict[int, str] = {}

    for order in orders:
        vendor_id = order.vendor.id
        counts[vendor_id] = counts.get(vendor_id, 0) + 1
        totals[vendor_id] = totals.get(vendor_id, Decimal("0")) + order.total
        if vendor_id not in names:
            names[vendor_id] = order.vendor.name or f"Vendor {vendor_id}"

    ranked = sorted(counts, key=lambda vid: (counts[vid], totals[vid]), reverse=True)
    return [
        VendorRanking(vendor_id=vid, name=names[vid], order_count=counts[vid], total=totals[vid])
        for vid in ranked[:limit]
    ]


def summarize_vendor(vendor_id: int, orders: Iterable[Order]) -> VendorOrderSummary:
    own = [o for o in orders if o.vendor.id == vendor_id]

    buckets: dict[OrderStatus, StatusBucket] = {}
    for status in OrderStatus:
        matching = [o for o in own if o.status is status]
        buckets[status] = StatusBucket(
            count=len(matching),
            total=sum((o.total for o in matching), Decimal("0")),
        )

    return VendorOrderSummary(
        vendor_id=vendor_id,
        order_count=len(own),
        total_amount=sum((o.total for o in own), Decimal("0")),
        by_status=buckets,
        pending_amount=buckets[OrderStatus.PENDING].total,
    )

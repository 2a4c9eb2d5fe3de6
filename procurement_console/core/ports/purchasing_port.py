"""Purchasing API protocol.

The purchasing backend owns vendors, orders and line items. The console
only reads orders and transitions their status; creation goes through the
order intake service.
"""

from __future__ import annotations

from typing import Any, Protocol

from procurement_console.core.domain.types import Order, OrderStatus, Vendor, VendorData


class PurchasingPort(Protocol):
    """Purchasing-facing boundary used by the console services."""

    def list_vendors(self) -> list[Vendor]:
        """Return active vendors."""

    def create_vendor(self, data: VendorData) -> Vendor:
        """Create a vendor and return it as persisted."""

    def list_orders(self) -> list[Order]:
        """Return all orders (line items may be omitted)."""

    def get_order(self, order_id: int) -> Order:
        """Return one order including its line items."""

    def create_order(self, payload: dict[str, Any]) -> Order:
        """Create an order from a backend-shaped payload."""

    def update_order_status(self, order_id: int, status: OrderStatus) -> str:
        """Persist a status and return the raw status the backend stored."""

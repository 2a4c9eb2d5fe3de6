"""REST adapter for the purchasing backend.

The backend speaks Spanish field names and wraps most answers in
``{"success": bool, "message": str, "data": ...}``. This module maps those
payloads onto the console's models and back.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

import requests
from pydantic import ValidationError

from procurement_console.clients.http import RestClient
from procurement_console.core.domain.errors import ServiceCallError
from procurement_console.core.domain.status_normalizer import normalize, to_backend
from procurement_console.core.domain.types import (
    LineItem,
    Order,
    OrderStatus,
    Vendor,
    VendorData,
    VendorRef,
)

LOGGER = logging.getLogger(__name__)

ACTIVE_VENDOR_STATUS = "Activo"


class PurchasingApiClient(RestClient):
    """Purchasing API adapter implementing PurchasingPort."""

    service_name = "purchasing"

    def __init__(
        self,
        *,
        base_url: str,
        timeout_s: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(base_url=base_url, timeout_s=timeout_s, session=session)

    # ------------------------------------------------------------------
    # Vendors
    # ------------------------------------------------------------------

    def list_vendors(self) -> list[Vendor]:
        """Return active vendors only."""
        body = self.request_json("GET", "/proveedores")
        rows = body if isinstance(body, list) else _unwrap_list(body)
        return [
            self._map(vendor_from_payload, row)
            for row in rows
            if row.get("estado") == ACTIVE_VENDOR_STATUS
        ]

    def get_vendor(self, vendor_id: int) -> Vendor:
        body = self.request_json("GET", f"/proveedores/{vendor_id}")
        data = body.get("data") if isinstance(body, dict) and "data" in body else body
        if not data:
            raise ServiceCallError(service=self.service_name, message=f"vendor {vendor_id} not found", status_code=404)
        return self._map(vendor_from_payload, data)

    def create_vendor(self, data: VendorData) -> Vendor:
        body = self.request_json("POST", "/proveedores", json=vendor_to_payload(data))
        return self._map(vendor_from_payload, body)

    def update_vendor(self, vendor_id: int, data: VendorData) -> Vendor:
        body = self.request_json("PUT", f"/proveedores/{vendor_id}", json=vendor_to_payload(data))
        return self._map(vendor_from_payload, body)

    def delete_vendor(self, vendor_id: int) -> None:
        self.send("DELETE", f"/proveedores/{vendor_id}")

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def list_orders(self) -> list[Order]:
        body = self.request_json("GET", "/ordenes-compra")
        if not isinstance(body, dict) or not body.get("success") or not body.get("data"):
            return []
        return [self._map(order_from_payload, row) for row in body["data"]]

    def get_order(self, order_id: int) -> Order:
        data = self._enveloped("GET", f"/ordenes-compra/{order_id}", not_found=f"order {order_id} not found")
        return self._map(order_from_payload, data)

    def create_order(self, payload: dict[str, Any]) -> Order:
        data = self._enveloped("POST", "/ordenes-compra", json=payload, not_found="order was not created")
        return self._map(order_from_payload, data)

    def update_order_status(self, order_id: int, status: OrderStatus) -> str:
        """Persist a status; return the raw status string the backend stored."""
        data = self._enveloped(
            "PUT",
            f"/ordenes-compra/{order_id}/estado",
            json={"estado": to_backend(status)},
            not_found="status update was not acknowledged",
        )
        if "estado" not in data:
            raise ServiceCallError(service=self.service_name, message="status update response has no estado")
        return data["estado"]

    def delete_order(self, order_id: int) -> None:
        self._enveloped("DELETE", f"/ordenes-compra/{order_id}", not_found=None)

    def health(self) -> dict[str, Any]:
        body = self.request_json("GET", "/health")
        return body if isinstance(body, dict) else {}

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _enveloped(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        not_found: str | None,
    ) -> dict[str, Any]:
        body = self.request_json(method, path, json=json)
        if not isinstance(body, dict) or not body.get("success"):
            message = body.get("message") if isinstance(body, dict) else None
            raise ServiceCallError(service=self.service_name, message=message or f"{method} {path} was not successful")

        if not_found is None:
            return {}

        data = body.get("data")
        if not isinstance(data, dict) or not data:
            raise ServiceCallError(service=self.service_name, message=body.get("message") or not_found)
        return data

    def _map(self, fn: Any, payload: Any) -> Any:
        try:
            return fn(payload)
        except (ValidationError, KeyError, TypeError, ValueError) as exc:
            raise ServiceCallError(service=self.service_name, message=f"unexpected payload: {exc}") from exc


# ---------------------------------------------------------------------------
# Payload mapping
# ---------------------------------------------------------------------------


def vendor_from_payload(row: dict[str, Any]) -> Vendor:
    return Vendor(
        id=row["id_proveedor"],
        name=row["nombre"],
        tax_id=_opt_str(row.get("nit")),
        email=row.get("email"),
        phone=row.get("telefono"),
        address=row.get("direccion"),
        contact=row.get("contacto"),
        city=row.get("ciudad"),
        country=row.get("pais"),
        status=row.get("estado"),
        registered_at=_opt_str(row.get("fecha_registro")),
    )


def vendor_to_payload(data: VendorData) -> dict[str, Any]:
    return {
        "nombre": data.name,
        "nit": data.tax_id,
        "contacto": data.contact,
        "email": data.email,
        "telefono": data.phone,
        "direccion": data.address,
        "ciudad": data.city,
        "pais": data.country,
        "estado": data.status,
    }


def line_item_from_payload(row: dict[str, Any]) -> LineItem:
    return LineItem(
        product_id=row["id_producto"],
        quantity=int(row["cantidad"]),
        unit_price=_decimal(row.get("precio_unitario")),
        discount_pct=_decimal(row.get("descuento")),
        description=row.get("descripcion_producto"),
        line_number=row.get("numero_linea"),
    )


def order_from_payload(row: dict[str, Any]) -> Order:
    details = row.get("detalles") or []
    return Order(
        id=row["id_orden_compra"],
        status=normalize(row.get("estado")),
        vendor=VendorRef(id=row["id_proveedor"], name=row.get("nombre_proveedor")),
        line_items=[line_item_from_payload(d) for d in details],
        subtotal=_decimal(row.get("subtotal")),
        tax=_decimal(row.get("impuestos")),
        total=_decimal(row.get("total")),
        order_number=row.get("numero_orden"),
        currency=row.get("moneda"),
        order_date=_parse_date(row.get("fecha_orden")),
        expected_delivery_date=_parse_date(row.get("fecha_entrega_esperada")),
        last_status_change_at=_parse_datetime(row.get("fecha_actualizacion")),
    )


def _unwrap_list(body: Any) -> list[dict[str, Any]]:
    if isinstance(body, dict) and isinstance(body.get("data"), list):
        return body["data"]
    return []


def _decimal(value: Any) -> Decimal:
    """Backend numbers arrive as strings or floats; unparsable -> 0."""
    if value is None or value == "":
        return Decimal("0")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return Decimal("0")


def _opt_str(value: Any) -> str | None:
    return None if value is None else str(value)


def _parse_date(value: Any) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def _parse_datetime(value: Any) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None

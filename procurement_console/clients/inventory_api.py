"""REST adapter for the external inventory service."""

from __future__ import annotations

import logging

import requests

from procurement_console.clients.http import RestClient
from procurement_console.core.domain.errors import DependentEffectFailure

LOGGER = logging.getLogger(__name__)


class InventoryApiClient(RestClient):
    """Inventory adjustment adapter implementing InventoryPort.

    Adjustments are booked against one configured location and user.
    A positive quantity increases stock.
    """

    service_name = "inventory"
    error_cls = DependentEffectFailure

    def __init__(
        self,
        *,
        base_url: str,
        timeout_s: float = 12.0,
        location_id: int = 1,
        user: str = "ERP-Compras",
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(base_url=base_url, timeout_s=timeout_s, session=session)
        self._location_id = location_id
        self._user = user

    def adjust(self, *, product_id: int, quantity: int, reason: str) -> None:
        body = {
            "id_producto": product_id,
            "id_ubicacion": self._location_id,
            "cantidad": quantity,
            "motivo": reason or "Ajuste de inventario",
            "usuario": self._user,
        }
        self.send("POST", "/api/inventory/adjust", json=body)
        LOGGER.debug("inventory_adjusted", extra={"product_id": product_id, "quantity": quantity})

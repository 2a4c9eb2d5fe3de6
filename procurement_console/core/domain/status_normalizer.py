"""Canonicalization of backend order status strings.

The purchasing backend is not guaranteed to answer with canonical casing or
spelling. Unknown values degrade to PENDING instead of raising, so an
unexpected status never breaks a caller.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from procurement_console.core.domain.types import OrderStatus

LOGGER = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")

STATUS_SYNONYMS: dict[str, OrderStatus] = {
    "PENDIENTE": OrderStatus.PENDING,
    "PENDING": OrderStatus.PENDING,

    "APROBADA": OrderStatus.APPROVED,
    "APPROVED": OrderStatus.APPROVED,
    "EN_PROCESO": OrderStatus.APPROVED,

    "RECHAZADA": OrderStatus.REJECTED,
    "CANCELADA": OrderStatus.REJECTED,
    "REJECTED": OrderStatus.REJECTED,
    "CANCELLED": OrderStatus.REJECTED,
    "CANCELED": OrderStatus.REJECTED,

    "ENTREGADA": OrderStatus.DELIVERED,
    "RECIBIDA": OrderStatus.DELIVERED,
    "COMPLETA": OrderStatus.DELIVERED,
    "COMPLETADA": OrderStatus.DELIVERED,
    "DELIVERED": OrderStatus.DELIVERED,
}

# Wire values the purchasing API expects on status updates.
BACKEND_STATUS_VALUES: dict[OrderStatus, str] = {
    OrderStatus.PENDING: "PENDIENTE",
    OrderStatus.APPROVED: "APROBADA",
    OrderStatus.REJECTED: "RECHAZADA",
    OrderStatus.DELIVERED: "ENTREGADA",
}


def canonical_key(raw: Any) -> str:
    """Trim, upper-case and join whitespace runs with underscores."""
    return _WHITESPACE.sub("_", str(raw).strip().upper())


def normalize(raw: Any) -> OrderStatus:
    """Map a raw backend status onto OrderStatus; unknown or None -> PENDING."""
    if raw is None:
        return OrderStatus.PENDING

    if isinstance(raw, OrderStatus):
        return raw

    key = canonical_key(raw)
    status = STATUS_SYNONYMS.get(key)
    if status is None:
        LOGGER.warning("unknown_order_status", extra={"raw_status": str(raw)})
        return OrderStatus.PENDING
    return status


def to_backend(status: OrderStatus) -> str:
    """Return the purchasing API wire value for a canonical status."""
    return BACKEND_STATUS_VALUES[status]

"""Vendor onboarding: purchasing backend first, CRM registration second.

The CRM registration is a dependent effect of vendor creation. Its failure,
including an AuthenticationError from the token cache, is reported on the
result and never undoes the vendor already stored in the purchasing backend.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from procurement_console.core.domain.errors import AuthenticationError, ServiceCallError
from procurement_console.core.domain.types import Notification, Prospect, Vendor, VendorData

if TYPE_CHECKING:
    from procurement_console.core.ports.crm_port import CrmPort
    from procurement_console.core.ports.purchasing_port import PurchasingPort

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class OnboardingResult:
    vendor: Vendor
    crm_error: str | None = None
    notifications: list[Notification] = field(default_factory=list)

    @property
    def crm_synced(self) -> bool:
        return self.crm_error is None


def crm_vendor_payload(vendor: Vendor, primary_contact: str | None = None) -> dict[str, Any]:
    """CRM vendor body; the CRM requires a numeric tax id (NIT), 0 when unknown."""
    digits = "".join(ch for ch in (vendor.tax_id or "") if ch.isdigit())
    payload: dict[str, Any] = {
        "name": vendor.name,
        "email": vendor.email or "",
        "phone": vendor.phone or "",
        "nit": int(digits) if digits else 0,
    }
    if primary_contact:
        payload["contactoPrincipal"] = primary_contact
    return payload


class VendorOnboardingService:
    def __init__(self, *, purchasing: PurchasingPort, crm: CrmPort) -> None:
        self._purchasing = purchasing
        self._crm = crm

    def create_vendor(self, data: VendorData, *, primary_contact: str | None = None) -> OnboardingResult:
        """Create the vendor; a purchasing failure propagates as ServiceCallError."""
        vendor = self._purchasing.create_vendor(data)
        LOGGER.info("vendor_created", extra={"vendor_id": vendor.id})

        try:
            self._crm.create_vendor(crm_vendor_payload(vendor, primary_contact))
        except (AuthenticationError, ServiceCallError) as exc:
            LOGGER.error("crm_vendor_sync_failed", extra={"vendor_id": vendor.id, "error": str(exc)})
            return OnboardingResult(
                vendor=vendor,
                crm_error=str(exc),
                notifications=[
                    Notification(
                        "warning",
                        f"Vendor {vendor.name} was created, but could not be registered in the CRM: {exc}",
                    )
                ],
            )

        return OnboardingResult(
            vendor=vendor,
            notifications=[Notification("success", f"Vendor {vendor.name} created and registered in the CRM")],
        )

    def list_prospects(self, *, search: str | None = None, limit: int | None = 50) -> list[Prospect]:
        return self._crm.list_prospects(search=search, limit=limit)

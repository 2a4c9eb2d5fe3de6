"""
Semantic test: vendor onboarding with CRM registration as a dependent effect.

Invariant:
The vendor is stored in the purchasing backend first. A CRM failure,
authentication included, is reported on the result and never undoes the
stored vendor. A purchasing failure propagates and the CRM is not called.
"""

from __future__ import annotations

from typing import Any

import pytest

from procurement_console.core.domain.errors import AuthenticationError, ServiceCallError
from procurement_console.core.domain.types import Prospect, Vendor, VendorData
from procurement_console.core.orchestration.vendor_onboarding import (
    VendorOnboardingService,
    crm_vendor_payload,
)


class FakeCrm:
    def __init__(self, fail_with: Exception | None = None) -> None:
        self.fail_with = fail_with
        self.vendors: list[dict[str, Any]] = []
        self.prospect_queries: list[tuple[str | None, int | None]] = []

    def create_vendor(self, payload: dict[str, Any]) -> dict[str, Any]:
        if self.fail_with is not None:
            raise self.fail_with
        self.vendors.append(payload)
        return {"id": 1}

    def list_prospects(self, *, search: str | None = None, limit: int | None = None) -> list[Prospect]:
        self.prospect_queries.append((search, limit))
        return [Prospect(name="Ana Lopez")]


def test_vendor_is_registered_in_crm(purchasing) -> None:
    crm = FakeCrm()
    service = VendorOnboardingService(purchasing=purchasing, crm=crm)

    result = service.create_vendor(
        VendorData(name="Norte", tax_id="1234567-8", email="n@example.com"),
        primary_contact="Ana Lopez",
    )

    assert result.crm_synced
    assert result.vendor.id == 7
    assert crm.vendors == [
        {
            "name": "Norte",
            "email": "n@example.com",
            "phone": "",
            "nit": 12345678,
            "contactoPrincipal": "Ana Lopez",
        }
    ]
    assert result.notifications[0].level == "success"


@pytest.mark.parametrize(
    "error",
    [
        AuthenticationError("CRM_EMAIL/CRM_PASSWORD are not configured"),
        ServiceCallError(service="crm", message="down", status_code=502),
    ],
)
def test_crm_failure_keeps_the_vendor(purchasing, error) -> None:
    service = VendorOnboardingService(purchasing=purchasing, crm=FakeCrm(fail_with=error))

    result = service.create_vendor(VendorData(name="Norte"))

    assert not result.crm_synced
    assert result.vendor.name == "Norte"
    assert len(purchasing.created_vendors) == 1
    assert result.notifications[0].level == "warning"
    assert str(error) in result.notifications[0].message


def test_purchasing_failure_skips_crm(purchasing) -> None:
    purchasing.fail_with = ServiceCallError(service="purchasing", message="down", status_code=500)
    crm = FakeCrm()
    service = VendorOnboardingService(purchasing=purchasing, crm=crm)

    with pytest.raises(ServiceCallError):
        service.create_vendor(VendorData(name="Norte"))
    assert crm.vendors == []


def test_tax_id_without_digits_is_zero() -> None:
    payload = crm_vendor_payload(Vendor(id=1, name="Sur", tax_id="CF"))

    assert payload["nit"] == 0
    assert "contactoPrincipal" not in payload


def test_prospects_are_listed_through_the_crm(purchasing) -> None:
    crm = FakeCrm()
    service = VendorOnboardingService(purchasing=purchasing, crm=crm)

    assert [p.name for p in service.list_prospects(search="ana")] == ["Ana Lopez"]
    assert crm.prospect_queries == [("ana", 50)]

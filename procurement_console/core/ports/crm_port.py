from __future__ import annotations

from typing import Any, Protocol

from procurement_console.core.domain.types import Prospect


class CrmPort(Protocol):
    """CRM boundary. Every call is authenticated through the TokenCache."""

    def list_prospects(self, *, search: str | None = None, limit: int | None = None) -> list[Prospect]:
        """Return CRM prospects filtered by name or email."""

    def create_vendor(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Register a vendor in the CRM."""

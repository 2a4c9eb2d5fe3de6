from __future__ import annotations

from typing import Protocol


class InventoryPort(Protocol):
    """Inventory adjustment boundary.

    Quantity sign convention: positive means stock received.
    """

    def adjust(self, *, product_id: int, quantity: int, reason: str) -> None:
        """Apply one stock adjustment; raise DependentEffectFailure on failure."""

"""Caller-controlled in-memory copy of the stock collections."""

from dataclasses import dataclass, field
from datetime import UTC, datetime

from bakery_stock.core.entities import RawMaterial, StockMovement, Supplier


@dataclass
class StockSnapshot:
    """
    Materials, movements and suppliers as last loaded from the store.

    Never patched in place: a write marks the snapshot stale and the next
    read reloads it, since PMP values only exist as committed by the store.
    """

    materials: list[RawMaterial] = field(default_factory=list)
    movements: list[StockMovement] = field(default_factory=list)  # newest first
    suppliers: list[Supplier] = field(default_factory=list)
    loaded_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    stale: bool = False

    @property
    def materials_by_id(self) -> dict[str, RawMaterial]:
        return {m.id: m for m in self.materials if m.id}

    def movements_for(self, material_id: str) -> list[StockMovement]:
        return [m for m in self.movements if m.material_id == material_id]

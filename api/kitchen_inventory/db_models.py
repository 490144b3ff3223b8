# kitchen_inventory/db_models.py
"""
SQLAlchemy ORM models for Kitchen Inventory.

One table: inventory (id, name, quantity, status, expiry, cost).
"""
from __future__ import annotations
from typing import Any, Dict, Optional
import enum

from sqlalchemy import String, Integer, CheckConstraint, case
from sqlalchemy.orm import Mapped, mapped_column

from kitchen_inventory.database import Base

# ============================================================================
# ENUMS
# ============================================================================

class StockStatus(str, enum.Enum):
    good = "Good"
    warning = "Warning"
    danger = "Danger"

    @property
    def display_label(self) -> str:
        """Label used by the visual (camera) inventory screen."""
        return _DISPLAY_LABELS[self]

    @classmethod
    def parse(cls, value: Any) -> Optional["StockStatus"]:
        """Accept both vocabularies, case-insensitive. None when unknown."""
        if isinstance(value, StockStatus):
            return value
        if not isinstance(value, str):
            return None
        return _ALIASES.get(value.strip().lower())

    @classmethod
    def for_quantity(cls, quantity: int) -> "StockStatus":
        if quantity > IN_STOCK_ABOVE:
            return cls.good
        if quantity > LOW_ABOVE:
            return cls.warning
        return cls.danger


_DISPLAY_LABELS = {
    StockStatus.good: "In Stock",
    StockStatus.warning: "Low",
    StockStatus.danger: "Critical",
}

_ALIASES: Dict[str, StockStatus] = {s.value.lower(): s for s in StockStatus}
_ALIASES.update({label.lower(): s for s, label in _DISPLAY_LABELS.items()})

IN_STOCK_ABOVE = 5
LOW_ABOVE = 2

# sqlite INTEGER is a signed 64-bit value
MAX_QUANTITY = 2**63 - 1


def status_case(quantity_expr):
    """SQL twin of StockStatus.for_quantity, evaluated inside the write."""
    return case(
        (quantity_expr > IN_STOCK_ABOVE, StockStatus.good.value),
        (quantity_expr > LOW_ABOVE, StockStatus.warning.value),
        else_=StockStatus.danger.value,
    )


# ============================================================================
# INVENTORY
# ============================================================================

class InventoryItem(Base):
    __tablename__ = "inventory"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    expiry: Mapped[str] = mapped_column(String(10), nullable=False)   # YYYY-MM-DD
    cost: Mapped[str] = mapped_column(String(50), nullable=False)     # decimal as text

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="chk_inventory_quantity_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<InventoryItem id={self.id} name={self.name!r} quantity={self.quantity}>"

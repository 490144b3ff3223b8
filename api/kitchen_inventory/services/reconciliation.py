# kitchen_inventory/services/reconciliation.py
"""
Reconciliation Service - decides how an observed or edited item lands in the store.

Handles:
- upsert-by-name: additive merge of quantity, metadata replaced by the latest write
- update-by-id: manual edit of cost/expiry/status, quantity untouched
- detection observations: upsert with status derived from quantity
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from kitchen_inventory.db_models import MAX_QUANTITY, InventoryItem, StockStatus
from kitchen_inventory.errors import NotFoundError, ValidationError
from kitchen_inventory.store import InventoryStore

logger = logging.getLogger(__name__)


@dataclass
class UpsertResult:
    item: InventoryItem
    created: bool


def derive_status(quantity: int) -> StockStatus:
    """quantity > 5 -> Good ("In Stock"), > 2 -> Warning ("Low"), else Danger ("Critical")."""
    return StockStatus.for_quantity(quantity)


class ReconciliationService:
    """Upsert / merge rules on top of InventoryStore."""

    def __init__(self, db: AsyncSession, store: Optional[InventoryStore] = None):
        self.db = db
        self.store = store or InventoryStore(db)

    # =========================================================================
    # Validation
    # =========================================================================

    @staticmethod
    def _require_name(name: Any) -> str:
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Missing required fields: name", field="name")
        return name.strip()

    @staticmethod
    def _validate_fields(cost: Any, expiry: Any, status: Any) -> Dict[str, Any]:
        missing = [
            field for field, value in (("cost", cost), ("expiry", expiry), ("status", status))
            if value is None or (isinstance(value, str) and not value.strip())
        ]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}", field=missing[0])

        cost_text = str(cost).strip()
        try:
            if isinstance(cost, bool) or not Decimal(cost_text).is_finite():
                raise InvalidOperation
        except (InvalidOperation, ValueError):
            raise ValidationError(f"Invalid cost: {cost!r}", field="cost")

        expiry_text = expiry.isoformat() if isinstance(expiry, date) else str(expiry).strip()
        try:
            expiry_text = date.fromisoformat(expiry_text).isoformat()
        except ValueError:
            raise ValidationError(f"Invalid expiry (expected YYYY-MM-DD): {expiry!r}", field="expiry")

        parsed_status = StockStatus.parse(status)
        if parsed_status is None:
            raise ValidationError(f"Invalid status: {status!r}", field="status")

        return {"cost": cost_text, "expiry": expiry_text, "status": parsed_status}

    @staticmethod
    def _validate_quantity(quantity: Any) -> int:
        if quantity is None:
            raise ValidationError("Missing required fields: quantity", field="quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValidationError(f"Invalid quantity: {quantity!r}", field="quantity")
        if quantity < 0:
            raise ValidationError("Quantity cannot be negative", field="quantity")
        if quantity > MAX_QUANTITY:
            raise ValidationError(f"Quantity cannot exceed {MAX_QUANTITY}", field="quantity")
        return quantity

    # =========================================================================
    # Operations
    # =========================================================================

    async def upsert_by_name(
        self,
        name: str,
        delta_quantity: Optional[int],
        cost: Optional[str],
        expiry: Optional[str],
        status: Any,
    ) -> UpsertResult:
        """
        Create the item, or add ``delta_quantity`` to the stored quantity.

        Cost, expiry and status always take the incoming values. Nothing is
        written when a required field is missing or malformed.
        """
        name = self._require_name(name)
        fields = self._validate_fields(cost, expiry, status)
        delta = self._validate_quantity(delta_quantity)

        item, created = await self.store.upsert_merge(name, delta, **fields)
        return UpsertResult(item=item, created=created)

    async def update_by_id(
        self,
        item_id: int,
        cost: Optional[str],
        expiry: Optional[str],
        status: Any,
    ) -> int:
        """Absolute replace of cost/expiry/status. Returns affected count (0 = not found)."""
        fields = self._validate_fields(cost, expiry, status)
        return await self.store.update(item_id, fields)

    async def edit_item(
        self,
        item_id: int,
        cost: Optional[str],
        expiry: Optional[str],
        status: Any,
    ) -> InventoryItem:
        affected = await self.update_by_id(item_id, cost, expiry, status)
        if affected == 0:
            raise NotFoundError("Item not found")
        item = await self.store.find_by_id(item_id)
        if item is None:
            raise NotFoundError("Item not found")
        return item

    async def record_observation(
        self,
        name: str,
        count: int,
        *,
        cost: str,
        expiry: str,
        status: Optional[StockStatus] = None,
    ) -> UpsertResult:
        """
        Detection path. ``status=None`` lets the store derive it from the
        quantity after the merge.
        """
        name = self._require_name(name)
        delta = self._validate_quantity(count)
        if status is None:
            fields = self._validate_fields(cost, expiry, StockStatus.good)
            fields["status"] = None
        else:
            fields = self._validate_fields(cost, expiry, status)

        item, created = await self.store.upsert_merge(name, delta, **fields)
        return UpsertResult(item=item, created=created)

    async def list_items(self) -> List[InventoryItem]:
        return await self.store.list_all()

    async def get_item(self, item_id: int) -> InventoryItem:
        item = await self.store.find_by_id(item_id)
        if item is None:
            raise NotFoundError("Item not found")
        return item

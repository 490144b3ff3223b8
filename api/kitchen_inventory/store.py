# kitchen_inventory/store.py
"""
Inventory Store - single-table persistence for inventory items.

Every write is one statement plus its own commit, so each write is atomic at
the row level. SQLAlchemy failures never leak: they are rolled back and
re-raised as StorageError.
"""
from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from kitchen_inventory.db_models import MAX_QUANTITY, InventoryItem, StockStatus, status_case
from kitchen_inventory.errors import StorageError, ValidationError

logger = logging.getLogger(__name__)


class InventoryStore:
    """Durable collection of InventoryItem, queryable by id or by name."""

    UPDATABLE_FIELDS = ("quantity", "cost", "expiry", "status")

    def __init__(self, db: AsyncSession):
        self.db = db

    @asynccontextmanager
    async def _storage(self, action: str):
        try:
            yield
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Storage failure ({action}): {e}")
            raise StorageError(f"Failed to {action}") from e

    # =========================================================================
    # Reads
    # =========================================================================

    async def find_by_name(self, name: str) -> Optional[InventoryItem]:
        stmt = (
            select(InventoryItem)
            .where(InventoryItem.name == name)
            .limit(1)
            .execution_options(populate_existing=True)
        )
        async with self._storage("fetch item"):
            result = await self.db.execute(stmt)
            return result.scalar_one_or_none()

    async def find_by_id(self, item_id: int) -> Optional[InventoryItem]:
        stmt = (
            select(InventoryItem)
            .where(InventoryItem.id == item_id)
            .execution_options(populate_existing=True)
        )
        async with self._storage("fetch item"):
            result = await self.db.execute(stmt)
            return result.scalar_one_or_none()

    async def list_all(self) -> List[InventoryItem]:
        stmt = (
            select(InventoryItem)
            .order_by(InventoryItem.id)
            .execution_options(populate_existing=True)
        )
        async with self._storage("fetch data"):
            result = await self.db.execute(stmt)
            return list(result.scalars().all())

    # =========================================================================
    # Writes
    # =========================================================================

    async def insert(
        self,
        name: str,
        quantity: int,
        cost: str,
        expiry: str,
        status: StockStatus,
    ) -> int:
        item = InventoryItem(
            name=name,
            quantity=quantity,
            cost=cost,
            expiry=expiry,
            status=StockStatus(status).value,
        )
        async with self._storage("add new item"):
            self.db.add(item)
            await self.db.commit()
        logger.info(f"Inserted inventory item id={item.id} name={name!r} quantity={quantity}")
        return item.id

    async def update(self, item_id: int, fields: Dict[str, Any]) -> int:
        """
        Overwrite the given fields of one row.

        Returns the number of affected rows; 0 means there is no such id.
        """
        unknown = set(fields) - set(self.UPDATABLE_FIELDS)
        if unknown or not fields:
            raise ValueError(f"Cannot update fields: {sorted(unknown) or 'none given'}")

        values = dict(fields)
        if "status" in values:
            values["status"] = StockStatus(values["status"]).value

        stmt = (
            update(InventoryItem)
            .where(InventoryItem.id == item_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        async with self._storage("update item"):
            result = await self.db.execute(stmt)
            await self.db.commit()
        affected = result.rowcount or 0
        logger.info(f"Updated inventory item id={item_id} fields={sorted(values)} affected={affected}")
        return affected

    async def upsert_merge(
        self,
        name: str,
        delta: int,
        cost: str,
        expiry: str,
        status: Optional[StockStatus],
    ) -> Tuple[InventoryItem, bool]:
        """
        Insert-if-absent, otherwise add ``delta`` to the stored quantity.

        Cost, expiry and status are replaced by the incoming values. With
        ``status=None`` the status is derived from the post-merge quantity,
        computed by the database in the same statement.

        Returns (item, created).
        """
        insert_status = status or StockStatus.for_quantity(delta)
        ins = (
            sqlite_insert(InventoryItem)
            .values(
                name=name,
                quantity=delta,
                cost=cost,
                expiry=expiry,
                status=StockStatus(insert_status).value,
            )
            .on_conflict_do_nothing(index_elements=[InventoryItem.name])
            .returning(InventoryItem.id)
        )

        new_quantity = InventoryItem.quantity + delta
        upd = (
            update(InventoryItem)
            .where(InventoryItem.name == name)
            .where(InventoryItem.quantity <= MAX_QUANTITY - delta)
            .values(
                quantity=new_quantity,
                cost=cost,
                expiry=expiry,
                status=StockStatus(status).value if status else status_case(new_quantity),
            )
            .returning(InventoryItem.id)
            .execution_options(synchronize_session=False)
        )

        async with self._storage("upsert item"):
            row = (await self.db.execute(ins)).first()
            created = row is not None
            if not created:
                # rows are never deleted, so no row here means the merge would overflow
                row = (await self.db.execute(upd)).first()
                if row is None:
                    await self.db.rollback()
                    raise ValidationError(
                        f"Quantity of {name!r} would exceed {MAX_QUANTITY}", field="quantity"
                    )
            await self.db.commit()

        item = await self.find_by_id(row[0])
        if item is None:
            raise StorageError(f"Item {name!r} vanished after upsert")
        logger.info(
            f"{'Created' if created else 'Merged'} inventory item id={item.id} name={name!r} "
            f"delta={delta} quantity={item.quantity} status={item.status}"
        )
        return item, created


"""
Item Service
Stock item maintenance and the atomic stock update shared with transactions
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
import logging

from sqlalchemy import case, func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stocklet.core.exceptions import (
    ConflictError, InsufficientStockError, NotFoundError, ValidationError
)
from stocklet.models.item import Item
from stocklet.models.transaction import Transaction, TransactionType
from stocklet.schemas.common import total_pages
from stocklet.schemas.item import AdjustmentType, ItemRead

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 6


def apply_stock_delta(db: Session, item_id: int, delta: Decimal) -> Item:
    """
    Move an item's current stock by ``delta`` inside the caller's transaction

    A decrease is a compare-and-swap: the UPDATE only matches while the
    stock still covers it, so two writers can never take the same units.
    Nothing is committed here.

    Both the guard and the new value are rounded to the column's two
    decimals in SQL, since SQLite keeps NUMERIC values as binary floats.

    Raises:
        NotFoundError: item does not exist
        InsufficientStockError: the decrease would leave stock below zero
    """
    new_stock = func.round(Item.current_stock + delta, 2)
    stmt = update(Item).where(Item.id == item_id)
    if delta < 0:
        stmt = stmt.where(new_stock >= 0)
    stmt = stmt.values(
        current_stock=new_stock,
        updated_at=datetime.utcnow(),
    ).execution_options(synchronize_session=False)

    result = db.execute(stmt)

    # Reload so the identity map reflects the database row
    item = db.get(Item, item_id, populate_existing=True)
    if item is None:
        raise NotFoundError("Item not found.")
    if result.rowcount == 0:
        raise InsufficientStockError(item.name, item.current_stock)
    return item


class ItemService:
    """Service for global stock items"""

    def __init__(self, db: Session):
        self.db = db

    def _totals_subquery(self):
        """Per-item PURCHASE and SALE quantity totals over every transaction"""
        return (
            self.db.query(
                Transaction.item_id.label("item_id"),
                func.sum(case(
                    (Transaction.type == TransactionType.PURCHASE, Transaction.quantity),
                    else_=0,
                )).label("total_in"),
                func.sum(case(
                    (Transaction.type == TransactionType.SALE, Transaction.quantity),
                    else_=0,
                )).label("total_out"),
            )
            .group_by(Transaction.item_id)
            .subquery()
        )

    def _query_with_totals(self):
        totals = self._totals_subquery()
        return (
            self.db.query(
                Item,
                func.coalesce(totals.c.total_in, 0),
                func.coalesce(totals.c.total_out, 0),
            )
            .outerjoin(totals, totals.c.item_id == Item.id)
        )

    @staticmethod
    def _to_read(item: Item, total_in, total_out) -> ItemRead:
        return ItemRead(
            id=item.id,
            name=item.name,
            initial_stock=item.initial_stock,
            current_stock=item.current_stock,
            total_in=total_in or 0,
            total_out=total_out or 0,
            created_at=item.created_at,
            updated_at=item.updated_at,
        )

    def get_item(self, item_id: int) -> Item:
        item = self.db.get(Item, item_id)
        if item is None:
            raise NotFoundError("Item not found.")
        return item

    def create_item(self, name: Optional[str], initial_stock: Optional[Decimal]) -> Item:
        """Create an item whose current stock starts at its initial stock"""
        if not name or not name.strip() or initial_stock is None:
            raise ValidationError("Item name and initial stock are required.")
        if initial_stock < 0:
            raise ValidationError("Initial stock must be a non-negative number.")

        name = name.strip()
        if self.db.query(Item.id).filter(Item.name == name).first():
            raise ConflictError("Item with this name already exists.")

        item = Item(name=name, initial_stock=initial_stock, current_stock=initial_stock)
        self.db.add(item)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Item with this name already exists.")
        self.db.refresh(item)

        logger.info(f"Item created: {item.name} (stock {item.current_stock})")
        return item

    def list_items(
        self,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        search: Optional[str] = None,
        fetch_all: bool = False,
    ) -> dict:
        """
        List items newest first with their movement totals

        Returns the paginated envelope, or every matching item when
        ``fetch_all`` is set.
        """
        query = self._query_with_totals()
        if search and search.strip():
            query = query.filter(Item.name.icontains(search.strip(), autoescape=True))

        query = query.order_by(Item.created_at.desc(), Item.id.desc())

        if fetch_all:
            rows = query.all()
            return {
                "items": [self._to_read(*row) for row in rows],
                "total_items": len(rows),
            }

        page = max(page, 1)
        limit = max(limit, 1)
        total_items = query.count()
        rows = query.offset((page - 1) * limit).limit(limit).all()

        return {
            "items": [self._to_read(*row) for row in rows],
            "current_page": page,
            "total_pages": total_pages(total_items, limit),
            "total_items": total_items,
        }

    def get_item_with_totals(self, item_id: int) -> ItemRead:
        row = self._query_with_totals().filter(Item.id == item_id).first()
        if row is None:
            raise NotFoundError("Item not found.")
        return self._to_read(*row)

    def rename_item(self, item_id: int, name: Optional[str]) -> Item:
        if not name or not name.strip():
            raise ValidationError("Item name is required and must be a non-empty string.")

        item = self.get_item(item_id)
        name = name.strip()

        clash = (
            self.db.query(Item.id)
            .filter(Item.name == name, Item.id != item_id)
            .first()
        )
        if clash:
            raise ConflictError("Another item with this name already exists.")

        item.name = name
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Item with this name already exists.")
        self.db.refresh(item)

        logger.info(f"Item {item_id} renamed to {name}")
        return item

    def delete_item(self, item_id: int) -> None:
        """Delete an item that no transaction references"""
        in_use = self.db.query(Transaction.id).filter(Transaction.item_id == item_id).first()
        if in_use:
            raise ValidationError(
                "Cannot delete item. It has associated transactions. "
                "Consider deactivating it instead."
            )

        item = self.db.get(Item, item_id)
        if item is None:
            raise NotFoundError("Item not found to delete.")

        self.db.delete(item)
        self.db.commit()
        logger.info(f"Item deleted: {item_id}")

    def adjust_stock(
        self,
        item_id: int,
        adjustment: Optional[Decimal],
        adjustment_type: Optional[str],
    ) -> Item:
        """
        Manually correct an item's current stock

        ``set`` replaces the value; ``add`` and ``subtract`` move it. The
        result must not be negative.
        """
        if adjustment is None:
            raise ValidationError("Adjustment value must be a number.")
        try:
            kind = AdjustmentType(adjustment_type)
        except ValueError:
            raise ValidationError("Invalid adjustment type. Must be 'set', 'add', or 'subtract'.")

        item = self.get_item(item_id)

        try:
            if kind == AdjustmentType.SET:
                if adjustment < 0:
                    raise ValidationError("Stock cannot be negative after adjustment.")
                item.current_stock = adjustment
                item.updated_at = datetime.utcnow()
            else:
                delta = adjustment if kind == AdjustmentType.ADD else -adjustment
                item = apply_stock_delta(self.db, item_id, delta)
            self.db.commit()
        except InsufficientStockError:
            self.db.rollback()
            raise ValidationError("Stock cannot be negative after adjustment.")
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(item)
        logger.info(f"Stock adjusted for item {item_id}: {kind.value} {adjustment}")
        return item

    def item_transactions(self, item_id: int, user_id: int) -> List[Transaction]:
        """The user's transactions for one item, newest first"""
        self.get_item(item_id)
        return (
            self.db.query(Transaction)
            .filter(Transaction.item_id == item_id, Transaction.created_by == user_id)
            .order_by(Transaction.date.desc(), Transaction.id.desc())
            .all()
        )

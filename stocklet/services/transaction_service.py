"""
Transaction Service
SALE/PURCHASE records with compensating stock updates

Every write runs in one database transaction: the stock movements and the
transaction row are committed together or not at all.
"""

from collections import defaultdict
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Optional
import logging

from sqlalchemy.orm import Session

from stocklet.core.exceptions import NotFoundError, ValidationError
from stocklet.core.logging import get_logger
from stocklet.models.item import Item
from stocklet.models.transaction import Transaction, TransactionType
from stocklet.schemas.common import total_pages
from stocklet.schemas.transaction import TransactionPayload
from stocklet.services.item_service import apply_stock_delta

logger = logging.getLogger(__name__)
business_logger = get_logger("business")

DEFAULT_PAGE_SIZE = 8
CENTS = Decimal("0.01")


def signed_quantity(tx_type: TransactionType, quantity: Decimal) -> Decimal:
    """Stock effect of a movement: SALE takes units out, PURCHASE puts them in"""
    return -quantity if tx_type == TransactionType.SALE else quantity


def line_total(quantity: Decimal, price: Decimal) -> Decimal:
    return (quantity * price).quantize(CENTS, rounding=ROUND_HALF_UP)


class TransactionService:
    """Service for the current user's transactions"""

    def __init__(self, db: Session, user_id: int):
        self.db = db
        self.user_id = user_id

    def _validate(self, payload: TransactionPayload, missing_message: str) -> None:
        required = (
            payload.date, payload.type, payload.counterparty,
            payload.item_id, payload.quantity, payload.price,
        )
        if any(value is None or value == "" for value in required):
            raise ValidationError(missing_message)
        if payload.quantity <= 0:
            raise ValidationError("Quantity must be greater than zero.")
        if payload.price < 0:
            raise ValidationError("Price must be a non-negative number.")

    def _apply_movements(self, deltas: Dict[int, Decimal]) -> None:
        """Apply the net stock delta for each touched item"""
        for item_id, delta in deltas.items():
            if delta != 0:
                apply_stock_delta(self.db, item_id, delta)

    def _fill(self, tx: Transaction, payload: TransactionPayload, item: Item) -> None:
        tx.date = payload.date
        tx.type = payload.type
        tx.counterparty = payload.counterparty
        tx.shipment_note = payload.shipment_note or None
        tx.invoice_no = payload.invoice_no or None
        tx.po_no = payload.po_no or None
        tx.secondary_shipment_note = payload.secondary_shipment_note or None
        tx.item_id = item.id
        tx.item_name_snapshot = item.name
        tx.quantity = payload.quantity
        tx.price = payload.price
        tx.total = line_total(payload.quantity, payload.price)

    def get_transaction(self, transaction_id: int) -> Transaction:
        tx = (
            self.db.query(Transaction)
            .filter(Transaction.id == transaction_id, Transaction.created_by == self.user_id)
            .first()
        )
        if tx is None:
            raise NotFoundError("Transaction not found or not owned by user.")
        return tx

    def list_transactions(
        self,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        tx_type: Optional[TransactionType] = None,
    ) -> dict:
        """The user's transactions by date then id, paginated"""
        query = self.db.query(Transaction).filter(Transaction.created_by == self.user_id)
        if tx_type is not None:
            query = query.filter(Transaction.type == tx_type)

        page = max(page, 1)
        limit = max(limit, 1)
        total_items = query.count()
        rows = (
            query.order_by(Transaction.date.asc(), Transaction.id.asc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return {
            "transactions": rows,
            "current_page": page,
            "total_pages": total_pages(total_items, limit),
            "total_items": total_items,
        }

    def create_transaction(self, payload: TransactionPayload) -> Transaction:
        """
        Record a movement and apply its stock effect

        Raises:
            ValidationError: missing or out-of-range fields
            NotFoundError: unknown item
            InsufficientStockError: a SALE larger than the current stock
        """
        self._validate(
            payload,
            "Missing required fields (date, type, counterparty, item_id, quantity, price).",
        )

        item = self.db.get(Item, payload.item_id)
        if item is None:
            raise NotFoundError("Item not found.")

        try:
            apply_stock_delta(self.db, item.id, signed_quantity(payload.type, payload.quantity))

            tx = Transaction(created_by=self.user_id)
            self._fill(tx, payload, item)
            self.db.add(tx)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(tx)
        business_logger.info(
            f"{tx.type.value} {tx.id} created: {tx.quantity} of {tx.item_name_snapshot} "
            f"({tx.counterparty})"
        )
        return tx

    def update_transaction(self, transaction_id: int, payload: TransactionPayload) -> Transaction:
        """
        Rewrite a movement, moving stock between items as needed

        The old effect is reversed on the old item and the new effect applied
        to the new item. When both are the same item the two net out before
        the availability check.
        """
        self._validate(payload, "Missing required fields.")

        tx = self.get_transaction(transaction_id)
        new_item = self.db.get(Item, payload.item_id)
        if new_item is None:
            raise NotFoundError("Item not found for transaction update.")

        deltas: Dict[int, Decimal] = defaultdict(Decimal)
        deltas[tx.item_id] -= tx.stock_delta
        deltas[new_item.id] += signed_quantity(payload.type, payload.quantity)

        try:
            self._apply_movements(deltas)
            self._fill(tx, payload, new_item)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(tx)
        business_logger.info(f"Transaction {tx.id} updated")
        return tx

    def delete_transaction(self, transaction_id: int) -> None:
        """Reverse a movement's stock effect and remove it"""
        tx = self.get_transaction(transaction_id)

        try:
            apply_stock_delta(self.db, tx.item_id, -tx.stock_delta)
            self.db.delete(tx)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        business_logger.info(f"Transaction {transaction_id} deleted")

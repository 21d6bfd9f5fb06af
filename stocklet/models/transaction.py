"""
Transaction Models
SALE and PURCHASE records that move item stock
"""
from datetime import datetime
import enum

from sqlalchemy import (
    Column, Integer, String, Numeric, Date, DateTime, Enum,
    ForeignKey, CheckConstraint, Index
)
from sqlalchemy.orm import relationship

from stocklet.core.database import Base


class TransactionType(str, enum.Enum):
    SALE = "SALE"
    PURCHASE = "PURCHASE"


class Transaction(Base):
    """
    A single stock movement against one item

    ``counterparty`` is the customer for a SALE and the supplier for a
    PURCHASE. ``item_name_snapshot`` keeps the item name as it was when
    the record was last written.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="quantity_positive"),
        CheckConstraint("price >= 0", name="price_non_negative"),
        Index("ix_transactions_owner_type_date", "created_by", "type", "date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False)
    type = Column(Enum(TransactionType, name="transaction_type"), nullable=False)
    counterparty = Column(String(200), nullable=False, index=True)

    # Shipping and billing references
    shipment_note = Column(String(100))
    invoice_no = Column(String(100))
    po_no = Column(String(100))
    secondary_shipment_note = Column(String(100))

    # Line
    item_id = Column(Integer, ForeignKey("items.id"), nullable=False, index=True)
    item_name_snapshot = Column(String(200), nullable=False)
    quantity = Column(Numeric(14, 2), nullable=False)
    price = Column(Numeric(14, 2), nullable=False, default=0)
    total = Column(Numeric(16, 2), nullable=False, default=0)

    # Ownership
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    item = relationship("Item", back_populates="transactions")

    @property
    def stock_delta(self):
        """Signed effect of this record on its item's stock"""
        return -self.quantity if self.type == TransactionType.SALE else self.quantity

    def __repr__(self):
        return f"<Transaction(id={self.id}, type={self.type}, counterparty='{self.counterparty}')>"

"""
Item Models
Stock items shared by every user of the installation
"""
from datetime import datetime

from sqlalchemy import Column, Integer, String, Numeric, DateTime, CheckConstraint
from sqlalchemy.orm import relationship

from stocklet.core.database import Base


class Item(Base):
    """
    Stock item

    ``current_stock`` only moves through the transaction service or an
    explicit adjustment; both keep it at or above zero.
    """
    __tablename__ = "items"
    __table_args__ = (
        CheckConstraint("initial_stock >= 0", name="initial_stock_non_negative"),
        CheckConstraint("current_stock >= 0", name="current_stock_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), unique=True, nullable=False, index=True)
    initial_stock = Column(Numeric(14, 2), nullable=False, default=0)
    current_stock = Column(Numeric(14, 2), nullable=False, default=0)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    transactions = relationship("Transaction", back_populates="item")

    def __repr__(self):
        return f"<Item(id={self.id}, name='{self.name}', current_stock={self.current_stock})>"

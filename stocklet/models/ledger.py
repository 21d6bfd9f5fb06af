"""
Account Ledger Models
Opening balances and payments for customers and suppliers
"""
from datetime import datetime
import enum

from sqlalchemy import (
    Column, Integer, String, Numeric, Date, DateTime, Enum, Text,
    ForeignKey, CheckConstraint, UniqueConstraint
)

from stocklet.core.database import Base


class PaymentType(str, enum.Enum):
    RECEIVABLE_PAYMENT = "receivable_payment"
    PAYABLE_PAYMENT = "payable_payment"


class CustomerLedger(Base):
    """Opening receivable and payable balance for one counterparty name"""
    __tablename__ = "customer_ledgers"
    __table_args__ = (
        UniqueConstraint("customer_name", "created_by", name="uq_customer_ledgers_name_owner"),
    )

    id = Column(Integer, primary_key=True, index=True)
    customer_name = Column(String(200), nullable=False)
    initial_receivable = Column(Numeric(16, 2), nullable=False, default=0)
    initial_payable = Column(Numeric(16, 2), nullable=False, default=0)

    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<CustomerLedger(customer_name='{self.customer_name}')>"


class AccountPayment(Base):
    """A payment received from a customer or made to a supplier. Never edited."""
    __tablename__ = "account_payments"
    __table_args__ = (
        CheckConstraint("amount > 0", name="amount_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    customer_name = Column(String(200), nullable=False, index=True)
    payment_date = Column(Date, nullable=False)
    amount = Column(Numeric(16, 2), nullable=False)
    payment_type = Column(Enum(PaymentType, name="payment_type"), nullable=False)
    notes = Column(Text)

    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<AccountPayment(customer_name='{self.customer_name}', amount={self.amount})>"

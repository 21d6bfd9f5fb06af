"""
Account ledger schemas
Opening balances, payments and receivable/payable rows
"""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from stocklet.models.ledger import PaymentType


class LedgerUpsert(BaseModel):
    """Sets one or both opening balances for a counterparty"""
    customer_name: Optional[str] = None
    initial_receivable: Optional[Decimal] = None
    initial_payable: Optional[Decimal] = None


class LedgerRead(BaseModel):
    id: int
    customer_name: str
    initial_receivable: float
    initial_payable: float
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaymentCreate(BaseModel):
    customer_name: Optional[str] = None
    payment_date: Optional[date] = None
    amount: Optional[Decimal] = None
    payment_type: Optional[PaymentType] = None
    notes: Optional[str] = None


class PaymentRead(BaseModel):
    id: int
    customer_name: str
    payment_date: date
    amount: float
    payment_type: PaymentType
    notes: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReceivableRow(BaseModel):
    customer_name: str
    initial_receivable_balance: float
    total_sales: float
    total_payments_received: float
    final_receivable_balance: float


class PayableRow(BaseModel):
    supplier_name: str
    initial_payable_balance: float
    total_purchases: float
    total_payments_made: float
    final_payable_balance: float


class ReceivableReport(BaseModel):
    receivable_report: List[ReceivableRow]


class PayableReport(BaseModel):
    payable_report: List[PayableRow]

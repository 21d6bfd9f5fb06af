"""
Stocklet Pydantic Schemas
Request/Response models for the Stocklet API
"""

from .auth import Credentials, UserSummary, LoginResponse, RegisterResponse
from .common import MessageResponse, total_pages
from .item import AdjustmentType, ItemCreate, ItemRename, StockAdjustment, ItemRead, ItemPage
from .transaction import TransactionPayload, TransactionRead, TransactionPage, CounterpartySummary
from .accounts import (
    LedgerUpsert, LedgerRead, PaymentCreate, PaymentRead,
    ReceivableRow, PayableRow, ReceivableReport, PayableReport,
)

__all__ = [
    "Credentials",
    "UserSummary",
    "LoginResponse",
    "RegisterResponse",
    "MessageResponse",
    "total_pages",
    "AdjustmentType",
    "ItemCreate",
    "ItemRename",
    "StockAdjustment",
    "ItemRead",
    "ItemPage",
    "TransactionPayload",
    "TransactionRead",
    "TransactionPage",
    "CounterpartySummary",
    "LedgerUpsert",
    "LedgerRead",
    "PaymentCreate",
    "PaymentRead",
    "ReceivableRow",
    "PayableRow",
    "ReceivableReport",
    "PayableReport",
]

"""
Stocklet SQLAlchemy Models
Database models for items, transactions, ledgers and authentication
"""

# Import all models to ensure they are registered with SQLAlchemy
from .auth import User, RevokedToken
from .item import Item
from .transaction import Transaction, TransactionType
from .ledger import CustomerLedger, AccountPayment, PaymentType

__all__ = [
    "User",
    "RevokedToken",
    "Item",
    "Transaction",
    "TransactionType",
    "CustomerLedger",
    "AccountPayment",
    "PaymentType",
]

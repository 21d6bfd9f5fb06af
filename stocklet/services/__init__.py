"""
Stocklet Business Services
Core business logic services for inventory, transactions and accounts
"""

from .auth_service import AuthService
from .item_service import ItemService, apply_stock_delta
from .transaction_service import TransactionService
from .balance_service import AccountType, AccountsService, BalanceRow, compute_balances
from .report_service import ReportFilters, ReportService
from .export_service import ExportService, XLSX_MEDIA_TYPE

__all__ = [
    "AuthService",
    "ItemService",
    "apply_stock_delta",
    "TransactionService",
    "AccountType",
    "AccountsService",
    "BalanceRow",
    "compute_balances",
    "ReportFilters",
    "ReportService",
    "ExportService",
    "XLSX_MEDIA_TYPE",
]

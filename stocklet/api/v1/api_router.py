"""
Main API Router - Consolidates all module routes
"""

from fastapi import APIRouter

from stocklet.api.v1 import accounts, auth, export, items, reports, transactions

api_router = APIRouter()

# Authentication routes
api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])

# Inventory routes
api_router.include_router(items.router, prefix="/items", tags=["items"])
api_router.include_router(transactions.router, prefix="/transactions", tags=["transactions"])

# Reporting routes
api_router.include_router(reports.router, prefix="/reports", tags=["reports"])
api_router.include_router(export.router, prefix="/export", tags=["export"])

# Accounts routes
api_router.include_router(accounts.router, tags=["accounts"])

"""
Export API endpoints
Excel downloads of reports and balances
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from stocklet.api.deps import AuthSession, require_session
from stocklet.api.responses import HandlerResult, respond
from stocklet.api.v1.reports import report_filters
from stocklet.core.database import get_db
from stocklet.models.transaction import TransactionType
from stocklet.services.balance_service import AccountType
from stocklet.services.export_service import ExportService
from stocklet.services.report_service import ReportFilters

router = APIRouter()


@router.get("/sales")
def export_sales(
    customer: Optional[str] = None,
    filters: ReportFilters = Depends(report_filters),
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_session),
):
    filters.counterparty = customer
    content, filename = ExportService(db, session.user_id).transactions_workbook(
        filters, TransactionType.SALE
    )
    return respond(HandlerResult.attachment(content, filename), session)


@router.get("/purchases")
def export_purchases(
    supplier: Optional[str] = None,
    filters: ReportFilters = Depends(report_filters),
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_session),
):
    filters.counterparty = supplier
    content, filename = ExportService(db, session.user_id).transactions_workbook(
        filters, TransactionType.PURCHASE
    )
    return respond(HandlerResult.attachment(content, filename), session)


@router.get("/stock")
def export_stock(
    type: Optional[TransactionType] = None,
    customer: Optional[str] = None,
    filters: ReportFilters = Depends(report_filters),
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_session),
):
    filters.type = type
    filters.counterparty = customer
    content, filename = ExportService(db, session.user_id).stock_workbook(filters)
    return respond(HandlerResult.attachment(content, filename), session)


@router.get("/accounts")
def export_accounts(
    type: AccountType = AccountType.RECEIVABLE,
    customer_name: Optional[str] = None,
    supplier_name: Optional[str] = None,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_session),
):
    """
    Balances workbook; payables filter on ``supplier_name``, receivables on ``customer_name``.
    """
    name = supplier_name if type == AccountType.PAYABLE else customer_name
    content, filename = ExportService(db, session.user_id).accounts_workbook(type, name)
    return respond(HandlerResult.attachment(content, filename), session)

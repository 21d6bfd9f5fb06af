"""
Reports API endpoints
Sales and purchase listings and the per-counterparty summary
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from stocklet.api.deps import AuthSession, require_session
from stocklet.api.responses import HandlerResult, respond
from stocklet.core.database import get_db
from stocklet.models.transaction import TransactionType
from stocklet.schemas.transaction import CounterpartySummary, TransactionRead
from stocklet.services.report_service import ReportFilters, ReportService

router = APIRouter()


def report_filters(
    view: Optional[str] = None,
    year: Optional[int] = Query(None, ge=1, le=9999),
    month: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    item_id: Optional[int] = None,
    no_sj_type: Optional[str] = None,
) -> ReportFilters:
    """Period, item and shipment-note filters common to reports and exports"""
    return ReportFilters(
        view=view,
        year=year,
        month=month,
        start_date=start_date,
        end_date=end_date,
        item_id=item_id,
        no_sj_type=no_sj_type,
    )


@router.get("/sales")
def sales_report(
    customer: Optional[str] = None,
    filters: ReportFilters = Depends(report_filters),
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_session),
):
    filters.counterparty = customer
    rows = ReportService(db, session.user_id).sales_report(filters)
    return respond(
        HandlerResult.ok({"sales_report": [TransactionRead.model_validate(tx) for tx in rows]}),
        session,
    )


@router.get("/purchases")
def purchase_report(
    supplier: Optional[str] = None,
    filters: ReportFilters = Depends(report_filters),
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_session),
):
    filters.counterparty = supplier
    rows = ReportService(db, session.user_id).purchase_report(filters)
    return respond(
        HandlerResult.ok({"purchase_report": [TransactionRead.model_validate(tx) for tx in rows]}),
        session,
    )


@router.get("/items")
def items_summary(
    type: Optional[TransactionType] = None,
    customer: Optional[str] = None,
    filters: ReportFilters = Depends(report_filters),
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_session),
):
    """
    Quantity and value per counterparty, highest value first.
    """
    filters.type = type
    filters.counterparty = customer
    summary = ReportService(db, session.user_id).counterparty_summary(filters)
    return respond(
        HandlerResult.ok({"summary": [CounterpartySummary(**row) for row in summary]}),
        session,
    )

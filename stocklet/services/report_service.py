"""
Report Service
Sales and purchase listings and the per-counterparty stock summary
"""

from calendar import monthrange
from dataclasses import dataclass, replace
from datetime import date
from typing import List, Optional, Tuple
import logging

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from stocklet.core.exceptions import ValidationError
from stocklet.models.item import Item
from stocklet.models.transaction import Transaction, TransactionType

logger = logging.getLogger(__name__)

SHIPMENT_NOTE_FILTERS = ("all", "noSJ", "noSJSby")


@dataclass
class ReportFilters:
    """Query filters shared by the listings, the summary and their exports"""
    view: Optional[str] = None
    year: Optional[int] = None
    month: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    counterparty: Optional[str] = None
    item_id: Optional[int] = None
    no_sj_type: Optional[str] = None
    type: Optional[TransactionType] = None

    def period(self) -> Optional[Tuple[date, date]]:
        """
        Inclusive date range selected by the filters

        An explicit monthly view wins, then a start/end range, then a
        year and month, then a year alone.
        """
        if self.month is not None and not 1 <= self.month <= 12:
            raise ValidationError("Month must be between 1 and 12.")

        if self.view == "monthly" and self.year and self.month:
            return self._month_range()
        if self.start_date and self.end_date:
            if self.end_date < self.start_date:
                raise ValidationError("End date must not be before start date.")
            return self.start_date, self.end_date
        if self.year and self.month:
            return self._month_range()
        if self.year and not self.month:
            return date(self.year, 1, 1), date(self.year, 12, 31)
        return None

    def _month_range(self) -> Tuple[date, date]:
        last_day = monthrange(self.year, self.month)[1]
        return date(self.year, self.month, 1), date(self.year, self.month, last_day)


def _blank(column):
    return or_(column.is_(None), column == "")


def _present(column):
    return (column.is_not(None)) & (column != "")


class ReportService:
    """Read-only reporting over the current user's transactions"""

    def __init__(self, db: Session, user_id: int):
        self.db = db
        self.user_id = user_id

    def _filtered(self, filters: ReportFilters, columns=None):
        query = self.db.query(*columns) if columns else self.db.query(Transaction)
        query = query.filter(Transaction.created_by == self.user_id)

        if filters.type is not None:
            query = query.filter(Transaction.type == filters.type)

        period = filters.period()
        if period:
            query = query.filter(Transaction.date >= period[0], Transaction.date <= period[1])

        if filters.counterparty and filters.counterparty.strip():
            query = query.filter(
                Transaction.counterparty.icontains(filters.counterparty.strip(), autoescape=True)
            )

        if filters.item_id is not None:
            query = query.filter(Transaction.item_id == filters.item_id)

        if filters.no_sj_type and filters.no_sj_type != "all":
            if filters.no_sj_type not in SHIPMENT_NOTE_FILTERS:
                raise ValidationError("Invalid shipment note filter.")
            if filters.no_sj_type == "noSJ":
                query = query.filter(
                    _present(Transaction.shipment_note),
                    _blank(Transaction.secondary_shipment_note),
                )
            else:
                query = query.filter(_present(Transaction.secondary_shipment_note))

        return query

    def transactions(self, filters: ReportFilters) -> List[Transaction]:
        """Matching transactions by date then id"""
        return (
            self._filtered(filters)
            .order_by(Transaction.date.asc(), Transaction.id.asc())
            .all()
        )

    def sales_report(self, filters: ReportFilters) -> List[Transaction]:
        return self.transactions(replace(filters, type=TransactionType.SALE))

    def purchase_report(self, filters: ReportFilters) -> List[Transaction]:
        # Purchases have no secondary shipment note workflow
        return self.transactions(replace(filters, type=TransactionType.PURCHASE, no_sj_type=None))

    def counterparty_summary(self, filters: ReportFilters) -> List[dict]:
        """Quantity and value per counterparty, highest value first"""
        total_quantity = func.coalesce(func.sum(Transaction.quantity), 0)
        total_value = func.coalesce(func.sum(Transaction.total), 0)

        rows = (
            self._filtered(filters, [Transaction.counterparty, total_quantity, total_value])
            .group_by(Transaction.counterparty)
            .order_by(total_value.desc(), Transaction.counterparty.asc())
            .all()
        )
        return [
            {
                "counterparty": counterparty,
                "total_quantity": float(quantity or 0),
                "total_value": float(value or 0),
            }
            for counterparty, quantity, value in rows
        ]

    def item_name(self, item_id: Optional[int]) -> Optional[str]:
        if item_id is None:
            return None
        item = self.db.get(Item, item_id)
        return item.name if item else None

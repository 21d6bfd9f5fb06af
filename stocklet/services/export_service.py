"""
Export Service

Builds the Excel (.xlsx) downloads for transactions, the stock summary and
receivable/payable balances. Workbooks are rendered in memory and returned
as bytes together with a dated filename.
"""

import io
from datetime import date
from typing import Any, Iterable, List, Optional, Sequence, Tuple
import logging

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from sqlalchemy.orm import Session

from stocklet.core.config import settings
from stocklet.core.exceptions import NotFoundError
from stocklet.models.transaction import TransactionType
from stocklet.services.balance_service import AccountType, AccountsService
from stocklet.services.report_service import ReportFilters, ReportService

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
DATE_FORMAT = "yyyy-mm-dd"

ACCOUNT_HEADERS = ["Kind", "Name", "Date", "Notes", "Debit", "Credit", "Balance"]
MONEY_COLUMNS = (5, 6, 7)

# Header styling
HEADER_FONT = Font(bold=True, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
HEADER_ALIGNMENT = Alignment(horizontal="center", vertical="center")
THIN_BORDER = Border(
    left=Side(style='thin'),
    right=Side(style='thin'),
    top=Side(style='thin'),
    bottom=Side(style='thin')
)


def _write_header(ws, headers: Sequence[str]) -> None:
    for col, header in enumerate(headers, 1):
        cell = ws.cell(row=1, column=col, value=header)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGNMENT
        cell.border = THIN_BORDER


def _autosize(ws, minimum: int = 10, maximum: int = 50) -> None:
    """Fit column widths to their longest value"""
    for column in ws.columns:
        column_letter = get_column_letter(column[0].column)
        longest = max((len(str(cell.value)) for cell in column if cell.value is not None), default=0)
        ws.column_dimensions[column_letter].width = min(max(longest + 2, minimum), maximum)


def _save(wb: Workbook) -> bytes:
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def _stamp(today: Optional[date]) -> str:
    return (today or date.today()).strftime("%Y-%m-%d")


def _number(value) -> Optional[float]:
    return None if value is None else float(value)


class ExportService:
    """Excel exports of the current user's data"""

    def __init__(self, db: Session, user_id: int):
        self.db = db
        self.user_id = user_id
        self.reports = ReportService(db, user_id)

    # Transaction listings

    def transactions_workbook(
        self,
        filters: ReportFilters,
        tx_type: TransactionType,
        today: Optional[date] = None,
    ) -> Tuple[bytes, str]:
        """
        One sheet of matching transactions closed by a TOTAL row

        Raises:
            NotFoundError: nothing matches the filters
        """
        if tx_type == TransactionType.SALE:
            rows = self.reports.sales_report(filters)
            title, party, prefix = "Sales Report", "Customer", "sales_report"
        else:
            rows = self.reports.purchase_report(filters)
            title, party, prefix = "Purchase Report", "Supplier", "purchase_report"

        if not rows:
            raise NotFoundError("No data to export for the selected filters.")

        headers = [
            "Date", party, "Shipment Note", "Invoice No", "PO No",
            "Item", "Quantity (kg)", "Price", "Total",
        ]
        if tx_type == TransactionType.SALE:
            headers.append("Secondary Shipment Note")

        wb = Workbook()
        ws = wb.active
        ws.title = title
        _write_header(ws, headers)

        total_quantity = 0.0
        total_value = 0.0
        row_no = 2
        for tx in rows:
            values: List[Any] = [
                tx.date,
                tx.counterparty,
                tx.shipment_note or "",
                tx.invoice_no or "",
                tx.po_no or "",
                tx.item.name if tx.item is not None else tx.item_name_snapshot,
                float(tx.quantity),
                float(tx.price),
                float(tx.total),
            ]
            if tx_type == TransactionType.SALE:
                values.append(tx.secondary_shipment_note or "")

            for col, value in enumerate(values, 1):
                ws.cell(row=row_no, column=col, value=value)
            ws.cell(row=row_no, column=1).number_format = DATE_FORMAT
            self._format_line(ws, row_no)

            total_quantity += float(tx.quantity)
            total_value += float(tx.total)
            row_no += 1

        # Blank separator, then the totals
        row_no += 1
        ws.cell(row=row_no, column=1, value="TOTAL").font = Font(bold=True)
        ws.cell(row=row_no, column=7, value=round(total_quantity, 2)).font = Font(bold=True)
        ws.cell(row=row_no, column=9, value=round(total_value, 2)).font = Font(bold=True)
        self._format_line(ws, row_no)

        _autosize(ws)
        logger.info(f"{title} exported: {len(rows)} rows")
        return _save(wb), f"{prefix}_{_stamp(today)}.xlsx"

    @staticmethod
    def _format_line(ws, row_no: int) -> None:
        ws.cell(row=row_no, column=7).number_format = settings.QUANTITY_FORMAT
        ws.cell(row=row_no, column=8).number_format = settings.CURRENCY_FORMAT
        ws.cell(row=row_no, column=9).number_format = settings.CURRENCY_FORMAT

    # Stock summary

    def stock_workbook(self, filters: ReportFilters, today: Optional[date] = None) -> Tuple[bytes, str]:
        """Filter description sheet plus quantity and value per counterparty"""
        summary = self.reports.counterparty_summary(filters)

        if filters.type == TransactionType.SALE:
            party, label = "Customer", "sales"
        elif filters.type == TransactionType.PURCHASE:
            party, label = "Supplier", "purchases"
        else:
            party, label = "Counterparty", "all"

        wb = Workbook()
        filter_ws = wb.active
        filter_ws.title = "Filters"
        _write_header(filter_ws, ["Filter", "Value"])
        for row_no, (name, value) in enumerate(self._describe_filters(filters, party), 2):
            filter_ws.cell(row=row_no, column=1, value=name)
            filter_ws.cell(row=row_no, column=2, value=value)
        _autosize(filter_ws, minimum=20)

        ws = wb.create_sheet("Stock")
        _write_header(ws, [party, "Total Quantity (kg)", "Total Value"])
        row_no = 2
        for entry in summary:
            ws.cell(row=row_no, column=1, value=entry["counterparty"] or "-")
            ws.cell(row=row_no, column=2, value=round(entry["total_quantity"], 2))
            ws.cell(row=row_no, column=3, value=entry["total_value"])
            row_no += 1

        ws.cell(row=row_no, column=1, value="GRAND TOTAL").font = Font(bold=True)
        ws.cell(row=row_no, column=2, value=round(sum(e["total_quantity"] for e in summary), 2))
        ws.cell(row=row_no, column=3, value=sum(e["total_value"] for e in summary))

        for r in range(2, row_no + 1):
            ws.cell(row=r, column=2).number_format = settings.QUANTITY_FORMAT
            ws.cell(row=r, column=3).number_format = settings.CURRENCY_FORMAT
        _autosize(ws)

        logger.info(f"Stock summary exported: {len(summary)} counterparties")
        return _save(wb), f"stock_report_{label}_{_stamp(today)}.xlsx"

    def _describe_filters(self, filters: ReportFilters, party: str) -> Iterable[Tuple[str, str]]:
        if filters.year:
            yield "Year", str(filters.year)
        if filters.month:
            yield "Month", str(filters.month)
        item_name = self.reports.item_name(filters.item_id)
        if item_name:
            yield "Item", item_name
        if filters.counterparty:
            yield party, filters.counterparty
        if filters.start_date and filters.end_date:
            yield "Date Range", f"{filters.start_date.isoformat()} to {filters.end_date.isoformat()}"
        if filters.type is not None:
            yield "Transaction Type", filters.type.value
        if filters.no_sj_type:
            yield "Shipment Note", filters.no_sj_type

    # Receivable / payable

    def accounts_workbook(
        self,
        account_type: AccountType,
        name_filter: Optional[str] = None,
        today: Optional[date] = None,
    ) -> Tuple[bytes, str]:
        """
        Summary sheet with one row per counterparty and a Payments sheet
        listing each payment in date order

        Receivable gross goes in Debit and payments in Credit; payable is
        the mirror image.
        """
        account_type = AccountType(account_type)
        receivable = account_type is AccountType.RECEIVABLE
        rows = AccountsService(self.db, self.user_id).balances(account_type, name_filter)

        wb = Workbook()
        summary_ws = wb.active
        summary_ws.title = "Summary"
        payment_ws = wb.create_sheet("Payments")
        _write_header(summary_ws, ACCOUNT_HEADERS)
        _write_header(payment_ws, ACCOUNT_HEADERS)

        summary_row = 2
        payment_row = 2
        for balance in rows:
            gross = float(balance.gross)
            summary_values = [
                "SUMMARY", balance.name, None, None,
                gross if receivable else None,
                None if receivable else gross,
                float(balance.final),
            ]
            for col, value in enumerate(summary_values, 1):
                summary_ws.cell(row=summary_row, column=col, value=value)
            summary_row += 1

            for payment in balance.payments:
                amount = _number(payment.amount)
                payment_values = [
                    "PAYMENT", balance.name, payment.payment_date, payment.notes or "",
                    None if receivable else amount,
                    amount if receivable else None,
                    None,
                ]
                for col, value in enumerate(payment_values, 1):
                    payment_ws.cell(row=payment_row, column=col, value=value)
                payment_ws.cell(row=payment_row, column=3).number_format = DATE_FORMAT
                payment_row += 1

        for ws in (summary_ws, payment_ws):
            for r in range(2, ws.max_row + 1):
                for c in MONEY_COLUMNS:
                    cell = ws.cell(row=r, column=c)
                    if isinstance(cell.value, (int, float)):
                        cell.number_format = settings.CURRENCY_FORMAT
            _autosize(ws)

        logger.info(f"{account_type.value.title()} balances exported: {len(rows)} counterparties")
        return _save(wb), f"{account_type.value}_report_{_stamp(today)}.xlsx"

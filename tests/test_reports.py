"""
Tests for reports and Excel exports
"""

import io
from datetime import date

import pytest
from openpyxl import load_workbook

from stocklet.core.exceptions import NotFoundError, ValidationError
from stocklet.models.ledger import PaymentType
from stocklet.models.transaction import TransactionType
from stocklet.schemas.transaction import TransactionPayload
from stocklet.services.balance_service import AccountType, AccountsService
from stocklet.services.export_service import ACCOUNT_HEADERS, XLSX_MEDIA_TYPE, ExportService
from stocklet.services.report_service import ReportFilters, ReportService
from stocklet.services.transaction_service import TransactionService


@pytest.fixture
def ledger_data(db_session, test_user, besi_beton, kawat):
    """A month of mixed activity for the test user"""
    service = TransactionService(db_session, test_user.id)
    rows = [
        ("2024-01-31", "PURCHASE", "Supplier X", besi_beton.id, 50, 9000, {}),
        ("2024-02-01", "SALE", "Toko A", besi_beton.id, 10, 10000, {"shipment_note": "SJ-1"}),
        ("2024-02-15", "SALE", "Toko B", kawat.id, 5, 12000,
         {"shipment_note": "SJ-2", "secondary_shipment_note": "SBY-2"}),
        ("2024-02-29", "SALE", "Toko A", besi_beton.id, 20, 10000, {}),
        ("2024-03-01", "SALE", "toko a", besi_beton.id, 1, 10000, {}),
    ]
    for day, tx_type, party, item_id, quantity, price, extra in rows:
        service.create_transaction(TransactionPayload(
            date=day, type=tx_type, counterparty=party,
            item_id=item_id, quantity=quantity, price=price, **extra,
        ))
    return rows


def open_workbook(content: bytes):
    return load_workbook(io.BytesIO(content))


class TestReportFilters:
    """Test suite for period resolution"""

    def test_monthly_view_wins_over_range(self):
        filters = ReportFilters(
            view="monthly", year=2024, month=2,
            start_date=date(2024, 1, 1), end_date=date(2024, 12, 31),
        )
        assert filters.period() == (date(2024, 2, 1), date(2024, 2, 29))

    def test_range_wins_over_year_month(self):
        filters = ReportFilters(
            year=2023, month=5, start_date=date(2024, 1, 10), end_date=date(2024, 1, 20),
        )
        assert filters.period() == (date(2024, 1, 10), date(2024, 1, 20))

    def test_year_alone(self):
        assert ReportFilters(year=2024).period() == (date(2024, 1, 1), date(2024, 12, 31))

    def test_no_period(self):
        assert ReportFilters().period() is None

    def test_invalid_month(self):
        with pytest.raises(ValidationError):
            ReportFilters(year=2024, month=13).period()

    def test_reversed_range(self):
        with pytest.raises(ValidationError):
            ReportFilters(start_date=date(2024, 2, 1), end_date=date(2024, 1, 1)).period()


class TestReportService:
    """Test suite for ReportService"""

    def test_month_bounds_are_inclusive(self, db_session, test_user, ledger_data):
        rows = ReportService(db_session, test_user.id).sales_report(ReportFilters(year=2024, month=2))
        assert [tx.date for tx in rows] == [date(2024, 2, 1), date(2024, 2, 15), date(2024, 2, 29)]

    def test_counterparty_filter_is_case_insensitive(self, db_session, test_user, ledger_data):
        rows = ReportService(db_session, test_user.id).sales_report(ReportFilters(counterparty="TOKO A"))
        assert len(rows) == 3

    def test_shipment_note_filters(self, db_session, test_user, ledger_data):
        reports = ReportService(db_session, test_user.id)

        no_sj = reports.sales_report(ReportFilters(no_sj_type="noSJ"))
        assert [tx.shipment_note for tx in no_sj] == ["SJ-1"]

        sby = reports.sales_report(ReportFilters(no_sj_type="noSJSby"))
        assert [tx.secondary_shipment_note for tx in sby] == ["SBY-2"]

        with pytest.raises(ValidationError):
            reports.sales_report(ReportFilters(no_sj_type="bogus"))

    def test_purchase_report_ignores_shipment_filter(self, db_session, test_user, ledger_data):
        rows = ReportService(db_session, test_user.id).purchase_report(ReportFilters(no_sj_type="noSJ"))
        assert [tx.counterparty for tx in rows] == ["Supplier X"]

    def test_report_does_not_alter_filters(self, db_session, test_user, ledger_data):
        filters = ReportFilters(year=2024)
        ReportService(db_session, test_user.id).sales_report(filters)
        assert filters.type is None

    def test_counterparty_summary_by_value(self, db_session, test_user, ledger_data):
        summary = ReportService(db_session, test_user.id).counterparty_summary(
            ReportFilters(type=TransactionType.SALE, year=2024, month=2)
        )
        assert summary == [
            {"counterparty": "Toko A", "total_quantity": 30.0, "total_value": 300000.0},
            {"counterparty": "Toko B", "total_quantity": 5.0, "total_value": 60000.0},
        ]

    def test_reports_are_scoped_to_user(self, db_session, other_user, ledger_data):
        assert ReportService(db_session, other_user.id).sales_report(ReportFilters()) == []


class TestExportService:
    """Test suite for the Excel workbooks"""

    def test_sales_workbook_layout(self, db_session, test_user, ledger_data):
        content, filename = ExportService(db_session, test_user.id).transactions_workbook(
            ReportFilters(year=2024, month=2), TransactionType.SALE, today=date(2024, 3, 5)
        )

        assert filename == "sales_report_2024-03-05.xlsx"
        ws = open_workbook(content)["Sales Report"]
        headers = [cell.value for cell in ws[1]]
        assert headers[1] == "Customer"
        assert headers[-1] == "Secondary Shipment Note"

        # Three data rows, a blank row, then the totals
        assert ws.cell(row=5, column=1).value is None
        assert ws.cell(row=6, column=1).value == "TOTAL"
        assert ws.cell(row=6, column=7).value == 35
        assert ws.cell(row=6, column=9).value == 360000

    def test_purchase_workbook(self, db_session, test_user, ledger_data):
        content, filename = ExportService(db_session, test_user.id).transactions_workbook(
            ReportFilters(), TransactionType.PURCHASE, today=date(2024, 3, 5)
        )

        assert filename == "purchase_report_2024-03-05.xlsx"
        ws = open_workbook(content)["Purchase Report"]
        headers = [cell.value for cell in ws[1]]
        assert headers[1] == "Supplier"
        assert "Secondary Shipment Note" not in headers

    def test_empty_export_is_not_found(self, db_session, test_user):
        with pytest.raises(NotFoundError) as exc:
            ExportService(db_session, test_user.id).transactions_workbook(
                ReportFilters(), TransactionType.SALE
            )
        assert exc.value.message == "No data to export for the selected filters."

    def test_stock_workbook(self, db_session, test_user, ledger_data, besi_beton):
        content, filename = ExportService(db_session, test_user.id).stock_workbook(
            ReportFilters(type=TransactionType.SALE, item_id=besi_beton.id), today=date(2024, 3, 5)
        )

        assert filename == "stock_report_sales_2024-03-05.xlsx"
        wb = open_workbook(content)
        assert wb.sheetnames == ["Filters", "Stock"]

        filters = {row[0].value: row[1].value for row in wb["Filters"].iter_rows(min_row=2)}
        assert filters["Item"] == "Besi Beton"
        assert filters["Transaction Type"] == "SALE"

        stock = wb["Stock"]
        assert stock.cell(row=1, column=1).value == "Customer"
        last = stock.max_row
        assert stock.cell(row=last, column=1).value == "GRAND TOTAL"
        assert stock.cell(row=last, column=2).value == 31
        assert stock.cell(row=last, column=3).value == 310000

    def test_accounts_workbook_columns(self, db_session, test_user, ledger_data):
        accounts = AccountsService(db_session, test_user.id)
        accounts.upsert_ledger("Gudang Lama", initial_receivable=500)
        accounts.record_payment("Toko A", date(2024, 3, 2), 1000, PaymentType.RECEIVABLE_PAYMENT, "transfer")

        content, filename = ExportService(db_session, test_user.id).accounts_workbook(
            AccountType.RECEIVABLE, today=date(2024, 3, 5)
        )

        assert filename == "receivable_report_2024-03-05.xlsx"
        wb = open_workbook(content)
        assert wb.sheetnames == ["Summary", "Payments"]

        summary = wb["Summary"]
        assert [c.value for c in summary[1]] == ACCOUNT_HEADERS
        rows = {r[1].value: [c.value for c in r] for r in summary.iter_rows(min_row=2)}
        assert rows["Gudang Lama"][4] == 0
        assert rows["Gudang Lama"][6] == 500
        assert rows["Toko A"][0] == "SUMMARY"
        assert rows["Toko A"][4] == 300000
        assert rows["Toko A"][5] is None
        assert rows["Toko A"][6] == 299000

        payments = wb["Payments"]
        payment = [c.value for c in payments[2]]
        assert payment[0] == "PAYMENT"
        assert payment[3] == "transfer"
        assert payment[4] is None
        assert payment[5] == 1000

    def test_payable_workbook_mirrors_columns(self, db_session, test_user, ledger_data):
        AccountsService(db_session, test_user.id).record_payment(
            "Supplier X", date(2024, 2, 10), 100, PaymentType.PAYABLE_PAYMENT
        )

        content, filename = ExportService(db_session, test_user.id).accounts_workbook(
            AccountType.PAYABLE, today=date(2024, 3, 5)
        )

        assert filename == "payable_report_2024-03-05.xlsx"
        wb = open_workbook(content)
        supplier = [c.value for c in wb["Summary"][2]]
        assert supplier[1] == "Supplier X"
        assert supplier[4] is None
        assert supplier[5] == 450000
        payment = [c.value for c in wb["Payments"][2]]
        assert payment[4] == 100
        assert payment[5] is None


class TestReportsAPI:
    """Report and export endpoints"""

    @pytest.fixture(autouse=True)
    def _data(self, ledger_data):
        return ledger_data

    def test_sales_report(self, client, auth_headers):
        response = client.get(
            "/api/reports/sales", headers=auth_headers,
            params={"view": "monthly", "year": 2024, "month": 2, "customer": "toko b"},
        )
        assert response.status_code == 200
        rows = response.json()["sales_report"]
        assert [r["counterparty"] for r in rows] == ["Toko B"]

    def test_purchase_report(self, client, auth_headers):
        response = client.get("/api/reports/purchases", headers=auth_headers, params={"supplier": "x"})
        assert [r["quantity"] for r in response.json()["purchase_report"]] == [50.0]

    def test_items_summary(self, client, auth_headers):
        response = client.get("/api/reports/items", headers=auth_headers, params={"type": "PURCHASE"})
        assert response.json()["summary"] == [
            {"counterparty": "Supplier X", "total_quantity": 50.0, "total_value": 450000.0}
        ]

    def test_invalid_month_is_400(self, client, auth_headers):
        response = client.get("/api/reports/sales", headers=auth_headers, params={"year": 2024, "month": 13})
        assert response.status_code == 400

    def test_export_sales_download(self, client, auth_headers):
        response = client.get("/api/export/sales", headers=auth_headers, params={"year": 2024})

        assert response.status_code == 200
        assert response.headers["content-type"] == XLSX_MEDIA_TYPE
        disposition = response.headers["content-disposition"]
        assert disposition.startswith('attachment; filename="sales_report_')
        assert open_workbook(response.content).sheetnames == ["Sales Report"]

    def test_export_with_no_rows_is_404(self, client, auth_headers):
        response = client.get("/api/export/sales", headers=auth_headers, params={"year": 1999})
        assert response.status_code == 404
        assert response.json() == {"message": "No data to export for the selected filters."}

    def test_export_accounts(self, client, auth_headers):
        response = client.get("/api/export/accounts", headers=auth_headers, params={"type": "payable"})
        assert response.status_code == 200
        assert "payable_report_" in response.headers["content-disposition"]

    def test_export_requires_session(self, client):
        response = client.get("/api/export/stock")
        assert response.status_code == 401

    def test_export_payable_filters_on_supplier_name(self, client, auth_headers):
        client.post("/api/customer-ledger", headers=auth_headers, json={
            "customer_name": "Gudang Lama", "initial_payable": 70,
        })

        def summary_names(params):
            response = client.get("/api/export/accounts", headers=auth_headers, params=params)
            assert response.status_code == 200
            rows = open_workbook(response.content)["Summary"].iter_rows(min_row=2)
            return [row[1].value for row in rows]

        assert summary_names({"type": "payable", "supplier_name": "gudang"}) == ["Gudang Lama"]
        # The customer filter belongs to receivables only
        assert summary_names({"type": "payable", "customer_name": "gudang"}) == ["Gudang Lama", "Supplier X"]

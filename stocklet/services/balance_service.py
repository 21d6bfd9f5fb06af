"""
Balance Service
Receivable/payable balances per counterparty, ledger upserts and payments

``compute_balances`` works on plain in-memory records so the join and
default rules can be tested without a database. ``AccountsService`` loads
the current user's rows and hands them over.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional
import logging
import re

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stocklet.core.exceptions import ConflictError, ValidationError
from stocklet.core.logging import get_logger
from stocklet.models.ledger import AccountPayment, CustomerLedger, PaymentType
from stocklet.models.transaction import Transaction, TransactionType

logger = logging.getLogger(__name__)
business_logger = get_logger("business")

ZERO = Decimal("0")


class AccountType(str, Enum):
    RECEIVABLE = "receivable"
    PAYABLE = "payable"

    @property
    def transaction_type(self) -> TransactionType:
        return TransactionType.SALE if self is AccountType.RECEIVABLE else TransactionType.PURCHASE

    @property
    def payment_type(self) -> PaymentType:
        if self is AccountType.RECEIVABLE:
            return PaymentType.RECEIVABLE_PAYMENT
        return PaymentType.PAYABLE_PAYMENT

    @property
    def ledger_field(self) -> str:
        return "initial_receivable" if self is AccountType.RECEIVABLE else "initial_payable"


@dataclass
class BalanceRow:
    """One counterparty's balance. ``gross`` is total sales or purchases."""
    name: str
    initial: Decimal = ZERO
    gross: Decimal = ZERO
    paid: Decimal = ZERO
    payments: List[Any] = field(default_factory=list, repr=False)

    @property
    def final(self) -> Decimal:
        return self.initial + self.gross - self.paid

    def as_dict(self, account_type: AccountType) -> Dict[str, Any]:
        if account_type is AccountType.RECEIVABLE:
            return {
                "customer_name": self.name,
                "initial_receivable_balance": float(self.initial),
                "total_sales": float(self.gross),
                "total_payments_received": float(self.paid),
                "final_receivable_balance": float(self.final),
            }
        return {
            "supplier_name": self.name,
            "initial_payable_balance": float(self.initial),
            "total_purchases": float(self.gross),
            "total_payments_made": float(self.paid),
            "final_payable_balance": float(self.final),
        }


def _amount(value) -> Decimal:
    """Missing numbers count as zero"""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _enum_value(value) -> str:
    return value.value if isinstance(value, Enum) else str(value)


def name_matcher(name_filter: Optional[str]):
    """Case-insensitive substring predicate; the filter text is taken literally"""
    if not name_filter or not name_filter.strip():
        return lambda name: True
    pattern = re.compile(re.escape(name_filter.strip()), re.IGNORECASE)
    return lambda name: bool(name) and pattern.search(name) is not None


def compute_balances(
    transactions: Iterable[Any],
    ledger_rows: Iterable[Any],
    payments: Iterable[Any],
    account_type: AccountType,
    name_filter: Optional[str] = None,
) -> List[BalanceRow]:
    """
    Combine transactions, opening balances and payments into balance rows

    Records are read by attribute: transactions need ``type``,
    ``counterparty`` and ``total``; ledger rows ``customer_name`` and the
    ``initial_*`` fields; payments ``customer_name``, ``amount``,
    ``payment_type`` and ``payment_date``. All three sets must already be
    scoped to one user.

    Counterparties with transactions of the relevant type get
    ``initial + gross - paid``. A ledger row with no such transaction gets
    a row with zero gross, unless both its opening balance and payments are
    zero. Rows are sorted by name (ordinal).
    """
    account_type = AccountType(account_type)
    tx_type = _enum_value(account_type.transaction_type)
    pay_type = _enum_value(account_type.payment_type)
    matches = name_matcher(name_filter)

    # Gross per counterparty
    gross: Dict[str, Decimal] = {}
    for tx in transactions:
        if _enum_value(tx.type) != tx_type or not matches(tx.counterparty):
            continue
        gross[tx.counterparty] = gross.get(tx.counterparty, ZERO) + _amount(tx.total)

    ledger: Dict[str, Decimal] = {}
    for row in ledger_rows:
        ledger[row.customer_name] = _amount(getattr(row, account_type.ledger_field, None))

    paid: Dict[str, List[Any]] = {}
    for payment in payments:
        if _enum_value(payment.payment_type) != pay_type:
            continue
        paid.setdefault(payment.customer_name, []).append(payment)

    def build(name: str, gross_amount: Decimal) -> BalanceRow:
        name_payments = sorted(paid.get(name, []), key=lambda p: p.payment_date)
        return BalanceRow(
            name=name,
            initial=ledger.get(name, ZERO),
            gross=gross_amount,
            paid=sum((_amount(p.amount) for p in name_payments), ZERO),
            payments=name_payments,
        )

    rows = [build(name, amount) for name, amount in gross.items()]

    # Ledger-only counterparties
    for name in ledger:
        if name in gross or not matches(name):
            continue
        row = build(name, ZERO)
        if row.initial == 0 and row.paid == 0:
            continue
        rows.append(row)

    rows.sort(key=lambda r: r.name)
    return rows


class AccountsService:
    """Service for the current user's ledgers, payments and balances"""

    def __init__(self, db: Session, user_id: int):
        self.db = db
        self.user_id = user_id

    def balances(
        self, account_type: AccountType, name_filter: Optional[str] = None
    ) -> List[BalanceRow]:
        account_type = AccountType(account_type)
        transactions = (
            self.db.query(Transaction)
            .filter(
                Transaction.created_by == self.user_id,
                Transaction.type == account_type.transaction_type,
            )
            .all()
        )
        ledger_rows = (
            self.db.query(CustomerLedger)
            .filter(CustomerLedger.created_by == self.user_id)
            .all()
        )
        payments = (
            self.db.query(AccountPayment)
            .filter(
                AccountPayment.created_by == self.user_id,
                AccountPayment.payment_type == account_type.payment_type,
            )
            .order_by(AccountPayment.payment_date.asc(), AccountPayment.id.asc())
            .all()
        )
        return compute_balances(transactions, ledger_rows, payments, account_type, name_filter)

    def upsert_ledger(
        self,
        customer_name: Optional[str],
        initial_receivable: Optional[Decimal] = None,
        initial_payable: Optional[Decimal] = None,
    ) -> CustomerLedger:
        """Create or update a counterparty's opening balances; omitted fields are left alone"""
        if not customer_name or not customer_name.strip():
            raise ValidationError("Customer name is required and must be a non-empty string.")
        if initial_receivable is None and initial_payable is None:
            raise ValidationError(
                "At least one initial balance (receivable or payable) must be provided as a number."
            )

        name = customer_name.strip()
        # A concurrent insert of the same name loses once; the retry then finds that row
        for attempt in range(2):
            ledger = (
                self.db.query(CustomerLedger)
                .filter(CustomerLedger.customer_name == name, CustomerLedger.created_by == self.user_id)
                .first()
            )
            if ledger is None:
                ledger = CustomerLedger(
                    customer_name=name,
                    created_by=self.user_id,
                    initial_receivable=ZERO,
                    initial_payable=ZERO,
                )
                self.db.add(ledger)

            if initial_receivable is not None:
                ledger.initial_receivable = initial_receivable
            if initial_payable is not None:
                ledger.initial_payable = initial_payable

            try:
                self.db.commit()
                break
            except IntegrityError:
                self.db.rollback()
                if attempt:
                    logger.warning(f"Ledger upsert for {name} kept conflicting")
                    raise ConflictError("Customer ledger could not be saved. Please try again.")

        self.db.refresh(ledger)
        business_logger.info(f"Ledger updated for {name}")
        return ledger

    def record_payment(
        self,
        customer_name: Optional[str],
        payment_date: Optional[date],
        amount: Optional[Decimal],
        payment_type: Optional[PaymentType],
        notes: Optional[str] = None,
    ) -> AccountPayment:
        if not customer_name or not customer_name.strip():
            raise ValidationError("Customer/Supplier name is required.")
        if payment_date is None:
            raise ValidationError("Payment date is required.")
        if amount is None or amount <= 0:
            raise ValidationError("Amount must be a positive number.")
        if payment_type is None:
            raise ValidationError("Invalid payment type.")

        payment = AccountPayment(
            customer_name=customer_name.strip(),
            payment_date=payment_date,
            amount=amount,
            payment_type=payment_type,
            notes=notes.strip() if notes and notes.strip() else None,
            created_by=self.user_id,
        )
        self.db.add(payment)
        self.db.commit()
        self.db.refresh(payment)

        business_logger.info(
            f"Payment recorded: {payment.payment_type.value} {payment.amount} for {payment.customer_name}"
        )
        return payment

    def payment_history(
        self, customer_name: Optional[str], payment_type: Optional[PaymentType]
    ) -> List[AccountPayment]:
        """Payments for one counterparty and type, newest first"""
        if not customer_name or not customer_name.strip():
            raise ValidationError("Customer name is required.")
        if payment_type is None:
            raise ValidationError("Valid payment type is required.")

        return (
            self.db.query(AccountPayment)
            .filter(
                AccountPayment.created_by == self.user_id,
                AccountPayment.customer_name == customer_name.strip(),
                AccountPayment.payment_type == payment_type,
            )
            .order_by(AccountPayment.payment_date.desc(), AccountPayment.id.desc())
            .all()
        )

    def distinct_customers(self, search: Optional[str] = None, limit: Optional[int] = None) -> List[str]:
        """Counterparty names from transactions and ledger rows, sorted"""
        tx_query = (
            self.db.query(Transaction.counterparty)
            .filter(Transaction.created_by == self.user_id)
            .distinct()
        )
        ledger_query = (
            self.db.query(CustomerLedger.customer_name)
            .filter(CustomerLedger.created_by == self.user_id)
            .distinct()
        )
        if search and search.strip():
            tx_query = tx_query.filter(
                Transaction.counterparty.icontains(search.strip(), autoescape=True)
            )
            ledger_query = ledger_query.filter(
                CustomerLedger.customer_name.icontains(search.strip(), autoescape=True)
            )

        names = {row[0] for row in tx_query.all()} | {row[0] for row in ledger_query.all()}
        result = sorted(name for name in names if name)
        if limit is not None and limit > 0:
            result = result[:limit]
        return result

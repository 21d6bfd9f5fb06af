"""
Accounts API endpoints
Receivable/payable balances, opening balances, payments and name lookup
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from stocklet.api.deps import AuthSession, require_session
from stocklet.api.responses import HandlerResult, respond
from stocklet.core.database import get_db
from stocklet.models.ledger import PaymentType
from stocklet.schemas.accounts import (
    LedgerRead, LedgerUpsert, PayableReport, PaymentCreate, PaymentRead, ReceivableReport
)
from stocklet.services.balance_service import AccountType, AccountsService

router = APIRouter()


@router.get("/accounts/receivable", response_model=ReceivableReport)
def receivable_report(
    customer_name: Optional[str] = None,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_session),
):
    """
    Amounts owed by each customer.
    """
    rows = AccountsService(db, session.user_id).balances(AccountType.RECEIVABLE, customer_name)
    return respond(
        HandlerResult.ok({"receivable_report": [r.as_dict(AccountType.RECEIVABLE) for r in rows]}),
        session,
    )


@router.get("/accounts/payable", response_model=PayableReport)
def payable_report(
    supplier_name: Optional[str] = None,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_session),
):
    """
    Amounts owed to each supplier.
    """
    rows = AccountsService(db, session.user_id).balances(AccountType.PAYABLE, supplier_name)
    return respond(
        HandlerResult.ok({"payable_report": [r.as_dict(AccountType.PAYABLE) for r in rows]}),
        session,
    )


@router.post("/customer-ledger")
def upsert_customer_ledger(
    body: LedgerUpsert,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_session),
):
    ledger = AccountsService(db, session.user_id).upsert_ledger(
        body.customer_name, body.initial_receivable, body.initial_payable
    )
    return respond(
        HandlerResult.ok(
            {"ledger_entry": LedgerRead.model_validate(ledger)},
            message="Customer ledger updated successfully.",
        ),
        session,
    )


@router.get("/account-payments")
def payment_history(
    customer_name: Optional[str] = None,
    payment_type: Optional[PaymentType] = None,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_session),
):
    payments = AccountsService(db, session.user_id).payment_history(customer_name, payment_type)
    return respond(
        HandlerResult.ok({"payments": [PaymentRead.model_validate(p) for p in payments]}),
        session,
    )


@router.post("/account-payments", status_code=201)
def record_payment(
    body: PaymentCreate,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_session),
):
    payment = AccountsService(db, session.user_id).record_payment(
        body.customer_name, body.payment_date, body.amount, body.payment_type, body.notes
    )
    return respond(
        HandlerResult.created(
            {"payment": PaymentRead.model_validate(payment)},
            message="Payment recorded successfully.",
        ),
        session,
    )


@router.get("/distinct-customers")
def distinct_customers(
    search: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1, le=500),
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_session),
):
    """
    Counterparty names for typeahead inputs.
    """
    names = AccountsService(db, session.user_id).distinct_customers(search=search, limit=limit)
    return respond(HandlerResult.ok({"customers": names}), session)

"""
Transactions API endpoints
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from stocklet.api.deps import AuthSession, require_session
from stocklet.api.responses import HandlerResult, respond
from stocklet.core.database import get_db
from stocklet.models.transaction import TransactionType
from stocklet.schemas.common import MessageResponse
from stocklet.schemas.transaction import TransactionPage, TransactionPayload, TransactionRead
from stocklet.services.transaction_service import DEFAULT_PAGE_SIZE, TransactionService

router = APIRouter()


@router.get("", response_model=TransactionPage)
def list_transactions(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100),
    type: Optional[TransactionType] = None,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_session),
):
    """
    Retrieve the caller's transactions ordered by date.
    """
    result = TransactionService(db, session.user_id).list_transactions(
        page=page, limit=limit, tx_type=type
    )
    result["transactions"] = [TransactionRead.model_validate(tx) for tx in result["transactions"]]
    return respond(HandlerResult.ok(result), session)


@router.post("", status_code=201)
def create_transaction(
    body: TransactionPayload,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_session),
):
    """
    Record a SALE or PURCHASE and move the item's stock.
    """
    tx = TransactionService(db, session.user_id).create_transaction(body)
    return respond(
        HandlerResult.created(
            {"transaction": TransactionRead.model_validate(tx)},
            message="Transaction created successfully.",
        ),
        session,
    )


@router.get("/{transaction_id}")
def get_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_session),
):
    tx = TransactionService(db, session.user_id).get_transaction(transaction_id)
    return respond(HandlerResult.ok({"transaction": TransactionRead.model_validate(tx)}), session)


@router.put("/{transaction_id}")
def update_transaction(
    transaction_id: int,
    body: TransactionPayload,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_session),
):
    tx = TransactionService(db, session.user_id).update_transaction(transaction_id, body)
    return respond(
        HandlerResult.ok(
            {"transaction": TransactionRead.model_validate(tx)},
            message="Transaction updated successfully.",
        ),
        session,
    )


@router.delete("/{transaction_id}", response_model=MessageResponse)
def delete_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_session),
):
    TransactionService(db, session.user_id).delete_transaction(transaction_id)
    return respond(HandlerResult.ok(message="Transaction deleted successfully."), session)

"""
Stock Items API endpoints
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from stocklet.api.deps import AuthSession, require_session
from stocklet.api.responses import HandlerResult, respond
from stocklet.core.database import get_db
from stocklet.schemas.common import MessageResponse
from stocklet.schemas.item import ItemCreate, ItemPage, ItemRename, StockAdjustment
from stocklet.schemas.transaction import TransactionRead
from stocklet.services.item_service import DEFAULT_PAGE_SIZE, ItemService

router = APIRouter()


@router.get("", response_model=ItemPage)
def list_items(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100),
    search: Optional[str] = None,
    fetch_all: bool = False,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_session),
):
    """
    Retrieve items newest first with their movement totals.
    """
    result = ItemService(db).list_items(page=page, limit=limit, search=search, fetch_all=fetch_all)
    return respond(HandlerResult.ok(result), session)


@router.post("", status_code=201)
def create_item(
    body: ItemCreate,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_session),
):
    """
    Create a new stock item.
    """
    service = ItemService(db)
    item = service.create_item(body.name, body.initial_stock)
    return respond(
        HandlerResult.created(
            {"item": service.get_item_with_totals(item.id)},
            message="Item created successfully.",
        ),
        session,
    )


@router.get("/{item_id}")
def get_item(
    item_id: int,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_session),
):
    item = ItemService(db).get_item_with_totals(item_id)
    return respond(HandlerResult.ok({"item": item}), session)


@router.put("/{item_id}")
def rename_item(
    item_id: int,
    body: ItemRename,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_session),
):
    service = ItemService(db)
    service.rename_item(item_id, body.name)
    return respond(
        HandlerResult.ok(
            {"item": service.get_item_with_totals(item_id)},
            message="Item name updated successfully.",
        ),
        session,
    )


@router.delete("/{item_id}", response_model=MessageResponse)
def delete_item(
    item_id: int,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_session),
):
    ItemService(db).delete_item(item_id)
    return respond(HandlerResult.ok(message="Item deleted successfully."), session)


@router.post("/{item_id}/adjust-stock")
def adjust_stock(
    item_id: int,
    body: StockAdjustment,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_session),
):
    """
    Set, add to or subtract from an item's current stock.
    """
    service = ItemService(db)
    service.adjust_stock(item_id, body.adjustment, body.type)
    return respond(
        HandlerResult.ok(
            {"item": service.get_item_with_totals(item_id)},
            message="Stock adjusted successfully.",
        ),
        session,
    )


@router.get("/{item_id}/transactions")
def item_transactions(
    item_id: int,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_session),
):
    """
    The caller's transactions for one item, newest first.
    """
    rows = ItemService(db).item_transactions(item_id, session.user_id)
    return respond(
        HandlerResult.ok({"transactions": [TransactionRead.model_validate(tx) for tx in rows]}),
        session,
    )

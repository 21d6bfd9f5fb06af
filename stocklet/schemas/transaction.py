"""
Transaction schemas
"""
from datetime import date as date_type, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from stocklet.models.transaction import TransactionType


class TransactionPayload(BaseModel):
    """Create and update body. Presence of required fields is checked by the service."""
    date: Optional[date_type] = None
    type: Optional[TransactionType] = None
    counterparty: Optional[str] = None
    shipment_note: Optional[str] = None
    invoice_no: Optional[str] = None
    po_no: Optional[str] = None
    secondary_shipment_note: Optional[str] = None
    item_id: Optional[int] = None
    quantity: Optional[Decimal] = None
    price: Optional[Decimal] = None

    @field_validator(
        "counterparty", "shipment_note", "invoice_no", "po_no", "secondary_shipment_note"
    )
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if isinstance(v, str) else v

    @field_validator("date", mode="before")
    @classmethod
    def accept_datetime(cls, v):
        # Browser forms may send a full ISO timestamp
        if isinstance(v, str) and "T" in v:
            return v.split("T", 1)[0]
        return v


class TransactionRead(BaseModel):
    id: int
    date: date_type
    type: TransactionType
    counterparty: str
    shipment_note: Optional[str] = None
    invoice_no: Optional[str] = None
    po_no: Optional[str] = None
    secondary_shipment_note: Optional[str] = None
    item_id: int
    item_name_snapshot: str
    quantity: float
    price: float
    total: float
    created_by: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TransactionPage(BaseModel):
    transactions: List[TransactionRead]
    current_page: int
    total_pages: int
    total_items: int


class CounterpartySummary(BaseModel):
    """One row of the per-counterparty stock summary"""
    counterparty: Optional[str] = None
    total_quantity: float
    total_value: float

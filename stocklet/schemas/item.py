"""
Item schemas
"""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class AdjustmentType(str, Enum):
    SET = "set"
    ADD = "add"
    SUBTRACT = "subtract"


class ItemCreate(BaseModel):
    name: Optional[str] = None
    initial_stock: Optional[Decimal] = None


class ItemRename(BaseModel):
    name: Optional[str] = None


class StockAdjustment(BaseModel):
    adjustment: Optional[Decimal] = None
    type: Optional[str] = None


class ItemRead(BaseModel):
    """Item with its movement totals"""
    id: int
    name: str
    initial_stock: float
    current_stock: float
    total_in: float = 0
    total_out: float = 0
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ItemPage(BaseModel):
    items: List[ItemRead]
    current_page: Optional[int] = None
    total_pages: Optional[int] = None
    total_items: int

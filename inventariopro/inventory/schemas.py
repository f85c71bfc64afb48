from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..catalog.schemas import ProductResponse
from .models import MovementReason, MovementType


class MovementCreate(BaseModel):
    product_id: int
    type: MovementType
    quantity: int = Field(..., gt=0)
    reason: MovementReason
    reference: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=300)
    cost: Optional[float] = Field(None, ge=0)


class StockAdjustment(BaseModel):
    product_id: int
    counted_quantity: int = Field(..., ge=0)
    reason: MovementReason = MovementReason.AJUSTE_INVENTARIO
    reference: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=300)


class MovementResponse(BaseModel):
    id: int
    product_id: int
    type: MovementType
    quantity: int
    previous_quantity: int
    new_quantity: int
    reason: MovementReason
    reference: Optional[str] = None
    notes: Optional[str] = None
    user_id: int
    cost: Optional[float] = None
    created_at: datetime

    class Config:
        from_attributes = True


class StockChangeResponse(BaseModel):
    product: ProductResponse
    movement: Optional[MovementResponse] = None


class MovementHistoryResponse(BaseModel):
    items: List[MovementResponse]
    total: int
    consistent: bool

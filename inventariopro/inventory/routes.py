from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..catalog.crud import get_product
from ..core.auth import authorize
from ..core.database import get_db
from ..core.exceptions import NotFound
from ..user.models import User
from . import crud
from .schemas import MovementCreate, MovementHistoryResponse, StockAdjustment, StockChangeResponse

router = APIRouter(tags=["Inventory"])


@router.post("/inventory/movements", response_model=StockChangeResponse, status_code=status.HTTP_201_CREATED)
async def create_movement(
    data: MovementCreate,
    current_user: User = Depends(authorize("movements.create")),
    db: Session = Depends(get_db),
):
    """
    Record a stock entrada, salida or transferencia.

    The product quantity and the ledger entry are written in one transaction;
    a salida larger than the available stock is rejected.
    """
    product, movement = crud.create_movement(db, data, current_user)
    return {"product": get_product(db, product.id), "movement": movement}


@router.post("/inventory/adjustments", response_model=StockChangeResponse)
async def adjust_stock(
    data: StockAdjustment,
    current_user: User = Depends(authorize("movements.adjust")),
    db: Session = Depends(get_db),
):
    product, movement = crud.adjust_stock(db, data, current_user)
    return {"product": get_product(db, product.id), "movement": movement}


@router.get("/products/{product_id}/movements", response_model=MovementHistoryResponse)
async def get_product_movements(
    product_id: int,
    skip: int = Query(0, ge=0, description="Entries to skip"),
    limit: int = Query(50, ge=1, le=500, description="Maximum entries to return"),
    current_user: User = Depends(authorize("movements.list")),
    db: Session = Depends(get_db),
):
    product = get_product(db, product_id)
    if not product:
        raise NotFound("Product not found")

    return {
        "items": crud.get_product_movements(db, product_id, skip=skip, limit=limit),
        "total": crud.count_product_movements(db, product_id),
        "consistent": crud.check_consistency(db, product),
    }

import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..catalog.models import ProductStatus
from ..core.auth import authorize
from ..core.database import get_db
from ..core.exceptions import ValidationError
from ..inventory.models import MovementType
from ..user.models import User
from . import crud
from .schemas import DashboardResponse, InventoryReport, MovementReport

router = APIRouter(prefix="/reports", tags=["Reports"])

logger = logging.getLogger(__name__)


def parse_date(value: Optional[str], field: str, end_of_day: bool = False) -> Optional[datetime]:
    """
    Parse YYYY-MM-DD or an ISO datetime. A bare end date covers the whole day.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise ValidationError.for_field(field, "Invalid date, expected YYYY-MM-DD")
    if parsed.tzinfo is not None:
        parsed = (parsed - parsed.utcoffset()).replace(tzinfo=None)
    if end_of_day and len(value) == 10:
        parsed = parsed + timedelta(days=1) - timedelta(microseconds=1)
    return parsed


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    recent_days: int = Query(7, ge=1, le=365, description="Window for the recent movement count"),
    top_days: int = Query(30, ge=1, le=365, description="Window for the best sellers"),
    top_limit: int = Query(5, ge=1, le=50, description="Number of best sellers"),
    current_user: User = Depends(authorize("reports.dashboard")),
    db: Session = Depends(get_db),
):
    logger.info(f"User {current_user.id} requested dashboard stats")
    return crud.dashboard_stats(db, recent_days=recent_days, top_days=top_days, top_limit=top_limit)


@router.get("/inventory", response_model=InventoryReport)
async def get_inventory_report(
    category: Optional[int] = Query(None, description="Category id"),
    product_status: Optional[ProductStatus] = Query(ProductStatus.ACTIVE, alias="status", description="Lifecycle state"),
    low_stock: bool = Query(False, description="Only products at or below their minimum stock"),
    current_user: User = Depends(authorize("reports.inventory")),
    db: Session = Depends(get_db),
):
    return crud.inventory_report(
        db,
        category_id=category,
        status=product_status.value if product_status else None,
        low_stock=low_stock,
    )


@router.get("/movements", response_model=MovementReport)
async def get_movements_report(
    start_date: Optional[str] = Query(None, description="From date (YYYY-MM-DD)"),
    end_date: Optional[str] = Query(None, description="To date (YYYY-MM-DD), inclusive"),
    movement_type: Optional[MovementType] = Query(None, alias="type", description="Movement type"),
    product: Optional[int] = Query(None, description="Product id"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    current_user: User = Depends(authorize("reports.movements")),
    db: Session = Depends(get_db),
):
    return crud.movements_report(
        db,
        start_date=parse_date(start_date, "start_date"),
        end_date=parse_date(end_date, "end_date", end_of_day=True),
        movement_type=movement_type,
        product_id=product,
        page=page,
        limit=limit,
    )

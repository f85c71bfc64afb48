from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from ..inventory.models import MovementReason, MovementType


class DashboardOverview(BaseModel):
    total_products: int
    low_stock_products: int
    total_users: int
    recent_movements: int
    inventory_value: float


class TopProduct(BaseModel):
    product_id: int
    name: str
    sku: str
    total_sold: int
    total_revenue: float


class CategoryStat(BaseModel):
    category_id: int
    name: str
    color: str
    count: int
    total_value: float


class DashboardResponse(BaseModel):
    overview: DashboardOverview
    top_products: List[TopProduct]
    category_stats: List[CategoryStat]


class InventoryRow(BaseModel):
    id: int
    name: str
    sku: str
    category: str
    quantity: int
    min_stock: int
    price: float
    cost: float
    total_value: float
    is_low_stock: bool
    created_at: datetime


class InventorySummary(BaseModel):
    total_products: int
    low_stock_items: int
    total_value: float


class InventoryReport(BaseModel):
    summary: InventorySummary
    products: List[InventoryRow]


class MovementProduct(BaseModel):
    id: int
    name: str
    sku: str


class MovementUser(BaseModel):
    id: int
    name: str
    email: str


class MovementRow(BaseModel):
    id: int
    type: MovementType
    quantity: int
    previous_quantity: int
    new_quantity: int
    reason: MovementReason
    reference: Optional[str] = None
    notes: Optional[str] = None
    cost: Optional[float] = None
    created_at: datetime
    product: MovementProduct
    user: MovementUser


class MovementReport(BaseModel):
    items: List[MovementRow]
    total: int
    page: int
    limit: int

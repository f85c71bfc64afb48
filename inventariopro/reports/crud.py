from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..catalog.models import Category, Product, ProductStatus
from ..core.database import utcnow
from ..inventory.crud import query_movements
from ..inventory.models import Movement, MovementReason, MovementType
from ..user.crud import count_active_users


def _as_float(value) -> float:
    return float(value) if value is not None else 0.0


def dashboard_stats(
    db: Session,
    recent_days: int = 7,
    top_days: int = 30,
    top_limit: int = 5,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Summary figures for the dashboard, computed from the current tables on
    every call.

    Args:
        db: Database session
        recent_days: Window for the recent movement count
        top_days: Window for the best sellers ranking
        top_limit: Number of best sellers to return
        now: Reference time (defaults to the current UTC time)

    Returns:
        Dict: overview, top_products, category_stats
    """
    now = now or utcnow()
    is_active = Product.status == ProductStatus.ACTIVE.value

    total_products = db.query(func.count(Product.id)).filter(is_active).scalar()
    low_stock_products = db.query(func.count(Product.id)).filter(
        is_active,
        Product.quantity <= Product.min_stock
    ).scalar()
    recent_movements = db.query(func.count(Movement.id)).filter(
        Movement.created_at >= now - timedelta(days=recent_days)
    ).scalar()
    inventory_value = db.query(
        func.coalesce(func.sum(Product.quantity * Product.price), 0)
    ).filter(is_active).scalar()

    # Best sellers: sales recorded as salida/venta within the window
    total_sold = func.sum(Movement.quantity).label("total_sold")
    top_rows = db.query(
        Product.id,
        Product.name,
        Product.sku,
        total_sold,
        func.coalesce(func.sum(Movement.quantity * Movement.cost), 0).label("total_revenue"),
    ).join(
        Movement, Movement.product_id == Product.id
    ).filter(
        Movement.type == MovementType.SALIDA.value,
        Movement.reason == MovementReason.VENTA.value,
        Movement.created_at >= now - timedelta(days=top_days),
    ).group_by(
        Product.id, Product.name, Product.sku
    ).order_by(
        total_sold.desc(), Product.id
    ).limit(top_limit).all()

    category_rows = db.query(
        Category.id,
        Category.name,
        Category.color,
        func.count(Product.id),
        func.coalesce(func.sum(Product.quantity * Product.price), 0),
    ).join(
        Product, Product.category_id == Category.id
    ).filter(
        is_active
    ).group_by(
        Category.id, Category.name, Category.color
    ).order_by(Category.name).all()

    return {
        "overview": {
            "total_products": total_products or 0,
            "low_stock_products": low_stock_products or 0,
            "total_users": count_active_users(db),
            "recent_movements": recent_movements or 0,
            "inventory_value": _as_float(inventory_value),
        },
        "top_products": [
            {
                "product_id": product_id,
                "name": name,
                "sku": sku,
                "total_sold": int(sold or 0),
                "total_revenue": _as_float(revenue),
            }
            for product_id, name, sku, sold, revenue in top_rows
        ],
        "category_stats": [
            {
                "category_id": category_id,
                "name": name,
                "color": color,
                "count": count,
                "total_value": _as_float(value),
            }
            for category_id, name, color, count, value in category_rows
        ],
    }


def inventory_report(
    db: Session,
    category_id: Optional[int] = None,
    status: Optional[str] = ProductStatus.ACTIVE.value,
    low_stock: bool = False,
) -> Dict[str, Any]:
    query = db.query(Product, Category.name).join(Category, Product.category_id == Category.id)
    if status:
        query = query.filter(Product.status == status)
    if category_id:
        query = query.filter(Product.category_id == category_id)
    if low_stock:
        query = query.filter(Product.quantity <= Product.min_stock)

    products: List[Dict[str, Any]] = []
    for product, category_name in query.order_by(Product.name, Product.id).all():
        products.append({
            "id": product.id,
            "name": product.name,
            "sku": product.sku,
            "category": category_name,
            "quantity": product.quantity,
            "min_stock": product.min_stock,
            "price": _as_float(product.price),
            "cost": _as_float(product.cost),
            "total_value": product.total_value,
            "is_low_stock": product.is_low_stock,
            "created_at": product.created_at,
        })

    summary = {
        "total_products": len(products),
        "low_stock_items": sum(1 for row in products if row["is_low_stock"]),
        "total_value": sum(row["total_value"] for row in products),
    }
    return {"summary": summary, "products": products}


def movements_report(
    db: Session,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    movement_type: Optional[MovementType] = None,
    product_id: Optional[int] = None,
    page: int = 1,
    limit: int = 50,
) -> Dict[str, Any]:
    query = query_movements(
        db,
        start_date=start_date,
        end_date=end_date,
        movement_type=movement_type,
        product_id=product_id,
    )
    total = query.count()
    movements = query.offset((page - 1) * limit).limit(limit).all()

    items = [
        {
            "id": movement.id,
            "type": movement.type,
            "quantity": movement.quantity,
            "previous_quantity": movement.previous_quantity,
            "new_quantity": movement.new_quantity,
            "reason": movement.reason,
            "reference": movement.reference,
            "notes": movement.notes,
            "cost": _as_float(movement.cost) if movement.cost is not None else None,
            "created_at": movement.created_at,
            "product": {
                "id": movement.product.id,
                "name": movement.product.name,
                "sku": movement.product.sku,
            },
            "user": {
                "id": movement.user.id,
                "name": movement.user.name,
                "email": movement.user.email,
            },
        }
        for movement in movements
    ]
    return {"items": items, "total": total, "page": page, "limit": limit}

import logging
import math
import time
from typing import Dict, List, Optional, Tuple

from sqlalchemy import and_, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ..core.exceptions import (
    DuplicateCategory, DuplicateKey, DuplicateSku, NotFound, ValidationError
)
from ..inventory.crud import INITIAL_STOCK_REFERENCE, lock_product, log_movement, record_movement
from ..inventory.models import MovementReason, MovementType
from ..user.models import User
from .models import Category, Product, ProductStatus
from .schemas import CategoryCreate, CategoryUpdate, ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)

PRODUCT_UPDATE_REFERENCE = "Edición de producto"
SKU_ATTEMPTS = 10


# Category CRUD operations

def get_category(db: Session, category_id: int) -> Optional[Category]:
    return db.query(Category).filter(Category.id == category_id).first()


def get_category_by_name(db: Session, name: str) -> Optional[Category]:
    return db.query(Category).filter(func.lower(Category.name) == name.strip().lower()).first()


def get_categories_with_counts(db: Session, include_inactive: bool = False) -> List[Tuple[Category, int]]:
    """
    List categories with the number of active products in each.
    """
    query = db.query(Category, func.count(Product.id)).outerjoin(
        Product,
        and_(Product.category_id == Category.id, Product.status == ProductStatus.ACTIVE.value)
    )
    if not include_inactive:
        query = query.filter(Category.is_active.is_(True))
    return query.group_by(Category.id).order_by(Category.name).all()


def count_category_products(db: Session, category_id: int) -> int:
    return db.query(Product).filter(
        Product.category_id == category_id,
        Product.status == ProductStatus.ACTIVE.value
    ).count()


def _ensure_no_cycle(db: Session, category_id: int, parent_id: Optional[int]) -> None:
    # Walk up from the proposed parent; meeting category_id means a cycle
    seen = set()
    current_id = parent_id
    while current_id is not None:
        if current_id == category_id:
            raise ValidationError.for_field("parent_id", "A category cannot be its own ancestor")
        if current_id in seen:
            break
        seen.add(current_id)
        parent = get_category(db, current_id)
        current_id = parent.parent_id if parent else None


def _ensure_parent_exists(db: Session, parent_id: Optional[int]) -> None:
    if parent_id is not None and not get_category(db, parent_id):
        raise NotFound("Parent category not found")


def create_category(db: Session, data: CategoryCreate, current_user: User) -> Category:
    if get_category_by_name(db, data.name):
        raise DuplicateCategory()
    _ensure_parent_exists(db, data.parent_id)

    category = Category(
        name=data.name,
        description=data.description,
        color=data.color,
        icon=data.icon,
        parent_id=data.parent_id,
        created_by=current_user.id,
    )
    db.add(category)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateCategory()
    db.refresh(category)
    logger.info(f"Category {category.id} '{category.name}' created by user {current_user.id}")
    return category


def update_category(db: Session, category: Category, data: CategoryUpdate) -> Category:
    update_data = data.model_dump(exclude_unset=True)

    if update_data.get("name") and update_data["name"].lower() != category.name.lower():
        existing = get_category_by_name(db, update_data["name"])
        if existing and existing.id != category.id:
            raise DuplicateCategory()

    if "parent_id" in update_data:
        _ensure_parent_exists(db, update_data["parent_id"])
        _ensure_no_cycle(db, category.id, update_data["parent_id"])

    for field, value in update_data.items():
        if field in ("name", "color", "icon", "is_active") and value is None:
            continue
        setattr(category, field, value)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateCategory()
    db.refresh(category)
    return category


def deactivate_category(db: Session, category: Category) -> Category:
    category.is_active = False
    db.commit()
    db.refresh(category)
    return category


# Product CRUD operations

def generate_sku(db: Session, name: str) -> str:
    """
    Build a SKU from the first three letters of the name and the last four
    digits of the current millisecond timestamp, bumping the number on
    collision.
    """
    prefix = name.strip()[:3].upper()
    stamp = int(str(int(time.time() * 1000))[-4:])
    for attempt in range(SKU_ATTEMPTS):
        candidate = f"{prefix}{(stamp + attempt) % 10000:04d}"
        if not get_product_by_sku(db, candidate):
            return candidate
    raise DuplicateSku("Could not generate a unique SKU, please provide one")


def escape_like(value: str) -> str:
    """Make % and _ in user text match literally inside a LIKE pattern."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def get_product_by_sku(db: Session, sku: str) -> Optional[Product]:
    return db.query(Product).filter(Product.sku == sku.strip().upper()).first()


def get_product_by_barcode(db: Session, barcode: str) -> Optional[Product]:
    return db.query(Product).filter(Product.barcode == barcode).first()


def get_product(db: Session, product_id: int) -> Optional[Product]:
    return db.query(Product).options(joinedload(Product.category)).filter(Product.id == product_id).first()


def get_products(
    db: Session,
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    category_id: Optional[int] = None,
    status: Optional[str] = ProductStatus.ACTIVE.value,
    low_stock: bool = False,
) -> Dict:
    """
    Paged product listing, newest first.

    Args:
        page, limit: 1-based page and page size
        search: Case-insensitive substring matched against name, sku and description
        category_id: Only products of this category
        status: Lifecycle state to list (None lists every state)
        low_stock: Only products with quantity <= min_stock

    Returns:
        Dict: items, total, page, limit, pages
    """
    query = db.query(Product).options(joinedload(Product.category))
    if status:
        query = query.filter(Product.status == status)
    if search:
        pattern = f"%{escape_like(search.strip().lower())}%"
        query = query.filter(or_(
            func.lower(Product.name).like(pattern, escape="\\"),
            func.lower(Product.sku).like(pattern, escape="\\"),
            func.lower(Product.description).like(pattern, escape="\\"),
        ))
    if category_id:
        query = query.filter(Product.category_id == category_id)
    if low_stock:
        query = query.filter(Product.quantity <= Product.min_stock)

    total = query.count()
    items = (
        query.order_by(Product.created_at.desc(), Product.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "items": items,
        "total": total,
        "page": page,
        "limit": limit,
        "pages": math.ceil(total / limit) if limit else 0,
    }


def _ensure_category(db: Session, category_id: int) -> Category:
    category = get_category(db, category_id)
    if not category:
        raise NotFound("Category not found")
    return category


def _ensure_unique_barcode(db: Session, barcode: Optional[str], product_id: Optional[int] = None) -> None:
    if not barcode:
        return
    existing = get_product_by_barcode(db, barcode)
    if existing and existing.id != product_id:
        raise DuplicateKey("Barcode already exists")


def create_product(db: Session, data: ProductCreate, current_user: User) -> Product:
    """
    Function: create_product

    1. Short description:
    Create a product and record its initial stock.

    2. Usage:
    The product row is inserted with quantity 0 and any initial quantity is
    applied through the ledger as an entrada/ajuste_inventario movement, so
    the product and its first movement are committed together.

    3. Parameters:
    - db (Session): Database session
    - data (ProductCreate): Validated product data
    - current_user (User): Creator

    4. Returns:
    - Product: The stored product
    """
    _ensure_category(db, data.category_id)

    if data.sku:
        if get_product_by_sku(db, data.sku):
            raise DuplicateSku()
        sku = data.sku
    else:
        sku = generate_sku(db, data.name)
    _ensure_unique_barcode(db, data.barcode)

    fields = data.model_dump(exclude={"sku", "quantity", "unit", "status"})
    product = Product(
        **fields,
        sku=sku,
        unit=data.unit.value,
        status=data.status.value,
        quantity=0,
        created_by=current_user.id,
    )
    movement = None
    try:
        db.add(product)
        db.flush()
        if data.quantity > 0:
            movement = record_movement(
                db,
                product,
                data.quantity,
                MovementType.ENTRADA,
                MovementReason.AJUSTE_INVENTARIO,
                current_user.id,
                reference=INITIAL_STOCK_REFERENCE,
                cost=data.cost,
            )
            # Creation is not an edit
            product.updated_by = None
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateSku()
    except Exception:
        db.rollback()
        raise

    if movement is not None:
        log_movement(movement)
    logger.info(f"Product {product.id} ({product.sku}) created by user {current_user.id} with quantity {product.quantity}")
    return get_product(db, product.id)


def update_product(db: Session, product_id: int, data: ProductUpdate, current_user: User) -> Product:
    """
    Update product fields. A quantity change is written to the ledger as an
    ajuste in the same transaction as the other fields.
    """
    update_data = data.model_dump(exclude_unset=True)
    new_quantity = update_data.pop("quantity", None)
    movement = None

    try:
        product = lock_product(db, product_id)

        sku = update_data.get("sku")
        if sku and sku != product.sku:
            existing = get_product_by_sku(db, sku)
            if existing and existing.id != product.id:
                raise DuplicateSku()
        elif "sku" in update_data and not sku:
            # Keep the current SKU when an empty one is sent
            update_data.pop("sku")

        if update_data.get("category_id") is not None:
            _ensure_category(db, update_data["category_id"])
        _ensure_unique_barcode(db, update_data.get("barcode"), product.id)

        for field, value in update_data.items():
            if field in ("category_id", "unit", "status", "min_stock", "tags") and value is None:
                continue
            if field in ("unit", "status") and value is not None:
                value = value.value
            setattr(product, field, value)
        product.updated_by = current_user.id

        if new_quantity is not None and new_quantity != product.quantity:
            movement = record_movement(
                db,
                product,
                new_quantity - product.quantity,
                MovementType.AJUSTE,
                MovementReason.AJUSTE_INVENTARIO,
                current_user.id,
                reference=PRODUCT_UPDATE_REFERENCE,
                cost=float(product.cost),
            )
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateSku()
    except Exception:
        db.rollback()
        raise

    if movement is not None:
        log_movement(movement)
    logger.info(f"Product {product.id} updated by user {current_user.id}")
    return get_product(db, product.id)


def deactivate_product(db: Session, product_id: int, current_user: User) -> Product:
    """Soft delete: the row stays, its status becomes inactive."""
    product = get_product(db, product_id)
    if not product:
        raise NotFound("Product not found")
    product.status = ProductStatus.INACTIVE.value
    product.updated_by = current_user.id
    db.commit()
    db.refresh(product)
    logger.info(f"Product {product.id} deactivated by user {current_user.id}")
    return product

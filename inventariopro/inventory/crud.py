import logging
from datetime import datetime
from typing import Dict, FrozenSet, List, Optional, Tuple

from sqlalchemy.orm import Session, joinedload

from ..catalog.models import Product, ProductStatus
from ..core.exceptions import InsufficientStock, NotFound, ValidationError
from ..user.models import User
from .models import Movement, MovementReason, MovementType
from .schemas import MovementCreate, StockAdjustment

logger = logging.getLogger(__name__)

INITIAL_STOCK_REFERENCE = "Inventario inicial"

# Reasons that make sense for each direction of a movement
INBOUND_REASONS: FrozenSet[MovementReason] = frozenset({
    MovementReason.COMPRA,
    MovementReason.DEVOLUCION,
    MovementReason.AJUSTE_INVENTARIO,
    MovementReason.TRANSFERENCIA_ENTRADA,
})
OUTBOUND_REASONS: FrozenSet[MovementReason] = frozenset({
    MovementReason.VENTA,
    MovementReason.PRODUCTO_DANADO,
    MovementReason.PRODUCTO_VENCIDO,
    MovementReason.AJUSTE_INVENTARIO,
    MovementReason.TRANSFERENCIA_SALIDA,
})
TRANSFER_DIRECTIONS: Dict[MovementReason, int] = {
    MovementReason.TRANSFERENCIA_ENTRADA: 1,
    MovementReason.TRANSFERENCIA_SALIDA: -1,
}
# Reasons a counted adjustment may carry
ADJUSTMENT_REASONS: FrozenSet[MovementReason] = frozenset({
    MovementReason.AJUSTE_INVENTARIO,
    MovementReason.PRODUCTO_DANADO,
    MovementReason.PRODUCTO_VENCIDO,
})


def movement_direction(movement_type: MovementType, reason: MovementReason) -> int:
    """
    Sign of the stock change a movement applies: +1 adds, -1 removes.

    Raises:
        ValidationError: the reason does not fit the type, or the type is
            "ajuste" (adjustments go through adjust_stock)
    """
    if movement_type == MovementType.ENTRADA:
        if reason not in INBOUND_REASONS:
            raise ValidationError.for_field("reason", f"Reason '{reason.value}' is not valid for an entrada")
        return 1
    if movement_type == MovementType.SALIDA:
        if reason not in OUTBOUND_REASONS:
            raise ValidationError.for_field("reason", f"Reason '{reason.value}' is not valid for a salida")
        return -1
    if movement_type == MovementType.TRANSFERENCIA:
        if reason not in TRANSFER_DIRECTIONS:
            raise ValidationError.for_field(
                "reason", "A transferencia needs reason transferencia_entrada or transferencia_salida"
            )
        return TRANSFER_DIRECTIONS[reason]
    raise ValidationError.for_field("type", "Use the stock adjustment endpoint to record an ajuste")


def lock_product(db: Session, product_id: int) -> Product:
    # SELECT ... FOR UPDATE on MySQL; SQLite has no row locks and drops the clause
    product = db.query(Product).filter(Product.id == product_id).with_for_update().first()
    if not product:
        raise NotFound("Product not found")
    return product


def ensure_active(product: Product) -> None:
    if product.status == ProductStatus.INACTIVE.value:
        raise ValidationError.for_field("product_id", "Product is inactive")


def record_movement(
    db: Session,
    product: Product,
    delta: int,
    movement_type: MovementType,
    reason: MovementReason,
    user_id: int,
    reference: Optional[str] = None,
    notes: Optional[str] = None,
    cost: Optional[float] = None,
) -> Movement:
    """
    Apply a quantity delta to a product and stage the matching ledger entry.

    Nothing is committed here: the caller commits the product write and the
    movement together, or rolls both back.

    Args:
        db: Database session
        product: Product to change (should be locked by the caller)
        delta: Signed change, never zero
        movement_type: Ledger entry type
        reason: Business reason
        user_id: Who made the change
        reference, notes, cost: Stored on the entry as given

    Returns:
        Movement: The staged entry

    Raises:
        InsufficientStock: the change would leave a negative quantity
    """
    if delta == 0:
        raise ValueError("A movement needs a non-zero delta")

    previous_quantity = product.quantity or 0
    new_quantity = previous_quantity + delta

    if new_quantity < 0:
        raise InsufficientStock(
            f"Insufficient stock: {previous_quantity} available, {abs(delta)} requested",
            errors=[{"field": "quantity", "message": "Insufficient stock"}],
        )

    product.quantity = new_quantity
    product.updated_by = user_id

    movement = Movement(
        product=product,
        type=movement_type.value,
        quantity=abs(delta),
        previous_quantity=previous_quantity,
        new_quantity=new_quantity,
        reason=reason.value,
        reference=reference,
        notes=notes,
        user_id=user_id,
        cost=cost,
    )
    db.add(movement)
    return movement


def log_movement(movement: Movement) -> None:
    logger.info(
        f"Ledger: product {movement.product_id} {movement.type}/{movement.reason} "
        f"{movement.previous_quantity} -> {movement.new_quantity} by user {movement.user_id}"
    )


def _commit_stock_change(db: Session, product: Product, movement: Optional[Movement]) -> None:
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(product)
    if movement is not None:
        db.refresh(movement)
        log_movement(movement)


def create_movement(db: Session, data: MovementCreate, current_user: User) -> Tuple[Product, Movement]:
    """Record an entrada, salida or transferencia and update the product in one transaction."""
    direction = movement_direction(data.type, data.reason)
    try:
        product = lock_product(db, data.product_id)
        ensure_active(product)
        cost = data.cost if data.cost is not None else float(product.cost)
        movement = record_movement(
            db,
            product,
            direction * data.quantity,
            data.type,
            data.reason,
            current_user.id,
            reference=data.reference,
            notes=data.notes,
            cost=cost,
        )
    except Exception:
        db.rollback()
        raise
    _commit_stock_change(db, product, movement)
    return product, movement


def adjust_stock(db: Session, data: StockAdjustment, current_user: User) -> Tuple[Product, Optional[Movement]]:
    """Set a product to a counted quantity, recording the difference as an ajuste."""
    if data.reason not in ADJUSTMENT_REASONS:
        raise ValidationError.for_field("reason", f"Reason '{data.reason.value}' is not valid for an ajuste")
    try:
        product = lock_product(db, data.product_id)
        ensure_active(product)
        delta = data.counted_quantity - (product.quantity or 0)
        if delta == 0:
            db.rollback()
            return product, None
        movement = record_movement(
            db,
            product,
            delta,
            MovementType.AJUSTE,
            data.reason,
            current_user.id,
            reference=data.reference,
            notes=data.notes,
            cost=float(product.cost),
        )
    except Exception:
        db.rollback()
        raise
    _commit_stock_change(db, product, movement)
    return product, movement


def get_product_movements(db: Session, product_id: int, skip: int = 0, limit: int = 100) -> List[Movement]:
    return (
        db.query(Movement)
        .filter(Movement.product_id == product_id)
        .order_by(Movement.created_at.desc(), Movement.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def count_product_movements(db: Session, product_id: int) -> int:
    return db.query(Movement).filter(Movement.product_id == product_id).count()


def get_latest_movement(db: Session, product_id: int) -> Optional[Movement]:
    return (
        db.query(Movement)
        .filter(Movement.product_id == product_id)
        .order_by(Movement.id.desc())
        .first()
    )


def check_consistency(db: Session, product: Product) -> bool:
    """True when the product's quantity matches the last ledger entry."""
    latest = get_latest_movement(db, product.id)
    if latest is None:
        return (product.quantity or 0) == 0
    return latest.new_quantity == product.quantity


def query_movements(
    db: Session,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    movement_type: Optional[MovementType] = None,
    product_id: Optional[int] = None,
):
    query = db.query(Movement).options(joinedload(Movement.product), joinedload(Movement.user))
    if start_date:
        query = query.filter(Movement.created_at >= start_date)
    if end_date:
        query = query.filter(Movement.created_at <= end_date)
    if movement_type:
        query = query.filter(Movement.type == movement_type.value)
    if product_id:
        query = query.filter(Movement.product_id == product_id)
    return query.order_by(Movement.created_at.desc(), Movement.id.desc())

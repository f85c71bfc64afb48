import enum

from sqlalchemy import (
    DECIMAL, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer,
    String
)
from sqlalchemy.orm import relationship

from ..core.database import Base, utcnow


class MovementType(str, enum.Enum):
    ENTRADA = "entrada"
    SALIDA = "salida"
    AJUSTE = "ajuste"
    TRANSFERENCIA = "transferencia"


class MovementReason(str, enum.Enum):
    COMPRA = "compra"
    VENTA = "venta"
    DEVOLUCION = "devolucion"
    AJUSTE_INVENTARIO = "ajuste_inventario"
    PRODUCTO_DANADO = "producto_dañado"
    PRODUCTO_VENCIDO = "producto_vencido"
    TRANSFERENCIA_ENTRADA = "transferencia_entrada"
    TRANSFERENCIA_SALIDA = "transferencia_salida"


class Movement(Base):
    """One entry of the append-only stock ledger."""
    __tablename__ = "movements"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    type = Column(String(20), nullable=False)
    quantity = Column(Integer, nullable=False)
    previous_quantity = Column(Integer, nullable=False)
    new_quantity = Column(Integer, nullable=False)
    reason = Column(String(30), nullable=False)
    reference = Column(String(100))
    notes = Column(String(300))
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    cost = Column(DECIMAL(12, 2), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    product = relationship("Product", back_populates="movements")
    user = relationship("User")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="chk_movement_quantity_positive"),
        CheckConstraint("new_quantity >= 0", name="chk_movement_new_quantity_non_negative"),
        CheckConstraint("cost IS NULL OR cost >= 0", name="chk_movement_cost_non_negative"),
        Index("ix_movements_product_created", product_id, created_at),
        Index("ix_movements_type_created", type, created_at),
        Index("ix_movements_user_created", user_id, created_at),
    )

    def __repr__(self):
        return f"<Movement {self.id}: {self.type} {self.quantity} on product {self.product_id}>"

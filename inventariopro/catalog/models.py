import enum

from sqlalchemy import (
    DECIMAL, JSON, Boolean, CheckConstraint, Column, DateTime, ForeignKey,
    Index, Integer, String, Text
)
from sqlalchemy.orm import relationship

from ..core.database import Base, utcnow


class ProductStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    DISCONTINUED = "discontinued"


class Unit(str, enum.Enum):
    PIEZAS = "piezas"
    KG = "kg"
    LITROS = "litros"
    METROS = "metros"
    CAJAS = "cajas"


DEFAULT_CATEGORY_COLOR = "#2196F3"


class Category(Base):
    __tablename__ = "categories"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False)
    description = Column(String(200))
    color = Column(String(7), nullable=False, default=DEFAULT_CATEGORY_COLOR)
    icon = Column(String(50), nullable=False, default="category")
    is_active = Column(Boolean, nullable=False, default=True)
    parent_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    parent = relationship("Category", remote_side=[id], back_populates="subcategories")
    subcategories = relationship("Category", back_populates="parent")
    products = relationship("Product", back_populates="category")
    creator = relationship("User", foreign_keys=[created_by])


class Product(Base):
    __tablename__ = "products"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(String(500))
    sku = Column(String(50), unique=True, nullable=False)
    barcode = Column(String(64), unique=True, nullable=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    price = Column(DECIMAL(12, 2), nullable=False)
    cost = Column(DECIMAL(12, 2), nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    min_stock = Column(Integer, nullable=False, default=5)
    max_stock = Column(Integer, nullable=True)
    unit = Column(String(20), nullable=False, default=Unit.PIEZAS.value)
    supplier = Column(String(100))
    warehouse = Column(String(50))
    shelf = Column(String(50))
    position = Column(String(50))
    tags = Column(JSON)
    notes = Column(Text)
    status = Column(String(20), nullable=False, default=ProductStatus.ACTIVE.value)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    updated_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    category = relationship("Category", back_populates="products")
    creator = relationship("User", foreign_keys=[created_by])
    updater = relationship("User", foreign_keys=[updated_by])
    movements = relationship("Movement", back_populates="product", order_by="Movement.id")

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="chk_product_quantity_non_negative"),
        CheckConstraint("price >= 0", name="chk_product_price_non_negative"),
        CheckConstraint("cost >= 0", name="chk_product_cost_non_negative"),
        CheckConstraint("min_stock >= 0", name="chk_product_min_stock_non_negative"),
        Index("ix_products_category_status", category_id, status),
    )

    @property
    def is_low_stock(self) -> bool:
        return (self.quantity or 0) <= (self.min_stock or 0)

    @property
    def total_value(self) -> float:
        return float((self.quantity or 0) * (self.price or 0))

    def __repr__(self):
        return f"<Product {self.id}: {self.sku} qty={self.quantity}>"

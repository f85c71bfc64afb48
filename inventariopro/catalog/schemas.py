from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

from .models import DEFAULT_CATEGORY_COLOR, ProductStatus, Unit

COLOR_PATTERN = r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$"


def _strip_required(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Field is required")
    return value


def _normalize_sku(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip().upper()
    return value or None


# Categories

class CategoryCreate(BaseModel):
    name: str = Field(..., max_length=50)
    description: Optional[str] = Field(None, max_length=200)
    color: str = Field(DEFAULT_CATEGORY_COLOR, pattern=COLOR_PATTERN)
    icon: str = "category"
    parent_id: Optional[int] = Field(None, validation_alias=AliasChoices("parent_id", "parent_category"))

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        return _strip_required(value)


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = Field(None, max_length=200)
    color: Optional[str] = Field(None, pattern=COLOR_PATTERN)
    icon: Optional[str] = None
    parent_id: Optional[int] = Field(None, validation_alias=AliasChoices("parent_id", "parent_category"))
    is_active: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return _strip_required(value)


class CategoryBrief(BaseModel):
    id: int
    name: str
    color: str

    class Config:
        from_attributes = True


class CategoryResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    color: str
    icon: str
    is_active: bool
    parent_id: Optional[int] = None
    created_by: int
    created_at: datetime
    product_count: int = 0

    class Config:
        from_attributes = True


class CategoryTree(CategoryResponse):
    subcategories: List["CategoryTree"] = []


# Products

class ProductBase(BaseModel):
    description: Optional[str] = Field(None, max_length=500)
    sku: Optional[str] = Field(None, max_length=50)
    barcode: Optional[str] = Field(None, max_length=64)
    min_stock: int = Field(5, ge=0)
    max_stock: Optional[int] = Field(None, ge=0)
    unit: Unit = Unit.PIEZAS
    supplier: Optional[str] = Field(None, max_length=100)
    warehouse: Optional[str] = Field(None, max_length=50)
    shelf: Optional[str] = Field(None, max_length=50)
    position: Optional[str] = Field(None, max_length=50)
    tags: List[str] = []
    notes: Optional[str] = None

    @field_validator("sku")
    @classmethod
    def normalize_sku(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_sku(value)


class ProductCreate(ProductBase):
    name: str = Field(..., max_length=100)
    category_id: int = Field(..., validation_alias=AliasChoices("category_id", "category"))
    price: float = Field(..., ge=0)
    cost: float = Field(..., ge=0)
    quantity: int = Field(0, ge=0)
    status: ProductStatus = ProductStatus.ACTIVE

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        return _strip_required(value)


class ProductUpdate(BaseModel):
    name: str = Field(..., max_length=100)
    price: float = Field(..., ge=0)
    cost: float = Field(..., ge=0)
    category_id: Optional[int] = Field(None, validation_alias=AliasChoices("category_id", "category"))
    description: Optional[str] = Field(None, max_length=500)
    sku: Optional[str] = Field(None, max_length=50)
    barcode: Optional[str] = Field(None, max_length=64)
    quantity: Optional[int] = Field(None, ge=0)
    min_stock: Optional[int] = Field(None, ge=0)
    max_stock: Optional[int] = Field(None, ge=0)
    unit: Optional[Unit] = None
    supplier: Optional[str] = Field(None, max_length=100)
    warehouse: Optional[str] = Field(None, max_length=50)
    shelf: Optional[str] = Field(None, max_length=50)
    position: Optional[str] = Field(None, max_length=50)
    tags: Optional[List[str]] = None
    notes: Optional[str] = None
    status: Optional[ProductStatus] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        return _strip_required(value)

    @field_validator("sku")
    @classmethod
    def normalize_sku(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_sku(value)


class ProductResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    sku: str
    barcode: Optional[str] = None
    category_id: int
    category: Optional[CategoryBrief] = None
    price: float
    cost: float
    quantity: int
    min_stock: int
    max_stock: Optional[int] = None
    unit: Unit
    supplier: Optional[str] = None
    warehouse: Optional[str] = None
    shelf: Optional[str] = None
    position: Optional[str] = None
    tags: Optional[List[str]] = None
    status: ProductStatus
    is_low_stock: bool
    total_value: float
    created_by: int
    updated_by: Optional[int] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProductListResponse(BaseModel):
    items: List[ProductResponse]
    total: int
    page: int
    limit: int
    pages: int

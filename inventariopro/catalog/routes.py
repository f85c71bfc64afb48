import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..core.auth import authorize
from ..core.config import Settings
from ..core.database import get_db, get_settings
from ..core.exceptions import NotFound
from ..user.models import User
from . import crud
from .models import Category, ProductStatus
from .schemas import (
    CategoryCreate, CategoryResponse, CategoryTree, CategoryUpdate,
    ProductCreate, ProductListResponse, ProductResponse, ProductUpdate
)

logger = logging.getLogger(__name__)

products_router = APIRouter(prefix="/products", tags=["Products"])
categories_router = APIRouter(prefix="/categories", tags=["Categories"])


# Products

@products_router.get("", response_model=ProductListResponse)
async def list_products(
    page: int = Query(1, ge=1, description="Page number, starting at 1"),
    limit: Optional[int] = Query(None, ge=1, description="Page size"),
    search: Optional[str] = Query(None, description="Text to match in name, sku or description"),
    category: Optional[int] = Query(None, description="Category id"),
    product_status: Optional[ProductStatus] = Query(ProductStatus.ACTIVE, alias="status", description="Lifecycle state"),
    low_stock: bool = Query(False, description="Only products at or below their minimum stock"),
    current_user: User = Depends(authorize("products.list")),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    limit = min(limit or settings.default_page_size, settings.max_page_size)
    return crud.get_products(
        db,
        page=page,
        limit=limit,
        search=search,
        category_id=category,
        status=product_status.value if product_status else None,
        low_stock=low_stock,
    )


@products_router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: int,
    current_user: User = Depends(authorize("products.read")),
    db: Session = Depends(get_db),
):
    product = crud.get_product(db, product_id)
    if not product:
        raise NotFound("Product not found")
    return product


@products_router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    data: ProductCreate,
    current_user: User = Depends(authorize("products.create")),
    db: Session = Depends(get_db),
):
    return crud.create_product(db, data, current_user)


@products_router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: int,
    data: ProductUpdate,
    current_user: User = Depends(authorize("products.update")),
    db: Session = Depends(get_db),
):
    return crud.update_product(db, product_id, data, current_user)


@products_router.delete("/{product_id}")
async def delete_product(
    product_id: int,
    current_user: User = Depends(authorize("products.deactivate")),
    db: Session = Depends(get_db),
):
    crud.deactivate_product(db, product_id, current_user)
    return {"message": "Product deleted successfully"}


# Categories

def _category_response(category: Category, product_count: int) -> CategoryResponse:
    response = CategoryResponse.model_validate(category)
    response.product_count = product_count
    return response


def _get_category_or_404(db: Session, category_id: int) -> Category:
    category = crud.get_category(db, category_id)
    if not category:
        raise NotFound("Category not found")
    return category


@categories_router.get("", response_model=List[CategoryResponse])
async def list_categories(
    include_inactive: bool = Query(False, description="Include deactivated categories"),
    current_user: User = Depends(authorize("categories.list")),
    db: Session = Depends(get_db),
):
    rows = crud.get_categories_with_counts(db, include_inactive=include_inactive)
    return [_category_response(category, count) for category, count in rows]


@categories_router.get("/tree", response_model=List[CategoryTree])
async def get_categories_tree(
    include_inactive: bool = Query(False, description="Include deactivated categories"),
    current_user: User = Depends(authorize("categories.list")),
    db: Session = Depends(get_db),
):
    """
    Categories nested under their parents. A category whose parent is not
    listed (for example an inactive parent) appears at the top level.
    """
    rows = crud.get_categories_with_counts(db, include_inactive=include_inactive)
    nodes: Dict[int, CategoryTree] = {}
    for category, count in rows:
        node = CategoryTree(**_category_response(category, count).model_dump())
        nodes[category.id] = node

    roots = []
    for node in nodes.values():
        parent = nodes.get(node.parent_id) if node.parent_id else None
        if parent is not None:
            parent.subcategories.append(node)
        else:
            roots.append(node)
    return roots


@categories_router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(
    category_id: int,
    current_user: User = Depends(authorize("categories.read")),
    db: Session = Depends(get_db),
):
    category = _get_category_or_404(db, category_id)
    return _category_response(category, crud.count_category_products(db, category.id))


@categories_router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    data: CategoryCreate,
    current_user: User = Depends(authorize("categories.create")),
    db: Session = Depends(get_db),
):
    category = crud.create_category(db, data, current_user)
    return _category_response(category, 0)


@categories_router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: int,
    data: CategoryUpdate,
    current_user: User = Depends(authorize("categories.update")),
    db: Session = Depends(get_db),
):
    category = _get_category_or_404(db, category_id)
    category = crud.update_category(db, category, data)
    return _category_response(category, crud.count_category_products(db, category.id))


@categories_router.delete("/{category_id}")
async def delete_category(
    category_id: int,
    current_user: User = Depends(authorize("categories.deactivate")),
    db: Session = Depends(get_db),
):
    category = _get_category_or_404(db, category_id)
    crud.deactivate_category(db, category)
    logger.info(f"Category {category.id} deactivated by user {current_user.id}")
    return {"message": "Category deleted successfully"}

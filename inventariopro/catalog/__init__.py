"""
Catalog: products and categories
"""

from .models import Category, Product, ProductStatus, Unit

__all__ = ["Category", "Product", "ProductStatus", "Unit"]

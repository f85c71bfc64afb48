# Every ORM model, so Base.metadata knows all tables (create_all, alembic)
from .user.models import User
from .catalog.models import Category, Product
from .inventory.models import Movement

__all__ = ["User", "Category", "Product", "Movement"]

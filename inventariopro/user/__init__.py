# Models and schemas for users
from .models import Role, User
from .schemas import UserCreate, UserUpdate, PasswordChange

__all__ = ["Role", "User", "UserCreate", "UserUpdate", "PasswordChange"]

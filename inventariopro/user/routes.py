import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import authorize, ensure_self_or_admin, is_admin
from ..core.config import Settings
from ..core.database import get_db, get_settings
from ..core.exceptions import Forbidden, NotFound, ValidationError
from ..core.security import verify_password
from .crud import create_user, deactivate_user, get_user, get_users, set_password, update_user
from .models import Role, User
from .schemas import PasswordChange, UserCreate, UserListResponse, UserUpdate
from .schemas import User as UserSchema

router = APIRouter(prefix="/users", tags=["Users"])

logger = logging.getLogger(__name__)


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = get_user(db, user_id)
    if not user:
        raise NotFound("User not found")
    return user


def _check_password_length(settings: Settings, password: str, field: str) -> None:
    if len(password) < settings.password_min_length:
        raise ValidationError.for_field(
            field, f"Password must be at least {settings.password_min_length} characters"
        )


@router.get("", response_model=UserListResponse)
async def list_users(
    role: Optional[Role] = Query(None, description="Only users with this role"),
    is_active: Optional[bool] = Query(None, description="Filter by active flag"),
    current_user: User = Depends(authorize("users.list")),
    db: Session = Depends(get_db),
):
    users = get_users(db, role=role.value if role else None, is_active=is_active)
    return {"items": users, "total": len(users)}


@router.post("", response_model=UserSchema, status_code=201)
async def create_user_admin(
    data: UserCreate,
    current_user: User = Depends(authorize("users.create")),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    _check_password_length(settings, data.password, "password")
    new_user = create_user(db, data)
    logger.info(f"Admin {current_user.id} created user {new_user.id} with role {new_user.role}")
    return new_user


@router.get("/{user_id}", response_model=UserSchema)
async def get_user_by_id(
    user_id: int,
    current_user: User = Depends(authorize("users.read")),
    db: Session = Depends(get_db),
):
    ensure_self_or_admin(current_user, user_id)
    return _get_user_or_404(db, user_id)


@router.put("/{user_id}", response_model=UserSchema)
async def update_user_info(
    user_id: int,
    data: UserUpdate,
    current_user: User = Depends(authorize("users.update")),
    db: Session = Depends(get_db),
):
    """
    Update name and email. Only admins may change role or is_active, and
    only admins may edit somebody else.
    """
    update_data = data.model_dump(exclude_unset=True)
    if (update_data.get("role") is not None or update_data.get("is_active") is not None) and not is_admin(current_user):
        raise Forbidden("Only administrators can change roles or status")
    ensure_self_or_admin(current_user, user_id)

    user = _get_user_or_404(db, user_id)
    if user.id == current_user.id and update_data.get("is_active") is False:
        raise ValidationError.for_field("is_active", "You cannot deactivate your own account")

    return update_user(db, user, update_data)


@router.put("/{user_id}/password")
async def change_password(
    user_id: int,
    data: PasswordChange,
    current_user: User = Depends(authorize("users.change_password")),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    ensure_self_or_admin(current_user, user_id)
    _check_password_length(settings, data.new_password, "new_password")

    user = _get_user_or_404(db, user_id)

    # Admins resetting someone else's password skip the current-password check
    if current_user.id == user.id:
        if not data.current_password or not verify_password(data.current_password, user.password):
            raise ValidationError.for_field("current_password", "Current password is incorrect")

    set_password(db, user, data.new_password)
    logger.info(f"Password for user {user.id} changed by user {current_user.id}")
    return {"message": "Password updated successfully"}


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    current_user: User = Depends(authorize("users.deactivate")),
    db: Session = Depends(get_db),
):
    user = _get_user_or_404(db, user_id)
    if user.id == current_user.id:
        raise ValidationError.for_field("user_id", "You cannot deactivate your own account")

    deactivate_user(db, user)
    logger.info(f"User {user.id} deactivated by admin {current_user.id}")
    return {"message": "User deactivated successfully"}

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import authorize, get_optional_user, is_admin
from ..core.config import Settings
from ..core.database import get_db, get_settings
from ..core.exceptions import Forbidden, InvalidCredentials, ValidationError
from ..core.security import create_access_token, verify_password
from ..user.crud import create_user, get_user_by_email, touch_last_login
from ..user.models import Role, User
from ..user.schemas import User as UserSchema
from .schemas import Login, Register, TokenResponse, TokenUser

router = APIRouter(prefix="/auth", tags=["Authentication"])

logger = logging.getLogger(__name__)


def _issue_token(settings: Settings, user: User) -> TokenResponse:
    token = create_access_token(settings, user.id, user.role)
    return TokenResponse(token=token, user=TokenUser.model_validate(user))


@router.post("/register", response_model=TokenResponse)
async def register(
    data: Register,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Register a new account and return a session token.

    Self-registration always yields an employee; assigning any other role
    requires an admin token on the request.
    """
    if len(data.password) < settings.password_min_length:
        raise ValidationError.for_field(
            "password", f"Password must be at least {settings.password_min_length} characters"
        )
    if data.role != Role.EMPLOYEE and not is_admin(current_user):
        raise Forbidden("Only admin can assign other roles")

    new_user = create_user(db, data)
    logger.info(f"User {new_user.id} registered with role {new_user.role}")
    return _issue_token(settings, new_user)


@router.post("/login", response_model=TokenResponse)
async def login(
    data: Login,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user = get_user_by_email(db, data.email)

    # Same error whatever failed, so callers cannot probe which emails exist
    if not user or not user.is_active or not verify_password(data.password, user.password):
        logger.info(f"Failed login attempt for {data.email}")
        raise InvalidCredentials()

    user = touch_last_login(db, user)
    logger.info(f"User {user.id} logged in")
    return _issue_token(settings, user)


@router.get("/user", response_model=UserSchema)
async def get_current_user_info(current_user: User = Depends(authorize("auth.current_user"))):
    return current_user

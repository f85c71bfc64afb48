import logging
from typing import Dict, FrozenSet, Optional

from fastapi import Depends
from fastapi.security import APIKeyHeader, OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.orm import Session

from ..user.models import Role, User
from .config import Settings
from .database import get_db, get_settings
from .exceptions import Forbidden, InvalidSession, Unauthenticated
from .security import decode_access_token

logger = logging.getLogger(__name__)

# Token may arrive as "Authorization: Bearer <token>" or "x-auth-token: <token>"
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login", auto_error=False)
api_key_header = APIKeyHeader(name="x-auth-token", auto_error=False)

ANY_AUTHENTICATED: FrozenSet[Role] = frozenset()
MANAGER_OR_ADMIN: FrozenSet[Role] = frozenset({Role.MANAGER, Role.ADMIN})
ADMIN_ONLY: FrozenSet[Role] = frozenset({Role.ADMIN})

# Operation -> roles allowed to perform it. Empty set: any authenticated user.
PERMISSIONS: Dict[str, FrozenSet[Role]] = {
    "auth.current_user": ANY_AUTHENTICATED,

    "products.list": ANY_AUTHENTICATED,
    "products.read": ANY_AUTHENTICATED,
    "products.create": MANAGER_OR_ADMIN,
    "products.update": MANAGER_OR_ADMIN,
    "products.deactivate": ADMIN_ONLY,

    "categories.list": ANY_AUTHENTICATED,
    "categories.read": ANY_AUTHENTICATED,
    "categories.create": MANAGER_OR_ADMIN,
    "categories.update": MANAGER_OR_ADMIN,
    "categories.deactivate": ADMIN_ONLY,

    "movements.list": ANY_AUTHENTICATED,
    "movements.create": ANY_AUTHENTICATED,
    "movements.adjust": MANAGER_OR_ADMIN,

    "users.list": ADMIN_ONLY,
    "users.create": ADMIN_ONLY,
    "users.read": ANY_AUTHENTICATED,
    "users.update": ANY_AUTHENTICATED,
    "users.change_password": ANY_AUTHENTICATED,
    "users.deactivate": ADMIN_ONLY,

    "reports.dashboard": ANY_AUTHENTICATED,
    "reports.inventory": MANAGER_OR_ADMIN,
    "reports.movements": MANAGER_OR_ADMIN,
}


def extract_token(bearer_token: Optional[str], header_token: Optional[str]) -> Optional[str]:
    return header_token or bearer_token or None


def resolve_user(db: Session, settings: Settings, token: Optional[str]) -> User:
    """
    Map a raw token to an active user.

    Raises:
        Unauthenticated: token missing, badly signed or expired
        InvalidSession: the user no longer exists or has been deactivated
    """
    if not token:
        raise Unauthenticated("No token, access denied")

    try:
        payload = decode_access_token(settings, token)
        user_id = int(payload["sub"])
    except (JWTError, ValueError):
        raise Unauthenticated("Invalid token")

    user = db.query(User).filter(User.id == user_id).first()
    if user is None or not user.is_active:
        raise InvalidSession()
    return user


async def get_current_user(
    bearer_token: Optional[str] = Depends(oauth2_scheme),
    header_token: Optional[str] = Depends(api_key_header),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User:
    return resolve_user(db, settings, extract_token(bearer_token, header_token))


async def get_optional_user(
    bearer_token: Optional[str] = Depends(oauth2_scheme),
    header_token: Optional[str] = Depends(api_key_header),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> Optional[User]:
    token = extract_token(bearer_token, header_token)
    if not token:
        return None
    try:
        return resolve_user(db, settings, token)
    except Unauthenticated:
        return None


def check_role(user: User, allowed_roles: FrozenSet[Role], operation: str = "") -> None:
    if not allowed_roles:
        return
    if user.role not in {role.value for role in allowed_roles}:
        logger.warning(f"User {user.id} ({user.email}) with role {user.role} tried to perform '{operation}'")
        raise Forbidden()


def authorize(operation: str):
    """
    Dependency factory enforcing the PERMISSIONS entry for an operation.

    Args:
        operation: Key in PERMISSIONS

    Returns:
        function: Dependency that yields the authenticated user
    """
    if operation not in PERMISSIONS:
        raise KeyError(f"No permission entry for operation '{operation}'")
    allowed_roles = PERMISSIONS[operation]

    async def _authorize(current_user: User = Depends(get_current_user)) -> User:
        check_role(current_user, allowed_roles, operation)
        return current_user

    return _authorize


def is_admin(user: Optional[User]) -> bool:
    return user is not None and user.role == Role.ADMIN.value


def ensure_self_or_admin(user: User, target_user_id: int) -> None:
    if not is_admin(user) and user.id != target_user_id:
        logger.warning(f"User {user.id} tried to access user {target_user_id}")
        raise Forbidden("Not authorized")

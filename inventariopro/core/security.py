from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from werkzeug.security import check_password_hash, generate_password_hash

from .config import Settings


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    if not hashed_password:
        return False
    try:
        return check_password_hash(hashed_password, plain_password)
    except (ValueError, TypeError):
        # Unrecognised hash format counts as a mismatch
        return False


def create_access_token(
    settings: Settings,
    user_id: int,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Sign a session token carrying the user id and role.

    Args:
        settings: Application settings (secret, algorithm, default expiry)
        user_id: Id stored in the "sub" claim
        role: Role at issue time
        expires_delta: Overrides the configured lifetime

    Returns:
        str: Encoded JWT
    """
    if expires_delta is None:
        expires_delta = timedelta(days=settings.access_token_expire_days)
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode = {"sub": str(user_id), "role": role, "exp": expire}
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(settings: Settings, token: str) -> Dict[str, Any]:
    """Verify signature and expiry. Raises jose.JWTError on failure."""
    payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    if payload.get("sub") is None:
        raise JWTError("Token has no subject")
    return payload

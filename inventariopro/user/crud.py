from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.database import utcnow
from ..core.exceptions import DuplicateEmail
from ..core.security import hash_password
from .models import Role, User


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """
    Function: get_user_by_email

    1. Short description:
    Look a user up by email address.

    2. Usage:
    Used by login, and by registration and profile updates to detect an
    address that is already taken. Emails are stored lower-cased.

    3. Parameters:
    - db (Session): Database session
    - email (str): Email address to look for

    4. Returns:
    - Optional[User]: The user, or None if the email is unknown
    """
    return db.query(User).filter(User.email == email.strip().lower()).first()


def get_users(
    db: Session,
    role: Optional[str] = None,
    is_active: Optional[bool] = None,
) -> List[User]:
    query = db.query(User)
    if role:
        query = query.filter(User.role == role)
    if is_active is not None:
        query = query.filter(User.is_active == is_active)
    return query.order_by(User.created_at.desc(), User.id.desc()).all()


def count_active_users(db: Session) -> int:
    return db.query(User).filter(User.is_active.is_(True)).count()


def create_user(db: Session, user) -> User:
    """
    Function: create_user

    1. Short description:
    Create a new user account.

    2. Usage:
    Hashes the password before it is stored. Accepts either a dict or a
    UserCreate schema. Raises DuplicateEmail when the address is taken,
    including the case where a concurrent request wins the unique index.

    3. Parameters:
    - db (Session): Database session
    - user (Union[dict, UserCreate]): Account data

    4. Returns:
    - User: The stored user
    """
    if not isinstance(user, dict):
        user = user.model_dump()

    email = user["email"].strip().lower()
    if get_user_by_email(db, email):
        raise DuplicateEmail()

    role = user.get("role") or Role.EMPLOYEE
    db_user = User(
        name=user["name"],
        email=email,
        password=hash_password(user["password"]),
        role=Role(role).value,
        is_active=user.get("is_active", True),
    )
    db.add(db_user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateEmail()
    db.refresh(db_user)
    return db_user


def update_user(db: Session, db_user: User, data: Dict[str, Any]) -> User:
    """Apply name/email/role/is_active changes. The caller decides which keys are allowed."""
    if "email" in data and data["email"] is not None:
        email = data["email"].strip().lower()
        if email != db_user.email:
            existing = get_user_by_email(db, email)
            if existing and existing.id != db_user.id:
                raise DuplicateEmail("Email already in use")
        db_user.email = email
    if data.get("name") is not None:
        db_user.name = data["name"]
    if data.get("role") is not None:
        db_user.role = Role(data["role"]).value
    if data.get("is_active") is not None:
        db_user.is_active = data["is_active"]

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateEmail("Email already in use")
    db.refresh(db_user)
    return db_user


def set_password(db: Session, db_user: User, new_password: str) -> User:
    db_user.password = hash_password(new_password)
    db.commit()
    db.refresh(db_user)
    return db_user


def touch_last_login(db: Session, db_user: User) -> User:
    db_user.last_login = utcnow()
    db.commit()
    db.refresh(db_user)
    return db_user


def deactivate_user(db: Session, db_user: User) -> User:
    # Users are never hard deleted
    db_user.is_active = False
    db.commit()
    db.refresh(db_user)
    return db_user

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from ..user.models import Role
from ..user.schemas import UserCreate


class Register(UserCreate):
    pass


class Login(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenUser(BaseModel):
    id: int
    name: str
    email: str
    role: Role
    last_login: Optional[datetime] = None

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: TokenUser

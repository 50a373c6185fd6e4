from pydantic import EmailStr, Field
from typing import Optional
from datetime import datetime

from eventfinder.schemas import CamelSchema


class UserCreateSchema(CamelSchema):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1, max_length=72)
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=100)
    avatar: Optional[str] = None


class UserResponseSchema(CamelSchema):
    id: int
    username: str
    email: EmailStr
    name: str
    avatar: Optional[str] = None
    created_at: datetime


class UserInDBSchema(UserResponseSchema):
    # never serialised, so it cannot leak through a response or the session copy
    hashed_password: str = Field(..., exclude=True)


class UserSummarySchema(CamelSchema):
    id: int
    name: str
    avatar: str = ""

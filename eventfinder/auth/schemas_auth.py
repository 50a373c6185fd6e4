from pydantic import BaseModel, Field

from eventfinder.schemas.user import UserResponseSchema


class UserLoginSchema(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    success: bool = True
    user: UserResponseSchema


class MessageResponse(BaseModel):
    success: bool = True
    message: str

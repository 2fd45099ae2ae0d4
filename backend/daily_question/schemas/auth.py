from pydantic import BaseModel, EmailStr, Field
from typing import Optional


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class AuthResponse(BaseModel):
    message: str
    user_id: Optional[str] = None
    csrf_token: Optional[str] = None


class UserInfo(BaseModel):
    id: str
    email: str

    model_config = {"from_attributes": True}

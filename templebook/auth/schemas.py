from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime

from templebook.enums import Role

class UserBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)

class UserCreate(UserBase):
    password: str = Field(..., min_length=6)
    # Superusers are only created by the seed script
    role: Role = Role.USER

class User(UserBase):
    id: int
    role: Role
    is_approved: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class AuthResponse(BaseModel):
    access_token: str
    token_type: str
    user: User

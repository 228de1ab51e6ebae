from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional
from datetime import datetime
from enum import Enum


class UserRole(str, Enum):
    """User role types"""
    USER = "user"
    CREATOR = "creator"
    ADMIN = "admin"


class UserCreate(BaseModel):
    """Schema for registering a user (role is always assigned server-side)"""
    email: EmailStr
    name: Optional[str] = Field(None, max_length=100)
    photo_url: Optional[str] = None


class UserRoleUpdate(BaseModel):
    """Schema for an admin changing a user's role"""
    role: UserRole


class UserInDB(BaseModel):
    """Schema for user in database"""
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    email: EmailStr
    name: Optional[str] = None
    photo_url: Optional[str] = None
    role: UserRole = UserRole.USER
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict

from shop_ledger.models.base import StoredModel


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    STAFF = "STAFF"


class SignUpRequest(BaseModel):
    """Staff sign-up schema."""
    name: str
    phone: str
    password: str


class LoginRequest(BaseModel):
    phone: str
    password: str


class UserInDB(StoredModel):
    """User database schema."""
    name: str = ""
    phone: str
    password_hash: str = ""
    role: UserRole = UserRole.STAFF
    approved: bool = False

    @property
    def can_sign_in(self) -> bool:
        return self.role == UserRole.ADMIN or self.approved


class UserResponse(BaseModel):
    """User response schema."""
    id: str = Field(validation_alias="_id", serialization_alias="id")
    name: str
    phone: str
    role: UserRole
    approved: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True
    )


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse

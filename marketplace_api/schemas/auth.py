"""
Pydantic schemas for authentication
"""
from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from marketplace_api.database.models import UserRole, VendorType
from marketplace_api.schemas.common import Address, CamelModel


# Request schemas
class UserRegister(CamelModel):
    """Schema for user registration"""

    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    role: UserRole = UserRole.CUSTOMER
    vendor_type: Optional[VendorType] = None
    address: Optional[Address] = None


class UserLogin(CamelModel):
    """Schema for user login"""

    email: EmailStr
    password: str


class ProfileUpdate(CamelModel):
    """Partial profile update"""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[Address] = None


# Response schemas
class UserResponse(CamelModel):
    """Schema for user response"""

    id: str
    name: str
    email: str
    phone: Optional[str] = None
    role: UserRole
    vendor_type: Optional[VendorType] = None
    is_approved: bool
    address: Optional[Address] = None
    is_active: bool
    created_at: datetime


class TokenResponse(CamelModel):
    """Schema for token response"""

    success: bool = True
    access_token: str
    token_type: str = "bearer"
    user: UserResponse

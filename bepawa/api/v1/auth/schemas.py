from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from bepawa.core.permissions import UserRole


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: Optional[str] = None
    role: UserRole = UserRole.INDIVIDUAL
    phone: Optional[str] = None
    address: Optional[str] = None
    business_name: Optional[str] = None
    license_number: Optional[str] = None
    tax_id: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    business_name: Optional[str] = None
    license_number: Optional[str] = None
    tax_id: Optional[str] = None


class ProfileResponse(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    role: str
    is_approved: bool
    phone: Optional[str] = None
    address: Optional[str] = None
    business_name: Optional[str] = None
    license_number: Optional[str] = None
    tax_id: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileListResponse(BaseModel):
    profiles: List[ProfileResponse]
    total: int


class ApprovalRequest(BaseModel):
    approved: bool

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from bepawa.api.deps import get_current_user, require_permissions
from bepawa.api.v1.auth.schemas import (
    ApprovalRequest,
    LoginRequest,
    ProfileListResponse,
    ProfileResponse,
    ProfileUpdate,
    RegisterRequest,
    TokenResponse,
)
from bepawa.core.permissions import Permissions
from bepawa.domain.profiles.models import Profile
from bepawa.domain.profiles.service import ProfileService
from bepawa.infrastructure.database import get_db

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
async def register(data: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Create an account; business accounts start unapproved"""
    profile = await ProfileService(db).register(data)
    return ProfileResponse.model_validate(profile)


@router.post("/login", response_model=TokenResponse)
async def login(login_data: LoginRequest, request: Request, db: AsyncSession = Depends(get_db)):
    return await ProfileService(db).authenticate(
        login_data,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


@router.get("/me", response_model=ProfileResponse)
async def read_me(current_user: Profile = Depends(get_current_user)):
    return ProfileResponse.model_validate(current_user)


@router.patch("/me", response_model=ProfileResponse)
async def update_me(
    data: ProfileUpdate,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    profile = await ProfileService(db).update(current_user.id, data.model_dump(exclude_unset=True))
    return ProfileResponse.model_validate(profile)


@router.get("/profiles", response_model=ProfileListResponse)
async def list_profiles(
    role: Optional[str] = Query(None),
    approved: Optional[bool] = Query(None),
    current_user: Profile = Depends(require_permissions([Permissions.PROFILES_APPROVE])),
    db: AsyncSession = Depends(get_db),
):
    profiles = await ProfileService(db).list_profiles(role=role, approved=approved)
    return ProfileListResponse(
        profiles=[ProfileResponse.model_validate(p) for p in profiles],
        total=len(profiles),
    )


@router.post("/profiles/{profile_id}/approval", response_model=ProfileResponse)
async def set_approval(
    profile_id: str,
    data: ApprovalRequest,
    current_user: Profile = Depends(require_permissions([Permissions.PROFILES_APPROVE])),
    db: AsyncSession = Depends(get_db),
):
    profile = await ProfileService(db).set_approval(profile_id, data.approved, current_user)
    return ProfileResponse.model_validate(profile)

from typing import List, Optional
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from bepawa.core.config import settings
from bepawa.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    BusinessLogicError,
    ConflictError,
    ErrorHandler,
    NotFoundError,
    ValidationError,
)
from bepawa.core.permissions import UserRole
from bepawa.core.security import create_access_token, get_password_hash, verify_password
from bepawa.domain.audit.models import AuditAction, AuditCategory
from bepawa.domain.audit.service import AuditService
from bepawa.domain.notifications.service import NotificationService
from bepawa.domain.profiles.models import Profile
from bepawa.domain.profiles.repository import ProfileRepository
from bepawa.api.v1.auth.schemas import LoginRequest, RegisterRequest, TokenResponse

logger = logging.getLogger(__name__)

# Business accounts wait for an administrator before they can trade
SELF_APPROVED_ROLES = {UserRole.INDIVIDUAL}


class ProfileService:
    """Service layer for signup, login and account approval"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = ProfileRepository(db)
        self.audit = AuditService(db)

    async def register(self, data: RegisterRequest) -> Profile:
        """Register a new account"""
        role = UserRole.parse(data.role)
        if role is None:
            raise ValidationError(f"Unknown role: {data.role}")
        if role is UserRole.ADMIN:
            raise AuthorizationError("Administrator accounts cannot be self-registered")

        email = data.email.lower()
        if await self.repo.get_by_email(email):
            raise ConflictError("Email already registered")

        profile_data = data.model_dump(exclude={"password", "role", "email"})
        profile_data.update({
            "email": email,
            "role": role.value,
            "password_hash": get_password_hash(data.password),
            "is_approved": role in SELF_APPROVED_ROLES,
        })
        with ErrorHandler("register profile"):
            profile = await self.repo.create(profile_data)

        logger.info(f"Registered {role.value} profile {profile.id}")
        await self.audit.log_action(
            user_id=profile.id,
            action=AuditAction.CREATE.value,
            resource_type="profile",
            resource_id=profile.id,
            new_values={"email": email, "role": role.value},
            category=AuditCategory.SECURITY.value,
        )
        return profile

    async def authenticate(
        self,
        login_data: LoginRequest,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> TokenResponse:
        """Check credentials and issue a bearer token"""
        profile = await self.repo.get_by_email(login_data.email.lower())
        if not profile or not verify_password(login_data.password, profile.password_hash):
            raise AuthenticationError("Invalid email or password")

        access_token = create_access_token(profile.id, {
            "email": profile.email,
            "role": profile.role,
        })
        await self.audit.log_action(
            user_id=profile.id,
            action=AuditAction.LOGIN.value,
            resource_type="profile",
            resource_id=profile.id,
            category=AuditCategory.SECURITY.value,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        return TokenResponse(
            access_token=access_token,
            token_type="bearer",
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        )

    async def get(self, profile_id: str) -> Profile:
        profile = await self.repo.get(profile_id)
        if not profile:
            raise NotFoundError("Profile not found")
        return profile

    async def list_profiles(self, role: Optional[str] = None, approved: Optional[bool] = None) -> List[Profile]:
        with ErrorHandler("list profiles"):
            return await self.repo.list(role=role, approved=approved)

    async def update(self, profile_id: str, update_data: dict) -> Profile:
        profile = await self.get(profile_id)
        with ErrorHandler("update profile"):
            return await self.repo.update(profile, update_data)

    async def set_approval(self, profile_id: str, approved: bool, admin: Profile) -> Profile:
        """Approve or reject a business account and tell its owner"""
        profile = await self.get(profile_id)
        if UserRole.parse(profile.role) in SELF_APPROVED_ROLES | {UserRole.ADMIN}:
            raise BusinessLogicError("Only business accounts go through approval")

        previous = profile.is_approved
        profile.is_approved = approved
        with ErrorHandler("update profile approval"):
            await self.db.commit()
            await self.db.refresh(profile)

        notifications = NotificationService(self.db)
        if approved:
            await notifications.notify(
                profile.id,
                "Account approved",
                "Your business account has been approved. You can now start trading.",
                type="success",
            )
        else:
            await notifications.notify(
                profile.id,
                "Account not approved",
                "Your business account application was not approved. Contact support for details.",
                type="warning",
            )

        await self.audit.log_action(
            user_id=admin.id,
            action=(AuditAction.APPROVE if approved else AuditAction.REJECT).value,
            resource_type="profile",
            resource_id=profile.id,
            old_values={"is_approved": previous},
            new_values={"is_approved": approved},
            category=AuditCategory.SECURITY.value,
        )
        return profile

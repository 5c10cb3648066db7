from typing import Callable, List, Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from bepawa.core.config import settings
from bepawa.core.exceptions import AuthenticationError, AuthorizationError, ExternalServiceError
from bepawa.core.permissions import UserRole, has_any_permission
from bepawa.core.security import verify_token
from bepawa.domain.profiles.models import Profile
from bepawa.domain.profiles.repository import ProfileRepository
from bepawa.infrastructure.database import get_db
from bepawa.infrastructure.payments import PaymentService
from bepawa.infrastructure.redis import ClientStorage, redis_manager
from bepawa.infrastructure.storage import StorageService, storage_service

reusable_oauth2 = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_STR}/auth/login",
    auto_error=False,
)


async def get_current_user(
    db: AsyncSession = Depends(get_db),
    token: Optional[str] = Depends(reusable_oauth2),
) -> Profile:
    if not token:
        raise AuthenticationError("Not authenticated")
    payload = verify_token(token, "access")
    if not payload or not payload.get("sub"):
        raise AuthenticationError("Could not validate credentials")

    profile = await ProfileRepository(db).get(payload["sub"])
    if not profile:
        raise AuthenticationError("Account no longer exists")
    return profile


def ensure_permissions(user: Profile, required_permissions: List[str]) -> None:
    """Raise unless ``user`` holds one of ``required_permissions`` and, for businesses, is approved"""
    if not has_any_permission(user.role, required_permissions):
        raise AuthorizationError("Insufficient permissions")
    role = UserRole.parse(user.role)
    if role not in (UserRole.INDIVIDUAL, UserRole.ADMIN) and not user.is_approved:
        raise AuthorizationError("Account is pending approval", error_code="ACCOUNT_NOT_APPROVED")


def require_permissions(required_permissions: List[str]) -> Callable:
    """Dependency factory: caller must hold one of ``required_permissions``"""

    async def permission_checker(current_user: Profile = Depends(get_current_user)) -> Profile:
        ensure_permissions(current_user, required_permissions)
        return current_user

    return permission_checker


def get_redis() -> Redis:
    try:
        return redis_manager.client
    except RuntimeError as e:
        raise ExternalServiceError("Client storage is unavailable") from e


def get_client_storage(redis_client: Redis = Depends(get_redis)) -> ClientStorage:
    return ClientStorage(redis_client)


def get_storage() -> StorageService:
    return storage_service


def get_payment_service() -> PaymentService:
    return PaymentService()

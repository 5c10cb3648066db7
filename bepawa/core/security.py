from datetime import datetime, timedelta
from typing import Any, Dict, Optional
import logging

import jwt
from passlib.context import CryptContext

from bepawa.core.config import settings

logger = logging.getLogger(__name__)

TOKEN_ISSUER = "bepawa"
ACCESS_TOKEN = "access"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(profile_id: str, claims: Optional[Dict[str, Any]] = None) -> str:
    """
    Sign a bearer token for ``profile_id``.

    ``claims`` usually carries the profile's role so clients can route to the
    right dashboard without another request; the server always reloads the
    profile and never trusts the role claim for authorization.
    """
    issued_at = datetime.utcnow()
    payload = {
        **(claims or {}),
        "sub": profile_id,
        "iss": TOKEN_ISSUER,
        "iat": issued_at,
        "exp": issued_at + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        "token_type": ACCESS_TOKEN,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_token(token: str, token_type: str = ACCESS_TOKEN) -> Optional[Dict[str, Any]]:
    """Claims of a valid, unexpired BEPAWA token of ``token_type``; otherwise ``None``"""
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            issuer=TOKEN_ISSUER,
        )
    except jwt.PyJWTError as e:
        logger.debug(f"Rejected bearer token: {e}")
        return None

    if payload.get("token_type") != token_type or not payload.get("sub"):
        return None
    return payload

"""
Identity and permission dependencies.

Sign-in lives with the external identity provider; this module only verifies
the bearer token it issued and turns it into an ``Identity``. Permissions
are resolved once per request from the stored profile and handed to the
route, which passes them on to the services.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from garage_admin.config import get_settings
from garage_admin.database import get_db
from garage_admin.permissions import Permissions
from garage_admin.schemas.user import Identity
from garage_admin.services.profiles import LoadedProfile, load_profile

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(user_id: str, email: str = "", full_name: Optional[str] = None,
                        expires_minutes: Optional[int] = None) -> str:
    """Issue a token the way the identity provider does. Development and tests only."""
    settings = get_settings()
    minutes = expires_minutes if expires_minutes is not None else settings.access_token_expire_minutes
    claims = {
        "sub": user_id,
        "email": email,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=minutes),
    }
    if full_name:
        claims["full_name"] = full_name
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def decode_identity(token: str) -> Identity:
    settings = get_settings()
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError as e:
        logger.info("Rejected token: %s", e)
        raise credentials_exception

    user_id = payload.get("sub")
    if not user_id:
        raise credentials_exception
    return Identity(
        user_id=str(user_id),
        email=payload.get("email") or "",
        full_name=payload.get("full_name"),
    )


async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Identity:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return decode_identity(credentials.credentials)


async def get_current_profile(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> LoadedProfile:
    return await load_profile(db, identity)


async def get_permissions(
    loaded: LoadedProfile = Depends(get_current_profile),
) -> Permissions:
    return loaded.permissions

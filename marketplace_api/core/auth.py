"""
Authentication dependencies for FastAPI routes
"""
import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace_api.core.config import settings
from marketplace_api.core.database import get_db
from marketplace_api.database.models import User, UserRole, VendorType
from marketplace_api.services.auth_service import auth_service

logger = logging.getLogger(__name__)

# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)


def _extract_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    """Cookie first, then the Authorization header"""
    token = request.cookies.get(settings.auth_cookie_name)
    if token:
        return token
    if credentials:
        return credentials.credentials
    return None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Dependency to get the current authenticated user.
    Raises 401 if not authenticated.
    """
    token = _extract_token(request, credentials)
    if not token:
        raise _unauthorized("Not authorized, no token")

    payload = auth_service.decode_token(token)
    if not payload:
        raise _unauthorized("Not authorized, token failed")

    user_id = payload.get("sub")
    if not user_id:
        raise _unauthorized("Invalid token payload")

    user = await auth_service.get_user_by_id(db, user_id)
    if not user:
        raise _unauthorized("User not found")

    if not user.is_active:
        raise _unauthorized("User is inactive")

    return user


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """
    Dependency to get the current user if authenticated, or None if not.
    Does not raise an error for unauthenticated requests.
    """
    token = _extract_token(request, credentials)
    if not token:
        return None

    payload = auth_service.decode_token(token)
    if not payload or not payload.get("sub"):
        return None

    user = await auth_service.get_user_by_id(db, payload["sub"])
    if not user or not user.is_active:
        return None

    return user


def require_roles(*roles: UserRole):
    """Build a dependency that admits only the given roles"""

    async def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"User role {current_user.role.value} is not authorized to access this route",
            )
        return current_user

    return dependency


require_admin = require_roles(UserRole.ADMIN)
require_customer = require_roles(UserRole.CUSTOMER)
require_vendor = require_roles(UserRole.VENDOR)
require_admin_or_vendor = require_roles(UserRole.ADMIN, UserRole.VENDOR)


async def require_catalog_editor(current_user: User = Depends(get_current_user)) -> User:
    """Admins and MY_SHOP vendors may create brands and categories"""
    if current_user.role == UserRole.ADMIN:
        return current_user
    if current_user.role == UserRole.VENDOR and current_user.vendor_type == VendorType.MY_SHOP:
        return current_user
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Only admins and MY_SHOP vendors can perform this action",
    )

"""
Authentication API routes
"""
import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace_api.core.auth import get_current_user
from marketplace_api.core.config import settings
from marketplace_api.core.database import get_db
from marketplace_api.database.models import User
from marketplace_api.schemas.auth import ProfileUpdate, TokenResponse, UserLogin, UserRegister, UserResponse
from marketplace_api.schemas.common import MessageResponse
from marketplace_api.services.auth_service import auth_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])


def _set_auth_cookie(response: Response, token: str):
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=settings.access_token_expire_minutes * 60,
    )


def _token_response(response: Response, user: User) -> TokenResponse:
    token = auth_service.create_access_token({"sub": user.id, "role": user.role.value})
    _set_auth_cookie(response, token)
    return TokenResponse(access_token=token, user=UserResponse.model_validate(user))


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(payload: UserRegister, response: Response, db: AsyncSession = Depends(get_db)):
    """Register a new customer, vendor or admin"""
    data = payload.model_dump(mode="json")
    user = await auth_service.create_user(
        db,
        email=data["email"],
        password=payload.password,
        name=payload.name,
        role=payload.role,
        vendor_type=payload.vendor_type,
        phone=payload.phone,
        address=data["address"],
    )
    return _token_response(response, user)


@router.post("/login", response_model=TokenResponse)
async def login(payload: UserLogin, response: Response, db: AsyncSession = Depends(get_db)):
    """Login with email and password"""
    user = await auth_service.authenticate_user(db, payload.email, payload.password)
    logger.info(f"User logged in: {user.email}")
    return _token_response(response, user)


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response):
    """Clear the auth cookie"""
    response.delete_cookie(settings.auth_cookie_name)
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """Get current authenticated user"""
    return current_user


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    payload: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update name, phone or address"""
    updates = payload.model_dump(mode="json", exclude_unset=True)
    return await auth_service.update_profile(db, current_user, updates)

"""
Authentication service for user management and JWT tokens
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

import bcrypt
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace_api.core.config import settings
from marketplace_api.core.exceptions import AuthenticationError, BadRequestError
from marketplace_api.database.models import User, UserRole, VendorType

logger = logging.getLogger(__name__)


class AuthService:
    """Service for authentication operations"""

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash"""
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt"""
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")

    def create_access_token(self, data: dict, expires_delta: Optional[timedelta] = None) -> str:
        """Create a JWT access token"""
        to_encode = data.copy()
        if expires_delta:
            expire = datetime.utcnow() + expires_delta
        else:
            expire = datetime.utcnow() + timedelta(minutes=settings.access_token_expire_minutes)
        to_encode.update({"exp": expire})
        return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)

    def decode_token(self, token: str) -> Optional[dict]:
        """Decode and validate a JWT token"""
        try:
            return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
        except JWTError as e:
            logger.warning(f"JWT decode error: {e}")
            return None

    async def get_user_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        """Get a user by email"""
        result = await db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def get_user_by_id(self, db: AsyncSession, user_id: str) -> Optional[User]:
        """Get a user by ID"""
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def create_user(
        self,
        db: AsyncSession,
        email: str,
        password: str,
        name: str,
        role: UserRole = UserRole.CUSTOMER,
        vendor_type: Optional[VendorType] = None,
        phone: Optional[str] = None,
        address: Optional[dict] = None,
    ) -> User:
        """Create a new user.

        Vendors must carry a vendor type. Admins and MY_SHOP vendors are
        approved on creation; everyone else waits for an admin.
        """
        if await self.get_user_by_email(db, email):
            raise BadRequestError("User already exists")

        if role == UserRole.VENDOR and vendor_type is None:
            raise BadRequestError("Vendor type is required for vendors")
        if role != UserRole.VENDOR:
            vendor_type = None

        is_approved = role == UserRole.ADMIN or vendor_type == VendorType.MY_SHOP

        user = User(
            email=email.lower(),
            hashed_password=self.hash_password(password),
            name=name,
            role=role,
            vendor_type=vendor_type,
            is_approved=is_approved,
            phone=phone,
            address=address,
        )

        db.add(user)
        await db.commit()
        await db.refresh(user)

        logger.info(f"Created new user: {user.email} (role: {role.value})")
        return user

    async def authenticate_user(self, db: AsyncSession, email: str, password: str) -> User:
        """Authenticate a user with email and password"""
        user = await self.get_user_by_email(db, email)
        if not user or not self.verify_password(password, user.hashed_password):
            raise AuthenticationError("Invalid credentials")
        if not user.is_active:
            raise AuthenticationError("User is inactive")

        user.last_login = datetime.utcnow()
        await db.commit()
        await db.refresh(user)

        return user

    async def update_profile(self, db: AsyncSession, user: User, updates: dict) -> User:
        """Apply a partial profile update (name, phone, address)"""
        for field in ("name", "phone", "address"):
            if field in updates:
                setattr(user, field, updates[field])
        await db.commit()
        await db.refresh(user)
        return user


# Global service instance
auth_service = AuthService()

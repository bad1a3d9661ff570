"""Identity service: the seam that tells the marketplace who is acting."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from musicmentor.core.database import get_db_session
from musicmentor.core.enums import RoleEnum
from musicmentor.core.security import (
    create_access_token,
    decode_token,
    hash_password,
    oauth2_scheme,
    verify_password,
)
from musicmentor.modules.identity.models import User
from musicmentor.modules.identity.repository import IdentityRepository
from musicmentor.modules.identity.schemas import AccessToken, LoginRequest, UserCreate
from musicmentor.shared.exceptions import (
    BusinessRuleException,
    ConflictException,
    NotFoundException,
    UnauthorizedException,
)


class IdentityService:
    """Identity domain service."""

    def __init__(self, repository: IdentityRepository) -> None:
        self.repository = repository

    async def ensure_default_roles(self) -> None:
        """Ensure all default roles exist."""
        for role_name in RoleEnum:
            role = await self.repository.get_role_by_name(role_name)
            if role is None:
                await self.repository.create_role(role_name)

    async def register(self, payload: UserCreate) -> User:
        """Register a student or mentor account."""
        if payload.role == RoleEnum.ADMIN:
            raise BusinessRuleException("Admin accounts cannot self-register")

        existing_user = await self.repository.get_user_by_email(payload.email)
        if existing_user is not None:
            raise ConflictException("User with this email already exists")

        role = await self.repository.get_role_by_name(payload.role)
        if role is None:
            raise NotFoundException("Role not found")

        return await self.repository.create_user(
            email=payload.email,
            display_name=payload.display_name.strip(),
            password_hash=hash_password(payload.password),
            timezone=payload.timezone,
            role_id=role.id,
        )

    async def login(self, payload: LoginRequest) -> AccessToken:
        """Authenticate user and issue an access token."""
        user = await self.repository.get_user_by_email(payload.email)
        if user is None or not verify_password(payload.password, user.password_hash):
            raise UnauthorizedException("Invalid credentials")
        if not user.is_active:
            raise UnauthorizedException("User is inactive")

        return AccessToken(access_token=create_access_token(subject=str(user.id), role=user.role.name))

    async def get_user_from_access_token(self, token: str) -> User:
        """Resolve user from access token."""
        payload = decode_token(token)
        if payload.get("type") != "access":
            raise UnauthorizedException("Invalid access token")

        subject = payload.get("sub")
        if not subject:
            raise UnauthorizedException("Token subject is missing")

        user = await self.repository.get_user_by_id(UUID(subject))
        if user is None:
            raise UnauthorizedException("User not found")
        if not user.is_active:
            raise UnauthorizedException("User is inactive")
        return user


async def get_identity_service(session: AsyncSession = Depends(get_db_session)) -> IdentityService:
    """Dependency to provide identity service."""
    return IdentityService(IdentityRepository(session))


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    service: IdentityService = Depends(get_identity_service),
) -> User:
    """Resolve currently authenticated user from bearer token."""
    return await service.get_user_from_access_token(token)


def require_roles(*roles: RoleEnum):
    """Dependency factory for role-based access."""

    async def _checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role.name not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Operation not permitted for your role",
            )
        return current_user

    return _checker

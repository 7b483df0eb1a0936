# app/users/auth_dependencies.py
# Centralized Authentication Dependencies

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, status, Cookie
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.connection import get_db
from app.entity_resolver.doctor_matching import resolve_doctor_name
from app.users.user_models.user_model import User
from app.users.auth_token_model.token_model import Token
from app.users.security import decode_token

# Security schemes
security_scheme = HTTPBearer(auto_error=False)  # Don't auto-raise for cookie fallback


@dataclass(frozen=True)
class StaffSession:
    """Explicit session context handed to services instead of ambient auth state."""
    user_id: int
    email: str
    role: str
    display_name: str

    @property
    def is_doctor(self) -> bool:
        return self.role == "doctor"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
    access_token_cookie: Optional[str] = Cookie(None, alias="access_token"),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Get current authenticated user with token revocation check.

    Accepts token from EITHER:
    - Authorization: Bearer header
    - httpOnly cookie (for web browsers)
    """
    if credentials:
        token_string = credentials.credentials
    elif access_token_cookie:
        token_string = access_token_cookie
    else:
        raise _unauthorized("Not authenticated. Provide token in Authorization header or cookie.")

    return await authenticate_access_token(db, token_string)


async def authenticate_access_token(db: AsyncSession, token_string: str) -> User:
    """
    Resolve a raw access token to its user.

    Validates:
    1. JWT signature and expiry
    2. Token exists in database and is not revoked
    3. User exists and is active

    Raises 401 if any validation fails (403 for a disabled account).
    """
    payload = decode_token(token_string)
    if not payload or payload.get("type") != "access":
        raise _unauthorized("Invalid or expired access token")

    user_email = payload.get("sub")
    if not user_email:
        raise _unauthorized("Token missing user identifier")

    token_record = await db.execute(
        select(Token).where(
            and_(
                Token.token_string == token_string,
                Token.token_type == "access"
            )
        )
    )
    token_obj = token_record.scalars().first()
    if not token_obj:
        raise _unauthorized("Token not found. Please log in again.")

    # Revoked on logout / password change
    if token_obj.is_revoked:
        raise _unauthorized("Token has been revoked. Please log in again.")

    result = await db.execute(select(User).where(User.email == user_email))
    user = result.scalars().first()
    if not user:
        raise _unauthorized("User not found")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This account has been disabled."
        )

    return user


async def get_staff_session(
    current_user: User = Depends(get_current_user)
) -> StaffSession:
    return StaffSession(
        user_id=current_user.id,
        email=current_user.email,
        role=current_user.role,
        display_name=resolve_doctor_name(current_user),
    )


def require_roles(*roles: str):
    """
    Build a dependency that only lets the given roles through.
    Admins pass every gate.
    """
    async def _checker(session: StaffSession = Depends(get_staff_session)) -> StaffSession:
        if session.role != "admin" and session.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"This action requires one of the roles: {', '.join(roles)}"
            )
        return session

    return _checker


async def get_current_admin(
    current_user: User = Depends(get_current_user)
) -> User:
    """
    Require admin role.
    Raises 403 if user is not admin.
    """
    if current_user.role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required"
        )
    return current_user

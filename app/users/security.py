# app/users/security.py

import random
import secrets
from datetime import timedelta
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from app.helpers.time import utcnow
from app.users.auth_token_model.token_model import Token
from config.appconfig import settings


# Password hashing context
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


# ============================================================
# ✅ Verify Password
# ============================================================
def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


# ============================================================
# ✅ Get Password Hash
# ============================================================
def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


async def _issue_token(
    data: Dict[str, Any],
    token_type: str,
    lifetime: timedelta,
    db: AsyncSession,
) -> str:
    expire = utcnow() + lifetime
    jti = secrets.token_hex(16)
    to_encode = data.copy()
    # jti keeps two tokens issued in the same second distinct
    to_encode.update({"exp": expire, "type": token_type, "jti": jti})
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    db.add(
        Token(
            jti=jti,
            token_string=encoded_jwt,
            token_type=token_type,
            user_id=data.get("user_id"),
            expires_at=expire,
        )
    )
    await db.commit()
    return encoded_jwt


# ============================================================
# ✅ Create Access Token
# ============================================================
async def create_access_token(
    data: Dict[str, Any],
    db: AsyncSession,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create a JWT access token and store it as active."""
    return await _issue_token(
        data, "access", expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRY), db
    )


# ============================================================
# ✅ Create Refresh Token
# ============================================================
async def create_refresh_token(
    data: Dict[str, Any],
    db: AsyncSession,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create a JWT refresh token and store it as active."""
    return await _issue_token(
        data, "refresh", expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRY), db
    )


# ============================================================
# ✅ Decode Token
# ============================================================
def decode_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode and verify a JWT token."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None


# ============================================================
# ✅ Generate Password Reset Token
# ============================================================
def generate_password_reset_token() -> str:
    """Generate a secure random token for password reset."""
    return secrets.token_urlsafe(32)


# ============================================================
# ✅ Generate Verification Code
# ============================================================
def generate_verification_code() -> str:
    """Generate a random 6-digit verification code."""
    return str(random.randint(100000, 999999))

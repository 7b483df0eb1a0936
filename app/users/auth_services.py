# app/users/auth_services.py
import logging
from datetime import timedelta
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.helpers.time import as_utc, utcnow
from app.users.auth_emails import (
    send_registration_email_with_verification_code,
    send_reset_password_link_with_token_in_email,
)
from app.users.auth_token_model.token_model import Token
from app.users.password_reset_token.password_reset_token_model import PasswordResetToken
from app.users.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    generate_password_reset_token,
    generate_verification_code,
    get_password_hash,
    verify_password,
)
from app.users.user_models.schemas import UserLogin, UserRegister
from app.users.user_models.user_model import User
from config.appconfig import settings

logger = logging.getLogger(__name__)

# User-facing sign-in messages, one per failure kind
AUTH_ERROR_MESSAGES = {
    "unknown_account": "No account found with this email address.",
    "wrong_credential": "Incorrect password. Please try again.",
    "malformed_email": "Please enter a valid email address.",
    "too_many_attempts": "Too many failed login attempts. Please try again later.",
    "account_disabled": "This account has been disabled.",
    "generic": "Failed to sign in. Please try again.",
}

_AUTH_ERROR_STATUS = {
    "unknown_account": status.HTTP_404_NOT_FOUND,
    "wrong_credential": status.HTTP_401_UNAUTHORIZED,
    "malformed_email": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "too_many_attempts": status.HTTP_429_TOO_MANY_REQUESTS,
    "account_disabled": status.HTTP_403_FORBIDDEN,
}


def auth_error(kind: str) -> HTTPException:
    return HTTPException(
        status_code=_AUTH_ERROR_STATUS.get(kind, status.HTTP_400_BAD_REQUEST),
        detail=AUTH_ERROR_MESSAGES.get(kind, AUTH_ERROR_MESSAGES["generic"]),
    )


async def get_user_by_email(email: str, db: AsyncSession) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalars().first()


def _send_verification(user: User) -> None:
    # Email delivery is non-critical: the account exists either way
    try:
        send_registration_email_with_verification_code(user.email, user.verification_code, user.full_name)
    except Exception:
        logger.exception(f"⚠️  Could not send verification email to {user.email}")


# ============================================================
# ✅ REGISTER A NEW USER
# ============================================================
async def registering_user(user_data: UserRegister, db: AsyncSession) -> User:
    if await get_user_by_email(user_data.email, db):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="An account with this email already exists."
        )

    new_user = User(
        email=user_data.email,
        hashed_password=get_password_hash(user_data.password),
        full_name=user_data.full_name,
        role=user_data.role,
        is_active=True,
        is_verified=False,
        verification_code=generate_verification_code(),
        verification_sent_at=utcnow(),
    )
    db.add(new_user)
    await db.commit()
    await db.refresh(new_user)
    logger.info(f"✅ Registered {new_user.role} account {new_user.email}")

    _send_verification(new_user)
    return new_user


# ============================================================
# ✅ AUTHENTICATE USER
# ============================================================
async def authenticate_user(email: str, password: str, db: AsyncSession) -> User:
    """
    Check credentials and return the user.
    Raises the matching auth error for every failure kind.
    """
    user = await get_user_by_email(email, db)
    if not user:
        raise auth_error("unknown_account")

    if not user.is_active:
        raise auth_error("account_disabled")

    now = utcnow()
    locked_until = as_utc(user.locked_until)
    if locked_until and locked_until > now:
        raise auth_error("too_many_attempts")

    if not verify_password(password, user.hashed_password):
        user.failed_login_attempts = (user.failed_login_attempts or 0) + 1
        if user.failed_login_attempts >= settings.MAX_FAILED_LOGINS:
            user.locked_until = now + timedelta(minutes=settings.LOGIN_LOCKOUT_MINUTES)
            user.failed_login_attempts = 0
            await db.commit()
            logger.warning(f"⚠️  Locked {email} after repeated failed logins")
            raise auth_error("too_many_attempts")
        await db.commit()
        raise auth_error("wrong_credential")

    user.failed_login_attempts = 0
    user.locked_until = None
    return user


# ============================================================
# ✅ LOGIN USER
# ============================================================
async def login_user(user_data: UserLogin, db: AsyncSession) -> tuple[str, str, User]:
    user = await authenticate_user(user_data.email, user_data.password, db)

    if user_data.role and user_data.role != user.role:
        await db.commit()
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Selected role does not match your account role. "
                   f"Your account is registered as: {user.role}"
        )

    user.last_login = utcnow()
    await db.commit()

    claims = {"sub": user.email, "user_id": user.id, "role": user.role}
    access_token = await create_access_token(data=claims, db=db)
    refresh_token = await create_refresh_token(data=claims, db=db)
    await db.refresh(user)

    logger.info(f"🔑 {user.role} {user.email} signed in")
    return access_token, refresh_token, user


# ============================================================
# ✅ REFRESH ACCESS TOKEN
# ============================================================
async def refresh_access_token(refresh_token: str, db: AsyncSession) -> tuple[str, str]:
    payload = decode_token(refresh_token)
    if not payload or payload.get("type") != "refresh" or not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    result = await db.execute(select(Token).where(Token.token_string == refresh_token))
    stored_token = result.scalars().first()
    if not stored_token or stored_token.is_revoked:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token revoked or invalid",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await get_user_by_email(payload["sub"], db)
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User inactive or not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Rotate: the old refresh token is single-use
    stored_token.is_revoked = True
    stored_token.revoked_at = utcnow()
    await db.commit()

    claims = {"sub": user.email, "user_id": user.id, "role": user.role}
    access_token = await create_access_token(data=claims, db=db)
    new_refresh_token = await create_refresh_token(data=claims, db=db)
    return access_token, new_refresh_token


# ============================================================
# ✅ LOGOUT USER (Global Revocation)
# ============================================================
async def logout_user(user: User, db: AsyncSession) -> None:
    await db.execute(
        update(Token)
        .where(Token.user_id == user.id, Token.is_revoked.is_(False))
        .values(is_revoked=True, revoked_at=utcnow())
    )
    await db.commit()
    logger.info(f"👋 {user.email} signed out, all sessions revoked")


# ============================================================
# ✅ CREATE PASSWORD RESET LINK WITH THE RESET TOKEN ON IT
# ============================================================
async def create_password_reset_link(email: str, db: AsyncSession) -> tuple[str, Optional[str]]:
    user = await get_user_by_email(email, db)
    if not user:
        # Don't reveal user existence
        return "If your email is registered, you will receive a password reset link.", None

    reset_token = generate_password_reset_token()
    db.add(
        PasswordResetToken(
            user_id=user.id,
            token=reset_token,
            expires_at=utcnow() + timedelta(minutes=settings.PASSWORD_RESET_EXPIRY),
        )
    )
    await db.commit()

    reset_link = f"{settings.FRONTEND_URL}/reset-password?token={reset_token}"
    try:
        send_reset_password_link_with_token_in_email(email, reset_link, user.full_name)
    except Exception:
        logger.exception(f"⚠️  Could not send password reset email to {email}")

    return "If your email is registered, you will receive a password reset link.", reset_token


# ============================================================
# ✅ CHANGE/UPDATE PASSWORD
# ============================================================
async def update_password(user: User, current_password: str, new_password: str, db: AsyncSession) -> None:
    if not verify_password(current_password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Incorrect current password"
        )

    user.hashed_password = get_password_hash(new_password)
    db.add(user)
    await db.commit()


# ============================================================
# ✅ VERIFY EMAIL
# ============================================================
async def verify_email_with_code(email: str, verification_code: str, db: AsyncSession) -> None:
    user = await get_user_by_email(email, db)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    if user.is_verified:
        return

    if user.verification_code != verification_code:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid verification code"
        )

    user.is_verified = True
    user.verification_code = None
    await db.commit()


# ============================================================
# ✅ RESEND VERIFICATION CODE
# ============================================================
async def resend_verification_code(email: str, db: AsyncSession) -> str:
    user = await get_user_by_email(email, db)
    if not user:
        raise auth_error("unknown_account")
    if user.is_verified:
        return "Email is already verified."

    user.verification_code = generate_verification_code()
    user.verification_sent_at = utcnow()
    await db.commit()
    await db.refresh(user)

    _send_verification(user)
    return "Verification code sent. Please check your inbox."


# ============================================================
# ✅ RESET PASSWORD WITH TOKEN
# ============================================================
async def reset_password_with_token(token: str, new_password: str, db: AsyncSession) -> None:
    result = await db.execute(select(PasswordResetToken).where(PasswordResetToken.token == token))
    stored_token = result.scalars().first()

    if not stored_token:
        raise HTTPException(status_code=400, detail="Invalid reset token")

    if stored_token.is_used:
        raise HTTPException(status_code=400, detail="Token already used")

    now = utcnow()
    if stored_token.is_expired(now):
        raise HTTPException(status_code=400, detail="Token expired")

    result = await db.execute(select(User).where(User.id == stored_token.user_id))
    user = result.scalars().first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    user.hashed_password = get_password_hash(new_password)
    user.failed_login_attempts = 0
    user.locked_until = None
    stored_token.used_at = now
    await db.commit()


# ============================================================
# ✅ STAFF DIRECTORY
# ============================================================
async def list_staff(db: AsyncSession, role: Optional[str] = None) -> List[User]:
    query = select(User).where(User.is_active.is_(True))
    if role:
        query = query.where(User.role == role)
    result = await db.execute(query.order_by(User.full_name.asc()))
    return list(result.scalars().all())

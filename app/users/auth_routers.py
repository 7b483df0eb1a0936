# app/users/auth_routers.py

from typing import Literal, Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.connection import get_db
from app.users.auth_dependencies import get_current_user, require_roles
from app.users.auth_services import (
    create_password_reset_link,
    list_staff,
    login_user,
    logout_user,
    refresh_access_token,
    registering_user,
    resend_verification_code,
    reset_password_with_token,
    update_password,
    verify_email_with_code,
)
from app.users.user_models.schemas import (
    MessageResponse,
    StaffList,
    UserChangePassword,
    UserEmailRequest,
    UserLogin,
    UserLoginResponse,
    UserRefreshResponse,
    UserRegister,
    UserRegisterResponse,
    UserResetPassword,
    UserResponse,
    UserVerifyEmail,
)
from app.users.user_models.user_model import User

router = APIRouter()

# ============================================================
# ✅ REGISTER
# ============================================================
@router.post("/register", response_model=UserRegisterResponse)
async def register_user(user_data: UserRegister, db: AsyncSession = Depends(get_db)):
    return await registering_user(user_data, db)


# ============================================================
# ✅ AUTHENTICATE USER (LOGIN)
# ============================================================
@router.post("/login", response_model=UserLoginResponse)
async def login(user_data: UserLogin, db: AsyncSession = Depends(get_db)) -> UserLoginResponse:
    access_token, refresh_token, user = await login_user(user_data, db)
    return UserLoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="bearer",
        user=UserResponse.model_validate(user),
    )


# ============================================================
# ✅ REFRESH TOKEN
# ============================================================
@router.post("/refresh", response_model=UserRefreshResponse)
async def refresh_token(
    refresh_token: str = Body(..., embed=True),
    db: AsyncSession = Depends(get_db)
) -> UserRefreshResponse:
    access_token, new_refresh_token = await refresh_access_token(refresh_token, db)
    return UserRefreshResponse(
        access_token=access_token,
        refresh_token=new_refresh_token,
        token_type="bearer"
    )


# ============================================================
# ✅ CURRENT USER
# ============================================================
@router.get("/me", response_model=UserResponse)
async def read_me(current_user: User = Depends(get_current_user)):
    return current_user


# ============================================================
# ✅ LOGOUT USER
# ============================================================
@router.post("/logout", response_model=MessageResponse)
async def logout(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> MessageResponse:
    await logout_user(current_user, db)
    return MessageResponse(message="Successfully logged out of all devices")


# ============================================================
# ✅ CHANGE PASSWORD
# ============================================================
@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    data: UserChangePassword,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> MessageResponse:
    await update_password(current_user, data.current_password, data.new_password, db)
    return MessageResponse(message="Password changed successfully")


# ============================================================
# ✅ FORGOT PASSWORD
# ============================================================
@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(data: UserEmailRequest, db: AsyncSession = Depends(get_db)):
    message, _ = await create_password_reset_link(data.email, db)
    return MessageResponse(message=message)


# ============================================================
# ✅ RESET PASSWORD
# ============================================================
@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(data: UserResetPassword, db: AsyncSession = Depends(get_db)):
    await reset_password_with_token(data.token, data.new_password, db)
    return MessageResponse(message="Password reset successful")


# ============================================================
# ✅ VERIFY EMAIL
# ============================================================
@router.post("/verify-email", response_model=MessageResponse)
async def verify_email(data: UserVerifyEmail, db: AsyncSession = Depends(get_db)):
    await verify_email_with_code(data.email, data.verification_code, db)
    return MessageResponse(message="Email verified successfully")


@router.post("/resend-verification", response_model=MessageResponse)
async def resend_verification(data: UserEmailRequest, db: AsyncSession = Depends(get_db)):
    message = await resend_verification_code(data.email, db)
    return MessageResponse(message=message)


# ============================================================
# ✅ STAFF DIRECTORY (doctor picker on the appointment form)
# ============================================================
@router.get("/staff", response_model=StaffList)
async def get_staff(
    role: Optional[Literal["admin", "doctor", "receptionist"]] = None,
    _=Depends(require_roles("doctor", "receptionist")),
    db: AsyncSession = Depends(get_db),
):
    staff = await list_staff(db, role)
    return StaffList(staff=staff, total=len(staff))

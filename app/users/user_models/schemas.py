# app/users/user_models/schemas.py


from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

# Allowed values as constants
ROLES = Literal["admin", "doctor", "receptionist"]
SIGNUP_ROLES = Literal["doctor", "receptionist"]


def _normalize_email(v):
    if isinstance(v, str):
        return v.strip().lower()
    return v


# ✅ Request schema for registration
class UserRegister(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=100)
    confirm_password: str
    full_name: str = Field(..., min_length=1, max_length=120)
    role: SIGNUP_ROLES = "doctor"

    @field_validator("email", mode="before")
    def normalize_email(cls, v):
        return _normalize_email(v)

    @field_validator("full_name")
    def strip_full_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Full name is required")
        return v

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


# ✅ Response schema for user registration
class UserRegisterResponse(BaseModel):
    id: int
    email: str
    full_name: str
    role: ROLES
    is_verified: bool
    model_config = ConfigDict(from_attributes=True)


# ✅ User login request
class UserLogin(BaseModel):
    email: EmailStr
    password: str
    # Role chosen on the sign-in screen; must match the account's role
    role: Optional[ROLES] = None

    @field_validator("email", mode="before")
    def normalize_email(cls, v):
        return _normalize_email(v)


# ✅ Response schema for user info
class UserResponse(BaseModel):
    id: int
    email: str
    full_name: str
    role: ROLES
    is_active: bool
    is_verified: bool
    created_at: datetime
    last_login: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class StaffList(BaseModel):
    staff: List[UserResponse]
    total: int


# ✅ Response schema for user login
class UserLoginResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str
    user: UserResponse


# ✅ Generic message response
class MessageResponse(BaseModel):
    message: str


# ✅ Response schema for token refresh
class UserRefreshResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str


# ✅ Request schema for forgot password / resend verification
class UserEmailRequest(BaseModel):
    email: EmailStr

    @field_validator("email", mode="before")
    def normalize_email(cls, v):
        return _normalize_email(v)


# ✅ Request schema for reset password
class UserResetPassword(BaseModel):
    token: str
    new_password: str = Field(..., min_length=6, max_length=100)


# ✅ Request schema for verify email
class UserVerifyEmail(BaseModel):
    email: EmailStr
    verification_code: str

    @field_validator("email", mode="before")
    def normalize_email(cls, v):
        return _normalize_email(v)


# ✅ Request schema for change password (authenticated)
class UserChangePassword(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=6, max_length=100)

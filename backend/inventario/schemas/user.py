"""Pydantic schemas for user accounts, login and two-factor authentication."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from inventario.models.enums import UserRole


class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class UserOut(BaseModel):
    """Public profile; the password hash and TOTP secret never leave the server."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    username: str
    real_name: str = Field(alias="realName")
    email: str
    role: UserRole
    last_login: Optional[datetime] = Field(default=None, alias="lastLogin")
    is_2fa_enabled: bool = Field(default=False, alias="is2FAEnabled")
    sso_provider: Optional[str] = Field(default=None, alias="ssoProvider")
    avatar_url: Optional[str] = Field(default=None, alias="avatarUrl")


class UserCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    username: str = Field(min_length=1, max_length=255)
    real_name: str = Field(alias="realName", min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255)
    role: UserRole = UserRole.USER
    password: Optional[str] = None
    is_2fa_enabled: bool = Field(default=False, alias="is2FAEnabled")


class UserUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    id: Optional[int] = None
    username: Optional[str] = None
    real_name: str = Field(alias="realName", min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255)
    role: UserRole
    password: Optional[str] = None


class UserCreateIn(BaseModel):
    user: UserCreate
    username: Optional[str] = None


class UserUpdateIn(BaseModel):
    user: UserUpdate
    username: Optional[str] = None


class ProfileUpdateIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    real_name: str = Field(alias="realName", min_length=1, max_length=255)
    avatar_url: Optional[str] = Field(default=None, alias="avatarUrl")


class TwoFactorUserIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(alias="userId")


class TwoFactorTokenIn(TwoFactorUserIn):
    token: str = Field(min_length=1)


class TwoFactorSetupOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    secret: str
    qr_code_url: str = Field(alias="qrCodeUrl")

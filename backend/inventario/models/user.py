from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Enum, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from inventario.models.base import Base
from inventario.models.enums import UserRole, enum_values
from inventario.models.equipment import LONG_TEXT


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    real_name: Mapped[str] = mapped_column("realName", String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password: Mapped[str] = mapped_column(String(255), nullable=False)  # bcrypt hash
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, values_callable=enum_values, name="user_role"), nullable=False
    )
    last_login: Mapped[Optional[datetime]] = mapped_column("lastLogin", DateTime)
    is_2fa_enabled: Mapped[bool] = mapped_column(
        "is2FAEnabled", Boolean, default=False, server_default=text("0")
    )
    two_fa_secret: Mapped[Optional[str]] = mapped_column("twoFASecret", String(255))
    sso_provider: Mapped[Optional[str]] = mapped_column("ssoProvider", String(50))
    avatar_url: Mapped[Optional[str]] = mapped_column("avatarUrl", LONG_TEXT)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

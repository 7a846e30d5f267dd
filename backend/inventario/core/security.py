"""Password hashing and one-time-password helpers."""

from __future__ import annotations

import pyotp
from passlib.context import CryptContext

from inventario.core.concurrency import run_in_thread_security
from inventario.core.config import settings

# Password hashing
pwd_context = CryptContext(
    schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS
)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Return True if the plain password matches the stored hash."""

    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Stored value is not a recognisable hash
        return False


async def verify_password_async(plain: str, hashed: str) -> bool:
    """Verify the provided password hash in a background thread."""

    return await run_in_thread_security(verify_password, plain, hashed)


def get_password_hash(password: str) -> str:
    """Hash a password using the configured context."""

    return pwd_context.hash(password)


async def get_password_hash_async(plain: str) -> str:
    """Hash a password in a background thread to avoid blocking the loop."""

    return await run_in_thread_security(get_password_hash, plain)


# TOTP helpers
def generate_totp_secret() -> str:
    return pyotp.random_base32()


def totp_provisioning_uri(secret: str, account_name: str) -> str:
    return pyotp.TOTP(secret).provisioning_uri(name=account_name, issuer_name=settings.TOTP_ISSUER)


def verify_totp(secret: str | None, token: str) -> bool:
    if not secret or not token:
        return False
    return pyotp.TOTP(secret).verify(token.strip(), valid_window=1)

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from inventario.core.audit import log_audit
from inventario.core.db import get_session
from inventario.core.logging import username_ctx_var
from inventario.core.security import (
    generate_totp_secret,
    totp_provisioning_uri,
    verify_password_async,
    verify_totp,
)
from inventario.models.user import User
from inventario.schemas.common import SuccessOut
from inventario.schemas.user import (
    LoginRequest,
    TwoFactorSetupOut,
    TwoFactorTokenIn,
    TwoFactorUserIn,
    UserOut,
)

router = APIRouter(tags=["auth"])


async def _get_user_or_404(session: AsyncSession, user_id: int) -> User:
    user = await session.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Usuário não encontrado")
    return user


@router.post("/login", response_model=UserOut)
async def login(payload: LoginRequest, session: AsyncSession = Depends(get_session)):
    user = await session.scalar(select(User).where(User.username == payload.username))
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Usuário não encontrado")
    if user.sso_provider:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Por favor, use o login via SSO."
        )
    if not await verify_password_async(payload.password, user.password):
        await log_audit(
            session,
            payload.username,
            "LOGIN_FAILED",
            "USER",
            user.id,
            "Invalid password",
            independent_txn=True,
        )
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Senha incorreta")

    username_ctx_var.set(user.username)
    # Only stamp lastLogin on a successful login
    await session.execute(update(User).where(User.id == user.id).values(last_login=datetime.now()))
    await log_audit(session, payload.username, "LOGIN", "USER", user.id, "User logged in")
    await session.commit()
    await session.refresh(user)
    return user


@router.post("/generate-2fa", response_model=TwoFactorSetupOut)
async def generate_2fa(payload: TwoFactorUserIn, session: AsyncSession = Depends(get_session)):
    user = await _get_user_or_404(session, payload.user_id)
    secret = generate_totp_secret()
    user.two_fa_secret = secret
    await session.commit()
    return TwoFactorSetupOut(secret=secret, qr_code_url=totp_provisioning_uri(secret, str(user.id)))


@router.post("/enable-2fa", response_model=SuccessOut)
async def enable_2fa(payload: TwoFactorTokenIn, session: AsyncSession = Depends(get_session)):
    user = await _get_user_or_404(session, payload.user_id)
    if not verify_totp(user.two_fa_secret, payload.token):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Token inválido")
    user.is_2fa_enabled = True
    await log_audit(session, user.username, "ENABLE_2FA", "USER", user.id, "2FA enabled")
    await session.commit()
    return SuccessOut()


@router.post("/verify-2fa", response_model=UserOut)
async def verify_2fa(payload: TwoFactorTokenIn, session: AsyncSession = Depends(get_session)):
    user = await _get_user_or_404(session, payload.user_id)
    if not verify_totp(user.two_fa_secret, payload.token):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Código inválido")
    return user


async def _disable_2fa(session: AsyncSession, user_id: int, details: str) -> None:
    user = await _get_user_or_404(session, user_id)
    user.is_2fa_enabled = False
    user.two_fa_secret = None
    await log_audit(session, None, "DISABLE_2FA", "USER", user.id, details)
    await session.commit()


@router.post("/disable-2fa", response_model=SuccessOut)
async def disable_2fa(payload: TwoFactorUserIn, session: AsyncSession = Depends(get_session)):
    await _disable_2fa(session, payload.user_id, "2FA disabled by the user")
    return SuccessOut()


@router.post("/disable-user-2fa", response_model=SuccessOut)
async def disable_user_2fa(payload: TwoFactorUserIn, session: AsyncSession = Depends(get_session)):
    await _disable_2fa(session, payload.user_id, "2FA disabled by an administrator")
    return SuccessOut()

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from inventario.core.audit import log_audit
from inventario.core.config import settings
from inventario.core.db import get_session
from inventario.core.security import get_password_hash_async
from inventario.models.user import User
from inventario.schemas.common import UsernameIn
from inventario.schemas.user import ProfileUpdateIn, UserCreateIn, UserOut, UserUpdateIn

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=List[UserOut])
async def list_users(session: AsyncSession = Depends(get_session)):
    rows = await session.scalars(select(User).order_by(User.id))
    return rows.all()


@router.post("", response_model=UserOut)
async def create_user(payload: UserCreateIn, session: AsyncSession = Depends(get_session)):
    data = payload.user
    hashed = await get_password_hash_async(data.password or settings.DEFAULT_USER_PASSWORD)
    async with session.begin():
        user = User(
            username=data.username,
            real_name=data.real_name,
            email=data.email,
            password=hashed,
            role=data.role,
            is_2fa_enabled=data.is_2fa_enabled,
        )
        session.add(user)
        await session.flush()
        await session.refresh(user)
        await log_audit(
            session, payload.username, "CREATE", "USER", user.id, f"Created user: {user.username}"
        )
    return user


@router.put("/{user_id}", response_model=UserOut)
async def update_user(
    user_id: int,
    payload: UserUpdateIn,
    session: AsyncSession = Depends(get_session),
):
    data = payload.user
    hashed = await get_password_hash_async(data.password) if data.password else None
    async with session.begin():
        user = await session.get(User, user_id)
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Usuário não encontrado"
            )
        user.real_name = data.real_name
        user.email = data.email
        user.role = data.role
        if hashed:
            user.password = hashed
        await session.flush()
        await log_audit(
            session, payload.username, "UPDATE", "USER", user.id, f"Updated user: {user.username}"
        )
    return user


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: int,
    payload: Optional[UsernameIn] = None,
    session: AsyncSession = Depends(get_session),
):
    async with session.begin():
        result = await session.execute(delete(User).where(User.id == user_id))
        if result.rowcount == 0:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Usuário não encontrado"
            )
        await log_audit(
            session, payload.username if payload else None, "DELETE", "USER", user_id, "Deleted user"
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{user_id}/profile", response_model=UserOut)
async def update_profile(
    user_id: int,
    payload: ProfileUpdateIn,
    session: AsyncSession = Depends(get_session),
):
    async with session.begin():
        user = await session.get(User, user_id)
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Usuário não encontrado"
            )
        user.real_name = payload.real_name
        user.avatar_url = payload.avatar_url
    return user

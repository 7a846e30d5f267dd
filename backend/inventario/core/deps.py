"""Helpers resolving the acting user of a request.

Clients name the acting user in the request body (``username``); there are
no tokens or sessions. The name is looked up so writes can be stamped with
the creator's id and gated by role.
"""

from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from inventario.core.logging import username_ctx_var
from inventario.models.enums import ApprovalStatus
from inventario.models.user import User


async def resolve_actor(session: AsyncSession, username: Optional[str]) -> Optional[User]:
    """Return the user named ``username``; unknown names resolve to ``None``."""

    if not username:
        return None
    username_ctx_var.set(username)
    return await session.scalar(select(User).where(User.username == username))


async def require_actor(session: AsyncSession, username: Optional[str]) -> User:
    actor = await resolve_actor(session, username)
    if actor is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Usuário não encontrado"
        )
    return actor


def initial_approval_status(actor: Optional[User]) -> ApprovalStatus:
    """Admin-created records go live at once; everyone else's wait for review."""

    if actor is not None and actor.is_admin:
        return ApprovalStatus.APPROVED
    return ApprovalStatus.PENDING

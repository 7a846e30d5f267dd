"""Audit logging utilities."""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession

from inventario.core.db import SessionLocal
from inventario.models.audit_log import AuditLog


async def log_audit(
    session: AsyncSession,
    username: Optional[str],
    action_type: str,
    target_type: str,
    target_id: Optional[Any] = None,
    details: Optional[str] = None,
    *,
    independent_txn: bool = False,
) -> None:
    """Append one row to the system-wide audit log.

    The row joins the caller's transaction unless ``independent_txn`` is set,
    in which case it is committed on its own session (used for events such as
    failed logins, where the surrounding work is rolled back or read-only).
    """

    payload = {
        "username": username,
        "action_type": action_type,
        "target_type": target_type,
        "target_id": str(target_id) if target_id is not None else None,
        "details": details,
    }
    if independent_txn:
        async with SessionLocal() as audit_session:
            async with audit_session.begin():
                await audit_session.execute(insert(AuditLog).values(**payload))
        return

    await session.execute(insert(AuditLog).values(**payload))

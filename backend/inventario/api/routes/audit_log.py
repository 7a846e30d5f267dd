from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from inventario.core.db import get_session
from inventario.models.audit_log import AuditLog

router = APIRouter(tags=["audit"])

AUDIT_LOG_PAGE_SIZE = 100


class AuditLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    timestamp: Optional[datetime] = None
    username: Optional[str] = None
    action_type: Optional[str] = None
    target_type: Optional[str] = None
    target_id: Optional[str] = None
    details: Optional[str] = None


@router.get("/audit-log", response_model=List[AuditLogOut])
async def list_audit_log(session: AsyncSession = Depends(get_session)):
    rows = await session.scalars(
        select(AuditLog)
        .order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
        .limit(AUDIT_LOG_PAGE_SIZE)
    )
    return rows.all()

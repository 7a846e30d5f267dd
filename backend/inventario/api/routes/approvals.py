from typing import List, Type, Union

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import literal, select, union_all
from sqlalchemy.ext.asyncio import AsyncSession

from inventario.core.audit import log_audit
from inventario.core.db import get_session
from inventario.models.enums import ApprovalStatus
from inventario.models.equipment import Equipment
from inventario.models.license import License
from inventario.schemas.approval import ApprovalIn, ApprovalItemType, PendingItemOut, RejectionIn
from inventario.schemas.common import SuccessOut

router = APIRouter(prefix="/approvals", tags=["approvals"])

_MODELS: dict[ApprovalItemType, Type[Union[Equipment, License]]] = {
    ApprovalItemType.EQUIPMENT: Equipment,
    ApprovalItemType.LICENSE: License,
}


async def _load_pending(session: AsyncSession, item_type: ApprovalItemType, item_id: int):
    obj = await session.get(_MODELS[item_type], item_id)
    if obj is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item não encontrado")
    if obj.approval_status != ApprovalStatus.PENDING.value:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Item não está pendente de aprovação (status: {obj.approval_status})",
        )
    return obj


@router.get("/pending", response_model=List[PendingItemOut])
async def list_pending(session: AsyncSession = Depends(get_session)):
    pending = ApprovalStatus.PENDING.value
    stmt = union_all(
        select(
            Equipment.id,
            Equipment.equipamento.label("name"),
            literal(ApprovalItemType.EQUIPMENT.value).label("item_type"),
        ).where(Equipment.approval_status == pending),
        select(
            License.id,
            License.produto.label("name"),
            literal(ApprovalItemType.LICENSE.value).label("item_type"),
        ).where(License.approval_status == pending),
    )
    rows = (await session.execute(stmt)).all()
    return [PendingItemOut(id=row.id, name=row.name, item_type=row.item_type) for row in rows]


@router.post("/approve", response_model=SuccessOut)
async def approve_item(payload: ApprovalIn, session: AsyncSession = Depends(get_session)):
    async with session.begin():
        obj = await _load_pending(session, payload.type, payload.id)
        obj.approval_status = ApprovalStatus.APPROVED.value
        await log_audit(
            session,
            payload.username,
            "APPROVE",
            payload.type.value.upper(),
            payload.id,
            f"Approved {payload.type.value} item",
        )
    return SuccessOut()


@router.post("/reject", response_model=SuccessOut)
async def reject_item(payload: RejectionIn, session: AsyncSession = Depends(get_session)):
    async with session.begin():
        obj = await _load_pending(session, payload.type, payload.id)
        obj.approval_status = ApprovalStatus.REJECTED.value
        obj.rejection_reason = payload.reason
        await log_audit(
            session,
            payload.username,
            "REJECT",
            payload.type.value.upper(),
            payload.id,
            f"Rejected {payload.type.value} item. Reason: {payload.reason}",
        )
    return SuccessOut()

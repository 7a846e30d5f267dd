from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from fastapi.responses import Response
from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from inventario.core.audit import log_audit
from inventario.core.concurrency import run_in_thread_limited
from inventario.core.config import settings
from inventario.core.csv_import import CsvImportError, parse_equipment_csv
from inventario.core.db import get_session
from inventario.core.db_errors import raise_on_lock_conflict
from inventario.core.db_retry import with_db_retry
from inventario.core.deps import initial_approval_status, resolve_actor
from inventario.core.history import equipment_snapshot, record_history
from inventario.core.inventory_merge import (
    merge_equipment_batch,
    replace_equipment_inventory,
    reset_equipment_identity,
)
from inventario.core.logging import username_ctx_var
from inventario.core.rate_limit import limiter
from inventario.models.enums import ApprovalStatus, HistoryChangeType
from inventario.models.equipment import Equipment
from inventario.models.equipment_history import EquipmentHistory
from inventario.schemas.common import SuccessOut, UsernameIn
from inventario.schemas.equipment import (
    EquipmentBatchIn,
    EquipmentCreateIn,
    EquipmentHistoryOut,
    EquipmentImportRow,
    EquipmentOut,
    EquipmentUpdateIn,
)

router = APIRouter(prefix="/equipment", tags=["equipment"])


def _validate_rows(raw_rows: List[dict]) -> List[EquipmentImportRow]:
    try:
        return [EquipmentImportRow.model_validate(row) for row in raw_rows]
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=f"Linha inválida no CSV: {exc}"
        ) from exc


@router.get("", response_model=List[EquipmentOut])
async def list_equipment(session: AsyncSession = Depends(get_session)):
    rows = await session.scalars(
        select(Equipment)
        .where(Equipment.approval_status == ApprovalStatus.APPROVED.value)
        .order_by(Equipment.id.desc())
    )
    return rows.all()


@router.post("", response_model=EquipmentOut)
async def create_equipment(
    payload: EquipmentCreateIn,
    session: AsyncSession = Depends(get_session),
):
    data = payload.equipment.column_values()

    async def _create_once() -> Equipment:
        async with session.begin():
            actor = await resolve_actor(session, payload.username)
            obj = Equipment(
                **data,
                approval_status=initial_approval_status(actor).value,
                created_by_id=actor.id if actor else None,
            )
            session.add(obj)
            await session.flush()
            await session.refresh(obj)
            await record_history(
                session,
                obj.id,
                payload.username,
                HistoryChangeType.CREATE,
                None,
                payload.equipment,
            )
            await log_audit(
                session,
                payload.username,
                "CREATE",
                "EQUIPMENT",
                obj.id,
                f"Created equipment: {obj.equipamento}",
            )
        return obj

    return await with_db_retry(session, _create_once)


@router.put("/{equipment_id}", response_model=EquipmentOut)
async def update_equipment(
    equipment_id: int,
    payload: EquipmentUpdateIn,
    session: AsyncSession = Depends(get_session),
):
    data = payload.equipment.column_values()

    async def _update_once() -> Equipment:
        async with session.begin():
            obj = await session.get(Equipment, equipment_id)
            if obj is None:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND, detail="Equipamento não encontrado"
                )
            before = equipment_snapshot(obj)
            for key, value in data.items():
                setattr(obj, key, value)
            await session.flush()
            await record_history(
                session,
                obj.id,
                payload.username,
                HistoryChangeType.UPDATE,
                before,
                payload.equipment,
            )
            await log_audit(
                session,
                payload.username,
                "UPDATE",
                "EQUIPMENT",
                obj.id,
                f"Updated equipment: {obj.equipamento}",
            )
        return obj

    try:
        return await with_db_retry(session, _update_once)
    except OperationalError as exc:
        raise_on_lock_conflict(exc)


@router.delete("/{equipment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_equipment(
    equipment_id: int,
    payload: Optional[UsernameIn] = None,
    session: AsyncSession = Depends(get_session),
):
    username = payload.username if payload else None

    async def _delete_once() -> None:
        async with session.begin():
            result = await session.execute(delete(Equipment).where(Equipment.id == equipment_id))
            if result.rowcount == 0:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND, detail="Equipamento não encontrado"
                )
            await log_audit(session, username, "DELETE", "EQUIPMENT", equipment_id, "Deleted equipment")

    await with_db_retry(session, _delete_once)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{equipment_id}/history", response_model=List[EquipmentHistoryOut])
async def get_equipment_history(equipment_id: int, session: AsyncSession = Depends(get_session)):
    rows = await session.scalars(
        select(EquipmentHistory)
        .where(EquipmentHistory.equipment_id == equipment_id)
        .order_by(EquipmentHistory.timestamp.desc(), EquipmentHistory.id.desc())
    )
    return rows.all()


async def _run_periodic_update(
    session: AsyncSession, rows: List[EquipmentImportRow], username: str
) -> SuccessOut:
    username_ctx_var.set(username)

    async def _merge_once():
        async with session.begin():
            return await merge_equipment_batch(session, rows, username)

    summary = await with_db_retry(session, _merge_once)
    return SuccessOut(
        message=(
            "Atualização periódica concluída com sucesso. "
            f"{summary.created} novos, {summary.updated} atualizados, "
            f"{summary.unchanged} sem alterações."
        )
    )


@router.post("/periodic-update", response_model=SuccessOut)
async def periodic_update(payload: EquipmentBatchIn, session: AsyncSession = Depends(get_session)):
    return await _run_periodic_update(session, payload.equipment_list, payload.username)


@router.post("/periodic-update/csv", response_model=SuccessOut)
@limiter.limit(settings.IMPORT_UPLOAD_RATE)
async def periodic_update_csv(
    request: Request,
    file: UploadFile = File(...),
    username: str = Form(...),
    session: AsyncSession = Depends(get_session),
):
    contents = await file.read()
    try:
        text = contents.decode("utf-8-sig")
    except UnicodeDecodeError:
        # Spreadsheet exports on Windows are often Latin-1
        text = contents.decode("latin-1")
    try:
        raw_rows = await run_in_thread_limited(parse_equipment_csv, text)
    except CsvImportError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    logger.bind(filename=file.filename, rows=len(raw_rows)).info("periodic_update_csv_parsed")
    return await _run_periodic_update(session, _validate_rows(raw_rows), username)


@router.post("/import", response_model=SuccessOut)
async def import_equipment(payload: EquipmentBatchIn, session: AsyncSession = Depends(get_session)):
    username_ctx_var.set(payload.username)

    async def _replace_once() -> int:
        async with session.begin():
            return await replace_equipment_inventory(
                session, payload.equipment_list, payload.username
            )

    await with_db_retry(session, _replace_once)
    await reset_equipment_identity(session)
    await session.commit()
    return SuccessOut(message="Inventário consolidado com sucesso.")

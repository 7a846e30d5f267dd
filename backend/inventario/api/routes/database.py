from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from inventario.core.audit import log_audit
from inventario.core.backup import (
    BackupNotFoundError,
    latest_backup,
    read_latest_backup,
    restore_snapshot,
    write_backup,
)
from inventario.core.db import get_session
from inventario.models.enums import UserRole
from inventario.models.equipment import Equipment
from inventario.models.equipment_history import EquipmentHistory
from inventario.models.license import License
from inventario.models.user import User
from inventario.schemas.common import SuccessOut, UsernameIn
from inventario.schemas.database import BackupStatusOut

router = APIRouter(prefix="/database", tags=["database"])


@router.get("/backup-status", response_model=BackupStatusOut)
async def backup_status():
    path = latest_backup()
    if path is None:
        return BackupStatusOut(has_backup=False)
    return BackupStatusOut(
        has_backup=True, backup_timestamp=datetime.fromtimestamp(path.stat().st_mtime)
    )


@router.post("/backup", response_model=SuccessOut)
async def backup_database(payload: UsernameIn, session: AsyncSession = Depends(get_session)):
    path = await write_backup(session)
    await log_audit(
        session, payload.username, "BACKUP", "DATABASE", None, f"Realizou backup do banco de dados ({path.name})"
    )
    await session.commit()
    return SuccessOut(message="Backup realizado com sucesso!")


@router.post("/restore", response_model=SuccessOut)
async def restore_database(payload: UsernameIn, session: AsyncSession = Depends(get_session)):
    try:
        path, snapshot = await read_latest_backup()
    except BackupNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Backup corrompido.") from exc

    async with session.begin():
        try:
            counts = await restore_snapshot(session, snapshot)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
        await log_audit(
            session,
            payload.username,
            "RESTORE",
            "DATABASE",
            None,
            f"Restaurou backup do banco de dados ({path.name}): "
            f"{counts.get('equipment', 0)} equipamentos, {counts.get('licenses', 0)} licenças",
        )
    return SuccessOut(message="Banco de dados restaurado com sucesso!")


@router.post("/clear", response_model=SuccessOut)
async def clear_database(payload: UsernameIn, session: AsyncSession = Depends(get_session)):
    async with session.begin():
        await session.execute(delete(EquipmentHistory))
        await session.execute(delete(Equipment))
        await session.execute(delete(License))
        await session.execute(delete(User).where(User.role != UserRole.ADMIN))
        await log_audit(
            session, payload.username, "CLEAR", "DATABASE", None, "Resetou o banco de dados (mantendo admin)"
        )
    return SuccessOut(message="Banco de dados limpo com sucesso.")

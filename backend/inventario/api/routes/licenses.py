from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from inventario.core.app_settings import LicenseTotals
from inventario.core.audit import log_audit
from inventario.core.db import get_session
from inventario.core.db_retry import with_db_retry
from inventario.core.deps import initial_approval_status, resolve_actor
from inventario.models.enums import ApprovalStatus
from inventario.models.license import License
from inventario.schemas.common import SuccessOut, UsernameIn
from inventario.schemas.license import (
    LicenseCreateIn,
    LicenseImportIn,
    LicenseOut,
    LicenseTotalsIn,
    LicenseUpdateIn,
    RenameProductIn,
)

router = APIRouter(prefix="/licenses", tags=["licenses"])


@router.get("", response_model=List[LicenseOut])
async def list_licenses(session: AsyncSession = Depends(get_session)):
    rows = await session.scalars(
        select(License)
        .where(License.approval_status == ApprovalStatus.APPROVED.value)
        .order_by(License.id.desc())
    )
    return rows.all()


@router.post("", response_model=LicenseOut)
async def create_license(payload: LicenseCreateIn, session: AsyncSession = Depends(get_session)):
    data = payload.license.column_values()

    async def _create_once() -> License:
        async with session.begin():
            actor = await resolve_actor(session, payload.username)
            obj = License(
                **data,
                approval_status=initial_approval_status(actor).value,
                created_by_id=actor.id if actor else None,
            )
            session.add(obj)
            await session.flush()
            await session.refresh(obj)
            await log_audit(
                session,
                payload.username,
                "CREATE",
                "LICENSE",
                obj.id,
                f"Created license for: {obj.produto}",
            )
        return obj

    return await with_db_retry(session, _create_once)


@router.put("/{license_id}", response_model=LicenseOut)
async def update_license(
    license_id: int,
    payload: LicenseUpdateIn,
    session: AsyncSession = Depends(get_session),
):
    data = payload.license.column_values()

    async def _update_once() -> License:
        async with session.begin():
            obj = await session.get(License, license_id)
            if obj is None:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND, detail="Licença não encontrada"
                )
            for key, value in data.items():
                setattr(obj, key, value)
            await session.flush()
            await log_audit(
                session,
                payload.username,
                "UPDATE",
                "LICENSE",
                obj.id,
                f"Updated license for: {obj.produto}",
            )
        return obj

    return await with_db_retry(session, _update_once)


@router.delete("/{license_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_license(
    license_id: int,
    payload: Optional[UsernameIn] = None,
    session: AsyncSession = Depends(get_session),
):
    username = payload.username if payload else None

    async def _delete_once() -> None:
        async with session.begin():
            result = await session.execute(delete(License).where(License.id == license_id))
            if result.rowcount == 0:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND, detail="Licença não encontrada"
                )
            await log_audit(session, username, "DELETE", "LICENSE", license_id, "Deleted license")

    await with_db_retry(session, _delete_once)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/totals", response_model=Dict[str, int])
async def get_license_totals(session: AsyncSession = Depends(get_session)):
    record = await LicenseTotals.load(session)
    return record.totals


@router.post("/totals", response_model=SuccessOut)
async def save_license_totals(payload: LicenseTotalsIn, session: AsyncSession = Depends(get_session)):
    async with session.begin():
        await LicenseTotals(totals=payload.totals).save(session)
        await log_audit(
            session, payload.username, "UPDATE", "SETTINGS", None, "Atualizou totais de licenças"
        )
    return SuccessOut(message="Totais atualizados")


@router.post("/rename-product", response_model=SuccessOut)
async def rename_product(payload: RenameProductIn, session: AsyncSession = Depends(get_session)):
    async def _rename_once() -> int:
        async with session.begin():
            result = await session.execute(
                update(License)
                .where(License.produto == payload.old_name)
                .values(produto=payload.new_name)
            )
            # Purchased quantities follow the product to its new name
            totals = await LicenseTotals.load(session)
            if totals.rename_product(payload.old_name, payload.new_name):
                await totals.save(session)
            await log_audit(
                session,
                payload.username,
                "UPDATE",
                "PRODUCT",
                None,
                f'Renomeou produto de "{payload.old_name}" para "{payload.new_name}"',
            )
        return result.rowcount

    renamed = await with_db_retry(session, _rename_once)
    return SuccessOut(message=f"{renamed} licenças atualizadas")


@router.post("/import", response_model=SuccessOut)
async def import_licenses(payload: LicenseImportIn, session: AsyncSession = Depends(get_session)):
    product = payload.product_name.strip()

    async def _import_once() -> None:
        async with session.begin():
            await session.execute(delete(License).where(License.produto == product))
            for row in payload.licenses:
                values = row.column_values()
                values["produto"] = product
                session.add(License(**values, approval_status=ApprovalStatus.APPROVED.value))
            await session.flush()
            await log_audit(
                session,
                payload.username,
                "UPDATE",
                "LICENSE",
                None,
                f"Importou via CSV {len(payload.licenses)} licenças para: {product}",
            )

    await with_db_retry(session, _import_once)
    return SuccessOut(
        message=f"Importação concluída! {len(payload.licenses)} licenças substituídas para {product}."
    )

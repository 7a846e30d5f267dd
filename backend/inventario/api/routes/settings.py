from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from inventario.core.app_settings import (
    TERMO_DEVOLUCAO_KEY,
    TERMO_ENTREGA_KEY,
    coerce_setting,
    get_config_values,
    stringify_setting,
    upsert_config,
)
from inventario.core.audit import log_audit
from inventario.core.db import get_session
from inventario.schemas.common import SuccessOut
from inventario.schemas.settings import SettingsIn, TermTemplatesOut

router = APIRouter(tags=["settings"])


@router.get("/settings", response_model=Dict[str, Any])
async def get_settings(session: AsyncSession = Depends(get_session)):
    values = await get_config_values(session)
    return {key: coerce_setting(value) for key, value in values.items()}


@router.post("/settings", response_model=SuccessOut)
async def save_settings(payload: SettingsIn, session: AsyncSession = Depends(get_session)):
    async with session.begin():
        for key, value in payload.settings.items():
            await upsert_config(session, key, stringify_setting(value))
        await log_audit(
            session, payload.username, "UPDATE", "SETTINGS", None, "Configurações do sistema atualizadas"
        )
    return SuccessOut(message="Configurações salvas")


@router.get("/config/termo-templates", response_model=TermTemplatesOut)
async def get_term_templates(session: AsyncSession = Depends(get_session)):
    values = await get_config_values(session, TERMO_ENTREGA_KEY, TERMO_DEVOLUCAO_KEY)
    return TermTemplatesOut(
        entrega_template=values.get(TERMO_ENTREGA_KEY) or "",
        devolucao_template=values.get(TERMO_DEVOLUCAO_KEY) or "",
    )

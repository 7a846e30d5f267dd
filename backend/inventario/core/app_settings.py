"""Access to the ``app_config`` key/value table and its typed records."""

from __future__ import annotations

import json
from typing import Any, ClassVar, Optional

from loguru import logger
from pydantic import BaseModel, Field, ValidationError
from sqlalchemy import select
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from inventario.core.db import dialect_name
from inventario.models.app_config import AppConfig

LAST_PERIODIC_UPDATE_KEY = "lastAbsoluteUpdateTimestamp"
INITIAL_CONSOLIDATION_KEY = "hasInitialConsolidationRun"
TERMO_ENTREGA_KEY = "termo_entrega_template"
TERMO_DEVOLUCAO_KEY = "termo_devolucao_template"


async def get_config_value(session: AsyncSession, key: str) -> Optional[str]:
    return await session.scalar(select(AppConfig.config_value).where(AppConfig.config_key == key))


async def get_config_values(session: AsyncSession, *keys: str) -> dict[str, Optional[str]]:
    stmt = select(AppConfig.config_key, AppConfig.config_value)
    if keys:
        stmt = stmt.where(AppConfig.config_key.in_(keys))
    rows = (await session.execute(stmt)).all()
    return {key: value for key, value in rows}


async def upsert_config(session: AsyncSession, key: str, value: Optional[str]) -> None:
    """Insert ``key`` or overwrite its value; keys are unique."""

    dialect = dialect_name(session)
    if dialect == "mysql":
        stmt = mysql_insert(AppConfig).values(config_key=key, config_value=value)
        stmt = stmt.on_duplicate_key_update(config_value=stmt.inserted.config_value)
    elif dialect == "sqlite":
        stmt = sqlite_insert(AppConfig).values(config_key=key, config_value=value)
        stmt = stmt.on_conflict_do_update(
            index_elements=[AppConfig.config_key],
            set_={"config_value": stmt.excluded.config_value},
        )
    else:
        existing = await session.scalar(select(AppConfig).where(AppConfig.config_key == key))
        if existing is None:
            session.add(AppConfig(config_key=key, config_value=value))
        else:
            existing.config_value = value
        await session.flush()
        return
    await session.execute(stmt)


def coerce_setting(value: Optional[str]) -> Any:
    """Booleans travel as the strings ``true``/``false``."""

    if value == "true":
        return True
    if value == "false":
        return False
    return value


def stringify_setting(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class ConfigRecord(BaseModel):
    """A structured value stored as versioned JSON under one config key."""

    config_key: ClassVar[str]
    version: int = 1

    @classmethod
    def _from_legacy(cls, raw: Any) -> "ConfigRecord":
        raise ValueError("unsupported legacy payload")

    @classmethod
    async def load(cls, session: AsyncSession):
        raw = await get_config_value(session, cls.config_key)
        if not raw:
            return cls()
        try:
            data = json.loads(raw)
            if isinstance(data, dict) and "version" in data:
                return cls.model_validate(data)
            return cls._from_legacy(data)
        except (ValueError, ValidationError) as exc:
            logger.bind(config_key=cls.config_key, error=str(exc)).warning("config_record_unreadable")
            return cls()

    async def save(self, session: AsyncSession) -> None:
        await upsert_config(session, self.config_key, self.model_dump_json())


class LicenseTotals(ConfigRecord):
    """Purchased seat count per license product."""

    config_key: ClassVar[str] = "license_totals"
    totals: dict[str, int] = Field(default_factory=dict)

    @classmethod
    def _from_legacy(cls, raw: Any) -> "LicenseTotals":
        # Older builds stored the bare product -> quantity mapping
        return cls(totals=raw)

    def rename_product(self, old_name: str, new_name: str) -> bool:
        if old_name not in self.totals or old_name == new_name:
            return False
        self.totals[new_name] = self.totals.pop(old_name)
        return True

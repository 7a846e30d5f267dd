"""Equipment change-history recorder."""

from __future__ import annotations

import json
from datetime import date, datetime
from enum import Enum
from typing import Any, Mapping, Optional

from pydantic import BaseModel
from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncSession

from inventario.models.enums import HistoryChangeType
from inventario.models.equipment import Equipment
from inventario.models.equipment_history import EquipmentHistory


def json_default(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def equipment_snapshot(obj: Equipment) -> dict[str, Any]:
    """Full row keyed by column name, the shape the UI shows in the history view."""

    mapper = inspect(Equipment)
    return {
        attr.columns[0].name: getattr(obj, attr.key)
        for attr in mapper.column_attrs
    }


def serialise_state(value: Any) -> Optional[str]:
    """Serialise a before/after state into the opaque text stored on the row."""

    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, BaseModel):
        value = value.model_dump(by_alias=True, exclude_unset=True)
    if isinstance(value, Equipment):
        value = equipment_snapshot(value)
    if isinstance(value, Mapping):
        return json.dumps(dict(value), default=json_default, ensure_ascii=False)
    return json.dumps(value, default=json_default, ensure_ascii=False)


async def record_history(
    session: AsyncSession,
    equipment_id: int,
    changed_by: Optional[str],
    change_type: HistoryChangeType,
    from_value: Any = None,
    to_value: Any = None,
) -> None:
    session.add(
        EquipmentHistory(
            equipment_id=equipment_id,
            timestamp=datetime.now(),
            changed_by=changed_by,
            change_type=change_type.value,
            from_value=serialise_state(from_value),
            to_value=serialise_state(to_value),
        )
    )
    await session.flush()

"""Reconciliation of imported equipment batches against the inventory.

Both entry points run inside the caller's transaction so a failing row rolls
back the whole batch.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Sequence

from loguru import logger
from sqlalchemy import delete, select, text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncSession

from inventario.core.app_settings import (
    INITIAL_CONSOLIDATION_KEY,
    LAST_PERIODIC_UPDATE_KEY,
    upsert_config,
)
from inventario.core.audit import log_audit
from inventario.core.history import record_history
from inventario.models.enums import ApprovalStatus, HistoryChangeType
from inventario.models.equipment import Equipment
from inventario.models.equipment_history import EquipmentHistory
from inventario.schemas.equipment import EquipmentImportRow

IMPORT_CREATE_NOTE = "Importado via Atualização Periódica"


@dataclass
class MergeSummary:
    processed: int = 0
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    skipped: int = 0


def _as_text(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def _timestamp_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _insert_values(values: dict[str, Any], serial: str | None) -> dict[str, Any]:
    data = dict(values)
    if not data.get("equipamento"):
        # equipamento is NOT NULL; exports without a device name fall back to the serial
        data["equipamento"] = serial or "Sem nome"
    data["approval_status"] = ApprovalStatus.APPROVED.value
    return data


def diff_equipment(current: Equipment, values: dict[str, Any]) -> dict[str, tuple[Any, Any]]:
    """Fields of ``values`` whose text differs from the stored row.

    ``None`` in the incoming row means "not provided" and never clears a value.
    """

    changes: dict[str, tuple[Any, Any]] = {}
    for key, new in values.items():
        if key == "id" or new is None:
            continue
        old = getattr(current, key)
        if old is None or _as_text(new) != _as_text(old):
            changes[key] = (old, new)
    return changes


async def merge_equipment_batch(
    session: AsyncSession,
    rows: Sequence[EquipmentImportRow],
    username: str,
) -> MergeSummary:
    """Apply a periodic update: match rows by serial, update diffs, insert the rest."""

    summary = MergeSummary(processed=len(rows))
    for row in rows:
        values = row.column_values()
        serial = (values.get("serial") or "").strip()
        if not serial:
            summary.skipped += 1
            continue
        values["serial"] = serial

        current = await session.scalar(select(Equipment).where(Equipment.serial == serial))
        if current is not None:
            changes = diff_equipment(current, values)
            if not changes:
                summary.unchanged += 1
                continue
            for key, (_, new) in changes.items():
                setattr(current, key, new)
            await session.flush()
            for old, new in changes.values():
                await record_history(
                    session,
                    current.id,
                    username,
                    HistoryChangeType.AUTO_UPDATE,
                    _as_text(old) if old else "",
                    _as_text(new),
                )
            summary.updated += 1
        else:
            obj = Equipment(**_insert_values(values, serial))
            session.add(obj)
            await session.flush()
            await record_history(
                session,
                obj.id,
                username,
                HistoryChangeType.IMPORT_CREATE,
                None,
                IMPORT_CREATE_NOTE,
            )
            summary.created += 1

    await log_audit(
        session,
        username,
        "UPDATE",
        "EQUIPMENT",
        None,
        f"Atualização periódica de {len(rows)} itens",
    )
    await upsert_config(session, LAST_PERIODIC_UPDATE_KEY, _timestamp_now())
    logger.bind(
        username=username,
        processed=summary.processed,
        created=summary.created,
        updated=summary.updated,
        unchanged=summary.unchanged,
        skipped=summary.skipped,
    ).info("periodic_update_merged")
    return summary


async def replace_equipment_inventory(
    session: AsyncSession,
    rows: Sequence[EquipmentImportRow],
    username: str,
) -> int:
    """Drop every equipment row (and its history) and load ``rows`` as approved.

    Inserted rows are numbered from 1 inside the transaction; call
    :func:`reset_equipment_identity` after commit to realign the engine's
    counter. Returns the number of rows inserted.
    """

    await session.execute(delete(EquipmentHistory))
    await session.execute(delete(Equipment))

    inserted = 0
    for row in rows:
        values = row.column_values()
        if not values:
            continue
        inserted += 1
        session.add(Equipment(id=inserted, **_insert_values(values, values.get("serial"))))
    await session.flush()

    await log_audit(
        session,
        username,
        "DELETE",
        "DATABASE",
        None,
        "Substituição total do inventário via consolidação",
    )
    await upsert_config(session, LAST_PERIODIC_UPDATE_KEY, _timestamp_now())
    await upsert_config(session, INITIAL_CONSOLIDATION_KEY, "true")
    logger.bind(username=username, inserted=inserted).info("equipment_inventory_replaced")
    return inserted


async def reset_equipment_identity(conn: AsyncConnection | AsyncSession) -> None:
    """Move the equipment id counter back to ``max(id) + 1``.

    MySQL commits implicitly on ALTER TABLE, so this runs outside the import
    transaction. SQLite rowid tables already reuse ``max(rowid) + 1``.
    """

    dialect = conn.get_bind().dialect if isinstance(conn, AsyncSession) else conn.dialect
    if dialect.name != "mysql":
        return
    await conn.execute(text("ALTER TABLE equipment AUTO_INCREMENT = 1"))

"""JSON snapshots of the inventory tables kept under ``BACKUP_DIR``."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import anyio
from loguru import logger
from sqlalchemy import DateTime, Table, delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from inventario.core.app_settings import upsert_config
from inventario.core.config import settings
from inventario.core.history import json_default
from inventario.models import AppConfig, Equipment, EquipmentHistory, License

SNAPSHOT_VERSION = 1
# Restore order: parents before children
SNAPSHOT_TABLES: list[Table] = [
    Equipment.__table__,
    EquipmentHistory.__table__,
    License.__table__,
]


class BackupNotFoundError(LookupError):
    pass


def backup_dir() -> Path:
    return Path(settings.BACKUP_DIR)


def latest_backup(directory: Optional[Path] = None) -> Optional[Path]:
    directory = directory or backup_dir()
    if not directory.is_dir():
        return None
    files = sorted(directory.glob("backup-*.json"), reverse=True)
    return files[0] if files else None


async def dump_snapshot(session: AsyncSession) -> dict[str, Any]:
    snapshot: dict[str, Any] = {
        "version": SNAPSHOT_VERSION,
        "createdAt": datetime.now().isoformat(),
    }
    for table in SNAPSHOT_TABLES:
        rows = await session.execute(select(table).order_by(table.c.id))
        snapshot[table.name] = [dict(row._mapping) for row in rows]
    config = await session.execute(select(AppConfig.config_key, AppConfig.config_value))
    snapshot["app_config"] = {key: value for key, value in config}
    return snapshot


def _write_file(path: Path, snapshot: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(snapshot, default=json_default, ensure_ascii=False), encoding="utf-8")


async def write_backup(session: AsyncSession) -> Path:
    snapshot = await dump_snapshot(session)
    path = backup_dir() / f"backup-{datetime.now():%Y%m%d-%H%M%S-%f}.json"
    await anyio.to_thread.run_sync(_write_file, path, snapshot)
    logger.bind(path=str(path)).info("database_backup_written")
    return path


def _coerce_row(table: Table, row: dict[str, Any]) -> dict[str, Any]:
    values = {}
    for key, value in row.items():
        if key not in table.c:
            continue
        if isinstance(table.c[key].type, DateTime) and isinstance(value, str):
            value = datetime.fromisoformat(value)
        values[key] = value
    return values


async def restore_snapshot(session: AsyncSession, snapshot: dict[str, Any]) -> dict[str, int]:
    """Replace equipment, history, licenses and config values with ``snapshot``."""

    if snapshot.get("version") != SNAPSHOT_VERSION:
        raise ValueError(f"Versão de backup não suportada: {snapshot.get('version')}")

    for table in reversed(SNAPSHOT_TABLES):
        await session.execute(delete(table))
    counts: dict[str, int] = {}
    for table in SNAPSHOT_TABLES:
        rows = [_coerce_row(table, row) for row in snapshot.get(table.name, [])]
        if rows:
            await session.execute(insert(table), rows)
        counts[table.name] = len(rows)
    for key, value in (snapshot.get("app_config") or {}).items():
        await upsert_config(session, key, value)
    return counts


async def read_latest_backup() -> tuple[Path, dict[str, Any]]:
    path = latest_backup()
    if path is None:
        raise BackupNotFoundError("Nenhum backup encontrado.")
    content = await anyio.to_thread.run_sync(path.read_text, "utf-8")
    return path, json.loads(content)

"""Startup schema migrator.

Two passes run before the API serves traffic:

1. Auto-repair: add well-known columns that older databases lack. Runs on
   every boot; each column is checked first and repaired on its own.
2. Ledger: ordered, numbered steps recorded in the ``migrations`` table.
   Each pending step runs in its own transaction and is recorded on success.

A failing step is logged and skipped so the service still comes up, unless
``MIGRATIONS_FAIL_FAST`` is set.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Iterable, List, Optional, Sequence

from loguru import logger
from sqlalchemy import insert, inspect, select, text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine
from sqlalchemy.schema import CreateColumn

from inventario.core.app_settings import TERMO_DEVOLUCAO_KEY, TERMO_ENTREGA_KEY
from inventario.core.config import settings
from inventario.core.security import get_password_hash
from inventario.models import AppConfig, Base, SchemaMigration, User
from inventario.models.enums import UserRole

Step = Callable[[AsyncConnection], Awaitable[None]]


class MigrationError(RuntimeError):
    """Raised when fail-fast is enabled and a step fails."""


@dataclass
class Migration:
    id: int
    description: str
    apply: Step


@dataclass
class MigrationReport:
    repaired: List[str] = field(default_factory=list)
    applied: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)


# --- inspection helpers -----------------------------------------------------

async def _has_table(conn: AsyncConnection, table: str) -> bool:
    return await conn.run_sync(lambda sync_conn: inspect(sync_conn).has_table(table))


async def _columns(conn: AsyncConnection, table: str) -> dict[str, dict]:
    cols = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_columns(table))
    return {col["name"]: col for col in cols}


def _column_ddl(conn: AsyncConnection, table: str, column: str) -> str:
    """Column definition as the ORM declares it, rendered for the live dialect."""

    col = Base.metadata.tables[table].c[column]
    return str(CreateColumn(col).compile(dialect=conn.dialect))


async def _add_column(conn: AsyncConnection, table: str, column: str) -> bool:
    """ALTER TABLE ... ADD COLUMN when the table exists and the column does not."""

    if not await _has_table(conn, table):
        return False
    if column in await _columns(conn, table):
        return False
    quoted = conn.dialect.identifier_preparer.quote(table)
    await conn.execute(text(f"ALTER TABLE {quoted} ADD COLUMN {_column_ddl(conn, table, column)}"))
    return True


# --- step builders ----------------------------------------------------------

def split_statements(sql: str) -> List[str]:
    """Split a multi-statement SQL body on ``;`` outside of quoted strings."""

    statements: List[str] = []
    current: List[str] = []
    quote: Optional[str] = None
    for char in sql:
        if quote:
            if char == quote:
                quote = None
        elif char in ("'", '"', "`"):
            quote = char
        elif char == ";":
            stmt = "".join(current).strip()
            if stmt:
                statements.append(stmt)
            current = []
            continue
        current.append(char)
    tail = "".join(current).strip()
    if tail:
        statements.append(tail)
    return statements


def sql_step(sql: str, *, dialects: Sequence[str] = ()) -> Step:
    """Run a raw SQL body; ``dialects`` limits it to specific engines."""

    async def _apply(conn: AsyncConnection) -> None:
        if dialects and conn.dialect.name not in dialects:
            return
        for statement in split_statements(sql):
            await conn.execute(text(statement))

    return _apply


def create_tables(*tables: str) -> Step:
    async def _apply(conn: AsyncConnection) -> None:
        selected = [Base.metadata.tables[name] for name in tables]
        await conn.run_sync(lambda sync_conn: Base.metadata.create_all(sync_conn, tables=selected))

    return _apply


def add_column_if_missing(table: str, column: str) -> Step:
    async def _apply(conn: AsyncConnection) -> None:
        await _add_column(conn, table, column)

    return _apply


def seed_config(values: dict[str, Optional[str]]) -> Step:
    """Insert config keys that are not present yet; existing values are kept."""

    async def _apply(conn: AsyncConnection) -> None:
        for key, value in values.items():
            exists = await conn.scalar(select(AppConfig.id).where(AppConfig.config_key == key))
            if exists is None:
                await conn.execute(insert(AppConfig).values(config_key=key, config_value=value))

    return _apply


async def _seed_admin_user(conn: AsyncConnection) -> None:
    exists = await conn.scalar(select(User.id).where(User.username == settings.ADMIN_USERNAME))
    if exists is not None:
        return
    await conn.execute(
        insert(User.__table__).values(
            username=settings.ADMIN_USERNAME,
            realName="Admin",
            email=settings.ADMIN_EMAIL,
            password=get_password_hash(settings.ADMIN_PASSWORD),
            role=UserRole.ADMIN,
        )
    )


MIGRATIONS: List[Migration] = [
    Migration(1, "create users", create_tables("users")),
    Migration(2, "create equipment", create_tables("equipment")),
    Migration(3, "create licenses", create_tables("licenses")),
    Migration(4, "create equipment_history", create_tables("equipment_history")),
    Migration(5, "create audit_log", create_tables("audit_log")),
    Migration(6, "create app_config", create_tables("app_config")),
    Migration(7, "seed admin user", _seed_admin_user),
    Migration(
        8,
        "seed company settings",
        seed_config({"companyName": "MRR INFORMATICA", "isSsoEnabled": "false"}),
    ),
    Migration(9, "equipment.emailColaborador", add_column_if_missing("equipment", "emailColaborador")),
    Migration(
        10,
        "seed term templates",
        seed_config({TERMO_ENTREGA_KEY: None, TERMO_DEVOLUCAO_KEY: None}),
    ),
    Migration(11, "users.avatarUrl", add_column_if_missing("users", "avatarUrl")),
    Migration(
        12,
        "users.avatarUrl as MEDIUMTEXT",
        sql_step("ALTER TABLE users MODIFY COLUMN avatarUrl MEDIUMTEXT", dialects=("mysql",)),
    ),
    Migration(13, "licenses.created_by_id", add_column_if_missing("licenses", "created_by_id")),
    Migration(14, "equipment.created_by_id", add_column_if_missing("equipment", "created_by_id")),
    Migration(15, "seed 2FA toggle", seed_config({"is2faEnabled": "false"})),
]

# (table, column) pairs older databases may lack
REPAIR_COLUMNS: List[tuple[str, str]] = [
    ("licenses", "empresa"),
    ("licenses", "observacoes"),
    ("licenses", "approval_status"),
    ("licenses", "rejection_reason"),
    ("licenses", "created_by_id"),
    ("equipment", "observacoes"),
    ("equipment", "approval_status"),
    ("equipment", "rejection_reason"),
    ("equipment", "created_by_id"),
    ("equipment", "emailColaborador"),
    ("equipment", "brand"),
    ("equipment", "model"),
    ("equipment", "identificador"),
    ("equipment", "nomeSO"),
    ("equipment", "memoriaFisicaTotal"),
    ("equipment", "grupoPoliticas"),
    ("equipment", "pais"),
    ("equipment", "cidade"),
    ("equipment", "estadoProvincia"),
    ("equipment", "condicaoTermo"),
    ("users", "twoFASecret"),
    ("users", "is2FAEnabled"),
    ("users", "avatarUrl"),
    ("equipment_history", "equipment_id"),
]

_CURRENT_TIMESTAMP = re.compile(r"current_timestamp", re.IGNORECASE)


async def _repair_legacy_mysql(conn: AsyncConnection) -> List[str]:
    """Fixes for tables created by early releases, MySQL only."""

    repaired: List[str] = []
    if await _has_table(conn, "equipment_history"):
        columns = await _columns(conn, "equipment_history")
        legacy = columns.get("equipmentId")
        if legacy is not None and not legacy.get("nullable", True):
            await conn.execute(text("ALTER TABLE equipment_history MODIFY COLUMN equipmentId INT NULL"))
            repaired.append("equipment_history.equipmentId")
    for table in ("equipment_history", "audit_log"):
        if not await _has_table(conn, table):
            continue
        ts = (await _columns(conn, table)).get("timestamp")
        if ts is not None and not _CURRENT_TIMESTAMP.search(str(ts.get("default") or "")):
            await conn.execute(
                text(f"ALTER TABLE {table} MODIFY COLUMN timestamp DATETIME DEFAULT CURRENT_TIMESTAMP")
            )
            repaired.append(f"{table}.timestamp")
    return repaired


async def repair_schema(
    engine: AsyncEngine, columns: Iterable[tuple[str, str]] = REPAIR_COLUMNS
) -> List[str]:
    """Auto-repair pass. Returns the ``table.column`` names that were patched."""

    repaired: List[str] = []
    for table, column in columns:
        try:
            async with engine.begin() as conn:
                if await _add_column(conn, table, column):
                    repaired.append(f"{table}.{column}")
                    logger.bind(table=table, column=column).info("schema_column_repaired")
        except Exception as exc:
            logger.bind(table=table, column=column, error=str(exc)).error("schema_repair_failed")
            if settings.MIGRATIONS_FAIL_FAST:
                raise MigrationError(f"Auto-repair of {table}.{column} failed") from exc

    if engine.dialect.name == "mysql":
        try:
            async with engine.begin() as conn:
                repaired.extend(await _repair_legacy_mysql(conn))
        except Exception as exc:
            logger.bind(error=str(exc)).error("schema_legacy_repair_failed")
            if settings.MIGRATIONS_FAIL_FAST:
                raise MigrationError("Legacy schema repair failed") from exc
    return repaired


async def _applied_ids(engine: AsyncEngine) -> set[int]:
    async with engine.begin() as conn:
        await conn.run_sync(lambda sync_conn: SchemaMigration.__table__.create(sync_conn, checkfirst=True))
        rows = await conn.execute(select(SchemaMigration.id))
        return {row[0] for row in rows}


async def run_migrations(
    engine: Optional[AsyncEngine] = None,
    migrations: Sequence[Migration] = MIGRATIONS,
) -> MigrationReport:
    """Run the auto-repair pass, then every pending ledger step in id order."""

    if engine is None:
        from inventario.core.db import engine as default_engine

        engine = default_engine

    report = MigrationReport()
    applied = await _applied_ids(engine)
    report.repaired = await repair_schema(engine)

    for migration in sorted(migrations, key=lambda m: m.id):
        if migration.id in applied:
            continue
        try:
            async with engine.begin() as conn:
                await migration.apply(conn)
                await conn.execute(insert(SchemaMigration).values(id=migration.id))
        except Exception as exc:
            report.failed.append(migration.id)
            logger.bind(
                migration_id=migration.id,
                description=migration.description,
                error=str(exc),
            ).error("migration_failed")
            if settings.MIGRATIONS_FAIL_FAST:
                raise MigrationError(f"Migration {migration.id} failed") from exc
            continue
        report.applied.append(migration.id)
        logger.bind(migration_id=migration.id, description=migration.description).info(
            "migration_applied"
        )

    logger.bind(
        repaired=len(report.repaired), applied=len(report.applied), failed=len(report.failed)
    ).info("migrations_complete")
    return report

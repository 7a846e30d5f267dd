import sys, pathlib, asyncio
sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from sqlalchemy import func, select, text
from inventario.core.config import settings
from inventario.core.db import SessionLocal, dialect_name
from inventario.core.migrations import MIGRATIONS
from inventario.models import SchemaMigration

async def main():
    print("DB_POOL_SIZE:", settings.DB_POOL_SIZE)
    print("DB_ISOLATION_LEVEL:", settings.DB_ISOLATION_LEVEL)
    async with SessionLocal() as s:
        # Simple ping
        one = await s.execute(text("SELECT 1"))
        print("db-ping:", one.scalar())
        print("dialect:", dialect_name(s))

        if dialect_name(s) == "mysql":
            iso = await s.execute(text("SELECT @@transaction_isolation"))
            print("transaction_isolation:", iso.scalar())

        applied = await s.scalar(select(func.count()).select_from(SchemaMigration))
        print(f"migrations: {applied}/{len(MIGRATIONS)} applied")

asyncio.run(main())

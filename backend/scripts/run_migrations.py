"""Apply pending schema migrations without starting the API."""

import sys
import pathlib
import asyncio

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from inventario.core.db import engine
from inventario.core.logging import setup_logging
from inventario.core.migrations import run_migrations


async def main() -> int:
    setup_logging()
    report = await run_migrations(engine)
    await engine.dispose()

    print("Schema migrations")
    print("=" * 60)
    print(f"Repaired columns: {', '.join(report.repaired) or '-'}")
    print(f"Applied steps:    {', '.join(map(str, report.applied)) or '-'}")
    print(f"Failed steps:     {', '.join(map(str, report.failed)) or '-'}")
    return 1 if report.failed else 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))

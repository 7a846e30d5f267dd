"""Merge a periodic equipment CSV export into the inventory from the shell.

Usage: python scripts/import_equipment_csv.py export.csv --username admin
"""

import sys
import pathlib
import argparse
import asyncio

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from inventario.core.csv_import import CsvImportError, parse_equipment_csv
from inventario.core.db import SessionLocal, engine
from inventario.core.inventory_merge import merge_equipment_batch
from inventario.core.logging import setup_logging, username_ctx_var
from inventario.schemas.equipment import EquipmentImportRow


def _read_text(path: pathlib.Path) -> str:
    raw = path.read_bytes()
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


async def main(path: pathlib.Path, username: str) -> int:
    setup_logging()
    username_ctx_var.set(username)
    try:
        rows = [EquipmentImportRow.model_validate(row) for row in parse_equipment_csv(_read_text(path))]
    except (CsvImportError, ValueError) as exc:
        print(f"Could not read {path}: {exc}")
        return 2

    async with SessionLocal() as session:
        async with session.begin():
            summary = await merge_equipment_batch(session, rows, username)
    await engine.dispose()

    print(f"Processed {summary.processed} rows from {path.name}")
    print(f"  created:   {summary.created}")
    print(f"  updated:   {summary.updated}")
    print(f"  unchanged: {summary.unchanged}")
    print(f"  skipped:   {summary.skipped}")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("file", type=pathlib.Path, help="CSV export (comma or semicolon separated)")
    parser.add_argument("--username", default="admin", help="Recorded as the author of the changes")
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.file, args.username)))

import json

import pytest
from sqlalchemy import func, select

from inventario.core.backup import backup_dir, latest_backup
from inventario.models import Equipment, EquipmentHistory, License, User


@pytest.fixture
def clean_backups():
    directory = backup_dir()
    for path in directory.glob("backup-*.json"):
        path.unlink()
    yield directory
    for path in directory.glob("backup-*.json"):
        path.unlink()


@pytest.mark.anyio
async def test_settings_booleans_round_trip(client):
    response = await client.post(
        "/api/settings",
        json={
            "settings": {"companyName": "ACME", "isSsoEnabled": True, "is2faEnabled": False},
            "username": "admin",
        },
    )
    assert response.status_code == 200

    values = (await client.get("/api/settings")).json()
    assert values["companyName"] == "ACME"
    assert values["isSsoEnabled"] is True
    assert values["is2faEnabled"] is False


@pytest.mark.anyio
async def test_term_templates_default_to_empty_strings(client):
    response = await client.get("/api/config/termo-templates")
    assert response.json() == {"entregaTemplate": "", "devolucaoTemplate": ""}

    await client.post(
        "/api/settings",
        json={"settings": {"termo_entrega_template": "<p>Entrega</p>"}, "username": "admin"},
    )
    response = await client.get("/api/config/termo-templates")
    assert response.json()["entregaTemplate"] == "<p>Entrega</p>"


@pytest.mark.anyio
async def test_audit_log_lists_newest_first(client):
    await client.post("/api/settings", json={"settings": {"a": "1"}, "username": "admin"})
    await client.post("/api/licenses/totals", json={"totals": {"X": 1}, "username": "admin"})

    entries = (await client.get("/api/audit-log")).json()
    assert [entry["details"] for entry in entries[:2]] == [
        "Atualizou totais de licenças",
        "Configurações do sistema atualizadas",
    ]
    assert all(entry["username"] == "admin" for entry in entries[:2])


@pytest.mark.anyio
async def test_backup_status_without_backup(client, clean_backups):
    response = await client.get("/api/database/backup-status")
    assert response.json() == {"hasBackup": False, "backupTimestamp": None}


@pytest.mark.anyio
async def test_restore_without_backup_is_404(client, clean_backups):
    response = await client.post("/api/database/restore", json={"username": "admin"})
    assert response.status_code == 404
    assert response.json() == {"message": "Nenhum backup encontrado."}


@pytest.mark.anyio
async def test_backup_then_restore_brings_rows_back(client, session, clean_backups):
    await client.post(
        "/api/equipment",
        json={"equipment": {"equipamento": "NB-01", "serial": "SN-1"}, "username": "admin"},
    )
    await client.post(
        "/api/licenses",
        json={
            "license": {"produto": "Office", "chaveSerial": "K-1", "usuario": "ana"},
            "username": "admin",
        },
    )

    backup = await client.post("/api/database/backup", json={"username": "admin"})
    assert backup.status_code == 200
    status = (await client.get("/api/database/backup-status")).json()
    assert status["hasBackup"] is True
    snapshot = json.loads(latest_backup().read_text(encoding="utf-8"))
    assert [row["serial"] for row in snapshot["equipment"]] == ["SN-1"]

    cleared = await client.post("/api/database/clear", json={"username": "admin"})
    assert cleared.status_code == 200
    assert (await client.get("/api/equipment")).json() == []

    restored = await client.post("/api/database/restore", json={"username": "admin"})
    assert restored.status_code == 200, restored.text

    assert [item["serial"] for item in (await client.get("/api/equipment")).json()] == ["SN-1"]
    assert await session.scalar(select(func.count()).select_from(License)) == 1
    assert await session.scalar(select(func.count()).select_from(EquipmentHistory)) == 1


@pytest.mark.anyio
async def test_restore_rejects_unknown_snapshot_version(client, clean_backups):
    clean_backups.mkdir(parents=True, exist_ok=True)
    (clean_backups / "backup-99990101-000000-000000.json").write_text(
        json.dumps({"version": 99}), encoding="utf-8"
    )

    response = await client.post("/api/database/restore", json={"username": "admin"})
    assert response.status_code == 400


@pytest.mark.anyio
async def test_clear_keeps_admin_accounts_only(client, session, regular_user):
    await client.post(
        "/api/equipment",
        json={"equipment": {"equipamento": "NB-01", "serial": "SN-1"}, "username": "admin"},
    )

    response = await client.post("/api/database/clear", json={"username": "admin"})
    assert response.status_code == 200

    assert await session.scalar(select(func.count()).select_from(Equipment)) == 0
    usernames = (await session.scalars(select(User.username))).all()
    assert usernames == ["admin"]

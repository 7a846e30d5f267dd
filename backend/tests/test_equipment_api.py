"""Endpoint tests for equipment records, history and the approval flow."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select

from inventario.models import AuditLog, EquipmentHistory


def _equipment(**overrides) -> dict:
    payload = {
        "equipamento": "Notebook Dell",
        "serial": "SN-100",
        "patrimonio": "PAT-100",
        "usuarioAtual": "Alice",
        "status": "Em Uso",
        "setor": "TI",
    }
    payload.update(overrides)
    return payload


async def _create(client, username="admin", **overrides):
    return await client.post(
        "/api/equipment", json={"equipment": _equipment(**overrides), "username": username}
    )


@pytest.mark.anyio
async def test_admin_create_is_listed_immediately(client):
    response = await _create(client)
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["approval_status"] == "approved"
    assert body["usuarioAtual"] == "Alice"
    assert body["condicaoTermo"] == "N/A"

    listing = await client.get("/api/equipment")
    assert [item["serial"] for item in listing.json()] == ["SN-100"]


@pytest.mark.anyio
async def test_list_is_newest_first(client):
    await _create(client, serial="SN-1", patrimonio="P-1")
    await _create(client, serial="SN-2", patrimonio="P-2")

    listing = await client.get("/api/equipment")
    assert [item["serial"] for item in listing.json()] == ["SN-2", "SN-1"]


@pytest.mark.anyio
async def test_regular_user_create_waits_for_approval(client, regular_user):
    response = await _create(client, username=regular_user["username"])
    assert response.status_code == 200, response.text
    created = response.json()
    assert created["approval_status"] == "pending_approval"
    assert created["created_by_id"] == regular_user["id"]

    assert (await client.get("/api/equipment")).json() == []
    pending = (await client.get("/api/approvals/pending")).json()
    assert pending == [{"id": created["id"], "name": "Notebook Dell", "itemType": "equipment"}]

    approved = await client.post(
        "/api/approvals/approve",
        json={"type": "equipment", "id": created["id"], "username": "admin"},
    )
    assert approved.status_code == 200
    assert [item["id"] for item in (await client.get("/api/equipment")).json()] == [created["id"]]
    assert (await client.get("/api/approvals/pending")).json() == []


@pytest.mark.anyio
async def test_update_records_full_snapshot_history(client):
    created = (await _create(client)).json()

    response = await client.put(
        f"/api/equipment/{created['id']}",
        json={
            "equipment": {"id": created["id"], "usuarioAtual": "Bob", "status": "Estoque"},
            "username": "admin",
        },
    )
    assert response.status_code == 200, response.text
    assert response.json()["usuarioAtual"] == "Bob"
    assert response.json()["equipamento"] == "Notebook Dell"

    history = (await client.get(f"/api/equipment/{created['id']}/history")).json()
    assert [entry["changeType"] for entry in history] == ["UPDATE", "CREATE"]
    assert history[0]["changedBy"] == "admin"
    assert '"usuarioAtual": "Alice"' in history[0]["from_value"]
    assert '"usuarioAtual": "Bob"' in history[0]["to_value"]
    assert history[1]["from_value"] is None


@pytest.mark.anyio
async def test_update_missing_equipment_is_404(client):
    response = await client.put(
        "/api/equipment/999", json={"equipment": {"setor": "RH"}, "username": "admin"}
    )
    assert response.status_code == 404
    assert response.json() == {"message": "Equipamento não encontrado"}


@pytest.mark.anyio
async def test_delete_cascades_history(client, session):
    created = (await _create(client)).json()

    response = await client.request(
        "DELETE", f"/api/equipment/{created['id']}", json={"username": "admin"}
    )
    assert response.status_code == 204

    remaining = await session.scalar(
        select(func.count())
        .select_from(EquipmentHistory)
        .where(EquipmentHistory.equipment_id == created["id"])
    )
    assert remaining == 0
    audit = (
        await session.scalars(select(AuditLog.action_type).where(AuditLog.target_type == "EQUIPMENT"))
    ).all()
    assert sorted(audit) == ["CREATE", "DELETE"]

    again = await client.request("DELETE", f"/api/equipment/{created['id']}", json={})
    assert again.status_code == 404


@pytest.mark.anyio
async def test_unknown_field_is_rejected(client):
    response = await _create(client, senhaDoBanco="x")
    assert response.status_code == 400
    assert "message" in response.json()


@pytest.mark.anyio
async def test_invalid_status_is_rejected(client):
    response = await _create(client, status="Perdido")
    assert response.status_code == 400


@pytest.mark.anyio
async def test_duplicate_serial_surfaces_engine_message(client):
    assert (await _create(client)).status_code == 200

    response = await _create(client, patrimonio="PAT-200")
    assert response.status_code == 500
    assert "UNIQUE constraint failed" in response.json()["message"]


@pytest.mark.anyio
async def test_periodic_update_endpoint_merges_by_serial(client):
    await _create(client)

    response = await client.post(
        "/api/equipment/periodic-update",
        json={
            "equipmentList": [
                {"serial": "SN-100", "usuarioAtual": "Carla", "brand": "Dell"},
                {"serial": "SN-200", "equipamento": "Desktop HP"},
            ],
            "username": "admin",
        },
    )
    assert response.status_code == 200, response.text
    assert response.json()["message"].endswith("1 novos, 1 atualizados, 0 sem alterações.")

    listing = {item["serial"]: item for item in (await client.get("/api/equipment")).json()}
    assert listing["SN-100"]["usuarioAtual"] == "Carla"
    assert listing["SN-200"]["approval_status"] == "approved"


@pytest.mark.anyio
async def test_periodic_update_csv_upload(client):
    csv_text = "Nome do Dispositivo;Número de Série;Cidade\nNB-01;SN-1;Recife\n;;\n"
    response = await client.post(
        "/api/equipment/periodic-update/csv",
        data={"username": "admin"},
        files={"file": ("absolute.csv", csv_text.encode("latin-1"), "text/csv")},
    )
    assert response.status_code == 200, response.text

    listing = (await client.get("/api/equipment")).json()
    assert [(item["equipamento"], item["cidade"]) for item in listing] == [("NB-01", "Recife")]


@pytest.mark.anyio
async def test_periodic_update_csv_without_rows_is_400(client):
    response = await client.post(
        "/api/equipment/periodic-update/csv",
        data={"username": "admin"},
        files={"file": ("empty.csv", b"Serial;Cidade", "text/csv")},
    )
    assert response.status_code == 400
    assert response.json()["message"] == "O arquivo CSV deve conter um cabeçalho e dados."


@pytest.mark.anyio
async def test_consolidation_import_replaces_inventory(client):
    await _create(client, serial="OLD", patrimonio="OLD")

    response = await client.post(
        "/api/equipment/import",
        json={
            "equipmentList": [
                {"equipamento": "A", "serial": "S-A"},
                {"equipamento": "B", "serial": "S-B"},
            ],
            "username": "admin",
        },
    )
    assert response.status_code == 200, response.text

    listing = (await client.get("/api/equipment")).json()
    assert [(item["id"], item["serial"]) for item in listing] == [(2, "S-B"), (1, "S-A")]

    settings = (await client.get("/api/settings")).json()
    assert settings["hasInitialConsolidationRun"] is True

import pytest
from sqlalchemy import select

from inventario.models import AuditLog


async def _pending_license(client, username):
    response = await client.post(
        "/api/licenses",
        json={
            "license": {"produto": "AutoCAD", "chaveSerial": "AC-1", "usuario": "davi"},
            "username": username,
        },
    )
    assert response.status_code == 200, response.text
    return response.json()


@pytest.mark.anyio
async def test_reject_requires_reason(client, regular_user):
    item = await _pending_license(client, regular_user["username"])

    response = await client.post(
        "/api/approvals/reject",
        json={"type": "license", "id": item["id"], "username": "admin", "reason": "   "},
    )
    assert response.status_code == 400
    assert response.json() == {"message": "O motivo da rejeição é obrigatório."}


@pytest.mark.anyio
async def test_reject_stores_reason_and_leaves_item_hidden(client, regular_user, session):
    item = await _pending_license(client, regular_user["username"])

    response = await client.post(
        "/api/approvals/reject",
        json={"type": "license", "id": item["id"], "username": "admin", "reason": "Sem orçamento"},
    )
    assert response.status_code == 200

    assert (await client.get("/api/licenses")).json() == []
    assert (await client.get("/api/approvals/pending")).json() == []
    details = await session.scalar(select(AuditLog.details).where(AuditLog.action_type == "REJECT"))
    assert details == "Rejected license item. Reason: Sem orçamento"


@pytest.mark.anyio
async def test_only_pending_items_can_transition(client, regular_user):
    item = await _pending_license(client, regular_user["username"])
    body = {"type": "license", "id": item["id"], "username": "admin"}

    assert (await client.post("/api/approvals/approve", json=body)).status_code == 200

    again = await client.post("/api/approvals/approve", json=body)
    assert again.status_code == 409
    rejected = await client.post("/api/approvals/reject", json={**body, "reason": "tarde demais"})
    assert rejected.status_code == 409


@pytest.mark.anyio
async def test_unknown_item_is_404(client):
    response = await client.post(
        "/api/approvals/approve", json={"type": "equipment", "id": 4242, "username": "admin"}
    )
    assert response.status_code == 404


@pytest.mark.anyio
async def test_unknown_item_type_is_400(client):
    response = await client.post(
        "/api/approvals/approve", json={"type": "printer", "id": 1, "username": "admin"}
    )
    assert response.status_code == 400

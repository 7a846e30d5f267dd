import os
import sys
import tempfile
from pathlib import Path

import pytest

# Settings are read at import time: point them at a throw-away SQLite file first
_TMP_DIR = Path(tempfile.mkdtemp(prefix="inventario-tests-"))
os.environ.setdefault("DB_URL", f"sqlite+aiosqlite:///{_TMP_DIR / 'inventario.db'}")
os.environ.setdefault("BACKUP_DIR", str(_TMP_DIR / "backups"))
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ENV", "test")

# Add the backend directory so `inventario` package imports resolve during tests
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.append(str(BACKEND_DIR))


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def db_engine(anyio_backend):
    """Fresh, fully migrated schema for every test."""

    from inventario.core.db import engine
    from inventario.core.migrations import run_migrations
    from inventario.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await run_migrations(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(db_engine):
    from inventario.core.db import SessionLocal

    async with SessionLocal() as db_session:
        yield db_session


@pytest.fixture
async def client(db_engine):
    from httpx import ASGITransport, AsyncClient

    from inventario.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as http_client:
        yield http_client
    app.dependency_overrides.clear()


@pytest.fixture
async def regular_user(client):
    """A non-admin account; its writes wait for approval."""

    response = await client.post(
        "/api/users",
        json={
            "user": {
                "username": "joana",
                "realName": "Joana Lima",
                "email": "joana@example.com",
                "role": "User",
            },
            "username": "admin",
        },
    )
    assert response.status_code == 200, response.text
    return response.json()

import os

os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SEED_DATABASE", "false")
os.environ.setdefault("SESSION_BACKEND", "database")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker  # noqa: E402

from eventfinder.auth.sessions import memory_session_store  # noqa: E402
from eventfinder.database import build_engine, get_db  # noqa: E402
from eventfinder.main import app  # noqa: E402
from eventfinder.models import Base  # noqa: E402
from eventfinder.storage import MemoryStorage, SqlStorage  # noqa: E402
from tests.factories import signup_payload  # noqa: E402


@pytest.fixture
async def db_engine(tmp_path):
    test_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture(params=["sql", "memory"])
def storage(request, db):
    if request.param == "sql":
        return SqlStorage(db)
    return MemoryStorage()


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
    memory_session_store._sessions.clear()


@pytest.fixture
async def host(client):
    response = await client.post("/api/auth/signup", json=signup_payload("johndoe"))
    assert response.status_code == 201
    return response.json()


@pytest.fixture
async def logged_in(client, host):
    response = await client.post("/api/auth/login", json={"username": "johndoe", "password": "password123"})
    assert response.status_code == 200
    return host

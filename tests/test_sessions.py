from eventfinder.auth import security
from eventfinder.auth.sessions import DatabaseSessionStore, MemorySessionStore
from eventfinder.storage import SqlStorage
from tests.factories import user_data


async def test_memory_store_set_get_destroy():
    store = MemorySessionStore(60)

    await store.set("abc", {"userId": 1})
    assert await store.get("abc") == {"userId": 1}

    await store.destroy("abc")
    assert await store.get("abc") is None
    await store.destroy("abc")


async def test_memory_store_expires_sessions():
    store = MemorySessionStore(0)

    await store.set("abc", {"userId": 1})

    assert await store.get("abc") is None


async def test_database_store_is_shared_between_connections(db, session_factory):
    user = await SqlStorage(db).create_user(user_data("johndoe"))
    await DatabaseSessionStore(db, 60).set("abc", {"userId": user.id, "user": {"username": "johndoe"}})

    async with session_factory() as other_db:
        data = await DatabaseSessionStore(other_db, 60).get("abc")

    assert data == {"userId": user.id, "user": {"username": "johndoe"}}


async def test_database_store_expires_and_destroys(db):
    user = await SqlStorage(db).create_user(user_data("johndoe"))
    expired = DatabaseSessionStore(db, 0)
    live = DatabaseSessionStore(db, 60)

    await expired.set("old", {"userId": user.id})
    assert await expired.get("old") is None

    await live.set("new", {"userId": user.id})
    await live.destroy("new")
    assert await live.get("new") is None


def test_session_cookie_round_trip():
    token = security.new_session_token()

    cookie = security.create_session_cookie(token)

    assert security.read_session_cookie(cookie) == token
    assert security.read_session_cookie(cookie + "x") is None
    assert security.read_session_cookie("not-a-jwt") is None

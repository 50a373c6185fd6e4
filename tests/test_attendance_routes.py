from sqlalchemy import delete, func, select

from eventfinder.auth import security
from eventfinder.auth.sessions import memory_session_store
from eventfinder.config import settings
from eventfinder.main import app
from eventfinder.models import Attendee, User
from eventfinder.storage import MemoryStorage, get_storage
from tests.factories import event_payload, signup_payload


async def create_event(client, host_id):
    response = await client.post("/api/events", json=event_payload(host_id))
    assert response.status_code == 201, response.text
    return response.json()


async def count_attendees(session_factory):
    async with session_factory() as fresh_db:
        return (await fresh_db.execute(select(func.count(Attendee.id)))).scalar_one()


async def test_attend_requires_login(client, host, session_factory):
    event = await create_event(client, host["id"])

    attend = await client.post(f"/api/events/{event['id']}/attend")
    cancel = await client.delete(f"/api/events/{event['id']}/attend")

    assert attend.status_code == 401
    assert attend.json() == {"message": "You must be logged in to do this."}
    assert cancel.status_code == 401
    assert await count_attendees(session_factory) == 0


async def test_attend_returns_updated_event(client, logged_in):
    event = await create_event(client, logged_in["id"])

    response = await client.post(f"/api/events/{event['id']}/attend")

    assert response.status_code == 201
    body = response.json()
    assert body["id"] == event["id"]
    assert body["attendees"] == 1
    assert body["attendeesList"] == [{"id": logged_in["id"], "name": logged_in["name"], "avatar": ""}]


async def test_attend_twice_is_rejected(client, logged_in, session_factory):
    event = await create_event(client, logged_in["id"])
    await client.post(f"/api/events/{event['id']}/attend")

    response = await client.post(f"/api/events/{event['id']}/attend")

    assert response.status_code == 400
    assert response.json() == {"message": "You are already registered for this event"}
    assert await count_attendees(session_factory) == 1


async def test_attend_missing_event(client, logged_in, session_factory):
    response = await client.post("/api/events/999/attend")

    assert response.status_code == 404
    assert await count_attendees(session_factory) == 0


async def test_cancel_without_registration(client, logged_in):
    event = await create_event(client, logged_in["id"])

    response = await client.delete(f"/api/events/{event['id']}/attend")

    assert response.status_code == 400
    assert response.json() == {"message": "You are not registered for this event"}


async def test_cancel_registration(client, logged_in):
    event = await create_event(client, logged_in["id"])
    await client.post(f"/api/events/{event['id']}/attend")

    response = await client.delete(f"/api/events/{event['id']}/attend")

    assert response.status_code == 200
    assert response.json()["attendees"] == 0
    assert response.json()["attendeesList"] == []


async def test_event_attendees_lists_raw_rows(client, logged_in):
    event = await create_event(client, logged_in["id"])
    await client.post(f"/api/events/{event['id']}/attend")

    response = await client.get(f"/api/events/{event['id']}/attendees")

    assert response.status_code == 200
    [row] = response.json()
    assert row["userId"] == logged_in["id"]
    assert row["eventId"] == event["id"]
    assert "createdAt" in row


async def test_attendance_is_per_user(client, logged_in):
    event = await create_event(client, logged_in["id"])
    await client.post(f"/api/events/{event['id']}/attend")

    await client.post("/api/auth/signup", json=signup_payload("janedoe"))
    await client.post("/api/auth/login", json={"username": "janedoe", "password": "password123"})
    response = await client.post(f"/api/events/{event['id']}/attend")

    assert response.status_code == 201
    assert [a["name"] for a in response.json()["attendeesList"]] == ["Johndoe", "Janedoe"]


async def test_attend_with_session_of_deleted_user(client, host, session_factory, monkeypatch):
    monkeypatch.setattr(settings, "SESSION_BACKEND", "memory")
    event = await create_event(client, host["id"])
    guest = (await client.post("/api/auth/signup", json=signup_payload("janedoe"))).json()
    await client.post("/api/auth/login", json={"username": "janedoe", "password": "password123"})
    token = security.read_session_cookie(client.cookies[settings.SESSION_COOKIE_NAME])

    async with session_factory() as fresh_db:
        await fresh_db.execute(delete(User).where(User.id == guest["id"]))
        await fresh_db.commit()

    response = await client.post(f"/api/events/{event['id']}/attend")

    assert response.status_code == 401
    assert response.json() == {"message": "You must be logged in to do this."}
    assert await memory_session_store.get(token) is None
    assert await count_attendees(session_factory) == 0


async def test_attend_event_with_unresolvable_host(client, monkeypatch):
    monkeypatch.setattr(settings, "SESSION_BACKEND", "memory")
    storage = MemoryStorage()
    app.dependency_overrides[get_storage] = lambda: storage
    owner = (await client.post("/api/auth/signup", json=signup_payload("johndoe"))).json()
    await client.post("/api/auth/signup", json=signup_payload("janedoe"))
    event = await create_event(client, owner["id"])
    await client.post("/api/auth/login", json={"username": "janedoe", "password": "password123"})
    del storage._users[owner["id"]]

    response = await client.post(f"/api/events/{event['id']}/attend")

    assert response.status_code == 404
    assert response.json() == {"message": "Event not found"}

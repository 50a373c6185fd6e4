from datetime import datetime

import pytest

from eventfinder.storage import DuplicateRecordError, MissingReferenceError
from tests.factories import BRYANT_PARK, CENTRAL_PARK, TEN_MILES_NORTH, event_data, user_data


@pytest.fixture
async def host(storage):
    return await storage.create_user(user_data("johndoe", avatar="https://example.com/john.png"))


async def test_create_and_get_user(storage, host):
    assert host.id is not None
    assert host.created_at is not None
    assert (await storage.get_user(host.id)).username == "johndoe"
    assert (await storage.get_user_by_username("johndoe")).id == host.id
    assert await storage.get_user(9999) is None
    assert await storage.get_user_by_username("nobody") is None
    assert await storage.count_users() == 1


@pytest.mark.parametrize("field", ["username", "email"])
async def test_create_user_rejects_duplicates(storage, host, field):
    data = user_data("janedoe")
    data[field] = getattr(host, field)
    with pytest.raises(DuplicateRecordError):
        await storage.create_user(data)


async def test_event_round_trip(storage, host):
    data = event_data(host.id)
    created = await storage.create_event(data)

    event = await storage.get_event(created.id)

    for key, value in data.items():
        assert getattr(event, key) == value
    assert event.attendees == 0
    assert event.attendees_list == []
    assert event.host.id == host.id
    assert event.host.name == host.name
    assert event.host.avatar == "https://example.com/john.png"
    assert event.distance_in_miles is None


async def test_get_missing_event(storage):
    assert await storage.get_event(12345) is None


async def test_create_event_requires_existing_host(storage):
    with pytest.raises(MissingReferenceError):
        await storage.create_event(event_data(host_id=42))


async def test_events_are_ordered_by_date(storage, host):
    late = await storage.create_event(event_data(host.id, title="Late", date=datetime(2031, 1, 1)))
    early = await storage.create_event(event_data(host.id, title="Early", date=datetime(2030, 1, 1)))

    events = await storage.get_all_events()

    assert [e.id for e in events] == [early.id, late.id]


async def test_category_filter_and_all_wildcard(storage, host):
    await storage.create_event(event_data(host.id, category_id="Music"))
    await storage.create_event(event_data(host.id, category_id="Food", title="Food Fair"))

    food = await storage.get_events_by_category("Food")
    everything = await storage.get_events_by_category("All")

    assert [e.title for e in food] == ["Food Fair"]
    assert everything == await storage.get_all_events()
    assert len(everything) == 2
    assert await storage.get_events_by_category("Sports") == []


async def test_search_matches_any_field_case_insensitively(storage, host):
    await storage.create_event(event_data(host.id, title="Jazz Night", description="Smooth tunes", location="Blue Note"))
    await storage.create_event(event_data(host.id, title="Book Club", description="We read JAZZ history", location="Library"))
    await storage.create_event(event_data(host.id, title="Yoga", description="Stretching", location="jazz hall"))
    await storage.create_event(event_data(host.id, title="Chess", description="Board games", location="Cafe"))

    results = await storage.search_events("jazz")

    assert {e.title for e in results} == {"Jazz Night", "Book Club", "Yoga"}


async def test_search_folds_case_beyond_ascii(storage, host):
    await storage.create_event(event_data(host.id, title="Café Évening", description="Crêpes", location="Montréal"))
    await storage.create_event(event_data(host.id, title="Cafe Morning", description="Toast", location="Diner"))

    assert [e.title for e in await storage.search_events("CAFÉ")] == ["Café Évening"]
    assert [e.title for e in await storage.search_events("crÊpes")] == ["Café Évening"]


async def test_search_treats_wildcards_literally(storage, host):
    await storage.create_event(event_data(host.id, title="100% Vinyl"))
    await storage.create_event(event_data(host.id, title="1000 Records"))

    results = await storage.search_events("100%")

    assert [e.title for e in results] == ["100% Vinyl"]


async def test_near_location_includes_filters_and_sorts(storage, host):
    central = await storage.create_event(event_data(host.id, title="Central"))
    bryant = await storage.create_event(event_data(
        host.id, title="Bryant", latitude=BRYANT_PARK[0], longitude=BRYANT_PARK[1], date=datetime(2030, 1, 1),
    ))

    nearby = await storage.get_events_near_location(40.7850, -73.9682, 1)
    assert [e.id for e in nearby] == [central.id]
    assert nearby[0].distance_in_miles == 0.0

    both = await storage.get_events_near_location(*BRYANT_PARK, 5)
    assert [e.id for e in both] == [bryant.id, central.id]
    assert both[1].distance_in_miles == 2.3

    assert await storage.get_events_near_location(*TEN_MILES_NORTH, 0.001) == []


async def test_update_event_changes_only_given_fields(storage, host):
    created = await storage.create_event(event_data(host.id))

    updated = await storage.update_event(created.id, {"title": "Renamed", "price": None, "is_free": True})

    assert updated.title == "Renamed"
    assert updated.price is None
    assert updated.is_free is True
    assert updated.location == created.location
    assert updated.date == created.date


async def test_update_event_missing_and_bad_host(storage, host):
    created = await storage.create_event(event_data(host.id))

    assert await storage.update_event(999, {"title": "x"}) is None
    with pytest.raises(MissingReferenceError):
        await storage.update_event(created.id, {"host_id": 999})


async def test_attendance_lifecycle(storage, host):
    guest = await storage.create_user(user_data("janedoe"))
    event = await storage.create_event(event_data(host.id))

    assert await storage.is_user_attending(guest.id, event.id) is False
    first = await storage.create_attendee(host.id, event.id)
    second = await storage.create_attendee(guest.id, event.id)
    assert await storage.is_user_attending(guest.id, event.id) is True

    rows = await storage.get_event_attendees(event.id)
    assert [(r.id, r.user_id, r.event_id) for r in rows] == [
        (first.id, host.id, event.id),
        (second.id, guest.id, event.id),
    ]

    enriched = await storage.get_event(event.id)
    assert enriched.attendees == 2
    assert [a.id for a in enriched.attendees_list] == [host.id, guest.id]
    assert enriched.attendees_list[1].avatar == ""

    assert await storage.delete_attendee(guest.id, event.id) is True
    assert await storage.delete_attendee(guest.id, event.id) is False
    assert (await storage.get_event(event.id)).attendees == 1


async def test_duplicate_registration_is_rejected(storage, host):
    event = await storage.create_event(event_data(host.id))
    await storage.create_attendee(host.id, event.id)

    with pytest.raises(DuplicateRecordError):
        await storage.create_attendee(host.id, event.id)

    assert len(await storage.get_event_attendees(event.id)) == 1


async def test_registration_requires_existing_event_and_user(storage, host):
    event = await storage.create_event(event_data(host.id))

    with pytest.raises(MissingReferenceError):
        await storage.create_attendee(host.id, 999)
    with pytest.raises(MissingReferenceError):
        await storage.create_attendee(999, event.id)


async def test_delete_event_removes_attendees(storage, host):
    event = await storage.create_event(event_data(host.id))
    other = await storage.create_event(event_data(host.id, title="Other"))
    await storage.create_attendee(host.id, event.id)
    await storage.create_attendee(host.id, other.id)

    assert await storage.delete_event(event.id) is True

    assert await storage.get_event(event.id) is None
    assert await storage.get_event_attendees(event.id) == []
    assert len(await storage.get_event_attendees(other.id)) == 1
    assert await storage.delete_event(event.id) is False

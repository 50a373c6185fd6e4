from itertools import count
from typing import Any, Callable, Dict, List, Optional

from eventfinder.models import utcnow
from eventfinder.schemas.attendee import AttendeeResponseSchema
from eventfinder.schemas.event import EventResponseSchema, EventWithAttendeesResponseSchema
from eventfinder.schemas.user import UserInDBSchema
from eventfinder.storage.base import Storage, build_event_with_attendees, user_summary
from eventfinder.storage.errors import DuplicateRecordError, MissingReferenceError


class MemoryStorage(Storage):
    """In-process storage with the same contract as ``SqlStorage``.

    Holds everything in dicts keyed by id and mirrors the database
    constraints: unique username/email, unique attendance pair, existing
    host/user/event references.
    """

    def __init__(self):
        self._users: Dict[int, UserInDBSchema] = {}
        self._events: Dict[int, EventResponseSchema] = {}
        self._attendees: Dict[int, AttendeeResponseSchema] = {}
        self._user_ids = count(1)
        self._event_ids = count(1)
        self._attendee_ids = count(1)

    async def get_user(self, user_id: int) -> Optional[UserInDBSchema]:
        return self._users.get(user_id)

    async def get_user_by_username(self, username: str) -> Optional[UserInDBSchema]:
        return next((u for u in self._users.values() if u.username == username), None)

    async def create_user(self, data: Dict[str, Any]) -> UserInDBSchema:
        for existing in self._users.values():
            if existing.username == data["username"] or existing.email == data["email"]:
                raise DuplicateRecordError("Username or email already exists.")
        user = UserInDBSchema(id=next(self._user_ids), created_at=utcnow(), **data)
        self._users[user.id] = user
        return user

    async def count_users(self) -> int:
        return len(self._users)

    async def get_event(self, event_id: int) -> Optional[EventWithAttendeesResponseSchema]:
        event = self._events.get(event_id)
        if event is None:
            return None
        return self._enrich(event)

    async def get_all_events(self) -> List[EventWithAttendeesResponseSchema]:
        return self._list_events(lambda event: True)

    async def _get_events_in_category(self, category_id: str) -> List[EventWithAttendeesResponseSchema]:
        return self._list_events(lambda event: event.category_id == category_id)

    async def search_events(self, query: str) -> List[EventWithAttendeesResponseSchema]:
        needle = query.lower()
        return self._list_events(
            lambda event: needle in event.title.lower()
            or needle in event.description.lower()
            or needle in event.location.lower()
        )

    async def create_event(self, data: Dict[str, Any]) -> EventResponseSchema:
        self._require_user(data["host_id"])
        event = EventResponseSchema(id=next(self._event_ids), created_at=utcnow(), **data)
        self._events[event.id] = event
        return event

    async def update_event(self, event_id: int, data: Dict[str, Any]) -> Optional[EventResponseSchema]:
        event = self._events.get(event_id)
        if event is None:
            return None
        if "host_id" in data:
            self._require_user(data["host_id"])
        updated = event.model_copy(update=data)
        self._events[event_id] = updated
        return updated

    async def delete_event(self, event_id: int) -> bool:
        for attendee_id in [a.id for a in self._attendees.values() if a.event_id == event_id]:
            del self._attendees[attendee_id]
        return self._events.pop(event_id, None) is not None

    async def get_event_attendees(self, event_id: int) -> List[AttendeeResponseSchema]:
        return [a for a in self._attendees.values() if a.event_id == event_id]

    async def create_attendee(self, user_id: int, event_id: int) -> AttendeeResponseSchema:
        self._require_user(user_id)
        if event_id not in self._events:
            raise MissingReferenceError(f"Event {event_id} does not exist.")
        if await self.is_user_attending(user_id, event_id):
            raise DuplicateRecordError(f"User {user_id} is already attending event {event_id}.")
        attendee = AttendeeResponseSchema(
            id=next(self._attendee_ids), user_id=user_id, event_id=event_id, created_at=utcnow()
        )
        self._attendees[attendee.id] = attendee
        return attendee

    async def delete_attendee(self, user_id: int, event_id: int) -> bool:
        for attendee in self._attendees.values():
            if attendee.user_id == user_id and attendee.event_id == event_id:
                del self._attendees[attendee.id]
                return True
        return False

    async def is_user_attending(self, user_id: int, event_id: int) -> bool:
        return any(a.user_id == user_id and a.event_id == event_id for a in self._attendees.values())

    def _require_user(self, user_id: int) -> None:
        if user_id not in self._users:
            raise MissingReferenceError(f"User {user_id} does not exist.")

    def _list_events(self, predicate: Callable[[EventResponseSchema], bool]) -> List[EventWithAttendeesResponseSchema]:
        events = sorted((e for e in self._events.values() if predicate(e)), key=lambda e: (e.date, e.id))
        enriched = (self._enrich(event) for event in events)
        return [event for event in enriched if event is not None]

    def _enrich(self, event: EventResponseSchema) -> Optional[EventWithAttendeesResponseSchema]:
        host = self._users.get(event.host_id)
        if host is None:
            return None
        attendees_list = [
            user_summary(self._users[a.user_id])
            for a in self._attendees.values()
            if a.event_id == event.id and a.user_id in self._users
        ]
        return build_event_with_attendees(event, user_summary(host), attendees_list)

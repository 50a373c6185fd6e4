import abc
from typing import Any, Dict, Iterable, List, Optional

from eventfinder.schemas.attendee import AttendeeResponseSchema
from eventfinder.schemas.event import (
    ALL_CATEGORIES,
    EventResponseSchema,
    EventWithAttendeesResponseSchema,
)
from eventfinder.schemas.user import UserInDBSchema, UserSummarySchema
from eventfinder.storage.geo import distance_in_miles


def user_summary(user: Any) -> UserSummarySchema:
    return UserSummarySchema(id=user.id, name=user.name, avatar=user.avatar or "")


def build_event_with_attendees(
    event: EventResponseSchema,
    host: UserSummarySchema,
    attendees_list: Iterable[UserSummarySchema],
) -> EventWithAttendeesResponseSchema:
    attendees_list = list(attendees_list)
    return EventWithAttendeesResponseSchema(
        **event.model_dump(),
        attendees=len(attendees_list),
        attendees_list=attendees_list,
        host=host,
    )


class Storage(abc.ABC):
    """Persistence contract for users, events and attendance.

    Every method is a coroutine. Backend failures are raised as
    ``StorageError``; lookups of missing rows return ``None`` or ``False``.

    Enriched reads (``EventWithAttendeesResponseSchema``) are recomputed on each
    call: attendees whose user is gone are left out of the list, and an event
    whose host cannot be resolved is treated as missing. Event listings are
    ordered by start date, then id.
    """

    # Users

    @abc.abstractmethod
    async def get_user(self, user_id: int) -> Optional[UserInDBSchema]:
        ...

    @abc.abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[UserInDBSchema]:
        ...

    @abc.abstractmethod
    async def create_user(self, data: Dict[str, Any]) -> UserInDBSchema:
        """``data`` carries ``hashed_password``, never the plain password."""

    @abc.abstractmethod
    async def count_users(self) -> int:
        ...

    # Events

    @abc.abstractmethod
    async def get_event(self, event_id: int) -> Optional[EventWithAttendeesResponseSchema]:
        ...

    @abc.abstractmethod
    async def get_all_events(self) -> List[EventWithAttendeesResponseSchema]:
        ...

    async def get_events_by_category(self, category_id: str) -> List[EventWithAttendeesResponseSchema]:
        if category_id == ALL_CATEGORIES:
            return await self.get_all_events()
        return await self._get_events_in_category(category_id)

    @abc.abstractmethod
    async def _get_events_in_category(self, category_id: str) -> List[EventWithAttendeesResponseSchema]:
        ...

    async def get_events_near_location(
        self, lat: float, lng: float, max_distance: float
    ) -> List[EventWithAttendeesResponseSchema]:
        # Full scan, the event table is expected to stay small
        nearby = []
        for event in await self.get_all_events():
            event.distance_in_miles = distance_in_miles(lat, lng, event.latitude, event.longitude)
            if event.distance_in_miles <= max_distance:
                nearby.append(event)
        nearby.sort(key=lambda e: e.distance_in_miles)
        return nearby

    @abc.abstractmethod
    async def search_events(self, query: str) -> List[EventWithAttendeesResponseSchema]:
        """Case-insensitive substring match on title, description or location."""

    @abc.abstractmethod
    async def create_event(self, data: Dict[str, Any]) -> EventResponseSchema:
        ...

    @abc.abstractmethod
    async def update_event(self, event_id: int, data: Dict[str, Any]) -> Optional[EventResponseSchema]:
        ...

    @abc.abstractmethod
    async def delete_event(self, event_id: int) -> bool:
        """Remove the event's attendee rows, then the event itself."""

    # Attendees

    @abc.abstractmethod
    async def get_event_attendees(self, event_id: int) -> List[AttendeeResponseSchema]:
        ...

    @abc.abstractmethod
    async def create_attendee(self, user_id: int, event_id: int) -> AttendeeResponseSchema:
        ...

    @abc.abstractmethod
    async def delete_attendee(self, user_id: int, event_id: int) -> bool:
        ...

    @abc.abstractmethod
    async def is_user_attending(self, user_id: int, event_id: int) -> bool:
        ...

from collections import defaultdict
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Sequence
import logging

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from eventfinder.models.attendee import Attendee
from eventfinder.models.event import Event
from eventfinder.models.user import User
from eventfinder.schemas.attendee import AttendeeResponseSchema
from eventfinder.schemas.event import EventResponseSchema, EventWithAttendeesResponseSchema
from eventfinder.schemas.user import UserInDBSchema
from eventfinder.storage.base import Storage, build_event_with_attendees, user_summary
from eventfinder.storage.errors import DuplicateRecordError, MissingReferenceError, StorageError

logger = logging.getLogger(__name__)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SqlStorage(Storage):
    """Storage backed by the relational database through an ``AsyncSession``."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @asynccontextmanager
    async def _guard(self, action: str):
        try:
            yield
        except StorageError:
            raise
        except IntegrityError as e_integrity:
            await self.db.rollback()
            logger.warning(f"IntegrityError while {action}: {str(e_integrity)}")
            raise DuplicateRecordError(f"Integrity constraint violated while {action}.") from e_integrity
        except SQLAlchemyError as e_db:
            await self.db.rollback()
            logger.error(f"Database error while {action}: {str(e_db)}", exc_info=True)
            raise StorageError(f"Database error while {action}.") from e_db

    # Users

    async def get_user(self, user_id: int) -> Optional[UserInDBSchema]:
        async with self._guard(f"fetching user {user_id}"):
            user = await self.db.get(User, user_id)
        return UserInDBSchema.model_validate(user) if user else None

    async def get_user_by_username(self, username: str) -> Optional[UserInDBSchema]:
        async with self._guard(f"fetching user '{username}'"):
            result = await self.db.execute(select(User).where(User.username == username))
            user = result.scalars().first()
        return UserInDBSchema.model_validate(user) if user else None

    async def create_user(self, data: Dict[str, Any]) -> UserInDBSchema:
        db_user = User(**data)
        self.db.add(db_user)
        async with self._guard(f"creating user '{data.get('username')}'"):
            await self.db.commit()
            await self.db.refresh(db_user)
        return UserInDBSchema.model_validate(db_user)

    async def count_users(self) -> int:
        async with self._guard("counting users"):
            result = await self.db.execute(select(func.count(User.id)))
            return result.scalar_one()

    # Events

    async def get_event(self, event_id: int) -> Optional[EventWithAttendeesResponseSchema]:
        async with self._guard(f"fetching event {event_id}"):
            event = await self.db.get(Event, event_id)
            if event is None:
                return None
            enriched = await self._enrich([event])
        return enriched[0] if enriched else None

    async def get_all_events(self) -> List[EventWithAttendeesResponseSchema]:
        return await self._list_events("fetching all events")

    async def _get_events_in_category(self, category_id: str) -> List[EventWithAttendeesResponseSchema]:
        return await self._list_events(
            f"fetching events in category '{category_id}'",
            Event.category_id == category_id,
        )

    async def search_events(self, query: str) -> List[EventWithAttendeesResponseSchema]:
        pattern = f"%{_escape_like(query)}%"
        return await self._list_events(
            f"searching events for '{query}'",
            or_(
                Event.title.ilike(pattern, escape="\\"),
                Event.description.ilike(pattern, escape="\\"),
                Event.location.ilike(pattern, escape="\\"),
            ),
        )

    async def create_event(self, data: Dict[str, Any]) -> EventResponseSchema:
        async with self._guard(f"creating event '{data.get('title')}'"):
            await self._require_user(data["host_id"])
            db_event = Event(**data)
            self.db.add(db_event)
            await self.db.commit()
            await self.db.refresh(db_event)
        return EventResponseSchema.model_validate(db_event)

    async def update_event(self, event_id: int, data: Dict[str, Any]) -> Optional[EventResponseSchema]:
        async with self._guard(f"updating event {event_id}"):
            db_event = await self.db.get(Event, event_id)
            if db_event is None:
                return None
            if "host_id" in data:
                await self._require_user(data["host_id"])
            for key, value in data.items():
                setattr(db_event, key, value)
            await self.db.commit()
            await self.db.refresh(db_event)
        return EventResponseSchema.model_validate(db_event)

    async def delete_event(self, event_id: int) -> bool:
        async with self._guard(f"deleting event {event_id}"):
            await self.db.execute(delete(Attendee).where(Attendee.event_id == event_id))
            result = await self.db.execute(delete(Event).where(Event.id == event_id))
            await self.db.commit()
        return result.rowcount > 0

    # Attendees

    async def get_event_attendees(self, event_id: int) -> List[AttendeeResponseSchema]:
        async with self._guard(f"fetching attendees of event {event_id}"):
            result = await self.db.execute(
                select(Attendee).where(Attendee.event_id == event_id).order_by(Attendee.id)
            )
            return [AttendeeResponseSchema.model_validate(a) for a in result.scalars().all()]

    async def create_attendee(self, user_id: int, event_id: int) -> AttendeeResponseSchema:
        async with self._guard(f"registering user {user_id} for event {event_id}"):
            await self._require_user(user_id)
            if await self.db.get(Event, event_id) is None:
                raise MissingReferenceError(f"Event {event_id} does not exist.")
            db_attendee = Attendee(user_id=user_id, event_id=event_id)
            self.db.add(db_attendee)
            await self.db.commit()
            await self.db.refresh(db_attendee)
        return AttendeeResponseSchema.model_validate(db_attendee)

    async def delete_attendee(self, user_id: int, event_id: int) -> bool:
        async with self._guard(f"removing user {user_id} from event {event_id}"):
            result = await self.db.execute(
                delete(Attendee).where(Attendee.user_id == user_id, Attendee.event_id == event_id)
            )
            await self.db.commit()
        return result.rowcount > 0

    async def is_user_attending(self, user_id: int, event_id: int) -> bool:
        async with self._guard(f"checking attendance of user {user_id} at event {event_id}"):
            result = await self.db.execute(
                select(Attendee.id).where(Attendee.user_id == user_id, Attendee.event_id == event_id)
            )
            return result.first() is not None

    # Helpers

    async def _require_user(self, user_id: int) -> None:
        if await self.db.get(User, user_id) is None:
            raise MissingReferenceError(f"User {user_id} does not exist.")

    async def _list_events(self, action: str, *criteria) -> List[EventWithAttendeesResponseSchema]:
        async with self._guard(action):
            query = select(Event)
            if criteria:
                query = query.where(*criteria)
            query = query.order_by(Event.date, Event.id)
            result = await self.db.execute(query)
            return await self._enrich(result.scalars().all())

    async def _enrich(self, events: Sequence[Event]) -> List[EventWithAttendeesResponseSchema]:
        """Attach host and attendee summaries with two batched queries."""
        if not events:
            return []
        event_ids = [event.id for event in events]

        hosts_result = await self.db.execute(
            select(User).where(User.id.in_({event.host_id for event in events}))
        )
        hosts = {host.id: user_summary(host) for host in hosts_result.scalars().all()}

        # inner join drops attendee rows whose user no longer exists
        attendee_rows = await self.db.execute(
            select(Attendee.event_id, User)
            .join(User, User.id == Attendee.user_id)
            .where(Attendee.event_id.in_(event_ids))
            .order_by(Attendee.id)
        )
        attendees_by_event = defaultdict(list)
        for event_id, user in attendee_rows.all():
            attendees_by_event[event_id].append(user_summary(user))

        enriched = []
        for event in events:
            host = hosts.get(event.host_id)
            if host is None:
                logger.warning(f"Event ID {event.id} skipped: host user ID {event.host_id} not found.")
                continue
            enriched.append(build_event_with_attendees(
                EventResponseSchema.model_validate(event),
                host,
                attendees_by_event[event.id],
            ))
        return enriched

from datetime import datetime, timezone

from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    # columns are timezone-naive, values are always UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


from eventfinder.models.user import User  # noqa: E402,F401
from eventfinder.models.event import Event  # noqa: E402,F401
from eventfinder.models.attendee import Attendee  # noqa: E402,F401
from eventfinder.models.session import UserSession  # noqa: E402,F401

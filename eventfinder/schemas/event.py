from pydantic import Field, field_validator
from typing import List, Literal, Optional, get_args
from datetime import datetime, timezone

from eventfinder.schemas import CamelSchema
from eventfinder.schemas.user import UserSummarySchema

ALL_CATEGORIES = "All"

# "All" is only a query wildcard, it is never stored on an event
CategoryId = Literal["Music", "Food", "Arts", "Sports", "Education", "Business", "Health"]

EVENT_CATEGORIES = (ALL_CATEGORIES,) + get_args(CategoryId)


def _to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class EventBaseSchema(CamelSchema):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., max_length=5000)
    location: str = Field(..., min_length=1, max_length=255)
    address: str = Field(..., max_length=500)
    latitude: float = Field(..., ge=-90, le=90, allow_inf_nan=False)
    longitude: float = Field(..., ge=-180, le=180, allow_inf_nan=False)
    date: datetime
    end_date: Optional[datetime] = None
    category_id: CategoryId
    price: Optional[int] = Field(default=None, ge=0)
    is_free: bool = False
    image_url: Optional[str] = None
    host_id: int
    is_online: bool = False

    @field_validator("date", "end_date")
    @classmethod
    def normalise_timezone(cls, value):
        return _to_naive_utc(value)


class EventCreateSchema(EventBaseSchema):
    pass


class EventUpdateSchema(CamelSchema):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=5000)
    location: Optional[str] = Field(default=None, min_length=1, max_length=255)
    address: Optional[str] = Field(default=None, max_length=500)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90, allow_inf_nan=False)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180, allow_inf_nan=False)
    date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    category_id: Optional[CategoryId] = None
    price: Optional[int] = Field(default=None, ge=0)
    is_free: Optional[bool] = None
    image_url: Optional[str] = None
    host_id: Optional[int] = None
    is_online: Optional[bool] = None

    @field_validator("date", "end_date")
    @classmethod
    def normalise_timezone(cls, value):
        return _to_naive_utc(value)

    @field_validator("title", "description", "location", "address", "latitude", "longitude",
                     "date", "category_id", "is_free", "host_id", "is_online")
    @classmethod
    def reject_null_for_required(cls, value, info):
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value


class EventResponseSchema(EventBaseSchema):
    # stored rows are read back as-is, so the write-time category check does not apply
    category_id: str
    id: int
    created_at: datetime


class EventWithAttendeesResponseSchema(EventResponseSchema):
    attendees: int
    attendees_list: List[UserSummarySchema]
    host: UserSummarySchema
    distance_in_miles: Optional[float] = None

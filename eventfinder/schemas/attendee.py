from datetime import datetime

from eventfinder.schemas import CamelSchema


class AttendeeResponseSchema(CamelSchema):
    id: int
    user_id: int
    event_id: int
    created_at: datetime

from sqlalchemy import Column, Integer, String, Text, Float, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from eventfinder.models import Base, utcnow


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    location = Column(String, nullable=False)
    address = Column(String, nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=True)
    category_id = Column(String(50), nullable=False, index=True)
    price = Column(Integer, nullable=True)  # smallest currency unit
    is_free = Column(Boolean, nullable=False, default=False)
    image_url = Column(String, nullable=True)
    host_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    is_online = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    host = relationship("User", back_populates="events")
    attendees = relationship("Attendee", back_populates="event", cascade="all, delete-orphan", passive_deletes=True)

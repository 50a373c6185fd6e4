from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from eventfinder.models import Base, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False)
    avatar = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    events = relationship("Event", back_populates="host", cascade="all, delete-orphan", passive_deletes=True)
    attendances = relationship("Attendee", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
    sessions = relationship("UserSession", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)

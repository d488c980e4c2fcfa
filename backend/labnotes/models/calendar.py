from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from .base import Base, utcnow


class CalendarEvent(Base):
    __tablename__ = "calendar_events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    location = Column(String(255))
    start_date = Column(DateTime, nullable=False, index=True)
    end_date = Column(DateTime, nullable=False, index=True)
    all_day = Column(Boolean, default=False, nullable=False)
    recurrence = Column(String(20), default="none", nullable=False)  # none, daily, weekly, monthly, yearly
    color = Column(String(20), default="#4285F4", nullable=False)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="SET NULL"), index=True)
    experiment_id = Column(Integer, ForeignKey("experiments.id", ondelete="SET NULL"))
    creator_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    attendees = Column(JSON, default=list)  # list of user ids
    status = Column(String(20), default="confirmed", nullable=False)  # confirmed, tentative, cancelled
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    creator = relationship("User", back_populates="calendar_events")
    project = relationship("Project")

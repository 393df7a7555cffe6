# server/models/calendar.py

from sqlalchemy import Column, Integer, ForeignKey, JSON
from sqlalchemy.orm import relationship
from . import Base


class Calendar(Base):
    """
    One availability document per user. The payload is whatever the AI
    delegate produced: usually a mapping of weekday to time ranges, sometimes
    plain text.
    """
    __tablename__ = "calendars"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False, index=True)
    availability = Column(JSON, nullable=False)

    user = relationship("User", back_populates="calendar")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "availability": self.availability,
            "user": self.user.to_public() if self.user else None,
        }

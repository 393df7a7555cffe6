# server/core/calendars.py

import logging
from typing import Any
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.ai_delegate import AIDelegate
from core.errors import ConflictError, NotFoundError, UpstreamError, ValidationError
from models import Calendar, User


logger = logging.getLogger(__name__)


class CalendarStore:
    """
    One availability document per user. Uploads go through the AI delegate;
    whatever it returns is stored as-is.
    """

    def __init__(self, db: Session, delegate: AIDelegate | None = None):
        self.db = db
        self.delegate = delegate

    def upload(self, user_id: int, raw_text: str) -> Calendar:
        if not raw_text or not raw_text.strip():
            raise ValidationError("calendarInput is required")
        if self.db.get(User, user_id) is None:
            raise NotFoundError("User not found")
        if self._find_for_user(user_id):
            raise ConflictError("Calendar already exists for this user")

        # Nothing is written before the delegate answers.
        availability = self.delegate.convert_calendar_input(raw_text)
        if availability is None or availability == "":
            raise UpstreamError("AI service returned no availability")

        calendar = Calendar(user_id=user_id, availability=availability)
        self.db.add(calendar)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Calendar already exists for this user")
        self.db.refresh(calendar)
        logger.info("Created calendar %s for user %s", calendar.id, user_id)
        return calendar

    def get(self, calendar_id: int) -> Calendar:
        calendar = self.db.get(Calendar, calendar_id)
        if calendar is None:
            raise NotFoundError("Calendar not found")
        return calendar

    def get_for_user(self, user_id: int) -> Calendar:
        calendar = self._find_for_user(user_id)
        if calendar is None:
            raise NotFoundError("Calendar not found")
        return calendar

    def get_many(self, user_ids: list[int]) -> list[Calendar]:
        """
        Calendars for every id, in the order given. A scheduling comparison
        needs all of them, so any missing calendar fails the whole lookup.
        """
        if not user_ids:
            return []
        unique_ids = list(dict.fromkeys(user_ids))
        found = {
            c.user_id: c
            for c in self.db.query(Calendar).filter(Calendar.user_id.in_(unique_ids)).all()
        }
        missing = [uid for uid in unique_ids if uid not in found]
        if missing:
            raise NotFoundError(
                "Calendar not found for user(s): " + ", ".join(str(uid) for uid in missing)
            )
        return [found[uid] for uid in user_ids]

    def replace(self, calendar_id: int, availability: Any) -> Calendar:
        # Full overwrite; per-weekday merging is not supported.
        if availability is None:
            raise ValidationError("availability is required")
        calendar = self.get(calendar_id)
        calendar.availability = availability
        self.db.commit()
        self.db.refresh(calendar)
        return calendar

    def delete(self, calendar_id: int):
        calendar = self.get(calendar_id)
        self.db.delete(calendar)
        self.db.commit()
        logger.info("Deleted calendar %s", calendar_id)

    def _find_for_user(self, user_id: int) -> Calendar | None:
        return self.db.query(Calendar).filter(Calendar.user_id == user_id).first()

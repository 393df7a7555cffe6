# server/api/calendar.py

from typing import Any
from pydantic import BaseModel
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from api.auth import CurrentUser, ensure_self_or_admin, get_current_user
from core.ai_delegate import AIDelegate, get_ai_delegate
from core.calendars import CalendarStore
from core.errors import ValidationError
from database import get_db


router = APIRouter(prefix="/api/calendar", tags=["calendar"])


class CalendarUploadRequest(BaseModel):
    userId: int | None = None
    calendarInput: str | None = None


class CalendarReplaceRequest(BaseModel):
    availability: Any = None


def get_calendar_store(
    db: Session = Depends(get_db),
    delegate: AIDelegate = Depends(get_ai_delegate),
) -> CalendarStore:
    return CalendarStore(db, delegate)


def parse_user_ids(raw: str) -> list[int]:
    try:
        ids = [int(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise ValidationError("userIds must be a comma-separated list of integers")
    if not ids:
        raise ValidationError("userIds is required")
    return ids


@router.get("")
def get_my_calendar(
    current_user: CurrentUser = Depends(get_current_user),
    calendars: CalendarStore = Depends(get_calendar_store),
):
    return calendars.get_for_user(current_user.id).to_dict()


@router.get("/user/{user_id}")
def get_user_calendar(
    user_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    calendars: CalendarStore = Depends(get_calendar_store),
):
    return calendars.get_for_user(user_id).to_dict()


@router.get("/users")
def get_users_calendars(
    userIds: str = "",
    current_user: CurrentUser = Depends(get_current_user),
    calendars: CalendarStore = Depends(get_calendar_store),
):
    found = calendars.get_many(parse_user_ids(userIds))
    return {"calendars": [c.to_dict() for c in found]}


@router.post("", status_code=status.HTTP_201_CREATED)
def upload_calendar(
    body: CalendarUploadRequest,
    current_user: CurrentUser = Depends(get_current_user),
    calendars: CalendarStore = Depends(get_calendar_store),
):
    user_id = body.userId if body.userId is not None else current_user.id
    ensure_self_or_admin(current_user, user_id)
    return calendars.upload(user_id, body.calendarInput).to_dict()


@router.put("/{calendar_id}")
def replace_calendar(
    calendar_id: int,
    body: CalendarReplaceRequest,
    current_user: CurrentUser = Depends(get_current_user),
    calendars: CalendarStore = Depends(get_calendar_store),
):
    ensure_self_or_admin(current_user, calendars.get(calendar_id).user_id)
    return calendars.replace(calendar_id, body.availability).to_dict()


@router.delete("/{calendar_id}")
def delete_calendar(
    calendar_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    calendars: CalendarStore = Depends(get_calendar_store),
):
    ensure_self_or_admin(current_user, calendars.get(calendar_id).user_id)
    calendars.delete(calendar_id)
    return {"message": "Calendar deleted", "id": calendar_id}

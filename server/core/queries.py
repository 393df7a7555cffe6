# server/core/queries.py

import json
import logging
import math
from datetime import date, datetime, time, timedelta
from typing import Any
from sqlalchemy import func
from sqlalchemy.orm import Session

from core.ai_delegate import AIDelegate
from core.calendars import CalendarStore
from core.errors import NotFoundError, ValidationError
from models import Query, QueryType, QueryUser, User


logger = logging.getLogger(__name__)

TOP_USERS_LIMIT = 5
DAILY_WINDOW_DAYS = 7


def _as_text(result: Any) -> str:
    if isinstance(result, str):
        return result
    return json.dumps(result)


def _date_bounds(start_date: date | None, end_date: date | None) -> list:
    if start_date and end_date and start_date > end_date:
        raise ValidationError("startDate must not be after endDate")
    conditions = []
    if start_date:
        conditions.append(Query.created_at >= datetime.combine(start_date, time.min))
    if end_date:
        conditions.append(Query.created_at < datetime.combine(end_date + timedelta(days=1), time.min))
    return conditions


class QueryLedger:
    """
    Append-only record of availability questions. Creating a query asks the
    AI delegate first and only then writes the Query row together with one
    QueryUser row per target, in a single commit.
    """

    def __init__(self, db: Session, delegate: AIDelegate | None = None):
        self.db = db
        self.delegate = delegate

    # -------------------------------
    # Create
    # -------------------------------

    def create(self, requester_id: int, target_user_ids: Any, content: str | None, type_id: int | None):
        if not content or not str(content).strip():
            raise ValidationError("Query content is required")
        if type_id is None:
            raise ValidationError("typeId is required")
        if not isinstance(target_user_ids, list) or not target_user_ids:
            raise ValidationError("userId must be a non-empty list of user ids")

        targets = list(dict.fromkeys(target_user_ids))

        if self.db.get(QueryType, type_id) is None:
            raise ValidationError("Invalid typeId")

        requester = self.db.get(User, requester_id)
        if requester is None:
            raise NotFoundError("User not found")

        found = self.db.query(func.count(User.id)).filter(User.id.in_(targets)).scalar()
        if found != len(targets):
            raise NotFoundError("One or more target users not found")

        calendars = CalendarStore(self.db)
        try:
            own = calendars.get_for_user(requester_id)
        except NotFoundError:
            raise NotFoundError("You must upload your calendar before querying availability")
        others = calendars.get_many([uid for uid in targets if uid != requester_id])

        combined = [
            {"userId": c.user_id, "username": c.user.username, "availability": c.availability}
            for c in [own, *others]
        ]
        ai_result = self.delegate.answer_availability_query(content, combined)

        query = Query(
            user_id=requester_id,
            type_id=type_id,
            content=content,
            result=_as_text(ai_result),
        )
        try:
            self.db.add(query)
            self.db.flush()
            for uid in targets:
                self.db.add(QueryUser(query_id=query.id, user_id=uid))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(query)
        logger.info("Query %s created by user %s for %s", query.id, requester_id, targets)
        return query, ai_result

    # -------------------------------
    # Read side
    # -------------------------------

    def get(self, query_id: int) -> Query:
        query = self.db.get(Query, query_id)
        if query is None:
            raise NotFoundError("Query not found")
        return query

    def list_all(self, page: int = 1, limit: int = 10) -> dict:
        return self.history(page=page, limit=limit)

    def list_by_user(self, user_id: int, page: int = 1, limit: int = 10) -> dict:
        return self.history(user_id=user_id, page=page, limit=limit)

    def history(
        self,
        user_id: int | None = None,
        type_id: int | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> dict:
        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be positive")

        q = self.db.query(Query)
        if user_id is not None:
            q = q.filter(Query.user_id == user_id)
        if type_id is not None:
            q = q.filter(Query.type_id == type_id)
        conditions = _date_bounds(start_date, end_date)
        if conditions:
            q = q.filter(*conditions)

        total = q.count()
        items = (
            q.order_by(Query.created_at.desc(), Query.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return {
            "items": [item.to_dict() for item in items],
            "total": total,
            "page": page,
            "limit": limit,
            "totalPages": math.ceil(total / limit),
        }

    def analytics(self, start_date: date | None = None, end_date: date | None = None) -> dict:
        conditions = _date_bounds(start_date, end_date)

        total = self.db.query(func.count(Query.id)).filter(*conditions).scalar() or 0

        counts = dict(
            self.db.query(Query.type_id, func.count(Query.id))
            .filter(*conditions)
            .group_by(Query.type_id)
            .all()
        )
        by_type = [
            {"typeId": t.id, "name": t.name, "count": counts.get(t.id, 0)}
            for t in self.db.query(QueryType).order_by(QueryType.id.asc()).all()
        ]

        query_count = func.count(Query.id)
        top_users = [
            {"userId": uid, "username": username, "count": count}
            for uid, username, count in (
                self.db.query(User.id, User.username, query_count)
                .join(Query, Query.user_id == User.id)
                .filter(*conditions)
                .group_by(User.id, User.username)
                .order_by(query_count.desc(), User.id.asc())
                .limit(TOP_USERS_LIMIT)
                .all()
            )
        ]

        today = date.today()
        first_day = today - timedelta(days=DAILY_WINDOW_DAYS - 1)
        daily = {first_day + timedelta(days=i): 0 for i in range(DAILY_WINDOW_DAYS)}
        recent = (
            self.db.query(Query.created_at)
            .filter(Query.created_at >= datetime.combine(first_day, time.min))
            .all()
        )
        for (created_at,) in recent:
            day = created_at.date()
            if day in daily:
                daily[day] += 1

        return {
            "totalQueries": total,
            "byType": by_type,
            "topUsers": top_users,
            "daily": [{"date": day.isoformat(), "count": count} for day, count in daily.items()],
        }

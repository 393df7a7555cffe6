# server/api/queries.py

from datetime import date
from pydantic import BaseModel
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from api.auth import CurrentUser, ensure_self_or_admin, get_current_user
from core.ai_delegate import AIDelegate, get_ai_delegate
from core.queries import QueryLedger
from database import get_db


router = APIRouter(prefix="/api/queries", tags=["queries"])

MAX_PAGE_SIZE = 100


class QueryCreateRequest(BaseModel):
    userId: list[int] | None = None
    content: str | None = None
    typeId: int | None = None


def get_query_ledger(
    db: Session = Depends(get_db),
    delegate: AIDelegate = Depends(get_ai_delegate),
) -> QueryLedger:
    return QueryLedger(db, delegate)


@router.get("")
def list_queries(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE),
    current_user: CurrentUser = Depends(get_current_user),
    ledger: QueryLedger = Depends(get_query_ledger),
):
    # Admins see the whole ledger; everyone else sees their own queries.
    if current_user.is_admin:
        return ledger.list_all(page=page, limit=limit)
    return ledger.list_by_user(current_user.id, page=page, limit=limit)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_query(
    body: QueryCreateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    ledger: QueryLedger = Depends(get_query_ledger),
):
    query, ai_result = ledger.create(current_user.id, body.userId, body.content, body.typeId)
    return {"query": query.to_dict(), "aiResult": ai_result}


@router.get("/history")
def query_history(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE),
    user_id: int | None = Query(None, alias="userId"),
    type_id: int | None = Query(None, alias="typeId"),
    start_date: date | None = Query(None, alias="startDate"),
    end_date: date | None = Query(None, alias="endDate"),
    current_user: CurrentUser = Depends(get_current_user),
    ledger: QueryLedger = Depends(get_query_ledger),
):
    if user_id is None and not current_user.is_admin:
        user_id = current_user.id
    elif user_id is not None:
        ensure_self_or_admin(current_user, user_id)
    return ledger.history(
        user_id=user_id,
        type_id=type_id,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )


@router.get("/analytics")
def query_analytics(
    start_date: date | None = Query(None, alias="startDate"),
    end_date: date | None = Query(None, alias="endDate"),
    current_user: CurrentUser = Depends(get_current_user),
    ledger: QueryLedger = Depends(get_query_ledger),
):
    return ledger.analytics(start_date=start_date, end_date=end_date)


@router.get("/user/{user_id}")
def list_user_queries(
    user_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE),
    current_user: CurrentUser = Depends(get_current_user),
    ledger: QueryLedger = Depends(get_query_ledger),
):
    ensure_self_or_admin(current_user, user_id)
    return ledger.list_by_user(user_id, page=page, limit=limit)


@router.get("/{query_id}")
def get_query(
    query_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    ledger: QueryLedger = Depends(get_query_ledger),
):
    query = ledger.get(query_id)
    ensure_self_or_admin(current_user, query.user_id)
    return query.to_dict()

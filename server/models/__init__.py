# server/models/__init__.py

from sqlalchemy.orm import declarative_base


Base = declarative_base()


from .user import Role, User  # noqa: E402
from .calendar import Calendar  # noqa: E402
from .query import QueryType, Query, QueryUser  # noqa: E402
from .friendship import Friendship, FriendshipStatus  # noqa: E402


__all__ = [
    "Base",
    "Role",
    "User",
    "Calendar",
    "QueryType",
    "Query",
    "QueryUser",
    "Friendship",
    "FriendshipStatus",
]

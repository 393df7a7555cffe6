# server/models/query.py

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from . import Base


class QueryType(Base):
    __tablename__ = "query_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)


class Query(Base):
    """
    A natural-language availability question and the answer the AI delegate
    gave for it. Rows are written once, together with their QueryUser rows.
    """
    __tablename__ = "queries"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    type_id = Column(Integer, ForeignKey("query_types.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    result = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.now, nullable=False, index=True)

    type = relationship("QueryType", lazy="joined")
    targets = relationship("QueryUser", back_populates="query", order_by="QueryUser.id")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "typeId": self.type_id,
            "type": {"id": self.type.id, "name": self.type.name} if self.type else None,
            "content": self.content,
            "result": self.result,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "targetUserIds": [t.user_id for t in self.targets],
        }


class QueryUser(Base):
    """Target user of a query, distinct from the requester."""
    __tablename__ = "query_users"

    id = Column(Integer, primary_key=True, index=True)
    query_id = Column(Integer, ForeignKey("queries.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    query = relationship("Query", back_populates="targets")

# server/models/friendship.py

import enum
from datetime import datetime
from sqlalchemy import CheckConstraint, Column, Integer, DateTime, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from . import Base


class FriendshipStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"


class Friendship(Base):
    """
    Directed while PENDING (requester -> receiver), read symmetrically once
    ACCEPTED or DECLINED.
    """
    __tablename__ = "friendships"
    __table_args__ = (
        UniqueConstraint("requester_id", "receiver_id", name="uq_friendship_pair"),
        CheckConstraint("requester_id != receiver_id", name="ck_friendship_not_self"),
    )

    id = Column(Integer, primary_key=True, index=True)
    requester_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    receiver_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(Enum(FriendshipStatus), nullable=False, default=FriendshipStatus.PENDING)
    created_at = Column(DateTime, default=datetime.now, nullable=False)

    requester = relationship("User", foreign_keys=[requester_id])
    receiver = relationship("User", foreign_keys=[receiver_id])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "requesterId": self.requester_id,
            "receiverId": self.receiver_id,
            "status": self.status.value,
        }

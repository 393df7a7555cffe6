# server/core/friendships.py

import logging
from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.errors import ConflictError, NotFoundError, ValidationError
from models import Friendship, FriendshipStatus, User


logger = logging.getLogger(__name__)


def _between(a: int, b: int):
    return or_(
        and_(Friendship.requester_id == a, Friendship.receiver_id == b),
        and_(Friendship.requester_id == b, Friendship.receiver_id == a),
    )


class FriendshipGraph:
    """
    none -> PENDING -> ACCEPTED | DECLINED, per unordered pair of users.
    Only Remove (ACCEPTED rows) returns a pair to none; a DECLINED row keeps
    blocking new requests.
    """

    def __init__(self, db: Session):
        self.db = db

    def request(self, requester_id: int, receiver_id: int | None) -> Friendship:
        if receiver_id is None:
            raise ValidationError("receiverId is required")
        if requester_id == receiver_id:
            raise ValidationError("You cannot send a friend request to yourself")
        if self.db.get(User, requester_id) is None:
            raise NotFoundError("Requester not found")
        if self.db.get(User, receiver_id) is None:
            raise NotFoundError("User not found")

        existing = self.db.query(Friendship).filter(_between(requester_id, receiver_id)).first()
        if existing:
            raise ConflictError("Friendship or friend request already exists")

        friendship = Friendship(
            requester_id=requester_id,
            receiver_id=receiver_id,
            status=FriendshipStatus.PENDING,
        )
        self.db.add(friendship)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Friendship or friend request already exists")
        self.db.refresh(friendship)
        logger.info("Friend request %s -> %s", requester_id, receiver_id)
        return friendship

    def accept(self, receiver_id: int, requester_id: int | None) -> Friendship:
        return self._resolve(receiver_id, requester_id, FriendshipStatus.ACCEPTED)

    def decline(self, receiver_id: int, requester_id: int | None) -> Friendship:
        return self._resolve(receiver_id, requester_id, FriendshipStatus.DECLINED)

    def remove(self, user_id: int, friend_id: int | None):
        if friend_id is None:
            raise ValidationError("friendId is required")
        friendship = (
            self.db.query(Friendship)
            .filter(_between(user_id, friend_id), Friendship.status == FriendshipStatus.ACCEPTED)
            .first()
        )
        if friendship is None:
            raise NotFoundError("Friendship not found")
        self.db.delete(friendship)
        self.db.commit()
        logger.info("Friendship %s <-> %s removed", user_id, friend_id)

    def list_friends(self, user_id: int) -> list[User]:
        rows = (
            self.db.query(Friendship)
            .filter(
                or_(Friendship.requester_id == user_id, Friendship.receiver_id == user_id),
                Friendship.status == FriendshipStatus.ACCEPTED,
            )
            .order_by(Friendship.id.asc())
            .all()
        )
        return [f.receiver if f.requester_id == user_id else f.requester for f in rows]

    def list_incoming_requests(self, user_id: int) -> list[Friendship]:
        return (
            self.db.query(Friendship)
            .filter(
                Friendship.receiver_id == user_id,
                Friendship.status == FriendshipStatus.PENDING,
            )
            .order_by(Friendship.created_at.desc(), Friendship.id.desc())
            .all()
        )

    def _resolve(self, receiver_id: int, requester_id: int | None, status: FriendshipStatus) -> Friendship:
        if requester_id is None:
            raise ValidationError("requesterId is required")
        friendship = (
            self.db.query(Friendship)
            .filter(
                Friendship.requester_id == requester_id,
                Friendship.receiver_id == receiver_id,
                Friendship.status == FriendshipStatus.PENDING,
            )
            .first()
        )
        if friendship is None:
            raise NotFoundError("Friend request not found")
        friendship.status = status
        self.db.commit()
        self.db.refresh(friendship)
        logger.info("Friend request %s -> %s %s", requester_id, receiver_id, status.value.lower())
        return friendship

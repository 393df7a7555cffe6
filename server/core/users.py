# server/core/users.py

import logging
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.errors import AuthError, ConflictError, NotFoundError, ValidationError
from core.security import create_access_token, get_password_hash, verify_password
from models import Calendar, Friendship, Query, QueryUser, Role, User


logger = logging.getLogger(__name__)

MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6
DEFAULT_ROLE = "USER"
ADMIN_ROLE = "ADMIN"


def validate_username(username: str | None):
    if not username or len(username.strip()) < MIN_USERNAME_LENGTH:
        raise ValidationError(f"Username must be at least {MIN_USERNAME_LENGTH} characters long")


def validate_password(password: str | None):
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")


class UserStore:
    """
    Credential store: registration, login and user CRUD.
    Passwords are only ever kept as bcrypt hashes.
    """

    def __init__(self, db: Session):
        self.db = db

    # -------------------------------
    # Registration & login
    # -------------------------------

    def register(self, username: str, password: str) -> User:
        validate_username(username)
        validate_password(password)
        username = username.strip()

        if self._find_by_username(username):
            raise ConflictError("Username already exists")

        role = self.db.query(Role).filter(Role.name == DEFAULT_ROLE).first()
        if role is None:
            raise NotFoundError(f"Role {DEFAULT_ROLE} is not configured")

        user = User(username=username, hashed_password=get_password_hash(password), role_id=role.id)
        self.db.add(user)
        self._commit_unique()
        self.db.refresh(user)
        logger.info("Registered user %s (id=%s)", user.username, user.id)
        return user

    def authenticate(self, username: str, password: str) -> dict:
        user = self._find_by_username((username or "").strip())
        if not user or not verify_password(password or "", user.hashed_password):
            logger.info("Rejected login attempt")
            raise AuthError("Invalid username or password")

        role = user.role.name
        token = create_access_token(
            data={"sub": str(user.id), "username": user.username, "role": role}
        )
        return {
            "token": token,
            "user": {"id": user.id, "username": user.username, "role": role},
        }

    # -------------------------------
    # CRUD
    # -------------------------------

    def get(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def list_all(self) -> list[User]:
        return self.db.query(User).order_by(User.id.asc()).all()

    def update(
        self,
        user_id: int,
        username: str | None = None,
        password: str | None = None,
        role_id: int | None = None,
    ) -> User:
        if username is None and password is None and role_id is None:
            raise ValidationError("No fields to update")

        user = self.get(user_id)

        if username is not None:
            validate_username(username)
            username = username.strip()
            existing = self._find_by_username(username)
            if existing and existing.id != user.id:
                raise ConflictError("Username already exists")
            user.username = username

        if password is not None:
            validate_password(password)
            user.hashed_password = get_password_hash(password)

        if role_id is not None:
            user.role_id = self._get_role(role_id).id

        self._commit_unique()
        self.db.refresh(user)
        return user

    def change_role(self, user_id: int, role_id: int | None) -> User:
        if role_id is None:
            raise ValidationError("roleId is required")
        user = self.get(user_id)
        user.role_id = self._get_role(role_id).id
        self.db.commit()
        self.db.refresh(user)
        logger.info("Changed role of user %s to %s", user_id, user.role.name)
        return user

    # -------------------------------
    # Cascading purge
    # -------------------------------

    def delete(self, user_id: int):
        """
        Removes the user and everything that references them in one
        transaction. Either every step commits or none does.
        """
        self.get(user_id)
        try:
            self._delete_query_targets(user_id)
            self._delete_friendships(user_id)
            self._delete_owned_query_targets(user_id)
            self._delete_owned_queries(user_id)
            self._delete_calendar(user_id)
            self.db.query(User).filter(User.id == user_id).delete(synchronize_session=False)
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception("Purge of user %s rolled back", user_id)
            raise
        self.db.expire_all()
        logger.info("Deleted user %s and dependent rows", user_id)

    def _delete_query_targets(self, user_id: int):
        self.db.query(QueryUser).filter(QueryUser.user_id == user_id).delete(synchronize_session=False)

    def _delete_friendships(self, user_id: int):
        self.db.query(Friendship).filter(
            (Friendship.requester_id == user_id) | (Friendship.receiver_id == user_id)
        ).delete(synchronize_session=False)

    def _delete_owned_query_targets(self, user_id: int):
        owned = select(Query.id).where(Query.user_id == user_id)
        self.db.query(QueryUser).filter(QueryUser.query_id.in_(owned)).delete(synchronize_session=False)

    def _delete_owned_queries(self, user_id: int):
        self.db.query(Query).filter(Query.user_id == user_id).delete(synchronize_session=False)

    def _delete_calendar(self, user_id: int):
        self.db.query(Calendar).filter(Calendar.user_id == user_id).delete(synchronize_session=False)

    # -------------------------------
    # Helpers
    # -------------------------------

    def _find_by_username(self, username: str) -> User | None:
        return self.db.query(User).filter(User.username == username).first()

    def _get_role(self, role_id: int) -> Role:
        role = self.db.get(Role, role_id)
        if role is None:
            raise ValidationError("Invalid roleId")
        return role

    def _commit_unique(self):
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Username already exists")

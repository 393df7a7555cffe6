# server/api/auth.py

from pydantic import BaseModel
from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from core.errors import AuthError, ForbiddenError
from core.security import JWTError, decode_access_token
from core.users import ADMIN_ROLE, UserStore
from database import get_db
from models import User


router = APIRouter(prefix="/api/users", tags=["auth"])

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/users/login", auto_error=False)


class CurrentUser(BaseModel):
    id: int
    username: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


class Credentials(BaseModel):
    username: str | None = None
    password: str | None = None


# -------------------------------
# Authorization gate
# -------------------------------

def get_current_user(
    token: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> CurrentUser:
    """
    Resolves the bearer token to the caller's identity. A missing token is
    an AuthError (401); a token that fails verification or has expired is a
    ForbiddenError (403). A well-formed token whose user has since been
    deleted is an AuthError.

    Username and role are read from the database, so a role change applies
    to tokens issued before it.
    """
    if not token:
        raise AuthError("Authentication token required")
    try:
        payload = decode_access_token(token)
        user_id = int(payload["sub"])
    except (JWTError, KeyError, TypeError, ValueError):
        raise ForbiddenError("Invalid or expired token")
    if "username" not in payload or "role" not in payload:
        raise ForbiddenError("Invalid or expired token")

    user = db.get(User, user_id)
    if user is None:
        raise AuthError("User no longer exists")
    return CurrentUser(id=user.id, username=user.username, role=user.role.name)


def require_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not current_user.is_admin:
        raise ForbiddenError("Admin privileges required")
    return current_user


def ensure_self_or_admin(current_user: CurrentUser, owner_id: int):
    if current_user.id != owner_id and not current_user.is_admin:
        raise ForbiddenError("Access denied")


def get_user_store(db: Session = Depends(get_db)) -> UserStore:
    return UserStore(db)


# -------------------------------
# Registration & login
# -------------------------------

@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(body: Credentials, users: UserStore = Depends(get_user_store)):
    user = users.register(body.username, body.password)
    return user.to_public()


@router.post("/login")
def login(body: Credentials, users: UserStore = Depends(get_user_store)):
    return users.authenticate(body.username, body.password)

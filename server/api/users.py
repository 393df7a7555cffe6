# server/api/users.py

from pydantic import BaseModel
from fastapi import APIRouter, Depends

from api.auth import (
    CurrentUser,
    ensure_self_or_admin,
    get_current_user,
    get_user_store,
    require_admin,
)
from core.errors import ForbiddenError
from core.users import UserStore


router = APIRouter(prefix="/api/users", tags=["users"])


class UserUpdateRequest(BaseModel):
    username: str | None = None
    password: str | None = None
    roleId: int | None = None


class RoleChangeRequest(BaseModel):
    roleId: int | None = None


@router.get("")
def list_users(
    current_user: CurrentUser = Depends(get_current_user),
    users: UserStore = Depends(get_user_store),
):
    return [user.to_dict() for user in users.list_all()]


@router.get("/me")
def read_users_me(
    current_user: CurrentUser = Depends(get_current_user),
    users: UserStore = Depends(get_user_store),
):
    return users.get(current_user.id).to_dict()


@router.get("/{user_id}")
def get_user(
    user_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    users: UserStore = Depends(get_user_store),
):
    return users.get(user_id).to_dict()


@router.api_route("/{user_id}", methods=["PUT", "PATCH"])
def update_user(
    user_id: int,
    body: UserUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    users: UserStore = Depends(get_user_store),
):
    ensure_self_or_admin(current_user, user_id)
    if body.roleId is not None and not current_user.is_admin:
        raise ForbiddenError("Admin privileges required to change roles")
    user = users.update(user_id, username=body.username, password=body.password, role_id=body.roleId)
    return user.to_dict()


@router.patch("/{user_id}/role")
def change_role(
    user_id: int,
    body: RoleChangeRequest,
    admin: CurrentUser = Depends(require_admin),
    users: UserStore = Depends(get_user_store),
):
    return users.change_role(user_id, body.roleId).to_dict()


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    admin: CurrentUser = Depends(require_admin),
    users: UserStore = Depends(get_user_store),
):
    users.delete(user_id)
    return {"message": "User deleted", "id": user_id}

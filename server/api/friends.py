# server/api/friends.py

from pydantic import BaseModel
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from api.auth import CurrentUser, get_current_user
from core.friendships import FriendshipGraph
from database import get_db


router = APIRouter(prefix="/api/friends", tags=["friends"])


class FriendRequest(BaseModel):
    receiverId: int | None = None


class FriendResponse(BaseModel):
    requesterId: int | None = None


class FriendRemoval(BaseModel):
    friendId: int | None = None


def get_friendship_graph(db: Session = Depends(get_db)) -> FriendshipGraph:
    return FriendshipGraph(db)


@router.post("/request", status_code=status.HTTP_201_CREATED)
def send_request(
    body: FriendRequest,
    current_user: CurrentUser = Depends(get_current_user),
    graph: FriendshipGraph = Depends(get_friendship_graph),
):
    friendship = graph.request(current_user.id, body.receiverId)
    return {"message": "Friend request sent", "friendship": friendship.to_dict()}


@router.post("/accept")
def accept_request(
    body: FriendResponse,
    current_user: CurrentUser = Depends(get_current_user),
    graph: FriendshipGraph = Depends(get_friendship_graph),
):
    friendship = graph.accept(current_user.id, body.requesterId)
    return {"message": "Friend request accepted", "friendship": friendship.to_dict()}


@router.post("/decline")
def decline_request(
    body: FriendResponse,
    current_user: CurrentUser = Depends(get_current_user),
    graph: FriendshipGraph = Depends(get_friendship_graph),
):
    friendship = graph.decline(current_user.id, body.requesterId)
    return {"message": "Friend request declined", "friendship": friendship.to_dict()}


@router.delete("/remove")
def remove_friend(
    body: FriendRemoval,
    current_user: CurrentUser = Depends(get_current_user),
    graph: FriendshipGraph = Depends(get_friendship_graph),
):
    graph.remove(current_user.id, body.friendId)
    return {"message": "Friend removed"}


@router.get("/list")
def list_friends(
    current_user: CurrentUser = Depends(get_current_user),
    graph: FriendshipGraph = Depends(get_friendship_graph),
):
    return {"friends": [user.to_public() for user in graph.list_friends(current_user.id)]}


@router.get("/requests")
def list_requests(
    current_user: CurrentUser = Depends(get_current_user),
    graph: FriendshipGraph = Depends(get_friendship_graph),
):
    return {
        "requests": [
            {
                "id": f.id,
                "requester": f.requester.to_public(),
                "status": f.status.value,
                "createdAt": f.created_at.isoformat() if f.created_at else None,
            }
            for f in graph.list_incoming_requests(current_user.id)
        ]
    }

# app/services/api.py

import os
import requests

# Base URL of the FastAPI backend
API_URL = os.getenv("API_URL", "http://localhost:8000")


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


def _result(res):
    """
    Returns the decoded body on success, {"error": ...} otherwise.
    """
    try:
        data = res.json()
    except ValueError:
        data = {}
    if res.ok:
        return data
    message = data.get("error") if isinstance(data, dict) else None
    return {"error": message or f"Request failed with status {res.status_code}"}


def _call(method, path, token=None, **kwargs):
    headers = _auth(token) if token else {}
    try:
        res = requests.request(method, f"{API_URL}{path}", headers=headers, timeout=120, **kwargs)
    except requests.RequestException as e:
        return {"error": str(e)}
    return _result(res)


# -------------------------------
# Authentication
# -------------------------------

def register_user(username, password):
    return _call("POST", "/api/users/register", json={"username": username, "password": password})


def login_user(username, password):
    """
    Logs in a user and returns {"token", "user"} or {"error"}.
    """
    return _call("POST", "/api/users/login", json={"username": username, "password": password})


def get_me(token):
    return _call("GET", "/api/users/me", token)


# -------------------------
# Users (admin)
# -------------------------

def list_users(token):
    return _call("GET", "/api/users", token)


def change_role(token, user_id, role_id):
    return _call("PATCH", f"/api/users/{user_id}/role", token, json={"roleId": role_id})


def delete_user(token, user_id):
    return _call("DELETE", f"/api/users/{user_id}", token)


# -------------------------
# Calendar
# -------------------------

def get_my_calendar(token):
    return _call("GET", "/api/calendar", token)


def upload_calendar(token, calendar_input):
    return _call("POST", "/api/calendar", token, json={"calendarInput": calendar_input})


def replace_calendar(token, calendar_id, availability):
    return _call("PUT", f"/api/calendar/{calendar_id}", token, json={"availability": availability})


def delete_calendar(token, calendar_id):
    return _call("DELETE", f"/api/calendar/{calendar_id}", token)


# -------------------------
# Availability queries
# -------------------------

def ask_availability(token, user_ids, content, type_id=1):
    """
    Sends a question about the selected users' availability.
    Returns {"query", "aiResult"} or {"error"}.
    """
    payload = {"userId": list(user_ids), "content": content, "typeId": type_id}
    return _call("POST", "/api/queries", token, json=payload)


def query_history(token, page=1, limit=10, user_id=None):
    params = {"page": page, "limit": limit}
    if user_id is not None:
        params["userId"] = user_id
    return _call("GET", "/api/queries/history", token, params=params)


def query_analytics(token):
    return _call("GET", "/api/queries/analytics", token)


# -------------------------
# Friends
# -------------------------

def list_friends(token):
    data = _call("GET", "/api/friends/list", token)
    return data if data.get("error") else data.get("friends", [])


def list_friend_requests(token):
    data = _call("GET", "/api/friends/requests", token)
    return data if data.get("error") else data.get("requests", [])


def send_friend_request(token, receiver_id):
    return _call("POST", "/api/friends/request", token, json={"receiverId": receiver_id})


def accept_friend_request(token, requester_id):
    return _call("POST", "/api/friends/accept", token, json={"requesterId": requester_id})


def decline_friend_request(token, requester_id):
    return _call("POST", "/api/friends/decline", token, json={"requesterId": requester_id})


def remove_friend(token, friend_id):
    return _call("DELETE", "/api/friends/remove", token, json={"friendId": friend_id})

# app/ui/friends.py

import streamlit as st
from services.api import (
    list_users,
    list_friends,
    list_friend_requests,
    send_friend_request,
    accept_friend_request,
    decline_friend_request,
    remove_friend,
)


def _report(result, success):
    if result.get("error"):
        st.error(result["error"])
    else:
        st.success(success)
        st.rerun()


def friends_page():
    st.title("👥 Friends")
    token = st.session_state["access_token"]
    user_id = int(st.session_state["user_id"])

    friends = list_friends(token)
    requests_ = list_friend_requests(token)
    users = list_users(token)
    for data in (friends, requests_, users):
        if isinstance(data, dict) and data.get("error"):
            st.error(data["error"])
            return

    st.markdown("### Incoming requests")
    if not requests_:
        st.caption("No pending requests.")
    for req in requests_:
        requester = req["requester"]
        cols = st.columns([4, 1, 1])
        cols[0].write(requester["username"])
        if cols[1].button("Accept", key=f"accept_{req['id']}"):
            _report(accept_friend_request(token, requester["id"]), "Friend request accepted")
        if cols[2].button("Decline", key=f"decline_{req['id']}"):
            _report(decline_friend_request(token, requester["id"]), "Friend request declined")

    st.markdown("### My friends")
    if not friends:
        st.caption("No friends yet.")
    for friend in friends:
        cols = st.columns([5, 1])
        cols[0].write(friend["username"])
        if cols[1].button("🗑️", key=f"remove_{friend['id']}"):
            _report(remove_friend(token, friend["id"]), "Friend removed")

    st.markdown("### Add a friend")
    known = {f["id"] for f in friends} | {r["requester"]["id"] for r in requests_} | {user_id}
    others = {u["id"]: u["username"] for u in users if u["id"] not in known}
    if not others:
        st.caption("Everyone is already here.")
        return
    receiver = st.selectbox("User", options=list(others), format_func=others.get)
    if st.button("Send request"):
        _report(send_friend_request(token, receiver), "Friend request sent")

# app/ui/query.py

import streamlit as st
from services.api import ask_availability, list_friends, list_users, query_history


def query_page():
    st.title("💬 Ask about availability")
    token = st.session_state["access_token"]
    user_id = int(st.session_state["user_id"])

    friends = list_friends(token)
    if isinstance(friends, dict) and friends.get("error"):
        st.error(friends["error"])
        return

    users = list_users(token)
    if isinstance(users, dict) and users.get("error"):
        st.error(users["error"])
        return

    friend_ids = {f["id"] for f in friends}
    candidates = [u for u in users if u["id"] != user_id]
    candidates.sort(key=lambda u: (u["id"] not in friend_ids, u["username"]))
    labels = {u["id"]: u["username"] + (" ⭐" if u["id"] in friend_ids else "") for u in candidates}

    selected = st.multiselect("Who do you want to meet?", options=list(labels), format_func=labels.get)
    question = st.chat_input("When are we all free?")

    if question:
        if not selected:
            st.error("Please select at least one user.")
        else:
            with st.chat_message("user"):
                st.markdown(question)
            with st.chat_message("assistant"):
                with st.spinner("Comparing calendars..."):
                    result = ask_availability(token, selected, question)
                if result.get("error"):
                    st.error(result["error"])
                else:
                    st.markdown(result["aiResult"])

    show_history(token, user_id)


def show_history(token, user_id):
    st.markdown("### 🕑 History")
    page = st.session_state.get("history_page", 1)
    history = query_history(token, page=page, limit=5, user_id=user_id)
    if history.get("error"):
        st.error(history["error"])
        return
    if not history["items"]:
        st.caption("No questions yet.")
        return

    for item in history["items"]:
        with st.expander(f"{item['createdAt'][:16].replace('T', ' ')} · {item['content']}"):
            st.markdown(item["result"] or "_No answer_")

    cols = st.columns(3)
    with cols[0]:
        if page > 1 and st.button("← Newer"):
            st.session_state["history_page"] = page - 1
            st.rerun()
    with cols[1]:
        st.caption(f"Page {page} of {history['totalPages']}")
    with cols[2]:
        if page < history["totalPages"] and st.button("Older →"):
            st.session_state["history_page"] = page + 1
            st.rerun()

# app/ui/admin.py

import streamlit as st
from services.api import change_role, delete_user, list_users, query_analytics


def role_options(users):
    """Role id -> name, from the roles the listed users carry."""
    roles = {user["role"]["id"]: user["role"]["name"] for user in users}
    return dict(sorted(roles.items()))


def admin_page():
    st.title("🛠️ Admin")
    token = st.session_state["access_token"]

    users = list_users(token)
    if isinstance(users, dict) and users.get("error"):
        st.error(users["error"])
        return

    roles = role_options(users)
    for user in users:
        cols = st.columns([3, 2, 1, 1])
        cols[0].write(user["username"])
        current = user["role"]["id"]
        role_id = cols[1].selectbox(
            "Role",
            options=list(roles),
            index=list(roles).index(current),
            format_func=roles.get,
            key=f"role_{user['id']}",
            label_visibility="collapsed",
        )
        if cols[2].button("Save", key=f"save_{user['id']}", disabled=role_id == current):
            result = change_role(token, user["id"], role_id)
            if result.get("error"):
                st.error(result["error"])
            else:
                st.rerun()
        if cols[3].button("🗑️", key=f"delete_{user['id']}"):
            result = delete_user(token, user["id"])
            if result.get("error"):
                st.error(result["error"])
            else:
                st.rerun()

    st.markdown("### 📊 Query analytics")
    stats = query_analytics(token)
    if stats.get("error"):
        st.error(stats["error"])
        return
    st.metric("Total queries", stats["totalQueries"])
    st.bar_chart({d["date"]: d["count"] for d in stats["daily"]})
    st.table(stats["topUsers"])

# app/main.py

import streamlit as st
from dotenv import load_dotenv
from ui.login import login_page, logout
from ui.calendar import calendar_page
from ui.query import query_page
from ui.friends import friends_page
from ui.admin import admin_page


load_dotenv()


def main_page():
    st.sidebar.markdown(f"## 👋 {st.session_state['username']}")

    if st.sidebar.button("📅 My calendar"):
        st.session_state["page"] = "calendar"
    if st.sidebar.button("💬 Ask"):
        st.session_state["page"] = "query"
    if st.sidebar.button("👥 Friends"):
        st.session_state["page"] = "friends"
    if st.session_state.get("role") == "ADMIN" and st.sidebar.button("🛠️ Admin"):
        st.session_state["page"] = "admin"
    if st.sidebar.button("🔓 Log out"):
        logout()
        st.session_state.clear()
        st.rerun()

    page = st.session_state.get("page", "query")
    if page == "calendar":
        calendar_page()
    elif page == "friends":
        friends_page()
    elif page == "admin" and st.session_state.get("role") == "ADMIN":
        admin_page()
    else:
        query_page()


if "access_token" not in st.session_state:
    login_page()
else:
    main_page()

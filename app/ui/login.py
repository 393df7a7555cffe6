# app/ui/login.py

import os
import streamlit as st
from dotenv import load_dotenv
from streamlit_cookies_manager import EncryptedCookieManager
from services.api import login_user, register_user

load_dotenv()

COOKIE_PASSWORD = os.getenv("COOKIE_PASSWORD")

cookies = EncryptedCookieManager(password=COOKIE_PASSWORD)
if not cookies.ready():
    st.stop()

SESSION_KEYS = ("access_token", "username", "user_id", "role")


def logout():
    cookies.clear()


def _remember(result):
    user = result["user"]
    values = {
        "access_token": result["token"],
        "username": user["username"],
        "user_id": str(user["id"]),
        "role": user["role"],
    }
    for key, value in values.items():
        st.session_state[key] = value
        cookies[key] = value
    cookies.save()


def login_page():
    st.title("🔐 Log in")

    if "access_token" not in st.session_state:
        if all(key in cookies for key in SESSION_KEYS):
            for key in SESSION_KEYS:
                st.session_state[key] = cookies[key]
            st.rerun()

    if "show_register" not in st.session_state:
        st.session_state["show_register"] = False

    if st.session_state["show_register"]:
        show_register_form()
    else:
        show_login_form()


def show_login_form():
    with st.form("login_form"):
        username = st.text_input("Username")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Log in")

    if submitted:
        with st.spinner("Logging in..."):
            result = login_user(username, password)
            if result.get("error"):
                st.error(f"❌ Login failed: {result['error']}")
            else:
                _remember(result)
                st.success("✅ Logged in")
                st.rerun()

    if st.button("Create an account"):
        st.session_state["show_register"] = True
        st.rerun()


def show_register_form():
    st.subheader("📝 Register")

    new_user = st.text_input("Username", key="new_user")
    new_pass = st.text_input("Password", type="password", key="new_pass")

    if st.button("Register"):
        with st.spinner("Creating account..."):
            result = register_user(new_user, new_pass)
            if result.get("error"):
                st.error(f"❌ Registration failed: {result['error']}")
                return
            login = login_user(new_user, new_pass)
            if login.get("error"):
                st.success("🎉 Account created. Please log in.")
                st.session_state["show_register"] = False
            else:
                _remember(login)
            st.rerun()

    if st.button("← Back to login"):
        st.session_state["show_register"] = False
        st.rerun()

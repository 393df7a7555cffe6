# app/ui/calendar.py

import json
import streamlit as st
from services.api import get_my_calendar, upload_calendar, delete_calendar


def calendar_page():
    st.title("📅 My availability")
    token = st.session_state["access_token"]

    calendar = get_my_calendar(token)
    if calendar.get("error") and calendar["error"] != "Calendar not found":
        st.error(calendar["error"])
        return

    if not calendar.get("error"):
        show_calendar(token, calendar)
        return

    st.info("You have not uploaded your availability yet.")
    with st.form("calendar_form"):
        calendar_input = st.text_area(
            "Describe when you are free",
            placeholder="e.g. Weekdays 9am-12pm, Friday afternoons preferred, not available Wednesday",
            height=180,
        )
        submitted = st.form_submit_button("Upload")

    if submitted:
        if not calendar_input.strip():
            st.error("Please enter your availability.")
            return
        with st.spinner("Interpreting your calendar..."):
            result = upload_calendar(token, calendar_input)
        if result.get("error"):
            st.error(f"❌ Upload failed: {result['error']}")
        else:
            st.success("✅ Calendar saved")
            st.rerun()


def show_calendar(token, calendar):
    availability = calendar.get("availability")
    if isinstance(availability, dict):
        for day, slots in availability.items():
            st.markdown(f"**{day.capitalize()}**: {', '.join(slots) if isinstance(slots, list) else slots}")
    elif isinstance(availability, str):
        st.code(availability)
    else:
        st.code(json.dumps(availability, indent=2))

    if st.button("🗑️ Delete and upload again"):
        result = delete_calendar(token, calendar["id"])
        if result.get("error"):
            st.error(result["error"])
        else:
            st.rerun()

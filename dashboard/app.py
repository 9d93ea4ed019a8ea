"""Streamlit front-desk console for the hotel reservation API."""

from __future__ import annotations

import datetime
import os
from typing import Any, Dict, List, Optional

import pandas as pd
import requests
import streamlit as st

# ==========================================
# Configuration & Constants
# ==========================================
API_BASE_URL = os.getenv("API_BASE_URL", "http://127.0.0.1:8000")

st.set_page_config(
    page_title="Front Desk",
    page_icon="🏨",
    layout="wide",
)


# ==========================================
# API Helper Functions
# ==========================================
def _headers() -> Dict[str, str]:
    token = st.session_state.get("access_token")
    return {"Authorization": f"Bearer {token}"} if token else {}


def _error_message(response: requests.Response) -> str:
    try:
        detail = response.json().get("detail")
    except ValueError:
        return response.text
    if isinstance(detail, dict):
        return f"{detail.get('code')}: {detail.get('message')}"
    return str(detail)


def call_api(
    method: str,
    path: str,
    payload: Optional[Dict[str, Any]] = None,
    params: Optional[Dict[str, Any]] = None,
) -> Optional[Any]:
    """Call the backend and surface failures in the page instead of raising."""
    try:
        response = requests.request(
            method,
            f"{API_BASE_URL}{path}",
            json=payload,
            params={key: value for key, value in (params or {}).items() if value is not None},
            headers=_headers(),
            timeout=10,
        )
    except requests.exceptions.RequestException as e:
        st.error(f"Backend connection failed: {e}")
        return None
    if response.status_code >= 400:
        st.error(f"{response.status_code} — {_error_message(response)}")
        return None
    if response.status_code == 204:
        return {}
    return response.json()


def login(requester_id: str, admin_token: str) -> None:
    payload: Dict[str, Any] = {"requester_id": requester_id}
    if admin_token:
        payload["admin_token"] = admin_token
    result = call_api("POST", "/login", payload)
    if result:
        st.session_state["access_token"] = result["access_token"]
        st.session_state["requester_id"] = requester_id
        st.session_state["is_admin"] = bool(admin_token)
        st.success(f"Signed in as {requester_id}")


def fetch_rooms() -> List[Dict[str, Any]]:
    return call_api("GET", "/rooms") or []


# ==========================================
# UI Page Functions
# ==========================================
def render_rooms_page() -> None:
    st.header("🛏️ Rooms")
    rooms = fetch_rooms()
    if not rooms:
        st.info("No rooms found.")
        return
    st.dataframe(pd.DataFrame(rooms), use_container_width=True)

    st.write("### Check availability")
    room_labels = {f"{room['room_number']} ({room['room_type']})": room["room_id"] for room in rooms}
    col1, col2, col3 = st.columns(3)
    with col1:
        label = st.selectbox("Room", list(room_labels))
    with col2:
        check_in = st.date_input("Check-in", datetime.date.today() + datetime.timedelta(days=1))
    with col3:
        check_out = st.date_input("Check-out", datetime.date.today() + datetime.timedelta(days=3))

    if st.button("Check", type="primary"):
        result = call_api(
            "GET",
            f"/rooms/{room_labels[label]}/availability",
            params={"check_in": str(check_in), "check_out": str(check_out)},
        )
        if result is not None:
            if result["available"]:
                st.success("Room is available for these dates.")
            else:
                st.warning("Room is not available for these dates.")

    if st.button("Book this room"):
        result = call_api(
            "POST",
            "/reservations",
            {
                "room_id": room_labels[label],
                "check_in": str(check_in),
                "check_out": str(check_out),
            },
        )
        if result:
            st.success(f"Reservation {result['reservation_id']} created ({result['status']}).")


def render_reservations_page() -> None:
    st.header("📋 Reservations")
    col1, col2 = st.columns(2)
    with col1:
        status = st.selectbox(
            "Status",
            ["", "PENDING", "CONFIRMED", "CHECKED_IN", "CHECKED_OUT", "CANCELLED"],
        )
    with col2:
        page = st.number_input("Page", min_value=1, value=1)

    result = call_api("GET", "/reservations", params={"status": status or None, "page": page})
    if not result:
        return
    meta = result["meta"]
    st.caption(f"Page {meta['page']} of {max(meta['total_pages'], 1)} — {meta['total']} total")
    if not result["data"]:
        st.info("No reservations.")
        return
    st.dataframe(pd.DataFrame(result["data"]), use_container_width=True)

    st.write("### Update a reservation")
    reservation_id = st.selectbox(
        "Reservation",
        [item["reservation_id"] for item in result["data"]],
    )
    actions = ["cancel"]
    if st.session_state.get("is_admin"):
        actions = ["confirm", "check-in", "check-out", "cancel"]
    action_columns = st.columns(len(actions))
    for column, action in zip(action_columns, actions):
        if column.button(action.replace("-", " ").title()):
            updated = call_api("PUT", f"/reservations/{reservation_id}/{action}")
            if updated:
                st.success(f"Reservation is now {updated['status']}.")


def render_admin_page() -> None:
    st.header("📊 Occupancy")
    stats = call_api("GET", "/admin/dashboard")
    if stats:
        col_a, col_b, col_c, col_d = st.columns(4)
        col_a.metric("Rooms available", f"{stats['available_rooms']} / {stats['total_rooms']}")
        col_b.metric("Occupancy", f"{stats['occupancy_rate']:.1f}%")
        col_c.metric("Pending", stats["pending_reservations"])
        col_d.metric("Checked in", stats["checked_in_guests"])

    occupancy = call_api("GET", "/admin/occupancy")
    if occupancy and occupancy["series"]:
        frame = pd.DataFrame(occupancy["series"]).set_index("date")
        st.line_chart(frame["rate"])

    recent = call_api("GET", "/admin/reservations/recent")
    if recent:
        st.write("### Recent reservations")
        st.dataframe(pd.DataFrame(recent), use_container_width=True)


# ==========================================
# Main App Router
# ==========================================
def main() -> None:
    st.sidebar.title("Front Desk")
    st.sidebar.markdown("---")

    with st.sidebar.form("login"):
        requester_id = st.text_input("Requester ID")
        admin_token = st.text_input("Admin token (optional)", type="password")
        if st.form_submit_button("Sign in") and requester_id.strip():
            login(requester_id.strip(), admin_token.strip())

    if "access_token" not in st.session_state:
        st.info("Sign in from the sidebar to continue.")
        return

    pages = ["Rooms", "Reservations"]
    if st.session_state.get("is_admin"):
        pages.append("Occupancy")
    page = st.sidebar.radio("Navigation", pages)
    st.sidebar.caption(f"Signed in: {st.session_state['requester_id']}")

    if page == "Rooms":
        render_rooms_page()
    elif page == "Reservations":
        render_reservations_page()
    elif page == "Occupancy":
        render_admin_page()


if __name__ == "__main__":
    main()

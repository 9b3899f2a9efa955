from __future__ import annotations

import base64
import json
import os
from datetime import date, datetime, timezone

import requests
import streamlit as st

st.set_page_config(page_title="Dental Clinic", layout="wide")

API_BASE = os.getenv("API_BASE", "http://127.0.0.1:8000")



# JWT helpers (UI only, signature not verified)

def _b64url_decode(data: str) -> bytes:
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def jwt_payload(token: str) -> dict:
    try:
        parts = token.split(".")
        if len(parts) != 3:
            return {}
        payload = json.loads(_b64url_decode(parts[1]).decode("utf-8"))
        return payload if isinstance(payload, dict) else {}
    except (ValueError, UnicodeDecodeError):
        return {}


def jwt_is_expired(token: str) -> bool:
    exp = jwt_payload(token).get("exp")
    try:
        exp_int = int(exp)
    except (TypeError, ValueError):
        return False

    now = int(datetime.now(tz=timezone.utc).timestamp())
    return now >= (exp_int - 5)


def jwt_username(token: str) -> str:
    p = jwt_payload(token)
    return str(p.get("username") or p.get("sub") or "user")



# HTTP client (envelope aware)

def _unwrap(r: requests.Response):
    if r.status_code == 401:
        raise PermissionError("401 Unauthorized (token invalid or expired).")

    body = r.json()
    if r.status_code != 200:
        raise RuntimeError(body.get("message") or f"HTTP {r.status_code}")
    return body.get("data")


def api_get(path: str, token: str | None = None, params: dict | None = None):
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    r = requests.get(f"{API_BASE}{path}", headers=headers, params=params, timeout=10)
    return _unwrap(r)


def api_post(path: str, payload: dict, token: str | None = None):
    headers = {"Content-Type": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    r = requests.post(f"{API_BASE}{path}", headers=headers, json=payload, timeout=10)
    return _unwrap(r)


def api_login(username: str, password: str) -> str:
    # OAuth2PasswordRequestForm => x-www-form-urlencoded
    r = requests.post(
        f"{API_BASE}/api/auth/login",
        data={"username": username, "password": password},
        timeout=10,
    )
    r.raise_for_status()
    return r.json()["access_token"]


def is_logged_in() -> bool:
    token = st.session_state.get("token")
    return bool(token) and isinstance(token, str)


def do_logout() -> None:
    st.session_state.pop("token", None)
    st.session_state.pop("auth_error", None)
    st.rerun()


def require_auth() -> str | None:
    token = st.session_state.get("token")
    if not token:
        st.warning("Restricted section. Log in from the sidebar.")
        return None

    if jwt_is_expired(token):
        st.error("Session expired. Log out from the sidebar and log in again.")
        return None

    return token



# Sidebar login

with st.sidebar:
    st.header("Access")

    if not is_logged_in():
        u = st.text_input("Username", key="login_user")
        p = st.text_input("Password", type="password", key="login_pass")

        if st.button("Login", key="login_btn"):
            try:
                st.session_state["token"] = api_login(u.strip().lower(), p)
                st.session_state.pop("auth_error", None)
                st.success("Logged in.")
                st.rerun()
            except requests.HTTPError:
                st.error("Invalid credentials.")
            except requests.RequestException as e:
                st.error(str(e))
    else:
        st.write(f"User: **{jwt_username(st.session_state['token'])}**")

        if st.session_state.get("auth_error"):
            st.error(st.session_state["auth_error"])

        if st.button("Logout", key="logout_btn"):
            do_logout()

    st.divider()
    st.caption(f"API: {API_BASE}")



# UI

st.title("Dental Clinic (REST API + JWT + Streamlit)")

tab1, tab2, tab3 = st.tabs(["Today", "Book session", "People"])

SESSION_PATHS = {
    "Examinations": "/staff/examinations",
    "Re-examinations": "/staff/re-examinations",
    "Treatments": "/staff/treatments",
}


@st.cache_data(ttl=10)
def load_dentists() -> list[dict]:
    return api_get("/api/dentists", params={"limit": 100})["list"]  # public


def _session_line(x: dict) -> str:
    assistant = x["assistant"]["name"] if x.get("assistant") else "-"
    return (
        f"- **{x['time'][11:16]}** | {x['type']} | Patient: {x['patient']['name']} | "
        f"Dentist: {x['dentist']['name']} | Assistant: {assistant} | {x['room']['name']} | {x['status']}"
    )



# TAB 1 - Today's sessions (PROTECTED)

with tab1:
    st.subheader("Today's sessions")

    token = require_auth()
    if token:
        kind = st.radio("Type", list(SESSION_PATHS), horizontal=True, key="today_kind")
        try:
            page = api_get(SESSION_PATHS[kind], token=token, params={"limit": 100, "today": "true"})
            if not page["list"]:
                st.info("No sessions today.")
            else:
                st.caption(f"{page['total']} sessions")
                for x in page["list"]:
                    st.write(_session_line(x))
        except PermissionError as e:
            st.session_state["auth_error"] = str(e)
            st.error("Invalid session. Log out and log in again.")
        except (RuntimeError, requests.RequestException) as e:
            st.error(f"Error loading sessions: {e}")



# TAB 2 - Book a session (PROTECTED)

with tab2:
    st.subheader("Book a session")

    token = require_auth()
    if token:
        try:
            dentists = load_dentists()
            rooms = api_get("/staff/rooms", token=token)
            assistants = api_get("/staff/assistants", token=token, params={"limit": 100})["list"]
            patient_filter = st.text_input("Search patient by name", key="book_patient_filter")
            patients = api_get(
                "/staff/patients", token=token, params={"limit": 50, "name": patient_filter or None}
            )["list"]
        except PermissionError as e:
            st.session_state["auth_error"] = str(e)
            st.error("Invalid session. Log out and log in again.")
            st.stop()
        except (RuntimeError, requests.RequestException) as e:
            st.error(f"API unreachable or error: {e}")
            st.stop()

        colA, colB, colC = st.columns(3)

        with colA:
            patient = st.selectbox(
                "Patient", options=patients, format_func=lambda p: f"{p['name']} ({p.get('phone') or '-'})", key="book_patient"
            )
            dentist = st.selectbox("Dentist", options=dentists, format_func=lambda d: d["name"], key="book_dentist")
            assistant = st.selectbox(
                "Assistant",
                options=[None, *assistants],
                format_func=lambda a: "No assistant" if a is None else a["name"],
                key="book_assistant",
            )

        with colB:
            room = st.selectbox("Room", options=rooms, format_func=lambda r: r["name"], key="book_room")
            kind = st.selectbox("Type", options=list(SESSION_PATHS), key="book_kind")
            day = st.date_input("Date", value=date.today(), key="book_date")
            at = st.time_input("Time", value=datetime.now().time().replace(second=0, microsecond=0), key="book_time")

        with colC:
            note = st.text_area("Note (optional)", height=100, key="book_note")

        if st.button("Confirm booking", key="book_submit", disabled=not (patients and dentists and rooms)):
            payload = {
                "patientID": patient["id"],
                "dentistID": dentist["id"],
                "roomID": room["id"],
                "assistantID": assistant["id"] if assistant else -1,
                "time": datetime.combine(day, at).isoformat(),
                "note": note or None,
            }
            try:
                created = api_post(SESSION_PATHS[kind], payload, token=token)
                st.success(f"Session scheduled (ID: {created['id']}) at {created['time']}.")
            except PermissionError as e:
                st.session_state["auth_error"] = str(e)
                st.error("Invalid session. Log out and log in again.")
            except (RuntimeError, requests.RequestException) as e:
                st.error(str(e))



# TAB 3 - People (PROTECTED)

with tab3:
    st.subheader("Patients and personnel")

    token = require_auth()
    if token:
        with st.expander("New patient"):
            name = st.text_input("Full name", key="pat_name")
            phone = st.text_input("Phone (optional)", key="pat_phone")
            email = st.text_input("Email (optional)", key="pat_email")

            if st.button("Create patient", key="pat_submit"):
                if not name.strip():
                    st.error("Name is required.")
                else:
                    try:
                        res = api_post(
                            "/staff/patients",
                            {"name": name.strip(), "phone": phone.strip() or None, "email": email.strip() or None},
                            token=token,
                        )
                        st.success(f"Patient created: {res['id']}")
                    except PermissionError as e:
                        st.session_state["auth_error"] = str(e)
                        st.error("Invalid session. Log out and log in again.")
                    except (RuntimeError, requests.RequestException) as e:
                        st.error(str(e))

        st.divider()

        c1, c2, c3 = st.columns(3)
        who = c1.selectbox("List", ["Patients", "Personnel", "Assistants"], key="people_kind")
        name_filter = c2.text_input("Name contains", key="people_name")
        page_no = c3.number_input("Page", min_value=0, value=0, step=1, key="people_page")

        path = {"Patients": "/staff/patients", "Personnel": "/staff/personels", "Assistants": "/staff/assistants"}[who]
        try:
            page = api_get(path, token=token, params={"limit": 20, "page": int(page_no), "name": name_filter or None})
            st.caption(f"{page['total']} results")
            for p in page["list"]:
                role = f" | {p['type']}" if "type" in p else ""
                st.write(f"- {p['id']} | {p['name']}{role} | {p.get('phone') or '-'} | {p.get('email') or '-'}")
        except PermissionError as e:
            st.session_state["auth_error"] = str(e)
            st.error("Invalid session. Log out and log in again.")
        except (RuntimeError, requests.RequestException) as e:
            st.error(f"Error loading list: {e}")

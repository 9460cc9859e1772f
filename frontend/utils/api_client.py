import os

import requests
import streamlit as st

BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")


def _auth(token: str | None) -> dict:
    return {"Authorization": f"Bearer {token}"} if token else {}


def error_message(res: requests.Response) -> str:
    try:
        return res.json().get("message") or res.text
    except ValueError:
        return res.text


class ApiClient:
    def __init__(self, token: str | None = None):
        self.token = token

    @property
    def headers(self):
        return _auth(self.token)

    def register(self, email: str, password: str, full_name: str | None = None, professional_title: str | None = None):
        return requests.post(
            f"{BASE_URL}/api/auth/register",
            json={"email": email, "password": password, "full_name": full_name, "professional_title": professional_title},
            timeout=30,
        )

    def login(self, email: str, password: str):
        return requests.post(f"{BASE_URL}/api/auth/login", json={"email": email, "password": password}, timeout=30)

    def logout(self):
        return requests.post(f"{BASE_URL}/api/auth/logout", headers=self.headers, timeout=30)

    # Templates and edit drafts

    def open_draft(self, template_id: str | None = None, name: str = ""):
        return requests.post(f"{BASE_URL}/api/templates/drafts", json={"template_id": template_id, "name": name}, headers=self.headers, timeout=30)

    def draft(self, draft_id: str):
        return requests.get(f"{BASE_URL}/api/templates/drafts/{draft_id}", headers=self.headers, timeout=30)

    def rename_draft(self, draft_id: str, name: str):
        return requests.patch(f"{BASE_URL}/api/templates/drafts/{draft_id}", json={"name": name}, headers=self.headers, timeout=30)

    def add_field(self, draft_id: str, parent_path: list[int], field: dict | None = None):
        return requests.post(
            f"{BASE_URL}/api/templates/drafts/{draft_id}/fields",
            json={"parent_path": parent_path, "field": field},
            headers=self.headers,
            timeout=30,
        )

    def update_field(self, draft_id: str, path: list[int], props: dict):
        return requests.patch(
            f"{BASE_URL}/api/templates/drafts/{draft_id}/fields",
            json={"path": path, "props": props},
            headers=self.headers,
            timeout=30,
        )

    def remove_field(self, draft_id: str, path: list[int]):
        return requests.post(f"{BASE_URL}/api/templates/drafts/{draft_id}/fields/remove", json={"path": path}, headers=self.headers, timeout=30)

    def commit_draft(self, draft_id: str):
        return requests.post(f"{BASE_URL}/api/templates/drafts/{draft_id}/commit", headers=self.headers, timeout=30)

    def discard_draft(self, draft_id: str):
        return requests.delete(f"{BASE_URL}/api/templates/drafts/{draft_id}", headers=self.headers, timeout=30)

    def delete_template(self, template_id: str):
        return requests.delete(f"{BASE_URL}/api/templates/{template_id}", headers=self.headers, timeout=30)

    # Results

    def invoice_results(self, invoice_id: str):
        return requests.get(f"{BASE_URL}/api/invoices/{invoice_id}/results", headers=self.headers, timeout=30)

    def save_invoice_results(self, invoice_id: str, entries: list[dict]):
        return requests.put(f"{BASE_URL}/api/invoices/{invoice_id}/results", json={"entries": entries}, headers=self.headers, timeout=60)

    # Notifications and maintenance

    def mark_notifications_read(self):
        return requests.post(f"{BASE_URL}/api/notifications/read-all", headers=self.headers, timeout=30)

    def clear_notifications(self):
        return requests.delete(f"{BASE_URL}/api/notifications", headers=self.headers, timeout=30)

    def purge_records(self, password: str, scope: str = "completed"):
        return requests.post(f"{BASE_URL}/api/records/purge", json={"password": password, "scope": scope}, headers=self.headers, timeout=60)


# ---------------------------------------------------------------------------
# Cached data fetchers. Return (ok, data) with the envelope unwrapped, cached
# for 60 seconds; call .clear() on a fetcher after a write that changes it.
# ---------------------------------------------------------------------------

def _get(token: str, path: str, empty):
    res = requests.get(f"{BASE_URL}{path}", headers=_auth(token), timeout=30)
    return res.ok, res.json()["data"] if res.ok else empty


@st.cache_data(ttl=60, show_spinner=False)
def cached_templates(token: str) -> tuple[bool, list]:
    return _get(token, "/api/templates", [])


@st.cache_data(ttl=60, show_spinner=False)
def cached_template(token: str, template_id: str) -> tuple[bool, dict]:
    return _get(token, f"/api/templates/{template_id}", {})


@st.cache_data(ttl=60, show_spinner=False)
def cached_invoices(token: str) -> tuple[bool, list]:
    return _get(token, "/api/invoices", [])


@st.cache_data(ttl=60, show_spinner=False)
def cached_patients(token: str) -> tuple[bool, list]:
    return _get(token, "/api/patients", [])


@st.cache_data(ttl=60, show_spinner=False)
def cached_invoice_report(token: str, invoice_id: str) -> tuple[bool, dict]:
    return _get(token, f"/api/invoices/{invoice_id}/report", {})


@st.cache_data(ttl=15, show_spinner=False)
def cached_notifications(token: str) -> tuple[bool, dict]:
    return _get(token, "/api/notifications", {"notifications": [], "unread": 0})

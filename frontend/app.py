import sys
from pathlib import Path

APP_DIR = Path(__file__).resolve().parent
if str(APP_DIR) not in sys.path:
    sys.path.insert(0, str(APP_DIR))

import streamlit as st
from utils.api_client import (
    ApiClient,
    cached_invoices,
    cached_notifications,
    cached_templates,
    error_message,
)
from utils.theme import (
    apply_theme,
    get_colors,
    kpi_tile,
    render_sidebar_profile,
    section_title,
)

st.set_page_config(
    page_title="Lab Results",
    page_icon="🧪",
    layout="wide",
    initial_sidebar_state="expanded",
)
apply_theme()
COLORS = get_colors()

# ── Session defaults ──────────────────────────────────────────────────────
if "token" not in st.session_state:
    st.session_state.token = None
if "user" not in st.session_state:
    st.session_state.user = None

client = ApiClient(token=st.session_state.token)

# ── Logged-in view ────────────────────────────────────────────────────────
if st.session_state.token:
    render_sidebar_profile()

    user = st.session_state.get("user", {})
    name = user.get("full_name") or user.get("email", "").split("@")[0]

    st.markdown(
        f"""
        <div style="margin-bottom:8px;">
            <span style="font-size:1.8rem;font-weight:800;color:{COLORS['text']};">
                Welcome back, {name}
            </span>
        </div>
        <p style="color:{COLORS['text_muted']};margin-top:0;">
            Today&rsquo;s lab workload at a glance.
        </p>
        """,
        unsafe_allow_html=True,
    )

    token = st.session_state.token
    i_ok, invoices = cached_invoices(token)
    t_ok, templates = cached_templates(token)
    n_ok, inbox = cached_notifications(token)

    pending = sum(1 for inv in invoices if inv.get("results_status") == "pending") if i_ok else 0
    completed = sum(1 for inv in invoices if inv.get("results_status") == "completed") if i_ok else 0
    unread = inbox.get("unread", 0) if n_ok else 0

    cols = st.columns(4)
    tiles = [
        ("Pending Invoices", pending, COLORS["warning"] if pending else COLORS["success"]),
        ("Ready to Print", completed, COLORS["success"]),
        ("Result Templates", len(templates) if t_ok else 0, COLORS["info"]),
        ("Unread Notifications", unread, COLORS["primary"]),
    ]
    for col, (label, value, color) in zip(cols, tiles):
        col.markdown(kpi_tile(label, value, color), unsafe_allow_html=True)

    st.markdown("<div style='height:24px'></div>", unsafe_allow_html=True)

    nav_items = [
        ("🧩", "Templates", "Design result forms as nested groups of fields."),
        ("🧪", "Results", "Enter results for pending invoices."),
        ("🖨️", "Reports", "Review and export completed reports."),
    ]
    nav_cols = st.columns(len(nav_items))
    for col, (icon, title, desc) in zip(nav_cols, nav_items):
        col.markdown(
            f"""
            <div class="nav-card">
                <div class="nav-icon">{icon}</div>
                <div class="nav-title">{title}</div>
                <div class="nav-desc">{desc}</div>
            </div>
            """,
            unsafe_allow_html=True,
        )

    # ── Notifications ─────────────────────────────────────────────────────
    section_title("Notifications")
    notifications = inbox.get("notifications", []) if n_ok else []
    if not notifications:
        st.info("No notifications yet.")
    for item in notifications[:10]:
        weight = "400" if item.get("read") else "700"
        st.markdown(
            f"""
            <div class="info-card">
                <span style="font-weight:{weight};">{item['message']}</span>
                <div class="card-muted">{item['timestamp'][:16].replace('T', ' ')}</div>
            </div>
            """,
            unsafe_allow_html=True,
        )
    if notifications:
        c1, c2, _ = st.columns([1, 1, 4])
        if c1.button("Mark all read", use_container_width=True):
            client.mark_notifications_read()
            cached_notifications.clear()
            st.rerun()
        if c2.button("Clear", use_container_width=True):
            client.clear_notifications()
            cached_notifications.clear()
            st.rerun()

    # ── Maintenance ───────────────────────────────────────────────────────
    with st.expander("Delete records"):
        with st.form("purge_form"):
            scope = st.radio(
                "Records to delete",
                options=["completed", "all"],
                format_func=lambda s: "Completed invoices only" if s == "completed" else "All invoices and results",
                horizontal=True,
            )
            password = st.text_input("Deletion password", type="password")
            purge = st.form_submit_button("Delete", type="primary")
        if purge:
            res = client.purge_records(password, scope)
            if res.ok:
                st.success(f"Removed {res.json()['data']['removed_invoices']} invoice(s).")
                cached_invoices.clear()
                cached_notifications.clear()
            else:
                st.error(error_message(res))

# ── Auth view ─────────────────────────────────────────────────────────────
else:
    _spacer_l, center, _spacer_r = st.columns([1, 2, 1])
    with center:
        st.markdown(
            f"""
            <div style="text-align:center;margin-top:40px;margin-bottom:8px;">
                <span style="font-size:3rem;">🧪</span>
            </div>
            <h1 style="text-align:center;color:{COLORS['text']};margin-bottom:4px;">
                Lab Results
            </h1>
            <p style="text-align:center;color:{COLORS['text_muted']};margin-bottom:32px;">
                Templates, result entry and printable reports for the lab.
            </p>
            """,
            unsafe_allow_html=True,
        )

        tab_login, tab_register = st.tabs(["Login", "Register"])

        with tab_login:
            with st.form("login_form"):
                email = st.text_input("Email", placeholder="you@example.com")
                pwd = st.text_input("Password", type="password", placeholder="••••••••")
                submitted = st.form_submit_button("Sign in", use_container_width=True, type="primary")
            if submitted:
                if not email or not pwd:
                    st.error("Please enter both email and password.")
                else:
                    res = client.login(email, pwd)
                    if res.ok:
                        data = res.json()
                        st.session_state.token = data["token"]
                        st.session_state.user = data["user"]
                        st.rerun()
                    else:
                        st.error("Invalid credentials. Please try again.")

        with tab_register:
            with st.form("register_form"):
                name = st.text_input("Full name", placeholder="Jane Doe")
                title = st.text_input("Professional title", placeholder="Bacteriologist")
                email_r = st.text_input("Email", placeholder="you@example.com", key="reg_em")
                pwd_r = st.text_input("Password", type="password", placeholder="Min 6 characters", key="reg_pw")
                submitted_r = st.form_submit_button("Create account", use_container_width=True, type="primary")
            if submitted_r:
                if not email_r or not pwd_r:
                    st.error("Email and password are required.")
                elif len(pwd_r) < 6:
                    st.error("Password must be at least 6 characters.")
                else:
                    res = client.register(email=email_r, password=pwd_r, full_name=name, professional_title=title or None)
                    if res.ok:
                        data = res.json()
                        st.session_state.token = data["token"]
                        st.session_state.user = data["user"]
                        st.rerun()
                    else:
                        st.error(f"Registration failed: {error_message(res)}")

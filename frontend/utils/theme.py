"""
Shared theme, CSS injection, color palette, and UI helper functions
for the Lab Results Streamlit frontend.
"""

from __future__ import annotations

import streamlit as st

from utils.api_client import ApiClient

# ---------------------------------------------------------------------------
# Color palettes (light + dark)
# ---------------------------------------------------------------------------
COLORS_LIGHT: dict[str, str] = {
    "primary": "#0D9488",       # teal-600
    "warning": "#F59E0B",       # amber-500
    "warning_light": "#FEF3C7", # amber-100
    "success": "#10B981",       # emerald-500
    "success_light": "#D1FAE5", # emerald-100
    "info": "#3B82F6",          # blue-500
    "info_light": "#DBEAFE",    # blue-100
    "text": "#1E293B",          # slate-800
    "text_secondary": "#475569", # slate-600
    "text_muted": "#475569",    # slate-600
    "bg_card": "#FFFFFF",
    "bg_page": "#F8FAFC",       # slate-50
    "border": "#E2E8F0",        # slate-200
}

COLORS_DARK: dict[str, str] = {
    "primary": "#14B8A6",       # teal-400
    "warning": "#FBBF24",       # amber-400
    "warning_light": "#451A03", # amber-950
    "success": "#34D399",       # emerald-400
    "success_light": "#022C22", # emerald-950
    "info": "#60A5FA",          # blue-400
    "info_light": "#172554",    # blue-950
    "text": "#F1F5F9",          # slate-100
    "text_secondary": "#CBD5E1", # slate-300
    "text_muted": "#94A3B8",    # slate-400
    "bg_card": "#1E293B",       # slate-800
    "bg_page": "#0F172A",       # slate-900
    "border": "#334155",        # slate-700
}


def get_colors() -> dict[str, str]:
    """Return the active palette based on ``st.session_state.dark_mode``."""
    if st.session_state.get("dark_mode", False):
        return COLORS_DARK
    return COLORS_LIGHT


# ---------------------------------------------------------------------------
# CSS injection (built dynamically for active palette)
# ---------------------------------------------------------------------------
_CSS_TEMPLATE = """
<style>
/* ---------- Page background & base text ---------- */
[data-testid="stAppViewContainer"] {
    background-color: %(bg_page)s;
}
/* Dark text only in MAIN content area, NOT the sidebar */
[data-testid="stAppViewContainer"] > section[data-testid="stMain"] p,
[data-testid="stAppViewContainer"] > section[data-testid="stMain"] span,
[data-testid="stAppViewContainer"] > section[data-testid="stMain"] td,
[data-testid="stAppViewContainer"] > section[data-testid="stMain"] li {
    color: %(text)s;
}
[data-testid="stMain"] [data-testid="stExpander"] summary span {
    color: %(text)s !important;
}

/* ---------- Card container ---------- */
.card-muted {
    color: %(text_muted)s;
    font-size: 0.85rem;
}

/* ---------- Status badges ---------- */
.status-badge {
    display: inline-block;
    padding: 2px 10px;
    border-radius: 9999px;
    font-size: 0.75rem;
    font-weight: 600;
    letter-spacing: 0.03em;
}
.status-pending   { background: %(warning_light)s; color: %(warning)s; }
.status-completed { background: %(success_light)s; color: %(success)s; }

/* ---------- Field type tags ---------- */
.type-tag {
    display: inline-block;
    padding: 1px 8px;
    border-radius: 6px;
    font-size: 0.72rem;
    font-weight: 600;
    margin-left: 6px;
    border: 1px solid %(border)s;
}
.type-number   { color: %(info)s; background: %(info_light)s; }
.type-textarea { color: %(text_muted)s; background: %(bg_card)s; }
.type-group    { color: %(primary)s; background: %(bg_page)s; border-color: %(primary)s; }

/* ---------- KPI tile ---------- */
.kpi-tile {
    background: %(bg_card)s;
    border: 1px solid %(border)s;
    border-radius: 12px;
    padding: 20px;
    text-align: center;
    box-shadow: 0 1px 3px rgba(0,0,0,0.06);
}
.kpi-value {
    font-size: 2rem;
    font-weight: 800;
    line-height: 1.1;
}
.kpi-label {
    font-size: 0.82rem;
    color: %(text_muted)s;
    text-transform: uppercase;
    letter-spacing: 0.04em;
    margin-top: 6px;
}

/* ---------- Info card ---------- */
.info-card {
    background: %(bg_card)s;
    border: 1px solid %(border)s;
    border-left: 4px solid %(primary)s;
    border-radius: 8px;
    padding: 16px 20px;
    margin-bottom: 12px;
    color: %(text)s;
    font-size: 0.92rem;
    line-height: 1.5;
}
.info-card span { color: %(text)s; }
.info-card strong, .info-card b { color: %(text)s; font-weight: 700; }

/* ---------- Nav card ---------- */
.nav-card {
    background: %(bg_card)s;
    border: 1px solid %(border)s;
    border-radius: 12px;
    padding: 24px;
    text-align: center;
    transition: box-shadow 0.2s;
    box-shadow: 0 1px 3px rgba(0,0,0,0.06);
}
.nav-card:hover { box-shadow: 0 4px 12px rgba(0,0,0,0.1); }
.nav-icon { font-size: 2rem; margin-bottom: 8px; }
.nav-title { font-weight: 700; font-size: 1rem; color: %(text)s; }
.nav-desc { color: %(text_muted)s; font-size: 0.82rem; margin-top: 4px; }

/* ---------- Section title ---------- */
.section-title {
    font-size: 1.15rem;
    font-weight: 700;
    color: %(text)s;
    margin: 24px 0 12px 0;
    padding-bottom: 8px;
    border-bottom: 2px solid %(primary)s;
    display: inline-block;
}

/* ---------- Sidebar ---------- */
[data-testid="stSidebar"] {
    background-color: %(bg_card)s !important;
}
[data-testid="stSidebar"] * {
    color: %(text)s !important;
}
[data-testid="stSidebar"] [data-testid="stMarkdown"] p {
    font-size: 0.88rem;
    color: %(text)s !important;
}
/* Sidebar nav links */
[data-testid="stSidebarNav"] a span {
    color: %(text)s !important;
}
[data-testid="stSidebarNav"] a[aria-current="page"] span {
    color: %(primary)s !important;
    font-weight: 700;
}
/* Sidebar buttons stay readable */
[data-testid="stSidebar"] button {
    color: %(text)s !important;
    border-color: %(border)s !important;
}

/* ---------- Table tweaks ---------- */
.stDataFrame { border-radius: 8px; overflow: hidden; }

/* ---------- Global table readability (main content only) ---------- */
[data-testid="stMain"] table td { color: %(text)s; }
[data-testid="stMain"] table th { color: %(text_secondary)s !important; }

/* ---------- Tabs readability ---------- */
button[data-baseweb="tab"] {
    color: %(text_muted)s !important;
}
button[data-baseweb="tab"][aria-selected="true"] {
    color: %(primary)s !important;
}

/* ---------- Text inputs ---------- */
[data-testid="stTextInput"] input,
[data-testid="stSelectbox"] div[data-baseweb="select"],
[data-baseweb="input"] input,
[data-baseweb="base-input"] input,
input[type="text"],
input[type="password"],
input[type="email"],
textarea {
    color: %(text)s !important;
    background-color: %(bg_card)s !important;
    border-color: %(border)s !important;
}
/* Placeholder text */
input::placeholder,
textarea::placeholder {
    color: %(text_muted)s !important;
    opacity: 0.7 !important;
}
/* Form labels */
[data-testid="stTextInput"] label,
[data-testid="stSelectbox"] label,
[data-testid="stTextArea"] label,
[data-testid="stRadio"] label {
    color: %(text)s !important;
}
/* Selectbox / multiselect dropdown text */
[data-baseweb="select"] span,
[data-baseweb="select"] div {
    color: %(text)s !important;
}
/* Password visibility toggle */
[data-testid="stTextInput"] button svg {
    fill: %(text_muted)s !important;
}
</style>
"""


def apply_theme() -> None:
    """Inject global CSS into the page. Call once at the top of every page."""
    # Ensure dark_mode key exists
    if "dark_mode" not in st.session_state:
        st.session_state.dark_mode = False
    colors = get_colors()
    st.markdown(_CSS_TEMPLATE % colors, unsafe_allow_html=True)


# ---------------------------------------------------------------------------
# Auth guard
# ---------------------------------------------------------------------------
def auth_guard() -> None:
    """Stop page execution with a friendly message if not logged in."""
    if "token" not in st.session_state or not st.session_state.token:
        st.warning("Please log in from the **Home** page to continue.")
        st.stop()


# ---------------------------------------------------------------------------
# Sidebar profile / logout / dark-mode toggle
# ---------------------------------------------------------------------------
def render_sidebar_profile() -> None:
    """Render user avatar, email, logout button, and dark-mode toggle."""
    if not st.session_state.get("token"):
        return
    user = st.session_state.get("user", {})
    email = user.get("email", "")
    name = user.get("full_name") or email.split("@")[0]
    title = user.get("professional_title") or ""
    initials = "".join(w[0].upper() for w in name.split()[:2]) if name else "?"
    c = get_colors()

    with st.sidebar:
        st.markdown(
            f"""
            <div style="text-align:center; padding: 16px 0 8px 0;">
                <div style="width:56px;height:56px;border-radius:50%;background:{c['primary']};
                    color:white;font-size:1.3rem;font-weight:700;display:inline-flex;
                    align-items:center;justify-content:center;margin-bottom:6px;">
                    {initials}
                </div>
                <div style="font-weight:600;color:{c['text']};font-size:0.95rem;">{name}</div>
                <div style="color:{c['text_muted']};font-size:0.8rem;">{email}</div>
                <div style="color:{c['text_muted']};font-size:0.8rem;">{title}</div>
            </div>
            """,
            unsafe_allow_html=True,
        )
        st.divider()

        # Dark-mode toggle
        dark = st.toggle(
            "🌙 Dark mode",
            value=st.session_state.get("dark_mode", False),
            key="dark_mode_toggle",
        )
        if dark != st.session_state.get("dark_mode", False):
            st.session_state.dark_mode = dark
            st.rerun()

        if st.button("Logout", use_container_width=True, type="secondary"):
            ApiClient(token=st.session_state.token).logout()
            st.session_state.token = None
            st.session_state.user = None
            st.rerun()
        st.divider()


# ---------------------------------------------------------------------------
# Reusable HTML helpers
# ---------------------------------------------------------------------------
def status_badge(status: str | None) -> str:
    """Return an HTML span styled as a result status badge."""
    key = (status or "pending").lower()
    css = "status-completed" if key == "completed" else "status-pending"
    return f'<span class="status-badge {css}">{key.upper()}</span>'


def kpi_tile(label: str, value: str | int | float, color: str) -> str:
    """Return HTML for a single KPI tile."""
    return (
        f'<div class="kpi-tile">'
        f'  <div class="kpi-value" style="color:{color};">{value}</div>'
        f'  <div class="kpi-label">{label}</div>'
        f'</div>'
    )


def section_title(text: str) -> None:
    """Render a styled section heading."""
    st.markdown(f'<div class="section-title">{text}</div>', unsafe_allow_html=True)


FIELD_TYPE_LABELS = {"number": "Number", "textarea": "Text", "group": "Group"}


def field_type_tag(field_type: str) -> str:
    """Return HTML for the small tag shown next to a template field."""
    label = FIELD_TYPE_LABELS.get(field_type, field_type)
    return f'<span class="type-tag type-{field_type}">{label}</span>'


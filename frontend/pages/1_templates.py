import sys
from pathlib import Path

APP_DIR = Path(__file__).resolve().parent.parent
if str(APP_DIR) not in sys.path:
    sys.path.insert(0, str(APP_DIR))

import streamlit as st

from utils.api_client import ApiClient, cached_template, cached_templates, error_message
from utils.theme import (
    FIELD_TYPE_LABELS,
    apply_theme,
    auth_guard,
    field_type_tag,
    get_colors,
    render_sidebar_profile,
    section_title,
)

st.set_page_config(page_title="Result Templates", page_icon="🧩", layout="wide")
apply_theme()
auth_guard()
render_sidebar_profile()
COLORS = get_colors()

client = ApiClient(token=st.session_state.token)
token = st.session_state.token

# ── Header ────────────────────────────────────────────────────────────────
st.markdown(
    f"""
    <div style="margin-bottom:4px;">
        <span style="font-size:1.6rem;font-weight:800;color:{COLORS['text']};">🧩 Result Templates</span>
    </div>
    <p style="color:{COLORS['text_muted']};margin-top:0;">
        Build the data-entry form of a lab service as nested groups of fields.
        Changes stay in a draft until you save it.
    </p>
    """,
    unsafe_allow_html=True,
)


def _apply(res) -> None:
    """Handle a draft edit response: rerun on success, show the API message otherwise."""
    if res.ok:
        st.rerun()
    st.error(error_message(res))


def render_field(draft_id: str, node: dict, path: list[int]) -> None:
    key = f"{draft_id}-{'.'.join(map(str, path))}-{node['id']}"
    indent = 24 * (len(path) - 1)
    badge = field_type_tag(node["type"])

    st.markdown(
        f"<div style='margin-left:{indent}px;font-weight:600;color:{COLORS['text']};'>"
        f"{node.get('label') or '(untitled)'} {badge}</div>",
        unsafe_allow_html=True,
    )
    _, body = st.columns([max(1, len(path)), 24])
    with body.expander("Edit", expanded=False):
        c1, c2, c3 = st.columns([2, 2, 1])
        label = c1.text_input("Label", value=node.get("label", ""), key=f"{key}-label")
        field_id = c2.text_input("Field id", value=node["id"], key=f"{key}-id")
        field_type = c3.selectbox(
            "Type",
            options=list(FIELD_TYPE_LABELS),
            index=list(FIELD_TYPE_LABELS).index(node["type"]),
            format_func=FIELD_TYPE_LABELS.get,
            key=f"{key}-type",
        )
        props = {"label": label, "id": field_id, "type": field_type}
        if field_type == "number":
            c4, c5 = st.columns(2)
            props["unit"] = c4.text_input("Unit", value=node.get("unit") or "", key=f"{key}-unit") or None
            props["reference_range"] = (
                c5.text_input("Reference range", value=node.get("reference_range") or "", key=f"{key}-range") or None
            )
        if node["type"] == "group" and field_type != "group" and node.get("children"):
            st.warning("Changing the type of this group deletes all of its fields.")

        b1, b2, b3 = st.columns(3)
        if b1.button("Apply", key=f"{key}-apply", use_container_width=True):
            _apply(client.update_field(draft_id, path, props))
        if b2.button("Remove", key=f"{key}-remove", use_container_width=True):
            _apply(client.remove_field(draft_id, path))
        if node["type"] == "group" and b3.button("Add field inside", key=f"{key}-add", use_container_width=True):
            _apply(client.add_field(draft_id, path))

    for index, child in enumerate(node.get("children", [])):
        render_field(draft_id, child, [*path, index])


# ── Open draft editor ─────────────────────────────────────────────────────
draft_id = st.session_state.get("draft_id")
if draft_id:
    res = client.draft(draft_id)
    if not res.ok:
        st.session_state.draft_id = None
        st.error(error_message(res))
        st.stop()
    draft = res.json()["data"]

    section_title("Editing: " + (draft["name"] or "New template"))
    n1, n2 = st.columns([4, 1])
    new_name = n1.text_input("Template name", value=draft["name"], key=f"{draft_id}-name")
    if n2.button("Rename", use_container_width=True) and new_name != draft["name"]:
        _apply(client.rename_draft(draft_id, new_name))

    if not draft["fields"]:
        st.info("This template has no fields yet.")
    for index, node in enumerate(draft["fields"]):
        render_field(draft_id, node, [index])

    st.markdown("<div style='height:12px'></div>", unsafe_allow_html=True)
    a1, a2, a3 = st.columns(3)
    if a1.button("➕ Add field", use_container_width=True):
        _apply(client.add_field(draft_id, []))
    if a2.button("💾 Save template", type="primary", use_container_width=True):
        res = client.commit_draft(draft_id)
        if res.ok:
            st.session_state.draft_id = None
            cached_templates.clear()
            cached_template.clear()
            st.success("Template saved.")
            st.rerun()
        st.error(error_message(res))
    if a3.button("Discard changes", use_container_width=True):
        client.discard_draft(draft_id)
        st.session_state.draft_id = None
        st.rerun()
    st.stop()

# ── Template list ─────────────────────────────────────────────────────────
t_ok, templates = cached_templates(token)
if not t_ok:
    st.error("Failed to load templates.")
    st.stop()

section_title("Templates")
if not templates:
    st.info("No templates yet. Create one below.")

for template in templates:
    c1, c2, c3 = st.columns([4, 1, 1])
    c1.markdown(
        f"<div class='info-card'><strong>{template['name']}</strong>"
        f"<div class='card-muted'>{template['id']} · {template['field_count']} field(s)</div></div>",
        unsafe_allow_html=True,
    )
    if c2.button("Edit", key=f"edit-{template['id']}", use_container_width=True):
        res = client.open_draft(template_id=template["id"])
        if res.ok:
            st.session_state.draft_id = res.json()["data"]["id"]
            st.rerun()
        st.error(error_message(res))
    if c3.button("Delete", key=f"delete-{template['id']}", use_container_width=True):
        res = client.delete_template(template["id"])
        if res.ok:
            cached_templates.clear()
            st.rerun()
        st.error(error_message(res))

section_title("New template")
with st.form("new_template"):
    name = st.text_input("Name", placeholder="Urinalysis")
    create = st.form_submit_button("Start editing", type="primary")
if create:
    res = client.open_draft(name=name)
    if res.ok:
        st.session_state.draft_id = res.json()["data"]["id"]
        st.rerun()
    st.error(error_message(res))

import sys
from pathlib import Path

APP_DIR = Path(__file__).resolve().parent.parent
if str(APP_DIR) not in sys.path:
    sys.path.insert(0, str(APP_DIR))

import streamlit as st

from utils.api_client import (
    ApiClient,
    cached_invoice_report,
    cached_invoices,
    cached_notifications,
    cached_patients,
    error_message,
)
from utils.theme import (
    apply_theme,
    auth_guard,
    get_colors,
    render_sidebar_profile,
    section_title,
    status_badge,
)

st.set_page_config(page_title="Result Entry", page_icon="🧪", layout="wide")
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
        <span style="font-size:1.6rem;font-weight:800;color:{COLORS['text']};">🧪 Result Entry</span>
    </div>
    <p style="color:{COLORS['text_muted']};margin-top:0;">
        A result is completed once every field of its form is filled in.
    </p>
    """,
    unsafe_allow_html=True,
)

i_ok, invoices = cached_invoices(token)
p_ok, patients = cached_patients(token)
if not i_ok:
    st.error("Failed to load invoices.")
    st.stop()
if not invoices:
    st.info("No invoices yet.")
    st.stop()

patient_names = {p["id"]: p["name"] for p in patients} if p_ok else {}
show = st.radio("Show", ["Pending", "Completed", "All"], horizontal=True)
if show != "All":
    invoices = [inv for inv in invoices if inv.get("results_status") == show.lower()]
if not invoices:
    st.info(f"No {show.lower()} invoices.")
    st.stop()

options = {
    f"{inv['date'][:10]} · {patient_names.get(inv['patient_id'], inv['patient_id'])} · {inv['id']}": inv["id"]
    for inv in invoices
}
invoice_id = options[st.selectbox("Invoice", options=list(options.keys()))]

res = client.invoice_results(invoice_id)
if not res.ok:
    st.error(error_message(res))
    st.stop()
results = res.json()["data"]


def render_inputs(fields: list[dict], values: dict, key: str, depth: int = 0) -> dict:
    """Draw one widget per leaf in template order; return the entered values by field id."""
    entered: dict = {}
    for node in fields:
        if node["type"] == "group":
            st.markdown(
                f"<div style='margin:{12 if depth == 0 else 6}px 0 4px {16 * depth}px;font-weight:700;"
                f"color:{COLORS['primary']};'>{node['label']}</div>",
                unsafe_allow_html=True,
            )
            entered.update(render_inputs(node.get("children", []), values, key, depth + 1))
            continue

        current = values.get(node["id"])
        current = "" if current is None else str(current)
        if node["type"] == "number":
            c1, c2, c3 = st.columns([3, 1, 2])
            entered[node["id"]] = c1.text_input(node["label"], value=current, key=f"{key}-{node['id']}")
            c2.markdown(f"<div style='margin-top:32px;'>{node.get('unit') or ''}</div>", unsafe_allow_html=True)
            c3.markdown(
                f"<div class='card-muted' style='margin-top:34px;'>{node.get('reference_range') or ''}</div>",
                unsafe_allow_html=True,
            )
        else:
            entered[node["id"]] = st.text_area(node["label"], value=current, key=f"{key}-{node['id']}")
    return entered


with st.form(f"results-{invoice_id}"):
    entries = []
    for result in results:
        section_title(result.get("service_name") or result["service_id"])
        st.markdown(status_badge(result["status"]), unsafe_allow_html=True)
        key = f"{invoice_id}-{result['id']}"
        if result["template"]:
            value = render_inputs(result["template"]["fields"], result["value"] or {}, key)
        else:
            value = st.text_area("Result", value=result["value"] or "", height=160, key=f"{key}-text")
        entries.append({"result_id": result["id"], "value": value})
    submitted = st.form_submit_button("Save results", type="primary")

if submitted:
    res = client.save_invoice_results(invoice_id, entries)
    if res.ok:
        data = res.json()["data"]
        cached_invoices.clear()
        cached_invoice_report.clear()
        cached_notifications.clear()
        if not data["saved"]:
            st.info("Nothing changed.")
        elif data["invoice_completed"]:
            st.success("All results for this invoice are complete and ready to print.")
        else:
            st.success(f"Saved {len(data['saved'])} result(s).")
    else:
        st.error(error_message(res))

import sys
from pathlib import Path

APP_DIR = Path(__file__).resolve().parent.parent
if str(APP_DIR) not in sys.path:
    sys.path.insert(0, str(APP_DIR))

import io

import pandas as pd
import streamlit as st

from utils.api_client import cached_invoice_report, cached_invoices, cached_patients
from utils.theme import (
    apply_theme,
    auth_guard,
    get_colors,
    kpi_tile,
    render_sidebar_profile,
    section_title,
    status_badge,
)

st.set_page_config(page_title="Reports", page_icon="🖨️", layout="wide")
apply_theme()
auth_guard()
render_sidebar_profile()
COLORS = get_colors()

token = st.session_state.token

# ── Header ────────────────────────────────────────────────────────────────
st.markdown(
    f"""
    <div style="margin-bottom:4px;">
        <span style="font-size:1.6rem;font-weight:800;color:{COLORS['text']};">🖨️ Reports</span>
    </div>
    <p style="color:{COLORS['text_muted']};margin-top:0;">
        Printable view of an invoice's results, in the order of each form.
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
options = {
    f"{inv['date'][:10]} · {patient_names.get(inv['patient_id'], inv['patient_id'])} · {inv['id']}": inv["id"]
    for inv in invoices
}
preselected = st.query_params.get("invoice")
keys = list(options.keys())
index = next((i for i, k in enumerate(keys) if options[k] == preselected), 0)
invoice_id = options[st.selectbox("Invoice", options=keys, index=index)]

ok, report = cached_invoice_report(token, invoice_id)
if not ok:
    st.error("Failed to load report.")
    st.stop()

cols = st.columns(3)
tiles = [
    ("Patient", report.get("patient_name") or "-", COLORS["text"]),
    ("Date", report["date"][:10], COLORS["text"]),
    ("Status", "Complete" if report["complete"] else "Pending", COLORS["success"] if report["complete"] else COLORS["warning"]),
]
for col, (label, value, color) in zip(cols, tiles):
    col.markdown(kpi_tile(label, value, color), unsafe_allow_html=True)

if not report["complete"]:
    st.warning("Some results are still pending; missing values are shown as N/A.")

export_rows = []
for block in report["results"]:
    service = block.get("service_name") or block["service_id"]
    section_title(service)
    signed = block.get("reported_by_name") or "-"
    reported = (block.get("report_date") or "")[:16].replace("T", " ") or "-"
    st.markdown(
        f"{status_badge(block['status'])} <span class='card-muted'>Reported by {signed} · {reported}</span>",
        unsafe_allow_html=True,
    )

    if not block["structured"]:
        st.text(block.get("text") or "N/A")
        export_rows.append({"Service": service, "Section": "", "Test": "Result", "Value": block.get("text") or "N/A", "Unit": "", "Reference": ""})
        continue

    table = []
    sections: list[str] = []
    for row in block["rows"]:
        if row["kind"] == "section":
            sections = sections[: row["depth"]] + [row["label"]]
            continue
        section = " / ".join(sections[: row["depth"]])
        table.append(
            {
                "Section": section,
                "Test": row["label"],
                "Value": row["value"],
                "Unit": row.get("unit") or "",
                "Reference": row.get("reference_range") or "",
            }
        )
        export_rows.append({"Service": service, **table[-1]})
    st.dataframe(pd.DataFrame(table), use_container_width=True, hide_index=True)

if export_rows:
    csv_buf = io.StringIO()
    pd.DataFrame(export_rows).to_csv(csv_buf, index=False)
    st.download_button(
        "Download CSV",
        data=csv_buf.getvalue(),
        file_name=f"report_{invoice_id}.csv",
        mime="text/csv",
    )

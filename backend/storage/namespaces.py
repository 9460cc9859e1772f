from datetime import datetime, timezone
from uuid import uuid4

PATIENTS = "patients"
SERVICES = "services"
TEMPLATES = "templates"
TEMPLATE_DRAFTS = "template_drafts"
INVOICES = "invoices"
RESULTS = "results"
NOTIFICATIONS = "notifications"


def new_key(prefix: str) -> str:
    """Time-ordered document key, e.g. ``INV-20260101120000-3F9A1C``."""
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    return f"{prefix}-{stamp}-{uuid4().hex[:6].upper()}"

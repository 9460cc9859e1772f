import hmac
import logging

from backend.config import settings
from backend.errors import PurgeForbidden, StoreWriteError
from backend.services.invoices import all_completed, list_results
from backend.services.notifications import NotificationSink
from backend.storage.base import DataStore
from backend.storage.namespaces import INVOICES, RESULTS

logger = logging.getLogger(__name__)


def _check_password(password: str) -> None:
    expected = settings.data_deletion_password
    if not expected or not hmac.compare_digest(password.encode(), expected.encode()):
        raise PurgeForbidden("Invalid data deletion password")


def purge_records(store: DataStore, password: str, scope: str, notifier: NotificationSink) -> int:
    """Delete invoices with their results. Returns the number of invoices removed."""
    _check_password(password)

    if scope == "all":
        invoice_ids = [invoice["id"] for invoice in store.list(INVOICES) if "id" in invoice]
        if invoice_ids:
            if not (store.clear(INVOICES) and store.clear(RESULTS)):
                raise StoreWriteError("Could not delete all records")
            notifier.publish(f"Deleted ALL {len(invoice_ids)} records.")
        return len(invoice_ids)

    by_invoice: dict[str, list] = {}
    for result in list_results(store):
        by_invoice.setdefault(result.invoice_id, []).append(result)

    invoice_ids = [invoice_id for invoice_id, results in by_invoice.items() if all_completed(results)]
    for invoice_id in invoice_ids:
        removed = [store.remove(RESULTS, result.id) for result in by_invoice[invoice_id]]
        if not (all(removed) and store.remove(INVOICES, invoice_id)):
            raise StoreWriteError(f"Could not delete invoice {invoice_id}")
    if invoice_ids:
        notifier.publish(f"Deleted {len(invoice_ids)} completed records.")
    logger.info("Purged %d invoice(s), scope=%s", len(invoice_ids), scope)
    return len(invoice_ids)

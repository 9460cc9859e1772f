import logging
from datetime import datetime, timezone

from backend.errors import NotFoundError
from backend.schemas.invoice import Invoice, InvoiceCreate, InvoiceListItem, InvoiceService
from backend.schemas.result import LabResult
from backend.services.catalog import get_service, initial_value, load, load_all, put, resolve_template
from backend.storage.base import DataStore
from backend.storage.namespaces import INVOICES, RESULTS, new_key

logger = logging.getLogger(__name__)


def apply_discount(subtotal: float, discount_value: float, discount_type: str) -> float:
    if discount_value <= 0:
        return subtotal
    if discount_type == "percentage":
        return subtotal * (1 - discount_value / 100)
    return max(0.0, subtotal - discount_value)


def create_invoice(store: DataStore, payload: InvoiceCreate, now: datetime | None = None) -> tuple[Invoice, list[LabResult]]:
    """Bill the selected services and open one pending result per billed service."""
    now = now or datetime.now(timezone.utc)
    billed: list[InvoiceService] = []
    for service_id in payload.service_ids:
        service = get_service(store, service_id)
        if service is None:
            logger.warning("Dropping unknown service %s from invoice", service_id)
            continue
        billed.append(InvoiceService(service_id=service.id, service_name=service.name, price=service.price))
    if not billed:
        raise ValueError("Invoice needs at least one known service")

    subtotal = sum(item.price for item in billed)
    invoice = Invoice(
        id=new_key("INV"),
        patient_id=payload.patient_id,
        services=billed,
        subtotal=subtotal,
        total=apply_discount(subtotal, payload.discount_value, payload.discount_type),
        date=now,
        discount_value=payload.discount_value,
        discount_type=payload.discount_type,
        billing_type=payload.billing_type,
        show_prices=payload.show_prices,
    )
    results = [
        LabResult(
            id=f"RES-{invoice.id.removeprefix('INV-')}-{position}",
            invoice_id=invoice.id,
            patient_id=payload.patient_id,
            service_id=item.service_id,
            position=position,
            value=initial_value(resolve_template(store, item.service_id)),
        )
        for position, item in enumerate(billed)
    ]

    put(store, INVOICES, invoice)
    for result in results:
        put(store, RESULTS, result)
    logger.info("Created invoice %s with %d result(s)", invoice.id, len(results))
    return invoice, results


def get_invoice(store: DataStore, invoice_id: str) -> Invoice | None:
    return load(Invoice, store.get(INVOICES, invoice_id), INVOICES)


def require_invoice(store: DataStore, invoice_id: str) -> Invoice:
    invoice = get_invoice(store, invoice_id)
    if invoice is None:
        raise NotFoundError(f"Invoice {invoice_id} not found")
    return invoice


def list_results(store: DataStore) -> list[LabResult]:
    return load_all(LabResult, store, RESULTS)


def list_results_for_invoice(store: DataStore, invoice_id: str) -> list[LabResult]:
    return sorted((r for r in list_results(store) if r.invoice_id == invoice_id), key=lambda r: r.position)


def get_result(store: DataStore, result_id: str) -> LabResult | None:
    return load(LabResult, store.get(RESULTS, result_id), RESULTS)


def put_result(store: DataStore, result: LabResult) -> bool:
    return store.set(RESULTS, result.id, result.model_dump(mode="json"))


def all_completed(results: list[LabResult]) -> bool:
    return bool(results) and all(r.status == "completed" for r in results)


def results_status(results: list[LabResult]) -> str | None:
    if not results:
        return None
    return "completed" if all_completed(results) else "pending"


def list_invoices(store: DataStore) -> list[InvoiceListItem]:
    by_invoice: dict[str, list[LabResult]] = {}
    for result in list_results(store):
        by_invoice.setdefault(result.invoice_id, []).append(result)

    items = [
        InvoiceListItem(**invoice.model_dump(), results_status=results_status(by_invoice.get(invoice.id, [])))
        for invoice in load_all(Invoice, store, INVOICES)
    ]
    return sorted(items, key=lambda item: item.date, reverse=True)

"""
Result entry workflow.

The status of a result is never set by hand: every save re-evaluates
completeness over exactly the value being written and derives ``status``,
``report_date`` and ``reported_by`` from it. When a save flips the whole
result set of an invoice into "all completed", one notification is published.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone

from backend.errors import NotFoundError, ResultShapeError
from backend.schemas.invoice import Invoice
from backend.schemas.report import InvoiceReport, ResultReport
from backend.schemas.result import LabResult, ResultEntry, ResultValue, ResultWithTemplate
from backend.schemas.template import ResultTemplate
from backend.services.catalog import get_patient, get_service, resolve_template
from backend.services.completion import is_complete
from backend.services.invoices import all_completed, get_invoice, get_result, list_results_for_invoice, put_result
from backend.services.notifications import NotificationSink
from backend.services.report_renderer import render_result
from backend.storage.base import DataStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SaveOutcome:
    ok: bool
    result: LabResult
    invoice_completed: bool = False


def check_shape(template: ResultTemplate | None, value: ResultValue) -> None:
    if template is not None and not isinstance(value, Mapping):
        raise ResultShapeError("This result is structured; send a mapping of field id to value")
    if template is None and not isinstance(value, str):
        raise ResultShapeError("This result is free text; send a string")


def merged_value(current: ResultValue, value: ResultValue) -> ResultValue:
    """Structured saves patch the stored mapping; ids the form does not show are kept."""
    if isinstance(current, Mapping) and isinstance(value, Mapping):
        return {**current, **value}
    return value


def apply_value(
    result: LabResult,
    template: ResultTemplate | None,
    value: ResultValue,
    acting_user_id: str,
    now: datetime,
) -> LabResult:
    """New snapshot of ``result`` holding ``value`` with its status derived from it."""
    complete = is_complete(template, value)
    return result.model_copy(
        update={
            "value": value,
            "status": "completed" if complete else "pending",
            "report_date": now if complete else None,
            "reported_by": acting_user_id,
        }
    )


def _publish_ready(store: DataStore, invoice_id: str, notifier: NotificationSink) -> None:
    invoice = get_invoice(store, invoice_id)
    if invoice is None:
        logger.warning("Results of unknown invoice %s completed; no notification sent", invoice_id)
        return
    patient = get_patient(store, invoice.patient_id)
    name = patient.name if patient else "a patient"
    notifier.publish(f"Results for {name} are ready to print.", link=f"/invoices/{invoice_id}/report")


def save_result_value(
    store: DataStore,
    result_id: str,
    value: ResultValue,
    acting_user_id: str,
    notifier: NotificationSink,
    now: datetime | None = None,
) -> SaveOutcome:
    result = get_result(store, result_id)
    if result is None:
        raise NotFoundError(f"Result {result_id} not found")

    template = resolve_template(store, result.service_id)
    check_shape(template, value)
    value = merged_value(result.value, value)

    siblings_before = list_results_for_invoice(store, result.invoice_id)
    updated = apply_value(result, template, value, acting_user_id, now or datetime.now(timezone.utc))

    if not put_result(store, updated):
        logger.warning("Store rejected write of result %s", result_id)
        return SaveOutcome(ok=False, result=result)

    if updated.status != result.status:
        logger.info("Result %s is now %s", result_id, updated.status)

    siblings_after = [updated if r.id == updated.id else r for r in siblings_before]
    completed_now = all_completed(siblings_after) and not all_completed(siblings_before)
    if completed_now:
        logger.info("All results of invoice %s completed", result.invoice_id)
        _publish_ready(store, result.invoice_id, notifier)
    return SaveOutcome(ok=True, result=updated, invoice_completed=completed_now)


def save_invoice_results(
    store: DataStore,
    invoice_id: str,
    entries: list[ResultEntry],
    acting_user_id: str,
    notifier: NotificationSink,
    now: datetime | None = None,
) -> list[SaveOutcome]:
    """Submit of the result-entry form: only results whose value changed are saved."""
    current = {r.id: r for r in list_results_for_invoice(store, invoice_id)}
    outcomes: list[SaveOutcome] = []
    for entry in entries:
        existing = current.get(entry.result_id)
        if existing is None:
            raise NotFoundError(f"Result {entry.result_id} does not belong to invoice {invoice_id}")
        if merged_value(existing.value, entry.value) == existing.value:
            continue
        outcomes.append(save_result_value(store, entry.result_id, entry.value, acting_user_id, notifier, now=now))
    return outcomes


def results_with_templates(store: DataStore, invoice_id: str) -> list[ResultWithTemplate]:
    items = []
    for result in list_results_for_invoice(store, invoice_id):
        template = resolve_template(store, result.service_id)
        service = get_service(store, result.service_id)
        value = result.value
        if template is not None and not isinstance(value, Mapping):
            # Service gained a template after the result was opened.
            value = {}
        items.append(
            ResultWithTemplate(
                **result.model_dump(exclude={"value"}),
                value=value,
                service_name=service.name if service else None,
                template=template,
                is_complete=is_complete(template, value),
            )
        )
    return items


def build_invoice_report(store: DataStore, invoice: Invoice, reporter_names: Mapping[str, str] | None = None) -> InvoiceReport:
    """Printable view of an invoice: one rendered block per result, in billing order."""
    reporter_names = reporter_names or {}
    patient = get_patient(store, invoice.patient_id)
    results = list_results_for_invoice(store, invoice.id)
    blocks = []
    for result in results:
        service = get_service(store, result.service_id)
        rendered = render_result(resolve_template(store, result.service_id), result.value)
        blocks.append(
            ResultReport(
                **rendered.model_dump(),
                result_id=result.id,
                service_id=result.service_id,
                service_name=service.name if service else None,
                status=result.status,
                reported_by=result.reported_by,
                reported_by_name=reporter_names.get(result.reported_by) if result.reported_by else None,
                report_date=result.report_date,
            )
        )
    return InvoiceReport(
        invoice_id=invoice.id,
        patient_id=invoice.patient_id,
        patient_name=patient.name if patient else None,
        date=invoice.date,
        complete=all_completed(results),
        results=blocks,
    )

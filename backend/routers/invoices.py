from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from backend.database import get_db
from backend.models.user import User
from backend.routers.deps import envelope, get_current_user, get_notifier, get_store
from backend.schemas.invoice import InvoiceCreate
from backend.schemas.result import InvoiceResultsUpdate, ResultValueUpdate
from backend.services.catalog import get_patient
from backend.services.invoices import create_invoice, list_invoices, list_results_for_invoice, require_invoice
from backend.services.notifications import NotificationSink
from backend.services.results import (
    build_invoice_report,
    results_with_templates,
    save_invoice_results,
    save_result_value,
)
from backend.storage.base import DataStore

router = APIRouter(prefix="/api", tags=["invoices"])


@router.post("/invoices")
def invoices_create(payload: InvoiceCreate, store: DataStore = Depends(get_store), current_user: User = Depends(get_current_user)):
    if get_patient(store, payload.patient_id) is None:
        raise HTTPException(status_code=404, detail="Patient not found")
    try:
        invoice, results = create_invoice(store, payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return envelope({"invoice": invoice, "results": results}, message="Invoice created")


@router.get("/invoices")
def invoices_index(store: DataStore = Depends(get_store), current_user: User = Depends(get_current_user)):
    return envelope(list_invoices(store))


@router.get("/invoices/{invoice_id}")
def invoice_detail(invoice_id: str, store: DataStore = Depends(get_store), current_user: User = Depends(get_current_user)):
    invoice = require_invoice(store, invoice_id)
    return envelope({"invoice": invoice, "results": list_results_for_invoice(store, invoice_id)})


@router.get("/invoices/{invoice_id}/results")
def invoice_results(invoice_id: str, store: DataStore = Depends(get_store), current_user: User = Depends(get_current_user)):
    require_invoice(store, invoice_id)
    return envelope(results_with_templates(store, invoice_id))


@router.put("/invoices/{invoice_id}/results")
def invoice_results_save(
    invoice_id: str,
    payload: InvoiceResultsUpdate,
    store: DataStore = Depends(get_store),
    notifier: NotificationSink = Depends(get_notifier),
    current_user: User = Depends(get_current_user),
):
    require_invoice(store, invoice_id)
    outcomes = save_invoice_results(store, invoice_id, payload.entries, current_user.id, notifier)
    if not all(outcome.ok for outcome in outcomes):
        raise HTTPException(status_code=503, detail="Some results could not be saved")
    return envelope(
        {
            "saved": [outcome.result for outcome in outcomes],
            "invoice_completed": any(outcome.invoice_completed for outcome in outcomes),
        },
        message="Results saved",
    )


@router.put("/results/{result_id}")
def result_save(
    result_id: str,
    payload: ResultValueUpdate,
    store: DataStore = Depends(get_store),
    notifier: NotificationSink = Depends(get_notifier),
    current_user: User = Depends(get_current_user),
):
    outcome = save_result_value(store, result_id, payload.value, current_user.id, notifier)
    if not outcome.ok:
        raise HTTPException(status_code=503, detail="Result could not be saved")
    return envelope({"result": outcome.result, "invoice_completed": outcome.invoice_completed}, message="Result saved")


@router.get("/invoices/{invoice_id}/report")
def invoice_report(
    invoice_id: str,
    store: DataStore = Depends(get_store),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    invoice = require_invoice(store, invoice_id)
    reporter_ids = {r.reported_by for r in list_results_for_invoice(store, invoice_id) if r.reported_by}
    reporters = db.query(User).filter(User.id.in_(reporter_ids)).all() if reporter_ids else []
    names = {user.id: user.display_name for user in reporters}
    return envelope(build_invoice_report(store, invoice, names))

from fastapi import APIRouter, Depends, HTTPException

from backend.models.user import User
from backend.routers.deps import envelope, get_current_user, get_store
from backend.schemas.catalog import PatientCreate, ServiceCreate, ServiceUpdate
from backend.services import catalog
from backend.storage.base import DataStore

router = APIRouter(prefix="/api", tags=["catalog"])


@router.get("/patients")
def patients_index(store: DataStore = Depends(get_store), current_user: User = Depends(get_current_user)):
    return envelope(catalog.list_patients(store))


@router.post("/patients")
def patients_create(payload: PatientCreate, store: DataStore = Depends(get_store), current_user: User = Depends(get_current_user)):
    if catalog.find_patient_by_document(store, payload.document_id):
        raise HTTPException(status_code=400, detail="A patient with this document id already exists")
    return envelope(catalog.create_patient(store, payload), message="Patient created")


@router.get("/patients/{patient_id}")
def patient_detail(patient_id: str, store: DataStore = Depends(get_store), current_user: User = Depends(get_current_user)):
    patient = catalog.get_patient(store, patient_id)
    if patient is None:
        raise HTTPException(status_code=404, detail="Patient not found")
    return envelope(patient)


@router.get("/services")
def services_index(store: DataStore = Depends(get_store), current_user: User = Depends(get_current_user)):
    return envelope(catalog.list_services(store))


@router.post("/services")
def services_create(payload: ServiceCreate, store: DataStore = Depends(get_store), current_user: User = Depends(get_current_user)):
    return envelope(catalog.create_service(store, payload), message="Service created")


@router.get("/services/{service_id}")
def service_detail(service_id: str, store: DataStore = Depends(get_store), current_user: User = Depends(get_current_user)):
    service = catalog.get_service(store, service_id)
    if service is None:
        raise HTTPException(status_code=404, detail="Service not found")
    return envelope(service)


@router.put("/services/{service_id}")
def service_update(
    service_id: str,
    payload: ServiceUpdate,
    store: DataStore = Depends(get_store),
    current_user: User = Depends(get_current_user),
):
    service = catalog.get_service(store, service_id)
    if service is None:
        raise HTTPException(status_code=404, detail="Service not found")
    return envelope(catalog.update_service(store, service, payload), message="Service updated")

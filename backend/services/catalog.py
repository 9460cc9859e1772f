import logging
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from backend.errors import StoreWriteError
from backend.schemas.catalog import Patient, PatientCreate, Service, ServiceCreate, ServiceUpdate
from backend.schemas.template import ResultTemplate
from backend.storage.base import DataStore
from backend.storage.namespaces import PATIENTS, SERVICES, TEMPLATES, new_key

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def load(model: type[ModelT], payload: dict | None, namespace: str) -> ModelT | None:
    if payload is None:
        return None
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        logger.warning("Skipping malformed %s document %s: %s", namespace, payload.get("id"), exc.errors())
        return None


def load_all(model: type[ModelT], store: DataStore, namespace: str) -> list[ModelT]:
    items = (load(model, payload, namespace) for payload in store.list(namespace))
    return [item for item in items if item is not None]


def put(store: DataStore, namespace: str, item: BaseModel) -> None:
    if not store.set(namespace, item.id, item.model_dump(mode="json")):
        raise StoreWriteError(f"Could not save {namespace}/{item.id}")


# Patients

def get_patient(store: DataStore, patient_id: str) -> Patient | None:
    return load(Patient, store.get(PATIENTS, patient_id), PATIENTS)


def list_patients(store: DataStore) -> list[Patient]:
    return sorted(load_all(Patient, store, PATIENTS), key=lambda p: p.name.lower())


def create_patient(store: DataStore, payload: PatientCreate) -> Patient:
    patient = Patient(id=new_key("PAT"), **payload.model_dump())
    put(store, PATIENTS, patient)
    return patient


def find_patient_by_document(store: DataStore, document_id: str) -> Patient | None:
    return next((p for p in list_patients(store) if p.document_id == document_id), None)


# Services

def get_service(store: DataStore, service_id: str) -> Service | None:
    return load(Service, store.get(SERVICES, service_id), SERVICES)


def list_services(store: DataStore) -> list[Service]:
    return sorted(load_all(Service, store, SERVICES), key=lambda s: s.name.lower())


def create_service(store: DataStore, payload: ServiceCreate) -> Service:
    service = Service(id=new_key("SRV"), **payload.model_dump())
    put(store, SERVICES, service)
    return service


def update_service(store: DataStore, service: Service, changes: ServiceUpdate) -> Service:
    updated = service.model_copy(update=changes.model_dump(exclude_unset=True))
    put(store, SERVICES, updated)
    return updated


# Templates

def get_template(store: DataStore, template_id: str) -> ResultTemplate | None:
    return load(ResultTemplate, store.get(TEMPLATES, template_id), TEMPLATES)


def list_templates(store: DataStore) -> list[ResultTemplate]:
    return load_all(ResultTemplate, store, TEMPLATES)


def save_template(store: DataStore, template: ResultTemplate) -> None:
    put(store, TEMPLATES, template)


def delete_template(store: DataStore, template_id: str) -> bool:
    # Services and results keep their template_id; lookups degrade to unstructured.
    return store.remove(TEMPLATES, template_id)


def resolve_template(store: DataStore, service_id: str) -> ResultTemplate | None:
    """Template bound to a service, or ``None`` for free-text results.

    Dangling service or template ids degrade to ``None``.
    """
    service = get_service(store, service_id)
    if service is None:
        logger.warning("Result references unknown service %s; treating as free text", service_id)
        return None
    if not service.template_id:
        return None
    template = get_template(store, service.template_id)
    if template is None:
        logger.warning("Service %s references missing template %s; treating as free text", service_id, service.template_id)
    return template


def initial_value(template: ResultTemplate | None) -> dict | str:
    return {} if template is not None else ""

import logging

from backend.database import session_scope
from backend.storage import DataStore, open_store
from backend.storage.namespaces import SERVICES, TEMPLATES

logger = logging.getLogger(__name__)


def _num(field_id: str, label: str, unit: str, reference_range: str) -> dict:
    return {"id": field_id, "label": label, "type": "number", "unit": unit, "reference_range": reference_range}


HEMOGRAM_TEMPLATE = {
    "id": "TPL-HEMO",
    "name": "Complete Blood Count",
    "fields": [
        {
            "id": "grp_rbc",
            "label": "Red Cell Series",
            "type": "group",
            "children": [
                _num("rbc_count", "Red blood cell count (erythrocytes)", "million/uL", "M: 4.7-6.1, F: 4.2-5.4"),
                _num("hemoglobin", "Hemoglobin (Hb)", "g/dL", "M: 13.8-17.2, F: 12.1-15.1"),
                _num("hematocrit", "Hematocrit (Hct)", "%", "M: 40-54, F: 36-48"),
            ],
        },
        {
            "id": "grp_indices",
            "label": "Red Cell Indices",
            "type": "group",
            "children": [
                _num("mcv", "MCV (Mean Corpuscular Volume)", "fL", "80-100"),
                _num("mch", "MCH (Mean Corpuscular Hemoglobin)", "pg", "27-33"),
                _num("mchc", "MCHC (Mean Corpuscular Hemoglobin Concentration)", "g/dL", "32-36"),
                _num("rdw", "RDW (Red Cell Distribution Width)", "%", "11.5-14.5"),
            ],
        },
        {
            "id": "grp_wbc",
            "label": "White Cell Series (Leukocytes)",
            "type": "group",
            "children": [
                _num("wbc_total", "Total leukocyte count", "/uL", "4,000-11,000"),
                {
                    "id": "wbc_differential",
                    "label": "Differential count",
                    "type": "group",
                    "children": [
                        _num("neutrophils", "Neutrophils", "%", "50-70"),
                        _num("lymphocytes", "Lymphocytes", "%", "20-40"),
                        _num("monocytes", "Monocytes", "%", "2-8"),
                        _num("eosinophils", "Eosinophils", "%", "1-4"),
                        _num("basophils", "Basophils", "%", "0.5-1"),
                    ],
                },
            ],
        },
        {
            "id": "grp_platelets",
            "label": "Platelets (Thrombocytes)",
            "type": "group",
            "children": [
                _num("platelet_count", "Platelet count", "/uL", "150,000-450,000"),
                _num("mpv", "MPV (Mean Platelet Volume)", "fL", "7.5-11.5"),
            ],
        },
        {"id": "observations", "label": "Observations", "type": "textarea"},
    ],
}

SERVICES_SEED = [
    {"id": "SRV-1", "name": "Complete Blood Count", "price": 25000, "description": "Full blood analysis.", "template_id": "TPL-HEMO"},
    {"id": "SRV-2", "name": "Lipid Profile", "price": 40000, "description": "Cholesterol and triglycerides.", "template_id": None},
    {"id": "SRV-3", "name": "Fasting Glucose", "price": 15000, "description": "Blood sugar level.", "template_id": None},
]


def seed_store(store: DataStore) -> None:
    if store.get(TEMPLATES, HEMOGRAM_TEMPLATE["id"]) is None:
        store.set(TEMPLATES, HEMOGRAM_TEMPLATE["id"], HEMOGRAM_TEMPLATE)
    if not store.list(SERVICES):
        for item in SERVICES_SEED:
            store.set(SERVICES, item["id"], item)
        logger.info("Seeded %d default services", len(SERVICES_SEED))


def seed_catalog():
    with session_scope() as db:
        seed_store(open_store(db))

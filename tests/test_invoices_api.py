import pytest

from backend.config import settings


def _data(response):
    assert response.status_code == 200, response.json()
    return response.json()["data"]


@pytest.fixture()
def patient(client, auth_headers):
    return _data(
        client.post(
            "/api/patients",
            json={"name": "Ana Torres", "document_id": "1020304050", "gender": "Female"},
            headers=auth_headers,
        )
    )


@pytest.fixture()
def invoice(client, auth_headers, seeded_store, patient):
    return _data(
        client.post(
            "/api/invoices",
            json={"patient_id": patient["id"], "service_ids": ["SRV-1", "SRV-3"], "discount_value": 10},
            headers=auth_headers,
        )
    )


def _hemogram_values(client, auth_headers, invoice_id):
    results = _data(client.get(f"/api/invoices/{invoice_id}/results", headers=auth_headers))
    template = results[0]["template"]

    def leaves(fields):
        for field in fields:
            if field["type"] == "group":
                yield from leaves(field["children"])
            else:
                yield field["id"]

    return {field_id: "5" for field_id in leaves(template["fields"])}


def test_patient_document_ids_are_unique(client, auth_headers, patient):
    response = client.post("/api/patients", json={"name": "Other", "document_id": "1020304050"}, headers=auth_headers)
    assert response.status_code == 400
    assert [p["id"] for p in _data(client.get("/api/patients", headers=auth_headers))] == [patient["id"]]
    assert client.get("/api/patients/PAT-NOPE", headers=auth_headers).status_code == 404


def test_services_can_be_created_and_bound_to_a_template(client, auth_headers, seeded_store):
    created = _data(client.post("/api/services", json={"name": "Urinalysis", "price": 12000}, headers=auth_headers))
    assert created["template_id"] is None

    updated = _data(
        client.put(f"/api/services/{created['id']}", json={"template_id": "TPL-HEMO"}, headers=auth_headers)
    )
    assert updated["template_id"] == "TPL-HEMO"
    assert updated["name"] == "Urinalysis"
    names = [s["name"] for s in _data(client.get("/api/services", headers=auth_headers))]
    assert names == ["Complete Blood Count", "Fasting Glucose", "Lipid Profile", "Urinalysis"]


def test_invoice_opens_one_pending_result_per_service(client, auth_headers, invoice):
    assert invoice["invoice"]["subtotal"] == 40000
    assert invoice["invoice"]["total"] == pytest.approx(36000)
    assert [r["value"] for r in invoice["results"]] == [{}, ""]
    assert {r["status"] for r in invoice["results"]} == {"pending"}

    listed = _data(client.get("/api/invoices", headers=auth_headers))
    assert listed[0]["id"] == invoice["invoice"]["id"]
    assert listed[0]["results_status"] == "pending"


def test_invoice_for_unknown_patient_or_services(client, auth_headers, seeded_store, patient):
    missing = client.post("/api/invoices", json={"patient_id": "PAT-NOPE", "service_ids": ["SRV-1"]}, headers=auth_headers)
    assert missing.status_code == 404
    unknown = client.post("/api/invoices", json={"patient_id": patient["id"], "service_ids": ["SRV-X"]}, headers=auth_headers)
    assert unknown.status_code == 400
    assert client.get("/api/invoices/INV-NOPE", headers=auth_headers).status_code == 404


def test_result_entry_flow_notifies_once(client, auth_headers, invoice):
    invoice_id = invoice["invoice"]["id"]
    hemo_id, glucose_id = (r["id"] for r in invoice["results"])

    forms = _data(client.get(f"/api/invoices/{invoice_id}/results", headers=auth_headers))
    assert forms[0]["template"]["id"] == "TPL-HEMO"
    assert forms[0]["is_complete"] is False
    assert forms[1]["template"] is None

    saved = _data(
        client.put(f"/api/results/{hemo_id}", json={"value": _hemogram_values(client, auth_headers, invoice_id)}, headers=auth_headers)
    )
    assert saved["result"]["status"] == "completed"
    assert saved["invoice_completed"] is False

    me = client.get("/api/auth/me", headers=auth_headers).json()
    batch = _data(
        client.put(
            f"/api/invoices/{invoice_id}/results",
            json={"entries": [{"result_id": glucose_id, "value": "Fasting glucose: 92 mg/dL"}]},
            headers=auth_headers,
        )
    )
    assert batch["invoice_completed"] is True
    assert batch["saved"][0]["reported_by"] == me["id"]
    assert batch["saved"][0]["report_date"] is not None

    notifications = _data(client.get("/api/notifications", headers=auth_headers))
    assert notifications["unread"] == 1
    assert notifications["notifications"][0]["message"] == "Results for Ana Torres are ready to print."
    assert notifications["notifications"][0]["link"] == f"/invoices/{invoice_id}/report"

    _data(client.put(f"/api/results/{glucose_id}", json={"value": "Fasting glucose: 95 mg/dL"}, headers=auth_headers))
    assert _data(client.get("/api/notifications", headers=auth_headers))["unread"] == 1

    _data(client.post("/api/notifications/read-all", headers=auth_headers))
    assert _data(client.get("/api/notifications", headers=auth_headers))["unread"] == 0
    _data(client.delete("/api/notifications", headers=auth_headers))
    assert _data(client.get("/api/notifications", headers=auth_headers))["notifications"] == []


def test_clearing_a_value_reopens_the_result(client, auth_headers, invoice):
    glucose_id = invoice["results"][1]["id"]
    _data(client.put(f"/api/results/{glucose_id}", json={"value": "92"}, headers=auth_headers))
    reopened = _data(client.put(f"/api/results/{glucose_id}", json={"value": "  "}, headers=auth_headers))
    assert reopened["result"]["status"] == "pending"
    assert reopened["result"]["report_date"] is None


def test_wrong_value_shape_is_rejected(client, auth_headers, invoice):
    hemo_id = invoice["results"][0]["id"]
    response = client.put(f"/api/results/{hemo_id}", json={"value": "free text"}, headers=auth_headers)
    assert response.status_code == 422
    assert response.json()["error"] == "ValidationError"
    assert client.put("/api/results/RES-NOPE", json={"value": "x"}, headers=auth_headers).status_code == 404


def test_report_lists_rows_with_placeholders(client, auth_headers, invoice):
    invoice_id = invoice["invoice"]["id"]
    hemo_id, glucose_id = (r["id"] for r in invoice["results"])
    _data(client.put(f"/api/results/{hemo_id}", json={"value": {"hemoglobin": 14.2}}, headers=auth_headers))
    _data(client.put(f"/api/results/{glucose_id}", json={"value": "92 mg/dL"}, headers=auth_headers))

    report = _data(client.get(f"/api/invoices/{invoice_id}/report", headers=auth_headers))
    assert report["patient_name"] == "Ana Torres"
    assert report["complete"] is False

    hemo, glucose = report["results"]
    assert hemo["structured"] is True
    assert hemo["status"] == "pending"
    assert hemo["rows"][0] == {
        "kind": "section",
        "field_id": "grp_rbc",
        "label": "Red Cell Series",
        "depth": 0,
        "value": None,
        "unit": None,
        "reference_range": None,
    }
    rows = {row["field_id"]: row for row in hemo["rows"]}
    assert rows["hemoglobin"]["value"] == "14.2"
    assert rows["neutrophils"]["depth"] == 2
    assert rows["observations"]["kind"] == "text"
    assert rows["observations"]["value"] == "N/A"

    assert glucose["structured"] is False
    assert glucose["text"] == "92 mg/dL"
    assert glucose["reported_by_name"] == "Lab Tech"


def test_purge_requires_configured_password(client, auth_headers, invoice, monkeypatch):
    response = client.post("/api/records/purge", json={"password": "anything"}, headers=auth_headers)
    assert response.status_code == 403
    assert response.json()["error"] == "Forbidden"

    monkeypatch.setattr(settings, "data_deletion_password", "s3cret")
    assert client.post("/api/records/purge", json={"password": "wrong"}, headers=auth_headers).status_code == 403


def test_purge_completed_keeps_pending_invoices(client, auth_headers, invoice, monkeypatch):
    monkeypatch.setattr(settings, "data_deletion_password", "s3cret")
    glucose_only = _data(
        client.post(
            "/api/invoices",
            json={"patient_id": invoice["invoice"]["patient_id"], "service_ids": ["SRV-3"]},
            headers=auth_headers,
        )
    )
    _data(client.put(f"/api/results/{glucose_only['results'][0]['id']}", json={"value": "90"}, headers=auth_headers))

    purged = _data(client.post("/api/records/purge", json={"password": "s3cret"}, headers=auth_headers))
    assert purged["removed_invoices"] == 1
    remaining = [i["id"] for i in _data(client.get("/api/invoices", headers=auth_headers))]
    assert remaining == [invoice["invoice"]["id"]]

    purged = _data(client.post("/api/records/purge", json={"password": "s3cret", "scope": "all"}, headers=auth_headers))
    assert purged["removed_invoices"] == 1
    assert _data(client.get("/api/invoices", headers=auth_headers)) == []

    messages = [n["message"] for n in _data(client.get("/api/notifications", headers=auth_headers))["notifications"]]
    assert "Deleted 1 completed records." in messages
    assert "Deleted ALL 1 records." in messages

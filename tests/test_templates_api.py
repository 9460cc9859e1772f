def _data(response):
    assert response.status_code == 200, response.json()
    return response.json()["data"]


def test_seeded_template_is_listed(client, auth_headers, seeded_store):
    summaries = _data(client.get("/api/templates", headers=auth_headers))
    assert summaries == [{"id": "TPL-HEMO", "name": "Complete Blood Count", "field_count": 21}]

    template = _data(client.get("/api/templates/TPL-HEMO", headers=auth_headers))
    assert [field["id"] for field in template["fields"]][-1] == "observations"


def test_build_and_commit_new_template(client, auth_headers):
    draft = _data(client.post("/api/templates/drafts", json={"name": "Urinalysis"}, headers=auth_headers))
    draft_id = draft["id"]
    assert draft["template_id"] is None
    assert draft["fields"] == []

    group = {"id": "physical", "label": "Physical exam", "type": "group"}
    _data(client.post(f"/api/templates/drafts/{draft_id}/fields", json={"field": group}, headers=auth_headers))
    draft = _data(
        client.post(
            f"/api/templates/drafts/{draft_id}/fields",
            json={"parent_path": [0], "field": {"id": "color", "label": "Color", "type": "textarea"}},
            headers=auth_headers,
        )
    )
    draft = _data(client.post(f"/api/templates/drafts/{draft_id}/fields", json={}, headers=auth_headers))
    assert draft["fields"][1]["type"] == "number"
    assert draft["fields"][1]["id"].startswith("field-")

    draft = _data(
        client.patch(
            f"/api/templates/drafts/{draft_id}/fields",
            json={"path": [1], "props": {"id": "ph", "label": "pH", "reference_range": "4.5-8"}},
            headers=auth_headers,
        )
    )
    assert draft["fields"][1] == {
        "id": "ph",
        "label": "pH",
        "type": "number",
        "unit": None,
        "reference_range": "4.5-8",
    }

    template = _data(client.post(f"/api/templates/drafts/{draft_id}/commit", headers=auth_headers))
    assert template["id"].startswith("TPL-")
    assert template["name"] == "Urinalysis"
    assert template["fields"][0]["children"][0]["id"] == "color"

    assert client.get(f"/api/templates/drafts/{draft_id}", headers=auth_headers).status_code == 404
    stored = _data(client.get(f"/api/templates/{template['id']}", headers=auth_headers))
    assert stored == template


def test_editing_a_copy_leaves_template_untouched_until_commit(client, auth_headers, seeded_store):
    draft = _data(client.post("/api/templates/drafts", json={"template_id": "TPL-HEMO"}, headers=auth_headers))
    assert draft["name"] == "Complete Blood Count"

    _data(client.post(f"/api/templates/drafts/{draft['id']}/fields/remove", json={"path": [0]}, headers=auth_headers))
    _data(client.patch(f"/api/templates/drafts/{draft['id']}", json={"name": "CBC"}, headers=auth_headers))

    untouched = _data(client.get("/api/templates/TPL-HEMO", headers=auth_headers))
    assert untouched["name"] == "Complete Blood Count"
    assert untouched["fields"][0]["id"] == "grp_rbc"

    assert client.delete(f"/api/templates/drafts/{draft['id']}", headers=auth_headers).status_code == 200
    assert _data(client.get("/api/templates/TPL-HEMO", headers=auth_headers)) == untouched


def test_commit_of_copy_overwrites_in_place(client, auth_headers, seeded_store):
    draft = _data(client.post("/api/templates/drafts", json={"template_id": "TPL-HEMO"}, headers=auth_headers))
    _data(
        client.patch(
            f"/api/templates/drafts/{draft['id']}/fields",
            json={"path": [0], "props": {"type": "textarea"}},
            headers=auth_headers,
        )
    )
    template = _data(client.post(f"/api/templates/drafts/{draft['id']}/commit", headers=auth_headers))
    assert template["id"] == "TPL-HEMO"
    assert template["fields"][0] == {"id": "grp_rbc", "label": "Red Cell Series", "type": "textarea"}


def test_invalid_edits_are_rejected_without_changing_draft(client, auth_headers):
    draft = _data(client.post("/api/templates/drafts", json={"name": "T"}, headers=auth_headers))
    url = f"/api/templates/drafts/{draft['id']}/fields"
    _data(client.post(url, json={"field": {"id": "a", "type": "number"}}, headers=auth_headers))

    bad_parent = client.post(url, json={"parent_path": [0], "field": {"id": "b", "type": "number"}}, headers=auth_headers)
    assert bad_parent.status_code == 400
    assert bad_parent.json()["error"] == "BadRequest"

    duplicate = client.post(url, json={"field": {"id": "a", "type": "textarea"}}, headers=auth_headers)
    assert duplicate.status_code == 400

    out_of_range = client.post(f"{url}/remove", json={"path": [3]}, headers=auth_headers)
    assert out_of_range.status_code == 400

    unknown_type = client.post(url, json={"field": {"id": "c", "type": "checkbox"}}, headers=auth_headers)
    assert unknown_type.status_code == 422

    current = _data(client.get(f"/api/templates/drafts/{draft['id']}", headers=auth_headers))
    assert [field["id"] for field in current["fields"]] == ["a"]


def test_renaming_a_group_to_its_child_id_is_rejected(client, auth_headers):
    draft = _data(client.post("/api/templates/drafts", json={"name": "T"}, headers=auth_headers))
    url = f"/api/templates/drafts/{draft['id']}/fields"
    _data(client.post(url, json={"field": {"id": "grp", "type": "group"}}, headers=auth_headers))
    _data(client.post(url, json={"parent_path": [0], "field": {"id": "child", "type": "number"}}, headers=auth_headers))

    clash = client.patch(url, json={"path": [0], "props": {"id": "child"}}, headers=auth_headers)
    assert clash.status_code == 400

    current = client.get(f"/api/templates/drafts/{draft['id']}", headers=auth_headers)
    assert current.status_code == 200
    assert current.json()["data"]["fields"][0]["id"] == "grp"
    assert client.post(f"/api/templates/drafts/{draft['id']}/commit", headers=auth_headers).status_code == 200


def test_unknown_template_and_draft(client, auth_headers):
    assert client.get("/api/templates/TPL-NOPE", headers=auth_headers).status_code == 404
    response = client.post("/api/templates/drafts", json={"template_id": "TPL-NOPE"}, headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["error"] == "NotFound"
    assert client.delete("/api/templates/drafts/DRAFT-NOPE", headers=auth_headers).status_code == 404


def test_delete_template_keeps_services_pointing_at_it(client, auth_headers, seeded_store):
    assert client.delete("/api/templates/TPL-HEMO", headers=auth_headers).status_code == 200
    assert client.get("/api/templates/TPL-HEMO", headers=auth_headers).status_code == 404
    service = _data(client.get("/api/services/SRV-1", headers=auth_headers))
    assert service["template_id"] == "TPL-HEMO"

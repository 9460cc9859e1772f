def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["data_source"] == "local"
    assert payload["store_reachable"] is True


def test_register_and_login(client):
    register_response = client.post(
        "/api/auth/register",
        json={
            "email": "test@example.com",
            "password": "secret123",
            "full_name": "Test User",
            "professional_title": "Bacteriologist",
        },
    )
    assert register_response.status_code == 200
    register_payload = register_response.json()
    assert "token" in register_payload
    assert register_payload["user"]["email"] == "test@example.com"
    assert register_payload["user"]["professional_title"] == "Bacteriologist"

    login_response = client.post("/api/auth/login", json={"email": "test@example.com", "password": "secret123"})
    assert login_response.status_code == 200
    login_payload = login_response.json()
    assert "token" in login_payload


def test_duplicate_registration_is_rejected(client):
    body = {"email": "dup@example.com", "password": "secret123"}
    assert client.post("/api/auth/register", json=body).status_code == 200
    response = client.post("/api/auth/register", json=body)
    assert response.status_code == 400
    assert response.json()["error"] == "BadRequest"


def test_error_envelope_on_invalid_login(client):
    response = client.post("/api/auth/login", json={"email": "missing@example.com", "password": "bad"})
    assert response.status_code == 401
    payload = response.json()
    assert payload["statusCode"] == 401
    assert payload["error"] == "Unauthorized"
    assert payload["message"] == "Invalid credentials"


def test_me_and_logout(client, auth_headers):
    me = client.get("/api/auth/me", headers=auth_headers)
    assert me.status_code == 200
    assert me.json()["full_name"] == "Lab Tech"

    assert client.post("/api/auth/logout", headers=auth_headers).status_code == 200
    assert client.get("/api/auth/me", headers=auth_headers).status_code == 401


def test_protected_routes_need_a_token(client):
    response = client.get("/api/templates")
    assert response.status_code == 401
    assert response.json()["message"] == "Missing or invalid Authorization header"


def test_validation_errors_use_the_envelope(client, auth_headers):
    response = client.post("/api/invoices", json={"patient_id": "P-1", "service_ids": []}, headers=auth_headers)
    assert response.status_code == 422
    payload = response.json()
    assert payload["error"] == "ValidationError"
    assert payload["details"]["errors"]


def test_display_name_signs_with_title():
    from backend.models.user import User

    assert User(email="a@example.com", full_name="Ana Ruiz", professional_title="Bacteriologist").display_name == "Ana Ruiz, Bacteriologist"
    assert User(email="a@example.com").display_name == "a@example.com"

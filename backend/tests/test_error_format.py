from __future__ import annotations


def _assert_error_shape(res, *, error: str | None = None):
    data = res.json()
    assert isinstance(data, dict)
    assert isinstance(data.get("error"), str) and data["error"]
    assert isinstance(data.get("message"), str) and data["message"]
    if error is not None:
        assert data["error"] == error


def test_error_shape_400_missing_log_fields(anon_client):
    res = anon_client.post("/api/logs", json={})
    assert res.status_code == 400
    _assert_error_shape(res, error="VALIDATION_ERROR")


def test_error_shape_401_missing_token(anon_client):
    res = anon_client.get("/api/jobs")
    assert res.status_code == 401
    _assert_error_shape(res, error="UNAUTHORIZED")


def test_error_shape_404_job_not_found(client):
    res = client.get("/api/jobs/999999")
    assert res.status_code == 404
    _assert_error_shape(res, error="NOT_FOUND")
    assert res.json()["message"] == "Job application not found"


def test_error_shape_404_unknown_route(anon_client):
    res = anon_client.get("/api/does-not-exist")
    assert res.status_code == 404
    _assert_error_shape(res, error="NOT_FOUND")
    assert res.json()["message"] == "Endpoint not found"


def test_error_shape_409_duplicate_username(anon_client):
    body = {"username": "dupe_user", "password": "Password_12345"}
    assert anon_client.post("/api/auth/register", json=body).status_code == 201
    res = anon_client.post("/api/auth/register", json=body)
    assert res.status_code == 409
    _assert_error_shape(res, error="CONFLICT")


def test_error_shape_422_request_validation_error(client):
    res = client.put("/api/auth/me/theme", json={"theme": "neon"})
    assert res.status_code == 422
    _assert_error_shape(res, error="VALIDATION_ERROR")
    body = res.json()
    assert isinstance(body.get("details"), dict)
    assert isinstance(body["details"].get("errors"), list)


def test_health_and_root(anon_client):
    res = anon_client.get("/health")
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "healthy"
    assert body["timestamp"].endswith("Z")
    assert body["uptime"] >= 0

    root = anon_client.get("/").json()
    assert root["message"] == "Job Search Tracker API"
    assert root["endpoints"]["logs"] == "/api/logs"

from __future__ import annotations


def _assert_error_shape(res, *, error: str | None = None):
    data = res.json()
    assert isinstance(data, dict)
    assert isinstance(data.get("error"), str) and data["error"]
    assert isinstance(data.get("message"), str) and data["message"]
    if error is not None:
        assert data["error"] == error


def test_error_shape_401_missing_token(client):
    res = client.get("/profiles/me")
    assert res.status_code == 401
    _assert_error_shape(res, error="UNAUTHORIZED")
    assert res.headers.get("www-authenticate") == "Bearer"


def test_error_shape_401_garbage_token(client):
    res = client.get("/profiles/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401
    _assert_error_shape(res, error="UNAUTHORIZED")


def test_error_shape_403_wrong_role(client_for, student):
    with client_for(student) as c:
        res = c.get("/earnings/me")
    assert res.status_code == 403
    _assert_error_shape(res, error="FORBIDDEN")


def test_error_shape_404_course_not_found(client):
    res = client.get("/courses/nope")
    assert res.status_code == 404
    _assert_error_shape(res, error="NOT_FOUND")


def test_error_shape_422_request_validation_error(client_for, educator):
    with client_for(educator) as c:
        res = c.post("/courses", json={"title": "", "price_minor": -5})
    assert res.status_code == 422
    _assert_error_shape(res, error="VALIDATION_ERROR")
    body = res.json()
    assert isinstance(body.get("details"), dict)
    assert isinstance(body["details"].get("errors"), list)


def test_error_shape_400_webhook_signature(send_webhook):
    res = send_webhook({"event": "charge.success"}, signature="bad")
    assert res.status_code == 400
    _assert_error_shape(res, error="VALIDATION_ERROR")


def test_health_endpoints(client):
    assert client.get("/health").json() == {"status": "ok"}
    ready = client.get("/health/ready")
    assert ready.status_code == 200
    assert ready.json()["database"] == "ok"


def test_request_id_is_echoed_or_generated(client):
    echoed = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert echoed.headers["X-Request-ID"] == "req-123"

    generated = client.get("/health", headers={"X-Request-ID": "bad id with spaces"})
    assert generated.headers["X-Request-ID"] != "bad id with spaces"
    assert len(generated.headers["X-Request-ID"]) == 32

from fastapi import FastAPI
from fastapi.testclient import TestClient

from visit_scheduler.errors import NoSlotAvailable, SlotTaken, register_error_handlers
from visit_scheduler.main import app


def test_health_endpoints():
    client = TestClient(app)
    assert client.get("/ping").json() == {"ok": True}
    assert client.get("/health").json() == {"status": "ok"}

    ready = client.get("/health/ready")
    assert ready.status_code == 200
    assert ready.json()["checks"]["db"] == "ok"


def test_request_id_is_echoed_or_generated():
    client = TestClient(app)
    echoed = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert echoed.headers.get("X-Request-ID") == "req-123"

    generated = client.get("/health")
    assert generated.headers.get("X-Request-ID")


def test_request_id_is_set_on_booking_errors():
    client = TestClient(app)
    res = client.get("/api/apartments/999999/slots", params={"day": "2026-10-19"}, headers={"X-Request-ID": "req-456"})
    assert res.status_code == 404
    assert res.json()["detail"]["code"] == "not_found"
    assert res.headers.get("X-Request-ID") == "req-456"


def test_booking_errors_render_code_and_retry_hint():
    not_retryable = NoSlotAvailable("No available slots on the preferred date").to_response()
    assert not_retryable.status_code == 400
    assert "retry-after" not in not_retryable.headers

    retryable = SlotTaken("taken").to_response()
    assert retryable.status_code == 409
    assert retryable.headers.get("Retry-After") == "1"


def test_error_handlers_render_payloads():
    errors_app = FastAPI()
    register_error_handlers(errors_app)

    @errors_app.get("/taken")
    def taken():
        raise SlotTaken("taken", details={"date": "2026-10-19"})

    @errors_app.get("/boom")
    def boom():
        raise RuntimeError("boom")

    client = TestClient(errors_app, raise_server_exceptions=False)

    res = client.get("/taken")
    assert res.status_code == 409
    assert res.headers.get("Retry-After") == "1"
    assert res.json() == {
        "detail": {
            "code": "slot_taken",
            "message": "taken",
            "details": {"date": "2026-10-19"},
            "retryable": True,
        }
    }

    res = client.get("/boom")
    assert res.status_code == 500
    assert res.json()["detail"]["code"] == "internal"
    assert "boom" not in res.text

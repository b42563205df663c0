from fastapi.testclient import TestClient

from academy.api.routes import health as health_routes
from academy.main import app


async def _ok_check() -> dict[str, str]:
    return {"status": "ok"}


def test_health_ok(monkeypatch) -> None:
    monkeypatch.setattr(health_routes, "_check_database", _ok_check)
    monkeypatch.setattr(health_routes, "_check_redis", _ok_check)

    client = TestClient(app)
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "checks": {
            "database": {"status": "ok"},
            "redis": {"status": "ok"},
        },
    }


def test_health_returns_503_when_dependency_failed(monkeypatch) -> None:
    async def _failed_redis() -> dict[str, str]:
        return {"status": "failed", "error": "ConnectionError"}

    monkeypatch.setattr(health_routes, "_check_database", _ok_check)
    monkeypatch.setattr(health_routes, "_check_redis", _failed_redis)

    client = TestClient(app)
    response = client.get("/health")

    assert response.status_code == 503
    payload = response.json()
    assert payload["status"] == "degraded"
    assert payload["checks"]["redis"] == {"status": "failed", "error": "ConnectionError"}


def test_ready_ok_includes_worker_and_outbox(monkeypatch) -> None:
    async def _outbox_ok() -> dict[str, object]:
        return {"status": "ok", "pending": 0, "failed": 0}

    monkeypatch.setattr(health_routes, "_check_database", _ok_check)
    monkeypatch.setattr(health_routes, "_check_redis", _ok_check)
    monkeypatch.setattr(health_routes, "_check_celery_worker", _ok_check)
    monkeypatch.setattr(health_routes, "_check_outbox_backlog", _outbox_ok)

    client = TestClient(app)
    response = client.get("/ready")

    assert response.status_code == 200
    assert response.json() == {
        "status": "ready",
        "checks": {
            "database": {"status": "ok"},
            "redis": {"status": "ok"},
            "celery": {"status": "ok"},
            "outbox": {"status": "ok", "pending": 0, "failed": 0},
        },
    }


def test_ready_reports_not_ready_when_worker_missing(monkeypatch) -> None:
    async def _no_workers() -> dict[str, str]:
        return {"status": "failed", "error": "no celery workers responded to ping"}

    monkeypatch.setattr(health_routes, "_check_database", _ok_check)
    monkeypatch.setattr(health_routes, "_check_redis", _ok_check)
    monkeypatch.setattr(health_routes, "_check_celery_worker", _no_workers)
    monkeypatch.setattr(health_routes, "_check_outbox_backlog", _ok_check)

    client = TestClient(app)
    response = client.get("/ready")

    assert response.status_code == 503
    assert response.json()["status"] == "not_ready"


def test_failed_check_hides_exception_message() -> None:
    failed = health_routes._failed(
        "database",
        RuntimeError("postgresql://academy:hunter2@db/academy unreachable"),
    )

    assert failed == {"status": "failed", "error": "RuntimeError"}

from __future__ import annotations

from types import SimpleNamespace

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from academy.api.routes import internal_helpers
from academy.catalog.errors import CourseNotFoundError
from academy.entitlements.errors import DuplicateGrantError
from academy.main import app
from academy.purchases.errors import AlreadyOwnedError, InvalidRecipientError


def _settings(*, allowlist: str = "127.0.0.1/32") -> SimpleNamespace:
    return SimpleNamespace(
        internal_api_token="internal-secret",
        internal_api_allowlist=allowlist,
        internal_api_trusted_proxies="",
    )


@pytest.mark.parametrize(
    ("method", "path"),
    [
        ("get", "/internal/access/modules/1?user_id=1"),
        ("get", "/internal/access/modules/1/lessons"),
        ("get", "/internal/users/1/upgrade-offers"),
        ("get", "/internal/users/1/entitlements"),
        ("get", "/internal/entitlements?course_id=1"),
        ("post", "/internal/entitlements/1/revoke"),
        ("get", "/internal/users/1/purchases"),
    ],
)
def test_internal_routes_reject_missing_token(monkeypatch, method: str, path: str) -> None:
    monkeypatch.setattr(internal_helpers, "get_settings", _settings)

    client = TestClient(app, client=("127.0.0.1", 5100))
    response = getattr(client, method)(path)

    assert response.status_code == 403
    assert response.json() == {"detail": {"code": "E_FORBIDDEN"}}


def test_internal_routes_reject_disallowed_ip(monkeypatch) -> None:
    monkeypatch.setattr(internal_helpers, "get_settings", lambda: _settings(allowlist="192.168.0.0/16"))

    client = TestClient(app, client=("127.0.0.1", 5100))
    response = client.get(
        "/internal/users/1/entitlements",
        headers={
            "X-Internal-Token": "internal-secret",
            "X-Forwarded-For": "192.168.1.10",
        },
    )

    assert response.status_code == 403
    assert response.json() == {"detail": {"code": "E_FORBIDDEN"}}


def test_purchase_route_rejects_unknown_kind_before_touching_storage(monkeypatch) -> None:
    monkeypatch.setattr(internal_helpers, "get_settings", _settings)

    client = TestClient(app, client=("127.0.0.1", 5100))
    response = client.post(
        "/internal/purchases",
        headers={"X-Internal-Token": "internal-secret"},
        json={"kind": "subscription", "user_id": 1},
    )

    assert response.status_code == 422


@pytest.mark.parametrize(
    ("error", "status_code", "detail"),
    [
        (CourseNotFoundError(5), 404, {"code": "E_COURSE_NOT_FOUND"}),
        (
            InvalidRecipientError(payer_id=1, recipient_id=1, reason="self"),
            422,
            {"code": "E_INVALID_RECIPIENT"},
        ),
        (AlreadyOwnedError(user_id=1, course_id=5), 409, {"code": "E_ALREADY_OWNED"}),
        (
            DuplicateGrantError(user_id=1, scope="MODULE", course_id=5),
            409,
            {"code": "E_DUPLICATE_GRANT", "retryable": True},
        ),
    ],
)
def test_raise_http_error_maps_domain_errors(error, status_code: int, detail: dict) -> None:
    with pytest.raises(HTTPException) as exc_info:
        internal_helpers.raise_http_error(error)

    assert exc_info.value.status_code == status_code
    assert exc_info.value.detail == detail

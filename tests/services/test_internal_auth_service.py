from __future__ import annotations

from types import SimpleNamespace

from academy.services.internal_auth import (
    extract_client_ip,
    is_client_ip_allowed,
    is_internal_request_authenticated,
    is_valid_internal_token,
)


def test_is_valid_internal_token_requires_exact_match() -> None:
    assert is_valid_internal_token(expected_token="secret", received_token="secret") is True
    assert is_valid_internal_token(expected_token="secret", received_token="wrong") is False
    assert is_valid_internal_token(expected_token="secret", received_token=None) is False
    assert is_valid_internal_token(expected_token="", received_token="") is False


def test_is_internal_request_authenticated_reads_token_header() -> None:
    request_with_token = SimpleNamespace(headers={"X-Internal-Token": "secret"})
    assert is_internal_request_authenticated(request_with_token, expected_token="secret") is True

    request_without_token = SimpleNamespace(headers={})
    assert is_internal_request_authenticated(request_without_token, expected_token="secret") is False


def test_is_client_ip_allowed_supports_exact_ip_and_cidr() -> None:
    allowlist = "127.0.0.1,10.0.0.0/8"
    assert is_client_ip_allowed(client_ip="127.0.0.1", allowlist=allowlist) is True
    assert is_client_ip_allowed(client_ip="10.12.33.1", allowlist=allowlist) is True
    assert is_client_ip_allowed(client_ip="192.168.1.5", allowlist=allowlist) is False


def test_is_client_ip_allowed_rejects_everything_for_empty_or_broken_allowlist() -> None:
    assert is_client_ip_allowed(client_ip="127.0.0.1", allowlist="") is False
    assert is_client_ip_allowed(client_ip="127.0.0.1", allowlist="not-a-network") is False
    assert is_client_ip_allowed(client_ip=None, allowlist="127.0.0.1/32") is False
    assert is_client_ip_allowed(client_ip="garbage", allowlist="127.0.0.1/32") is False


def test_extract_client_ip_uses_forwarded_header_only_for_trusted_proxy() -> None:
    request = SimpleNamespace(
        headers={"X-Forwarded-For": "10.1.1.8, 127.0.0.1"},
        client=SimpleNamespace(host="127.0.0.1"),
    )
    assert extract_client_ip(request, trusted_proxies="127.0.0.1/32") == "10.1.1.8"


def test_extract_client_ip_ignores_forwarded_header_for_untrusted_proxy() -> None:
    request = SimpleNamespace(
        headers={"X-Forwarded-For": "10.1.1.8, 127.0.0.1"},
        client=SimpleNamespace(host="198.51.100.10"),
    )
    assert extract_client_ip(request, trusted_proxies="127.0.0.1/32") == "198.51.100.10"


def test_extract_client_ip_handles_missing_peer() -> None:
    request = SimpleNamespace(headers={}, client=None)
    assert extract_client_ip(request) is None

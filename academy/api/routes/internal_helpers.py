from __future__ import annotations

from typing import NoReturn

import structlog
from fastapi import HTTPException, Request

from academy.catalog.errors import CourseNotFoundError, InvalidCourseKindError, LessonNotFoundError
from academy.core.config import get_settings
from academy.core.errors import AcademyError
from academy.entitlements.errors import DuplicateGrantError, GrantNotFoundError
from academy.profiles.errors import UserNotFoundError
from academy.purchases.errors import (
    AlreadyEntitledError,
    AlreadyOwnedError,
    InvalidRecipientError,
    PurchaseNotFoundError,
)
from academy.services.internal_auth import (
    extract_client_ip,
    is_client_ip_allowed,
    is_internal_request_authenticated,
)

logger = structlog.get_logger(__name__)

ERROR_STATUS_CODES: dict[type[AcademyError], int] = {
    CourseNotFoundError: 404,
    LessonNotFoundError: 404,
    UserNotFoundError: 404,
    GrantNotFoundError: 404,
    PurchaseNotFoundError: 404,
    InvalidCourseKindError: 422,
    InvalidRecipientError: 422,
    AlreadyOwnedError: 409,
    AlreadyEntitledError: 409,
    DuplicateGrantError: 409,
}


def assert_internal_access(request: Request, *, surface: str) -> None:
    settings = get_settings()
    client_ip = extract_client_ip(
        request,
        trusted_proxies=getattr(settings, "internal_api_trusted_proxies", ""),
    )

    if not is_internal_request_authenticated(
        request,
        expected_token=settings.internal_api_token,
    ):
        logger.warning(f"internal_{surface}_auth_failed", reason="invalid_token", client_ip=client_ip)
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})

    if not is_client_ip_allowed(client_ip=client_ip, allowlist=settings.internal_api_allowlist):
        logger.warning(f"internal_{surface}_auth_failed", reason="ip_not_allowed", client_ip=client_ip)
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})


def raise_http_error(exc: AcademyError) -> NoReturn:
    status_code = 400
    for error_type in type(exc).__mro__:
        if error_type in ERROR_STATUS_CODES:
            status_code = ERROR_STATUS_CODES[error_type]
            break
    detail: dict[str, object] = {"code": exc.code}
    if exc.retryable:
        detail["retryable"] = True
    raise HTTPException(status_code=status_code, detail=detail) from exc

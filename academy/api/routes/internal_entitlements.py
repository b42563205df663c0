from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Query, Request, status

from academy.core.errors import AcademyError
from academy.db.models.entitlements import Entitlement
from academy.db.session import SessionLocal
from academy.entitlements.ledger import EntitlementLedger

from .internal_helpers import assert_internal_access, raise_http_error
from .internal_models import (
    AccessMatrixResponse,
    AdminGrantRequest,
    EntitlementResponse,
    EntitlementsResponse,
    GrantTypeFilter,
)

router = APIRouter(tags=["internal", "entitlements"])


def as_entitlement_response(entitlement: Entitlement) -> EntitlementResponse:
    return EntitlementResponse(
        entitlement_id=int(entitlement.id),
        user_id=int(entitlement.user_id),
        course_id=int(entitlement.course_id),
        scope=str(entitlement.scope),
        grant_type=str(entitlement.grant_type),
        source_purchase_id=entitlement.source_purchase_id,
        expires_at=entitlement.expires_at,
        created_at=entitlement.created_at,
        notes=entitlement.notes,
    )


@router.get("/internal/users/{user_id}/entitlements", response_model=EntitlementsResponse)
async def list_user_entitlements(
    request: Request,
    user_id: int,
    include_expired: bool = Query(default=False),
) -> EntitlementsResponse:
    assert_internal_access(request, surface="entitlements")
    async with SessionLocal.begin() as session:
        grants = await EntitlementLedger.list_user_grants(
            session,
            user_id=user_id,
            include_expired=include_expired,
        )
        items = [as_entitlement_response(grant) for grant in grants]

    return EntitlementsResponse(user_id=user_id, entitlements=items)


@router.get("/internal/entitlements", response_model=AccessMatrixResponse)
async def list_access_matrix(
    request: Request,
    user_id: int | None = Query(default=None, ge=1),
    course_id: int | None = Query(default=None, ge=1),
    grant_type: GrantTypeFilter | None = Query(default=None),
    include_expired: bool = Query(default=False),
    limit: int = Query(default=200, ge=1, le=1000),
) -> AccessMatrixResponse:
    assert_internal_access(request, surface="entitlements")
    async with SessionLocal.begin() as session:
        grants = await EntitlementLedger.list_grants(
            session,
            user_id=user_id,
            course_id=course_id,
            grant_type=grant_type,
            include_expired=include_expired,
            limit=limit,
        )
        items = [as_entitlement_response(grant) for grant in grants]

    return AccessMatrixResponse(
        user_id=user_id,
        course_id=course_id,
        grant_type=grant_type,
        entitlements=items,
    )


@router.post(
    "/internal/entitlements/grants",
    response_model=EntitlementResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_admin_grant(request: Request, body: AdminGrantRequest) -> EntitlementResponse:
    assert_internal_access(request, surface="entitlements")
    try:
        async with SessionLocal.begin() as session:
            entitlement = await EntitlementLedger.grant_admin_access(
                session,
                user_id=body.user_id,
                course_id=body.course_id,
                now_utc=datetime.now(timezone.utc),
                expires_at=body.expires_at,
                notes=body.notes,
            )
            response = as_entitlement_response(entitlement)
    except AcademyError as exc:
        raise_http_error(exc)
    return response


@router.post("/internal/entitlements/{entitlement_id}/revoke", response_model=EntitlementResponse)
async def revoke_entitlement(request: Request, entitlement_id: int) -> EntitlementResponse:
    assert_internal_access(request, surface="entitlements")
    try:
        async with SessionLocal.begin() as session:
            entitlement = await EntitlementLedger.revoke_grant(
                session,
                entitlement_id=entitlement_id,
                now_utc=datetime.now(timezone.utc),
            )
            response = as_entitlement_response(entitlement)
    except AcademyError as exc:
        raise_http_error(exc)
    return response

from __future__ import annotations

from fastapi import APIRouter, Query, Request

from academy.access.evaluator import AccessEvaluator
from academy.catalog.service import CatalogService
from academy.core.errors import AcademyError
from academy.db.session import SessionLocal
from academy.profiles.plans import resolve_viewer
from academy.recommendations.service import RecommendationService

from .internal_helpers import assert_internal_access, raise_http_error
from .internal_models import (
    LessonResponse,
    ModuleAccessResponse,
    UpgradeOfferResponse,
    UpgradeOffersResponse,
    VisibleLessonsResponse,
)

router = APIRouter(tags=["internal", "access"])


@router.get("/internal/access/modules/{module_id}", response_model=ModuleAccessResponse)
async def check_module_access(
    request: Request,
    module_id: int,
    user_id: int | None = Query(default=None, ge=1),
) -> ModuleAccessResponse:
    assert_internal_access(request, surface="access")
    try:
        async with SessionLocal.begin() as session:
            viewer = await resolve_viewer(session, user_id)
            can_access = await AccessEvaluator.can_access_module(
                session,
                viewer=viewer,
                module_id=module_id,
            )
    except AcademyError as exc:
        raise_http_error(exc)

    return ModuleAccessResponse(
        module_id=module_id,
        user_id=viewer.user_id,
        plan=viewer.plan,
        can_access=can_access,
    )


@router.get("/internal/access/modules/{module_id}/lessons", response_model=VisibleLessonsResponse)
async def list_visible_lessons(
    request: Request,
    module_id: int,
    user_id: int | None = Query(default=None, ge=1),
) -> VisibleLessonsResponse:
    assert_internal_access(request, surface="access")
    try:
        async with SessionLocal.begin() as session:
            module = await CatalogService.get_module(session, module_id)
            viewer = await resolve_viewer(session, user_id)
            lessons = await AccessEvaluator.visible_lessons(session, viewer=viewer, module=module)
    except AcademyError as exc:
        raise_http_error(exc)

    return VisibleLessonsResponse(
        module_id=module_id,
        user_id=viewer.user_id,
        lessons=[
            LessonResponse(
                lesson_id=lesson.id,
                title=lesson.title,
                is_free_preview=lesson.is_free_preview,
                sort_order=lesson.sort_order,
            )
            for lesson in lessons
        ],
    )


@router.get("/internal/users/{user_id}/upgrade-offers", response_model=UpgradeOffersResponse)
async def list_upgrade_offers(request: Request, user_id: int) -> UpgradeOffersResponse:
    assert_internal_access(request, surface="access")
    async with SessionLocal.begin() as session:
        offers = await RecommendationService.upgrade_offers(session, user_id=user_id)

    return UpgradeOffersResponse(
        user_id=user_id,
        offers=[
            UpgradeOfferResponse(
                bundle_id=offer.bundle_id,
                bundle_title=offer.bundle_title,
                owned_module_count=offer.owned_module_count,
                bundle_price=offer.bundle_price,
                remaining_amount=offer.remaining_amount,
                currency=offer.currency,
            )
            for offer in offers
        ],
    )

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from academy.catalog.constants import KIND_BUNDLE
from academy.db.repo.courses_repo import CoursesRepo
from academy.db.repo.entitlements_repo import EntitlementsRepo
from academy.pricing.reconciler import quote_upgrade
from academy.recommendations.types import UpgradeOffer


class RecommendationService:
    @staticmethod
    async def upgrade_offers(
        session: AsyncSession,
        *,
        user_id: int,
        now_utc: datetime | None = None,
    ) -> list[UpgradeOffer]:
        """Bundles the user partially owns through module grants, with the upgrade price.

        Read-only. Bundles already held through a bundle grant are skipped.
        Admin-granted modules count as owned but are not credited, so the
        remaining amount matches what ``purchase_bundle`` would charge.
        Offers are ordered by bundle id.
        """
        resolved_now = now_utc or datetime.now(timezone.utc)
        module_parents = await EntitlementsRepo.list_live_module_parents(
            session,
            user_id=user_id,
            now_utc=resolved_now,
        )
        if not module_parents:
            return []

        owned_bundle_ids = await EntitlementsRepo.list_live_bundle_ids(
            session,
            user_id=user_id,
            now_utc=resolved_now,
        )
        modules_by_bundle: dict[int, set[int]] = defaultdict(set)
        credited_ids: set[int] = set()
        for module_id, bundle_id, credited in module_parents:
            if bundle_id in owned_bundle_ids:
                continue
            modules_by_bundle[bundle_id].add(module_id)
            if credited:
                credited_ids.add(module_id)
        if not modules_by_bundle:
            return []

        courses = await CoursesRepo.list_by_ids(
            session,
            [*modules_by_bundle, *(m for ids in modules_by_bundle.values() for m in ids)],
        )
        courses_by_id = {course.id: course for course in courses}

        offers: list[UpgradeOffer] = []
        for bundle_id in sorted(modules_by_bundle):
            bundle = courses_by_id.get(bundle_id)
            if bundle is None or bundle.kind != KIND_BUNDLE:
                continue
            credited_modules = [
                courses_by_id[m] for m in modules_by_bundle[bundle_id] if m in credited_ids and m in courses_by_id
            ]
            quote = quote_upgrade(bundle, credited_modules)
            offers.append(
                UpgradeOffer(
                    bundle_id=bundle.id,
                    bundle_title=bundle.title,
                    owned_module_count=len(modules_by_bundle[bundle_id]),
                    bundle_price=quote.bundle_price,
                    remaining_amount=quote.amount,
                    currency=bundle.currency,
                )
            )
        return offers

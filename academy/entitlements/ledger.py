from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from academy.catalog.errors import InvalidCourseKindError
from academy.catalog.service import CatalogService
from academy.db.models.entitlements import Entitlement
from academy.db.repo.entitlements_repo import EntitlementsRepo
from academy.db.repo.users_repo import UsersRepo
from academy.entitlements.constants import (
    GRANT_ADMIN,
    SCOPE_BUNDLE,
    SCOPE_BY_COURSE_KIND,
    SCOPE_MODULE,
)
from academy.entitlements.errors import DuplicateGrantError, GrantNotFoundError
from academy.notifications.events import (
    EVENT_ENTITLEMENT_GRANTED,
    EVENT_ENTITLEMENT_REVOKED,
    emit_outbox_event,
    entitlement_payload,
)
from academy.profiles.errors import UserNotFoundError
from academy.purchases.errors import AlreadyOwnedError

logger = structlog.get_logger(__name__)


def build_active_key(*, user_id: int, scope: str, course_id: int) -> str:
    return f"{user_id}:{scope}:{course_id}"


def _resolve_now(now_utc: datetime | None) -> datetime:
    return now_utc or datetime.now(timezone.utc)


class EntitlementLedger:
    @staticmethod
    async def has_module_grant(
        session: AsyncSession,
        *,
        user_id: int,
        module_id: int,
        now_utc: datetime | None = None,
    ) -> bool:
        return await EntitlementsRepo.has_live_grant(
            session,
            user_id=user_id,
            scope=SCOPE_MODULE,
            course_id=module_id,
            now_utc=_resolve_now(now_utc),
        )

    @staticmethod
    async def has_bundle_grant(
        session: AsyncSession,
        *,
        user_id: int,
        bundle_id: int,
        now_utc: datetime | None = None,
    ) -> bool:
        return await EntitlementsRepo.has_live_grant(
            session,
            user_id=user_id,
            scope=SCOPE_BUNDLE,
            course_id=bundle_id,
            now_utc=_resolve_now(now_utc),
        )

    @staticmethod
    async def list_owned_modules_under(
        session: AsyncSession,
        *,
        user_id: int,
        bundle_id: int,
        now_utc: datetime | None = None,
    ) -> set[int]:
        """Modules under the bundle held through a live purchased or gifted grant.

        These are the modules credited against the bundle price on upgrade.
        """
        return await EntitlementsRepo.list_owned_module_ids_under(
            session,
            user_id=user_id,
            bundle_id=bundle_id,
            now_utc=_resolve_now(now_utc),
        )

    @staticmethod
    async def create_grant(
        session: AsyncSession,
        *,
        user_id: int,
        scope: str,
        course_id: int,
        grant_type: str,
        now_utc: datetime,
        source_purchase_id: UUID | None = None,
        expires_at: datetime | None = None,
        notes: str | None = None,
    ) -> Entitlement:
        """Write one grant, refusing it when equivalent live access already exists.

        A live grant on the same (user, scope, course) raises
        ``DuplicateGrantError``; a module already covered by a live grant on its
        parent bundle raises ``AlreadyOwnedError``. Must run inside the caller's
        transaction; a concurrent writer that wins the unique ``active_key``
        race turns into ``DuplicateGrantError`` here.
        """
        course = await CatalogService.get_course(session, course_id)
        expected_scope = SCOPE_BY_COURSE_KIND[course.kind]
        if scope != expected_scope:
            raise InvalidCourseKindError(course_id, expected=scope, actual=course.kind)

        if scope == SCOPE_MODULE and course.parent_id is not None:
            if await EntitlementLedger.has_bundle_grant(
                session,
                user_id=user_id,
                bundle_id=course.parent_id,
                now_utc=now_utc,
            ):
                raise AlreadyOwnedError(
                    user_id=user_id,
                    course_id=course_id,
                    covering_course_id=course.parent_id,
                )

        active_key = build_active_key(user_id=user_id, scope=scope, course_id=course_id)
        holder = await EntitlementsRepo.get_by_active_key_for_update(session, active_key)
        if holder is not None:
            if holder.is_live_at(now_utc):
                raise DuplicateGrantError(user_id=user_id, scope=scope, course_id=course_id)
            holder.active_key = None
            await session.flush()

        if expires_at is not None and expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        is_live = expires_at is None or expires_at > now_utc
        try:
            entitlement = await EntitlementsRepo.create(
                session,
                entitlement=Entitlement(
                    user_id=user_id,
                    course_id=course_id,
                    scope=scope,
                    grant_type=grant_type,
                    source_purchase_id=source_purchase_id,
                    expires_at=expires_at,
                    active_key=active_key if is_live else None,
                    notes=notes,
                    created_at=now_utc,
                ),
            )
        except IntegrityError as exc:
            logger.warning(
                "entitlement_grant_conflict",
                user_id=user_id,
                scope=scope,
                course_id=course_id,
                grant_type=grant_type,
            )
            raise DuplicateGrantError(user_id=user_id, scope=scope, course_id=course_id) from exc

        logger.info(
            "entitlement_granted",
            entitlement_id=entitlement.id,
            user_id=user_id,
            scope=scope,
            course_id=course_id,
            grant_type=grant_type,
        )
        return entitlement

    @staticmethod
    async def grant_admin_access(
        session: AsyncSession,
        *,
        user_id: int,
        course_id: int,
        now_utc: datetime,
        expires_at: datetime | None = None,
        notes: str | None = None,
    ) -> Entitlement:
        course = await CatalogService.get_course(session, course_id)
        if await UsersRepo.get_by_id_for_update(session, user_id) is None:
            raise UserNotFoundError(user_id)
        entitlement = await EntitlementLedger.create_grant(
            session,
            user_id=user_id,
            scope=SCOPE_BY_COURSE_KIND[course.kind],
            course_id=course.id,
            grant_type=GRANT_ADMIN,
            now_utc=now_utc,
            expires_at=expires_at,
            notes=notes,
        )
        await emit_outbox_event(
            session,
            event_type=EVENT_ENTITLEMENT_GRANTED,
            payload=entitlement_payload(entitlement),
            happened_at=now_utc,
        )
        return entitlement

    @staticmethod
    async def revoke_grant(
        session: AsyncSession,
        *,
        entitlement_id: int,
        now_utc: datetime,
    ) -> Entitlement:
        entitlement = await EntitlementsRepo.get_by_id_for_update(session, entitlement_id)
        if entitlement is None:
            raise GrantNotFoundError(entitlement_id)

        if entitlement.is_live_at(now_utc):
            entitlement.expires_at = now_utc
        entitlement.active_key = None
        await session.flush()

        await emit_outbox_event(
            session,
            event_type=EVENT_ENTITLEMENT_REVOKED,
            payload=entitlement_payload(entitlement),
            happened_at=now_utc,
        )
        logger.info(
            "entitlement_revoked",
            entitlement_id=entitlement.id,
            user_id=entitlement.user_id,
            course_id=entitlement.course_id,
            scope=entitlement.scope,
        )
        return entitlement

    @staticmethod
    async def list_user_grants(
        session: AsyncSession,
        *,
        user_id: int,
        now_utc: datetime | None = None,
        include_expired: bool = False,
    ) -> list[Entitlement]:
        return await EntitlementsRepo.list_grants(
            session,
            now_utc=_resolve_now(now_utc),
            user_id=user_id,
            include_expired=include_expired,
        )

    @staticmethod
    async def list_grants(
        session: AsyncSession,
        *,
        user_id: int | None = None,
        course_id: int | None = None,
        grant_type: str | None = None,
        include_expired: bool = False,
        limit: int = 200,
        now_utc: datetime | None = None,
    ) -> list[Entitlement]:
        """Access matrix across users, narrowed by any combination of filters."""
        return await EntitlementsRepo.list_grants(
            session,
            now_utc=_resolve_now(now_utc),
            user_id=user_id,
            course_id=course_id,
            grant_type=grant_type,
            include_expired=include_expired,
            limit=limit,
        )

    @staticmethod
    async def release_expired_keys(
        session: AsyncSession,
        *,
        now_utc: datetime,
        limit: int,
    ) -> int:
        return await EntitlementsRepo.release_expired_keys(session, now_utc=now_utc, limit=limit)

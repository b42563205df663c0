from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, Index, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from academy.db.models.base import Base, BigIntPK, UTCDateTime, utc_now


class Entitlement(Base):
    """One access grant. Rows are never deleted; revocation sets ``expires_at``.

    ``active_key`` is ``"{user_id}:{scope}:{course_id}"`` while the grant is
    live and NULL afterwards, so the unique index admits at most one live
    grant per (user, scope, course).
    """

    __tablename__ = "entitlements"
    __table_args__ = (
        CheckConstraint("scope IN ('MODULE','BUNDLE')", name="ck_entitlements_scope"),
        CheckConstraint(
            "grant_type IN ('MODULE_PURCHASE','BUNDLE_PURCHASE','GIFT','ADMIN_GRANT')",
            name="ck_entitlements_grant_type",
        ),
        Index("idx_entitlements_user_scope", "user_id", "scope"),
        Index("idx_entitlements_user_course", "user_id", "course_id"),
        Index("idx_entitlements_expires", "expires_at"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    course_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("courses.id"), nullable=False)
    scope: Mapped[str] = mapped_column(String(8), nullable=False)
    grant_type: Mapped[str] = mapped_column(String(16), nullable=False)
    source_purchase_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("purchases.id"),
        unique=True,
        nullable=True,
    )
    expires_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    active_key: Mapped[str | None] = mapped_column(String(96), unique=True, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
    )

    def is_live_at(self, now_utc: datetime) -> bool:
        return self.expires_at is None or self.expires_at > now_utc

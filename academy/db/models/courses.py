from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, Index, Integer, String, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column

from academy.db.models.base import Base, BigIntPK, UTCDateTime, utc_now


class Course(Base):
    __tablename__ = "courses"
    __table_args__ = (
        CheckConstraint("kind IN ('BUNDLE','MODULE')", name="ck_courses_kind"),
        CheckConstraint(
            "status IN ('DRAFT','ACTIVE','ARCHIVED')",
            name="ck_courses_status",
        ),
        CheckConstraint(
            "(kind = 'BUNDLE' AND parent_id IS NULL) OR (kind = 'MODULE' AND parent_id IS NOT NULL)",
            name="ck_courses_parent_matches_kind",
        ),
        CheckConstraint("individual_price >= 0", name="ck_courses_individual_price_non_negative"),
        CheckConstraint("bundle_price >= 0", name="ck_courses_bundle_price_non_negative"),
        Index("idx_courses_kind_parent", "kind", "parent_id"),
        Index("idx_courses_status", "status"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    kind: Mapped[str] = mapped_column(String(8), nullable=False)
    parent_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("courses.id"),
        nullable=True,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    individual_price: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )
    bundle_price: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="INR", server_default="INR")
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="DRAFT", server_default="DRAFT")
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
    )

    @property
    def is_bundle(self) -> bool:
        return self.kind == "BUNDLE"

    @property
    def is_module(self) -> bool:
        return self.kind == "MODULE"

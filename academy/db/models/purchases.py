from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, Index, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from academy.db.models.base import Base, JSONPayload, UTCDateTime, utc_now


class Purchase(Base):
    __tablename__ = "purchases"
    __table_args__ = (
        CheckConstraint(
            "purchase_type IN ('MODULE','BUNDLE','GIFT')",
            name="ck_purchases_purchase_type",
        ),
        CheckConstraint(
            "status IN ('PENDING','PAID','FAILED','REFUNDED')",
            name="ck_purchases_status",
        ),
        CheckConstraint("amount >= 0", name="ck_purchases_amount_non_negative"),
        CheckConstraint(
            "(purchase_type = 'GIFT' AND gift_recipient_id IS NOT NULL) "
            "OR (purchase_type <> 'GIFT' AND gift_recipient_id IS NULL)",
            name="ck_purchases_gift_recipient",
        ),
        Index("idx_purchases_user_created", "user_id", "created_at"),
        Index("idx_purchases_course", "course_id"),
        Index("idx_purchases_gift_recipient", "gift_recipient_id"),
    )

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    purchase_type: Mapped[str] = mapped_column(String(8), nullable=False)
    course_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("courses.id"), nullable=False)
    gift_recipient_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("users.id"),
        nullable=True,
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    invoice_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    invoice: Mapped[dict[str, object]] = mapped_column(JSONPayload, nullable=False)
    metadata_: Mapped[dict[str, object]] = mapped_column(
        "metadata",
        JSONPayload,
        nullable=False,
        default=dict,
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
    )
    paid_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

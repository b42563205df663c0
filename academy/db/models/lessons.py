from __future__ import annotations

from sqlalchemy import BigInteger, Boolean, ForeignKey, Index, Integer, Text, false, text
from sqlalchemy.orm import Mapped, mapped_column

from academy.db.models.base import BigIntPK, Base


class Lesson(Base):
    __tablename__ = "lessons"
    __table_args__ = (Index("idx_lessons_module_order", "module_id", "sort_order"),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    module_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("courses.id"), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    is_free_preview: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )
    sort_order: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )

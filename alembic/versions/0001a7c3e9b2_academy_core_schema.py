"""academy_core_schema

Revision ID: 0001a7c3e9b2
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "0001a7c3e9b2"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("display_name", sa.Text(), nullable=True),
        sa.Column("plan", sa.String(8), nullable=False, server_default=sa.text("'FREE'")),
        sa.Column("status", sa.String(16), nullable=False, server_default=sa.text("'ACTIVE'")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("plan IN ('FREE','PRO')", name="ck_users_plan"),
        sa.CheckConstraint("status IN ('ACTIVE','BLOCKED','DELETED')", name="ck_users_status"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("idx_users_created_at", "users", ["created_at"])

    op.create_table(
        "courses",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("kind", sa.String(8), nullable=False),
        sa.Column("parent_id", sa.BigInteger(), nullable=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("individual_price", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("bundle_price", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("currency", sa.String(3), nullable=False, server_default=sa.text("'INR'")),
        sa.Column("status", sa.String(16), nullable=False, server_default=sa.text("'DRAFT'")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("kind IN ('BUNDLE','MODULE')", name="ck_courses_kind"),
        sa.CheckConstraint("status IN ('DRAFT','ACTIVE','ARCHIVED')", name="ck_courses_status"),
        sa.CheckConstraint(
            "(kind = 'BUNDLE' AND parent_id IS NULL) OR (kind = 'MODULE' AND parent_id IS NOT NULL)",
            name="ck_courses_parent_matches_kind",
        ),
        sa.CheckConstraint("individual_price >= 0", name="ck_courses_individual_price_non_negative"),
        sa.CheckConstraint("bundle_price >= 0", name="ck_courses_bundle_price_non_negative"),
        sa.ForeignKeyConstraint(["parent_id"], ["courses.id"]),
    )
    op.create_index("idx_courses_kind_parent", "courses", ["kind", "parent_id"])
    op.create_index("idx_courses_status", "courses", ["status"])

    op.create_table(
        "lessons",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("module_id", sa.BigInteger(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("is_free_preview", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.ForeignKeyConstraint(["module_id"], ["courses.id"]),
    )
    op.create_index("idx_lessons_module_order", "lessons", ["module_id", "sort_order"])

    op.create_table(
        "purchases",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("purchase_type", sa.String(8), nullable=False),
        sa.Column("course_id", sa.BigInteger(), nullable=False),
        sa.Column("gift_recipient_id", sa.BigInteger(), nullable=True),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("invoice_number", sa.String(32), nullable=False),
        sa.Column("invoice", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column(
            "metadata",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("purchase_type IN ('MODULE','BUNDLE','GIFT')", name="ck_purchases_purchase_type"),
        sa.CheckConstraint("status IN ('PENDING','PAID','FAILED','REFUNDED')", name="ck_purchases_status"),
        sa.CheckConstraint("amount >= 0", name="ck_purchases_amount_non_negative"),
        sa.CheckConstraint(
            "(purchase_type = 'GIFT' AND gift_recipient_id IS NOT NULL) "
            "OR (purchase_type <> 'GIFT' AND gift_recipient_id IS NULL)",
            name="ck_purchases_gift_recipient",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["course_id"], ["courses.id"]),
        sa.ForeignKeyConstraint(["gift_recipient_id"], ["users.id"]),
        sa.UniqueConstraint("invoice_number", name="uq_purchases_invoice_number"),
    )
    op.create_index("idx_purchases_user_created", "purchases", ["user_id", "created_at"])
    op.create_index("idx_purchases_course", "purchases", ["course_id"])
    op.create_index("idx_purchases_gift_recipient", "purchases", ["gift_recipient_id"])

    op.create_table(
        "entitlements",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("course_id", sa.BigInteger(), nullable=False),
        sa.Column("scope", sa.String(8), nullable=False),
        sa.Column("grant_type", sa.String(16), nullable=False),
        sa.Column("source_purchase_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("active_key", sa.String(96), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("scope IN ('MODULE','BUNDLE')", name="ck_entitlements_scope"),
        sa.CheckConstraint(
            "grant_type IN ('MODULE_PURCHASE','BUNDLE_PURCHASE','GIFT','ADMIN_GRANT')",
            name="ck_entitlements_grant_type",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["course_id"], ["courses.id"]),
        sa.ForeignKeyConstraint(["source_purchase_id"], ["purchases.id"]),
        sa.UniqueConstraint("source_purchase_id", name="uq_entitlements_source_purchase_id"),
        sa.UniqueConstraint("active_key", name="uq_entitlements_active_key"),
    )
    op.create_index("idx_entitlements_user_scope", "entitlements", ["user_id", "scope"])
    op.create_index("idx_entitlements_user_course", "entitlements", ["user_id", "course_id"])
    op.create_index("idx_entitlements_expires", "entitlements", ["expires_at"])

    op.create_table(
        "outbox_events",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("event_type", sa.String(64), nullable=False),
        sa.Column("payload", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("status IN ('PENDING','SENT','FAILED')", name="ck_outbox_events_status"),
    )
    op.create_index("idx_outbox_events_status_created", "outbox_events", ["status", "created_at"])


def downgrade() -> None:
    op.drop_index("idx_outbox_events_status_created", table_name="outbox_events")
    op.drop_table("outbox_events")

    op.drop_index("idx_entitlements_expires", table_name="entitlements")
    op.drop_index("idx_entitlements_user_course", table_name="entitlements")
    op.drop_index("idx_entitlements_user_scope", table_name="entitlements")
    op.drop_table("entitlements")

    op.drop_index("idx_purchases_gift_recipient", table_name="purchases")
    op.drop_index("idx_purchases_course", table_name="purchases")
    op.drop_index("idx_purchases_user_created", table_name="purchases")
    op.drop_table("purchases")

    op.drop_index("idx_lessons_module_order", table_name="lessons")
    op.drop_table("lessons")

    op.drop_index("idx_courses_status", table_name="courses")
    op.drop_index("idx_courses_kind_parent", table_name="courses")
    op.drop_table("courses")

    op.drop_index("idx_users_created_at", table_name="users")
    op.drop_table("users")

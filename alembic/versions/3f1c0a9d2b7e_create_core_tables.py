"""create clinics, users, otp codes, subscriptions and audit logs

Revision ID: 3f1c0a9d2b7e
Revises:
Create Date: 2026-10-17
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "3f1c0a9d2b7e"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "clinics",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("town", sa.String(length=120), nullable=True),
        sa.Column("country", sa.String(length=80), nullable=False, server_default="Kenya"),
        sa.Column("contact_name", sa.String(length=200), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("business_license", sa.String(length=120), nullable=True),
        sa.Column("modules", sa.JSON(), nullable=False),
        sa.Column("plan_key", sa.String(length=40), nullable=False, server_default="essential"),
        sa.Column("plan_product", sa.String(length=10), nullable=False, server_default="core"),
        sa.Column("is_bundle", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("status", sa.String(length=30), nullable=False, server_default="pending_verification"),
        sa.Column("email_verified", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("staff_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("location_count", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("admin_role_count", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("reject_reason", sa.Text(), nullable=True),
        sa.Column("suspend_reason", sa.Text(), nullable=True),
        sa.Column("activated_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_clinics_email", "clinics", ["email"], unique=True)
    op.create_index("ix_clinics_status", "clinics", ["status"])

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("clinic_id", sa.Uuid(), sa.ForeignKey("clinics.id", ondelete="CASCADE"), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("username", sa.String(length=64), nullable=True, unique=True),
        sa.Column("temp_password_hash", sa.String(length=255), nullable=True),
        sa.Column("temp_password_expires", sa.DateTime(timezone=True), nullable=True),
        sa.Column("password_hash", sa.String(length=255), nullable=True),
        sa.Column("password_set", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="owner"),
        sa.Column("first_login_token", sa.Text(), nullable=True),
        sa.Column("first_login_token_expires", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_clinic_id", "users", ["clinic_id"])

    op.create_table(
        "otp_codes",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("clinic_id", sa.Uuid(), sa.ForeignKey("clinics.id", ondelete="CASCADE"), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("code", sa.String(length=6), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_otp_codes_clinic_id", "otp_codes", ["clinic_id"])

    op.create_table(
        "subscriptions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("clinic_id", sa.Uuid(), sa.ForeignKey("clinics.id", ondelete="CASCADE"), nullable=False),
        sa.Column("plan_key", sa.String(length=40), nullable=False),
        sa.Column("plan_product", sa.String(length=10), nullable=False),
        sa.Column("modules", sa.JSON(), nullable=False),
        sa.Column("is_bundle", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("billing_cycle", sa.String(length=10), nullable=False, server_default="monthly"),
        sa.Column("base_amount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("discount_percent", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("final_amount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="KES"),
        sa.Column("auto_renew", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("next_renewal_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("trial_ends_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_subscriptions_clinic_id", "subscriptions", ["clinic_id"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("type", sa.String(length=60), nullable=False),
        sa.Column("actor_id", sa.String(length=64), nullable=False, server_default="system"),
        sa.Column("actor_role", sa.String(length=30), nullable=False, server_default="system"),
        sa.Column("actor_name", sa.String(length=200), nullable=False, server_default="System"),
        sa.Column("target_entity", sa.String(length=40), nullable=True),
        sa.Column("target_id", sa.String(length=64), nullable=True),
        sa.Column("target_name", sa.String(length=200), nullable=True),
        sa.Column("meta", sa.JSON(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_audit_logs_type", "audit_logs", ["type"])


def downgrade() -> None:
    op.drop_index("ix_audit_logs_type", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_index("ix_subscriptions_clinic_id", table_name="subscriptions")
    op.drop_table("subscriptions")
    op.drop_index("ix_otp_codes_clinic_id", table_name="otp_codes")
    op.drop_table("otp_codes")
    op.drop_index("ix_users_clinic_id", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    op.drop_index("ix_clinics_status", table_name="clinics")
    op.drop_index("ix_clinics_email", table_name="clinics")
    op.drop_table("clinics")

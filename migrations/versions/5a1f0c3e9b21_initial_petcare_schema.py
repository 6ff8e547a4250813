"""initial petcare schema

Revision ID: 5a1f0c3e9b21
Revises:
Create Date: 2026-09-28 10:12:41.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "5a1f0c3e9b21"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(*, updated: bool = True) -> list[sa.Column]:
    cols = [sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now())]
    if updated:
        cols.append(sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()))
    return cols


def upgrade() -> None:
    """Create users, audit, feature, settings and pet-care tables."""
    conn = op.get_bind()
    inspector = sa.inspect(conn)
    existing_tables = set(inspector.get_table_names())

    if "users" not in existing_tables:
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("email", sa.String(320), nullable=False, unique=True),
            sa.Column("name", sa.String(255), nullable=True),
            sa.Column("password_hash", sa.String(255), nullable=False),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("subscription_tier", sa.String(32), nullable=False, server_default="free"),
            sa.Column("subscription_status", sa.String(32), nullable=False, server_default="active"),
            sa.Column("subscription_ends_at", sa.DateTime(), nullable=True),
            *_timestamps(),
        )

    if "audit_events" not in existing_tables:
        op.create_table(
            "audit_events",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("request_id", sa.String(64), nullable=True),
            sa.Column("client_ip", sa.String(64), nullable=True),
            sa.Column("actor_user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
            sa.Column("actor_user_email", sa.String(320), nullable=True),
            sa.Column("action", sa.String(128), nullable=False),
            sa.Column("entity_type", sa.String(128), nullable=True),
            sa.Column("entity_id", sa.String(128), nullable=True),
            sa.Column("reason", sa.String(512), nullable=True),
            sa.Column("metadata_json", sa.Text(), nullable=True),
        )

    if "features" not in existing_tables:
        op.create_table(
            "features",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(128), nullable=False, unique=True),
            sa.Column("display_name", sa.String(255), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("category", sa.String(64), nullable=False, server_default="advanced"),
            sa.Column("is_core", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("is_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("version", sa.String(32), nullable=False, server_default="1.0.0"),
            *_timestamps(),
        )
        op.create_index("idx_features_category", "features", ["category"])
        op.create_index("idx_features_enabled", "features", ["is_enabled"])

    if "user_features" not in existing_tables:
        op.create_table(
            "user_features",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
            sa.Column("feature_id", sa.Integer(), sa.ForeignKey("features.id", ondelete="CASCADE"), nullable=False),
            sa.Column("is_enabled", sa.Boolean(), nullable=False),
            *_timestamps(),
            sa.UniqueConstraint("user_id", "feature_id", name="uq_user_features_user_feature"),
        )
        op.create_index("idx_user_features_user", "user_features", ["user_id"])

    if "system_settings" not in existing_tables:
        op.create_table(
            "system_settings",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("key", sa.String(128), nullable=False, unique=True),
            sa.Column("value", sa.Text(), nullable=False),
            sa.Column("description", sa.String(512), nullable=True),
            sa.Column("category", sa.String(64), nullable=True),
            *_timestamps(),
        )
        op.create_index("idx_system_settings_category", "system_settings", ["category"])

    if "pets" not in existing_tables:
        op.create_table(
            "pets",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
            sa.Column("name", sa.String(128), nullable=False),
            sa.Column("species", sa.String(64), nullable=False),
            sa.Column("breed", sa.String(128), nullable=True),
            sa.Column("gender", sa.String(16), nullable=True),
            sa.Column("birth_date", sa.Date(), nullable=True),
            sa.Column("microchip_number", sa.String(64), nullable=True),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            *_timestamps(),
        )
        op.create_index("idx_pets_user", "pets", ["user_id"])
        op.create_index("idx_pets_user_active", "pets", ["user_id", "is_active"])

    if "expenses" not in existing_tables:
        op.create_table(
            "expenses",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
            sa.Column("pet_id", sa.Integer(), sa.ForeignKey("pets.id", ondelete="SET NULL"), nullable=True),
            sa.Column("title", sa.String(255), nullable=False),
            sa.Column("amount", sa.Numeric(10, 2), nullable=False),
            sa.Column("category", sa.String(64), nullable=False),
            sa.Column("date", sa.Date(), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            *_timestamps(updated=False),
        )
        op.create_index("idx_expenses_user_date", "expenses", ["user_id", "date"])

    if "appointments" not in existing_tables:
        op.create_table(
            "appointments",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
            sa.Column("pet_id", sa.Integer(), sa.ForeignKey("pets.id", ondelete="CASCADE"), nullable=False),
            sa.Column("title", sa.String(255), nullable=False),
            sa.Column("appointment_type", sa.String(64), nullable=False),
            sa.Column("date", sa.DateTime(), nullable=False),
            sa.Column("duration", sa.Integer(), nullable=False, server_default="60"),
            sa.Column("location", sa.String(255), nullable=True),
            sa.Column("vet_name", sa.String(255), nullable=True),
            sa.Column("status", sa.String(32), nullable=False, server_default="scheduled"),
            sa.Column("description", sa.Text(), nullable=True),
            *_timestamps(),
        )
        op.create_index("idx_appointments_user_date", "appointments", ["user_id", "date"])

    if "reminders" not in existing_tables:
        op.create_table(
            "reminders",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
            sa.Column("pet_id", sa.Integer(), sa.ForeignKey("pets.id", ondelete="CASCADE"), nullable=False),
            sa.Column("title", sa.String(255), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("due_date", sa.DateTime(), nullable=False),
            sa.Column("reminder_type", sa.String(64), nullable=False),
            sa.Column("notify_before", sa.Integer(), nullable=False, server_default="24"),
            sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("completed_at", sa.DateTime(), nullable=True),
            *_timestamps(updated=False),
        )
        op.create_index("idx_reminders_user_due", "reminders", ["user_id", "due_date"])

    if "documents" not in existing_tables:
        op.create_table(
            "documents",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
            sa.Column("pet_id", sa.Integer(), sa.ForeignKey("pets.id", ondelete="SET NULL"), nullable=True),
            sa.Column("title", sa.String(255), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("category", sa.String(64), nullable=False, server_default="other"),
            sa.Column("storage_key", sa.String(512), nullable=False),
            sa.Column("original_filename", sa.String(255), nullable=False),
            sa.Column("content_type", sa.String(128), nullable=False),
            sa.Column("size_bytes", sa.Integer(), nullable=False),
            sa.Column("sha256", sa.String(64), nullable=False),
            *_timestamps(updated=False),
        )
        op.create_index("idx_documents_user", "documents", ["user_id"])


def downgrade() -> None:
    """Drop all petcare tables."""
    for table in (
        "documents",
        "reminders",
        "appointments",
        "expenses",
        "pets",
        "system_settings",
        "user_features",
        "features",
        "audit_events",
        "users",
    ):
        op.drop_table(table)

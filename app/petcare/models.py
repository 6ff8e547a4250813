from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

if TYPE_CHECKING:
    from app.petcare.modules.features.models import UserFeature


class Base(DeclarativeBase):
    pass


SUBSCRIPTION_TIERS = ("free", "premium", "lifetime")
SUBSCRIPTION_STATUSES = ("active", "inactive", "cancelled", "past_due")


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Subscription tier gates per-user quotas (pet limits, AI consultations).
    subscription_tier: Mapped[str] = mapped_column(String(32), nullable=False, default="free")
    subscription_status: Mapped[str] = mapped_column(String(32), nullable=False, default="active")
    subscription_ends_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    feature_overrides: Mapped[list["UserFeature"]] = relationship(
        "UserFeature",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_premium(self) -> bool:
        return self.subscription_tier in ("premium", "lifetime") and self.subscription_status == "active"


class AuditEvent(Base):
    """
    Append-only audit trail event.
    Keep this table intentionally generic; module-specific tables can refer to it by id if needed.
    """

    __tablename__ = "audit_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    request_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    client_ip: Mapped[str | None] = mapped_column(String(64), nullable=True)

    actor_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    actor_user_email: Mapped[str | None] = mapped_column(String(320), nullable=True)

    action: Mapped[str] = mapped_column(String(128), nullable=False)  # e.g. "feature.disable"
    entity_type: Mapped[str | None] = mapped_column(String(128), nullable=True)  # e.g. "Feature"
    entity_id: Mapped[str | None] = mapped_column(String(128), nullable=True)

    reason: Mapped[str | None] = mapped_column(String(512), nullable=True)
    metadata_json: Mapped[str | None] = mapped_column(Text, nullable=True)  # small JSON string


# Ensure module models are imported so Base.metadata includes their tables.
# (Kept at bottom to avoid circular imports.)
from app.petcare.modules.features.models import Feature, UserFeature  # noqa: E402,F401
from app.petcare.modules.settings.models import SystemSetting  # noqa: E402,F401
from app.petcare.modules.pets.models import Pet  # noqa: E402,F401
from app.petcare.modules.expenses.models import Expense  # noqa: E402,F401
from app.petcare.modules.appointments.models import Appointment  # noqa: E402,F401
from app.petcare.modules.reminders.models import Reminder  # noqa: E402,F401
from app.petcare.modules.documents.models import Document  # noqa: E402,F401

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.petcare.models import Base

if TYPE_CHECKING:
    from app.petcare.models import User


class Feature(Base):
    __tablename__ = "features"
    __table_args__ = (
        Index("idx_features_category", "category"),
        Index("idx_features_enabled", "is_enabled"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)  # e.g. "expenses"
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(64), nullable=False, default="advanced")  # core, health, finance, social, advanced

    # Core rows must always stay enabled.
    is_core: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    version: Mapped[str] = mapped_column(String(32), nullable=False, default="1.0.0")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    user_overrides: Mapped[list["UserFeature"]] = relationship(
        "UserFeature",
        back_populates="feature",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class UserFeature(Base):
    """Per-user override of a feature's global state. No row means inherit."""

    __tablename__ = "user_features"
    __table_args__ = (
        UniqueConstraint("user_id", "feature_id", name="uq_user_features_user_feature"),
        Index("idx_user_features_user", "user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    feature_id: Mapped[int] = mapped_column(ForeignKey("features.id", ondelete="CASCADE"), nullable=False)
    is_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    feature: Mapped[Feature] = relationship("Feature", back_populates="user_overrides", lazy="joined")
    user: Mapped["User"] = relationship("User", back_populates="feature_overrides")

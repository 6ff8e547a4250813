from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.petcare.models import Base

if TYPE_CHECKING:
    from app.petcare.modules.pets.models import Pet


class Reminder(Base):
    __tablename__ = "reminders"
    __table_args__ = (
        Index("idx_reminders_user_due", "user_id", "due_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    pet_id: Mapped[int] = mapped_column(ForeignKey("pets.id", ondelete="CASCADE"), nullable=False)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    due_date: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    reminder_type: Mapped[str] = mapped_column(String(64), nullable=False)  # medication, vaccination, grooming, ...
    notify_before: Mapped[int] = mapped_column(Integer, nullable=False, default=24)  # hours
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    pet: Mapped["Pet"] = relationship("Pet", lazy="joined")

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.petcare.models import Base

if TYPE_CHECKING:
    from app.petcare.modules.pets.models import Pet


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        Index("idx_appointments_user_date", "user_id", "date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    pet_id: Mapped[int] = mapped_column(ForeignKey("pets.id", ondelete="CASCADE"), nullable=False)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    appointment_type: Mapped[str] = mapped_column(String(64), nullable=False)  # checkup, vaccination, surgery, ...
    date: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False, default=60)  # minutes
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    vet_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="scheduled")  # scheduled, completed, cancelled
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    pet: Mapped["Pet"] = relationship("Pet", lazy="joined")

"""
ORM models for mastery persistence.

One row per (user, concept) pair; the composite primary key is what makes a
second "first learning" of the same concept a constraint violation.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class MasteryRecordRow(Base):
    """Stored MasteryRecord."""

    __tablename__ = "mastery_records"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    concept_id: Mapped[str] = mapped_column(String(256), primary_key=True)
    mastery_level: Mapped[float] = mapped_column(Float, nullable=False)
    learned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    last_reviewed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    review_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return (
            f"<MasteryRecordRow {self.user_id}/{self.concept_id} "
            f"mastery={self.mastery_level:.2f} reviews={self.review_count}>"
        )

"""
FridgeMind API — Eating-Out Log SQLAlchemy Model
==================================================

What:  ORM model for `eating_out_logs`, one row per restaurant meal.
Why:   Restaurant meals count toward the user's nutrition history alongside
       home-cooked ones.
Who:   Written and listed by EatingOutService.

Rows are insert-only here. The (user_id, eaten_at) index backs the
"50 most recent meals" listing.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, List, Optional

from sqlalchemy import JSON, DateTime, Index, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from fridgemind.database import Base


class EatingOutLog(Base):
    """A logged restaurant meal with AI-estimated nutrition."""

    __tablename__ = "eating_out_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    image_url: Mapped[Optional[str]] = mapped_column(Text)
    restaurant_name: Mapped[Optional[str]] = mapped_column(String(255))
    meal_name: Mapped[str] = mapped_column(String(255), nullable=False)
    # breakfast | lunch | dinner | snack
    meal_type: Mapped[Optional[str]] = mapped_column(String(20))

    estimated_calories: Mapped[Optional[int]] = mapped_column(Integer)
    protein_grams: Mapped[Optional[float]] = mapped_column(Numeric(10, 2, asdecimal=False))
    carbs_grams: Mapped[Optional[float]] = mapped_column(Numeric(10, 2, asdecimal=False))
    fat_grams: Mapped[Optional[float]] = mapped_column(Numeric(10, 2, asdecimal=False))
    fiber_grams: Mapped[Optional[float]] = mapped_column(Numeric(10, 2, asdecimal=False))
    vegetable_servings: Mapped[Optional[float]] = mapped_column(Numeric(10, 2, asdecimal=False))
    detected_components: Mapped[List[Any]] = mapped_column(JSON, default=list)
    # balanced | high_protein | high_carb | high_fat | light | indulgent
    health_assessment: Mapped[Optional[str]] = mapped_column(String(50))
    ai_notes: Mapped[Optional[str]] = mapped_column(Text)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    eaten_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_eating_out_logs_user_eaten", "user_id", "eaten_at"),
    )

    def __repr__(self) -> str:
        return f"<EatingOutLog(id={self.id}, meal_name='{self.meal_name}', eaten_at='{self.eaten_at}')>"

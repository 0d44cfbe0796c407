"""
FridgeMind API — Inventory SQLAlchemy Model
=============================================

What:  ORM model for the `inventory_items` table (food the user has on hand).
Why:   The meal-to-shopping-list flow reads what is already in the kitchen so
       the model does not suggest buying it again.
Who:   Read by ShoppingListService; rows are written by the inventory screens
       of the app, which sit outside this service.

A row is "on hand" while `consumed_at` is NULL.
"""

import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import Date, DateTime, Float, Index, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from fridgemind.database import Base


class InventoryItem(Base):
    """A single food item in the user's fridge, freezer or pantry."""

    __tablename__ = "inventory_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    storage_category: Mapped[Optional[str]] = mapped_column(String(50))
    nutritional_type: Mapped[Optional[str]] = mapped_column(String(50))
    # fridge | freezer | pantry
    location: Mapped[str] = mapped_column(String(20), nullable=False, default="fridge")
    quantity: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), default=1)
    unit: Mapped[Optional[str]] = mapped_column(String(50))

    purchase_date: Mapped[Optional[date]] = mapped_column(Date)
    expiry_date: Mapped[Optional[date]] = mapped_column(Date)
    freshness: Mapped[Optional[str]] = mapped_column(String(20))
    confidence: Mapped[Optional[float]] = mapped_column(Float)
    image_url: Mapped[Optional[str]] = mapped_column(Text)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    consumed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        Index("idx_inventory_items_user_consumed", "user_id", "consumed_at"),
    )

    def __repr__(self) -> str:
        return f"<InventoryItem(id={self.id}, name='{self.name}', location='{self.location}')>"

"""
FridgeMind API — Shopping List SQLAlchemy Models
==================================================

What:  ORM models for `shopping_lists` and `shopping_list_items`.
Who:   Written by ShoppingListService (bulk-add, from-meal).

One active list per user:
    `uq_shopping_lists_active_user` is a partial unique index on
    user_id WHERE is_active. Together with INSERT ... ON CONFLICT DO NOTHING
    it makes "get or create the active list" safe under concurrent requests;
    two racing inserts cannot both succeed.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from fridgemind.database import Base

DEFAULT_LIST_NAME = "My Shopping List"


class ShoppingList(Base):
    """A user's shopping list; at most one per user has is_active = true."""

    __tablename__ = "shopping_lists"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default=DEFAULT_LIST_NAME)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index(
            "uq_shopping_lists_active_user",
            "user_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active"),
        ),
    )

    def __repr__(self) -> str:
        return f"<ShoppingList(id={self.id}, user_id={self.user_id}, is_active={self.is_active})>"


class ShoppingListItem(Base):
    """An entry on a shopping list."""

    __tablename__ = "shopping_list_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    list_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("shopping_lists.id", ondelete="CASCADE"),
        nullable=False,
    )
    # Denormalized so every query can scope on the caller directly
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(50))
    quantity: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), default=1)
    unit: Mapped[Optional[str]] = mapped_column(String(50))
    is_checked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # recipe | meal_plan | manual | auto_restock | expiring | craving
    source: Mapped[Optional[str]] = mapped_column(String(30))
    recipe_group: Mapped[Optional[str]] = mapped_column(String(255))
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_shopping_list_items_list", "list_id"),
    )

    def __repr__(self) -> str:
        return f"<ShoppingListItem(id={self.id}, name='{self.name}', source='{self.source}')>"

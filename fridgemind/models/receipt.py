"""
FridgeMind API — Receipt SQLAlchemy Models
============================================

What:  ORM models for `receipts` (one per shopping trip) and `receipt_items`
       (one per purchased line).
Why:   Spending summaries and purchase history are computed from these rows.
Who:   Written, listed and deleted by ReceiptService.

Money columns are NUMERIC(10, 2) returned as float. The line-item foreign key
cascades at the database level; the service never deletes items itself.
"""

import uuid
from datetime import date, datetime, timezone
from typing import Any, Optional

from sqlalchemy import JSON, Date, DateTime, ForeignKey, Index, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from fridgemind.database import Base

Money = Numeric(10, 2, asdecimal=False)


class Receipt(Base):
    """Header row of a parsed grocery receipt."""

    __tablename__ = "receipts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    store_name: Mapped[str] = mapped_column(String(255), nullable=False, default="Unknown Store")
    store_branch: Mapped[Optional[str]] = mapped_column(String(255))
    receipt_date: Mapped[date] = mapped_column(Date, nullable=False)
    receipt_number: Mapped[Optional[str]] = mapped_column(String(100))
    subtotal: Mapped[Optional[float]] = mapped_column(Money)
    gst: Mapped[Optional[float]] = mapped_column(Money)
    total: Mapped[float] = mapped_column(Money, nullable=False)
    payment_method: Mapped[Optional[str]] = mapped_column(String(50))
    file_name: Mapped[Optional[str]] = mapped_column(String(255))
    raw_ocr_response: Mapped[Optional[Any]] = mapped_column(JSON)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_receipts_user_date", "user_id", "receipt_date"),
    )

    def __repr__(self) -> str:
        return f"<Receipt(id={self.id}, store='{self.store_name}', total={self.total})>"


class ReceiptItem(Base):
    """A single purchased line on a receipt."""

    __tablename__ = "receipt_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    receipt_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("receipts.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    # Raw text as printed, e.g. "CHY TOM 250G"
    item_name: Mapped[str] = mapped_column(String(255), nullable=False)
    # Human name and grouping key, e.g. "Cherry Tomatoes" / "cherry_tomatoes"
    normalized_name: Mapped[Optional[str]] = mapped_column(String(255))
    food_type: Mapped[Optional[str]] = mapped_column(String(100))
    item_code: Mapped[Optional[str]] = mapped_column(String(100))
    quantity: Mapped[float] = mapped_column(Numeric(10, 3, asdecimal=False), default=1)
    unit: Mapped[str] = mapped_column(String(50), default="pc")
    unit_price: Mapped[Optional[float]] = mapped_column(Money)
    total_price: Mapped[float] = mapped_column(Money, nullable=False)
    discount: Mapped[float] = mapped_column(Money, default=0)
    category: Mapped[str] = mapped_column(String(50), default="other")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_receipt_items_receipt", "receipt_id"),
        Index("idx_receipt_items_user", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<ReceiptItem(id={self.id}, item_name='{self.item_name}', total_price={self.total_price})>"

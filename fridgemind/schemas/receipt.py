"""
FridgeMind API — Receipt Schemas
==================================

What:  Contract for /api/receipts and the validated structure of a parsed
       receipt as returned by the document model.
Why:   The PDF and image entry points must yield the same ParsedReceipt;
       normalising defaults here keeps ReceiptService free of null checks.

Defaults applied to model output:
    store_name "Unknown Store", receipt_date today, item quantity 1,
    unit "pc", discount 0, category "other", normalized_name = name,
    food_type "other". A receipt without `total` or `items` is rejected.
"""

import uuid
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class ReceiptUploadRequest(BaseModel):
    """
    Body of POST /api/receipts.

    PDF is selected when file_type is application/pdf or file_name ends
    with ".pdf"; everything else is treated as an image.
    """
    file_data: Optional[str] = Field(default=None, description="Base64 file content (raw or data URL)")
    file_type: Optional[str] = Field(default=None, description="MIME type, e.g. application/pdf")
    file_name: Optional[str] = None

    @property
    def is_pdf(self) -> bool:
        if self.file_type == "application/pdf":
            return True
        return bool(self.file_name) and self.file_name.lower().endswith(".pdf")


class ParsedReceiptItem(BaseModel):
    name: str
    normalized_name: Optional[str] = None
    food_type: Optional[str] = None
    item_code: Optional[str] = None
    quantity: Optional[float] = None
    unit: Optional[str] = None
    unit_price: Optional[float] = None
    total_price: Optional[float] = None
    discount: Optional[float] = None
    category: Optional[str] = None

    @field_validator("item_code", mode="before")
    @classmethod
    def _code_as_text(cls, v):
        # Barcodes come back as numbers about half the time
        return None if v is None else str(v)

    @model_validator(mode="after")
    def _apply_defaults(self) -> "ParsedReceiptItem":
        self.normalized_name = self.normalized_name or self.name
        self.food_type = self.food_type or "other"
        if not self.quantity or self.quantity <= 0:
            self.quantity = 1
        self.unit = self.unit or "pc"
        if self.total_price is None:
            self.total_price = round((self.unit_price or 0) * self.quantity, 2)
        self.discount = self.discount or 0
        self.category = (self.category or "other").lower()
        return self


class ParsedReceipt(BaseModel):
    store_name: Optional[str] = None
    store_branch: Optional[str] = None
    receipt_date: Optional[date] = None
    receipt_number: Optional[str] = None
    subtotal: Optional[float] = None
    gst: Optional[float] = None
    total: float
    payment_method: Optional[str] = None
    items: List[ParsedReceiptItem]

    @field_validator("receipt_date", mode="before")
    @classmethod
    def _unreadable_date(cls, v):
        if v in (None, ""):
            return None
        if isinstance(v, str):
            try:
                return date.fromisoformat(v[:10])
            except ValueError:
                return None
        return v

    @field_validator("receipt_number", mode="before")
    @classmethod
    def _number_as_text(cls, v):
        return None if v is None else str(v)

    @model_validator(mode="after")
    def _apply_defaults(self) -> "ParsedReceipt":
        self.store_name = self.store_name or "Unknown Store"
        self.receipt_date = self.receipt_date or date.today()
        return self


class ReceiptResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    store_name: str
    store_branch: Optional[str] = None
    receipt_date: date
    receipt_number: Optional[str] = None
    subtotal: Optional[float] = None
    gst: Optional[float] = None
    total: float
    payment_method: Optional[str] = None
    file_name: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ReceiptItemResponse(BaseModel):
    id: uuid.UUID
    receipt_id: uuid.UUID
    item_name: str
    normalized_name: Optional[str] = None
    food_type: Optional[str] = None
    item_code: Optional[str] = None
    quantity: float
    unit: Optional[str] = None
    unit_price: Optional[float] = None
    total_price: float
    discount: Optional[float] = None
    category: Optional[str] = None

    model_config = {"from_attributes": True}


class ReceiptCreateResponse(BaseModel):
    """
    Result of POST /api/receipts.

    items_saved is false when the header was stored but inserting the line
    items failed; the receipt is kept and `warning` says so.
    """
    success: bool = True
    receipt: ReceiptResponse
    items_count: int
    items_saved: bool = True
    warning: Optional[str] = None
    parsed: ParsedReceipt


class ReceiptSummary(BaseModel):
    total_spent: float
    receipt_count: int
    this_month_spent: float
    avg_per_trip: float


class ReceiptListResponse(BaseModel):
    receipts: List[ReceiptResponse]
    summary: ReceiptSummary


class ReceiptItemsResponse(BaseModel):
    items: List[ReceiptItemResponse]
    count: int

"""
FridgeMind API — Image Scan Schemas
=====================================

What:  Request/response contract for POST /api/scan, plus the validated shape
       of the vision model's answer.
Why:   Model output is untrusted text. Parsing it through DetectedItem turns
       "almost JSON" (string numbers, nulls, fractional days) into typed
       records, or fails loudly with a parse error.
"""

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

VALID_LOCATIONS = ("fridge", "freezer", "pantry")

# Items at or above this confidence skip manual review in the app
HIGH_CONFIDENCE_THRESHOLD = 0.8


class ScanRequest(BaseModel):
    """
    Body of POST /api/scan.

    Both fields are checked by ScanService rather than by pydantic so the
    client receives the documented 400 messages instead of a 422.
    """
    images: Optional[List[str]] = Field(
        default=None,
        description="Base64 images (raw or data URLs); all are analyzed in one model call",
    )
    location: Optional[str] = Field(default=None, description="fridge, freezer or pantry")


class DetectedItem(BaseModel):
    """One food item as reported by the vision model."""
    name: str
    # produce | dairy | protein | pantry | beverage | condiment | frozen
    storage_category: str = "pantry"
    # protein | carbs | fibre | misc
    nutritional_type: str = "misc"
    quantity: float = 1
    unit: str = "piece"
    estimated_expiry_days: int = Field(ge=0)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    # fresh | use_soon | expired
    freshness: str = "fresh"

    @field_validator("storage_category", "nutritional_type", "unit", "freshness", mode="before")
    @classmethod
    def _blank_to_default(cls, v, info):
        if v in (None, ""):
            return cls.model_fields[info.field_name].default
        return v

    @field_validator("quantity", mode="before")
    @classmethod
    def _quantity_default(cls, v):
        return 1 if v in (None, "") else v

    @field_validator("estimated_expiry_days", mode="before")
    @classmethod
    def _round_days(cls, v):
        # Models sometimes answer 3.5 or -1 days; a shelf life is whole days
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return max(0, round(v))
        return v

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, v):
        if v is None:
            return 0.0
        return min(1.0, max(0.0, float(v)))


class VisionResult(BaseModel):
    """The whole vision answer: `{"items": [...]}`."""
    items: List[DetectedItem] = Field(default_factory=list)

    @field_validator("items", mode="before")
    @classmethod
    def _null_items(cls, v):
        return [] if v is None else v


class ScanSummary(BaseModel):
    total_detected: int
    high_confidence: int
    needs_review: int

    @classmethod
    def from_items(cls, items: List[DetectedItem]) -> "ScanSummary":
        high = sum(1 for item in items if item.confidence >= HIGH_CONFIDENCE_THRESHOLD)
        return cls(total_detected=len(items), high_confidence=high, needs_review=len(items) - high)


class ScannedItem(DetectedItem):
    """A detected item with dates and location filled in, ready for the inventory form."""
    purchase_date: date
    expiry_date: date
    location: str


class ScanResponse(BaseModel):
    success: bool = True
    items: List[ScannedItem]
    summary: ScanSummary
    location: str

"""
FridgeMind API — Eating-Out Schemas
=====================================

What:  Contract for POST/GET /api/eating-out and the validated nutrition
       estimate returned by the vision model for a meal photo.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class EatingOutRequest(BaseModel):
    image: Optional[str] = Field(default=None, description="Base64 meal photo (raw or data URL)")
    restaurant_name: Optional[str] = None
    meal_type: Optional[str] = Field(default=None, description="breakfast, lunch, dinner or snack")
    notes: Optional[str] = None


class MealNutrition(BaseModel):
    """
    Nutrition estimate for a photographed meal.

    Numbers the model leaves out (or sends as null) count as zero rather
    than failing the request; a missing meal name does not.
    """
    meal_name: str
    estimated_calories: int = 0
    protein_grams: float = 0
    carbs_grams: float = 0
    fat_grams: float = 0
    fiber_grams: float = 0
    vegetable_servings: float = 0
    detected_components: List[str] = Field(default_factory=list)
    health_assessment: Optional[str] = None
    notes: Optional[str] = None

    @field_validator(
        "protein_grams", "carbs_grams", "fat_grams", "fiber_grams", "vegetable_servings",
        mode="before",
    )
    @classmethod
    def _null_is_zero(cls, v):
        return 0 if v in (None, "") else v

    @field_validator("estimated_calories", mode="before")
    @classmethod
    def _whole_calories(cls, v):
        if v in (None, ""):
            return 0
        if isinstance(v, float):
            return round(v)
        return v

    @field_validator("detected_components", mode="before")
    @classmethod
    def _components_list(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return [str(part) for part in v]


class EatingOutLogResponse(BaseModel):
    """A stored eating-out row as returned to the client."""
    id: uuid.UUID
    user_id: uuid.UUID
    image_url: Optional[str] = None
    restaurant_name: Optional[str] = None
    meal_name: str
    meal_type: Optional[str] = None
    estimated_calories: Optional[int] = None
    protein_grams: Optional[float] = None
    carbs_grams: Optional[float] = None
    fat_grams: Optional[float] = None
    fiber_grams: Optional[float] = None
    vegetable_servings: Optional[float] = None
    detected_components: List[str] = Field(default_factory=list)
    health_assessment: Optional[str] = None
    ai_notes: Optional[str] = None
    notes: Optional[str] = None
    eaten_at: datetime
    created_at: datetime

    model_config = {"from_attributes": True}


class EatingOutCreateResponse(BaseModel):
    success: bool = True
    meal: EatingOutLogResponse
    nutrition: MealNutrition


class EatingOutListResponse(BaseModel):
    success: bool = True
    meals: List[EatingOutLogResponse]

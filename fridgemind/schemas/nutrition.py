"""
FridgeMind API — Nutrition Lookup Schemas
===========================================

What:  Normalised food records served by /api/fatsecret/food and /search.
Why:   FatSecret returns every number as a string and wraps single results
       in objects instead of lists; clients get one stable shape instead.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class NutritionProfile(BaseModel):
    """Single-serving nutrition for one food, taken from its first serving."""
    food_id: str
    food_name: str
    brand_name: Optional[str] = None
    serving_description: str
    calories: float
    protein_grams: float
    carbs_grams: float
    fat_grams: float
    fiber_grams: float
    sodium_mg: Optional[float] = None
    sugar_grams: Optional[float] = None


class FoodSearchResult(BaseModel):
    id: str
    name: str
    brand: Optional[str] = None
    # "Generic" or "Brand"
    type: str
    description: str = Field(description="FatSecret's one-line per-serving summary")


class FoodSearchResponse(BaseModel):
    foods: List[FoodSearchResult]
    total: int
    page: int


class AutocompleteResponse(BaseModel):
    suggestions: List[str]

"""
FridgeMind API — Shopping List Schemas
========================================

What:  Contract for the three shopping-list mutators and the validated
       answers of the generation model (meal → ingredients, substitutes).
"""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


# ══════════════════════════════════════════════════════════════════════════
# Bulk add
# ══════════════════════════════════════════════════════════════════════════


class BulkAddItem(BaseModel):
    name: str = Field(min_length=1)
    quantity: Optional[float] = None
    unit: Optional[str] = None
    recipe_group: Optional[str] = Field(default=None, description="Recipe the item belongs to")


class BulkAddRequest(BaseModel):
    items: Optional[List[BulkAddItem]] = None


class BulkAddResponse(BaseModel):
    success: bool = True
    items_added: int


# ══════════════════════════════════════════════════════════════════════════
# Meal → list
# ══════════════════════════════════════════════════════════════════════════


class FromMealRequest(BaseModel):
    meal_description: Optional[str] = None
    add_to_list: bool = False


class MealIngredient(BaseModel):
    name: str = "Unknown Item"
    quantity: float = 1
    unit: str = "pc"
    category: str = "other"
    reason: Optional[str] = None

    @field_validator("name", "unit", "category", mode="before")
    @classmethod
    def _blank_to_default(cls, v, info):
        if v in (None, ""):
            return cls.model_fields[info.field_name].default
        return v

    @field_validator("quantity", mode="before")
    @classmethod
    def _positive_quantity(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool) and v > 0:
            return v
        return 1


class MealToListResult(BaseModel):
    """
    Ingredients still to buy for a meal idea.

    recipe_name falls back to the user's own description when the model
    omits it; ShoppingListService fills that in.
    """
    recipe_name: Optional[str] = None
    ingredients_needed: List[MealIngredient] = Field(default_factory=list)
    already_have: List[str] = Field(default_factory=list)

    @field_validator("ingredients_needed", "already_have", mode="before")
    @classmethod
    def _null_list(cls, v):
        return [] if v is None else v


class FromMealResponse(BaseModel):
    success: bool = True
    recipe_name: str
    ingredients_needed: List[MealIngredient]
    already_have: List[str]
    added_to_list: bool


# ══════════════════════════════════════════════════════════════════════════
# Substitutes
# ══════════════════════════════════════════════════════════════════════════


class SuggestAlternativeRequest(BaseModel):
    item_name: Optional[str] = None
    context: Optional[str] = Field(default=None, description="What the item is for, e.g. 'baking'")


class Alternative(BaseModel):
    name: str
    reason: str = ""

    @field_validator("reason", mode="before")
    @classmethod
    def _null_reason(cls, v):
        return "" if v is None else v


class AlternativesResult(BaseModel):
    alternatives: List[Alternative] = Field(default_factory=list)


class SuggestAlternativeResponse(BaseModel):
    success: bool = True
    original_item: str
    alternatives: List[Alternative]

"""
FridgeMind API — Nutrition Lookup Service
===========================================

What:  Food lookup and search for /api/fatsecret/*.
Why:   FatSecret's JSON is awkward to consume (numbers as strings, a single
       result as an object instead of a one-element list); this service
       returns the NutritionProfile / FoodSearchResponse shapes instead.
How:   Delegates transport to FatSecretClient and maps its failures onto the
       route's error messages.
"""

import logging
from typing import Any, Dict, List, Optional

from fridgemind.exceptions import (
    NotFoundError,
    NutritionServiceError,
    ServiceNotConfiguredError,
)
from fridgemind.schemas.nutrition import (
    AutocompleteResponse,
    FoodSearchResponse,
    FoodSearchResult,
    NutritionProfile,
)
from fridgemind.services.fatsecret_client import (
    MISSING_FOOD_ERROR_CODES,
    FatSecretAPIError,
    fatsecret_client,
)

logger = logging.getLogger(__name__)

FOOD_NOT_FOUND_MESSAGE = "Food not found or no nutrition data"


def as_list(value: Any) -> List[Any]:
    """FatSecret returns one result as an object and several as a list."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _number(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    if value in (None, ""):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def normalize_food(food: Dict[str, Any]) -> Optional[NutritionProfile]:
    """
    Build a NutritionProfile from the first serving of a food.get.v4 `food`.

    Returns None when the food has no servings.
    """
    servings = as_list((food.get("servings") or {}).get("serving"))
    if not servings:
        return None
    serving = servings[0]
    return NutritionProfile(
        food_id=str(food.get("food_id")),
        food_name=food.get("food_name", ""),
        brand_name=food.get("brand_name"),
        serving_description=serving.get("serving_description", ""),
        calories=_number(serving.get("calories")),
        protein_grams=_number(serving.get("protein")),
        carbs_grams=_number(serving.get("carbohydrate")),
        fat_grams=_number(serving.get("fat")),
        fiber_grams=_number(serving.get("fiber")),
        sodium_mg=_number(serving.get("sodium"), default=None),
        sugar_grams=_number(serving.get("sugar"), default=None),
    )


class NutritionService:
    """Route-facing FatSecret operations."""

    def __init__(self, client=None):
        self.client = client or fatsecret_client

    def is_configured(self) -> bool:
        return self.client.is_configured()

    def ensure_configured(self) -> None:
        if not self.is_configured():
            raise ServiceNotConfiguredError(service="FatSecret API")

    async def _fetch_food(self, food_id: str) -> Dict[str, Any]:
        try:
            payload = await self.client.get_food(food_id)
        except FatSecretAPIError as e:
            if e.code in MISSING_FOOD_ERROR_CODES:
                raise NotFoundError(
                    resource="food", resource_id=food_id, message=FOOD_NOT_FOUND_MESSAGE
                ) from e
            raise NutritionServiceError(message="Failed to get food data", context=e.context) from e
        except NutritionServiceError as e:
            raise NutritionServiceError(message="Failed to get food data", context=e.context) from e

        food = payload.get("food")
        if not food:
            raise NotFoundError(resource="food", resource_id=food_id, message=FOOD_NOT_FOUND_MESSAGE)
        return food

    async def get_food_detail(self, food_id: str) -> Dict[str, Any]:
        """The provider's full `food` object, all servings included."""
        self.ensure_configured()
        return await self._fetch_food(food_id)

    async def get_nutrition(self, food_id: str) -> NutritionProfile:
        """
        Single-serving nutrition for `food_id`.

        Raises:
            NotFoundError: Unknown id, or a food without servings.
            NutritionServiceError: Any other FatSecret failure.
        """
        self.ensure_configured()
        food = await self._fetch_food(food_id)
        profile = normalize_food(food)
        if profile is None:
            raise NotFoundError(resource="food", resource_id=food_id, message=FOOD_NOT_FOUND_MESSAGE)
        return profile

    async def search(self, query: str, page: int = 0, max_results: int = 20) -> FoodSearchResponse:
        self.ensure_configured()
        try:
            payload = await self.client.search_foods(query, page=page, max_results=max_results)
        except NutritionServiceError as e:
            raise NutritionServiceError(message="Failed to search foods", context=e.context) from e

        foods = payload.get("foods") or {}
        results = [
            FoodSearchResult(
                id=str(food.get("food_id")),
                name=food.get("food_name", ""),
                brand=food.get("brand_name"),
                type=food.get("food_type", "Generic"),
                description=food.get("food_description", ""),
            )
            for food in as_list(foods.get("food"))
        ]
        return FoodSearchResponse(
            foods=results,
            total=int(_number(foods.get("total_results"))),
            page=int(_number(foods.get("page_number"))),
        )

    async def autocomplete(self, query: str, max_results: int = 20) -> AutocompleteResponse:
        """Suggestions for a partial query; never more than `max_results`."""
        self.ensure_configured()
        try:
            payload = await self.client.autocomplete(query, max_results=max_results)
        except NutritionServiceError as e:
            raise NutritionServiceError(message="Failed to search foods", context=e.context) from e

        suggestions = as_list((payload.get("suggestions") or {}).get("suggestion"))
        return AutocompleteResponse(suggestions=[str(s) for s in suggestions][:max_results])


# ── Singleton Instance ────────────────────────────────────────────────────
nutrition_service = NutritionService()

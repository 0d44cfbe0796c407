"""
FridgeMind API — FatSecret Routes
===================================

What:  GET /api/fatsecret/food and GET /api/fatsecret/search.
How:   Both check that FatSecret credentials are configured (503 otherwise)
       before looking at their parameters, then delegate to NutritionService.
"""

from typing import Any, Dict, Literal, Union

from fastapi import APIRouter, Depends, Query

from fridgemind.dependencies import get_current_user
from fridgemind.exceptions import ValidationError
from fridgemind.schemas.auth import CurrentUser
from fridgemind.schemas.common import ErrorResponse
from fridgemind.schemas.nutrition import AutocompleteResponse, FoodSearchResponse, NutritionProfile
from fridgemind.services.nutrition_service import nutrition_service

router = APIRouter(prefix="/api/fatsecret", tags=["Nutrition"])

_COMMON_ERRORS = {
    401: {"description": "Not authenticated", "model": ErrorResponse},
    503: {"description": "FatSecret API not configured", "model": ErrorResponse},
}


@router.get(
    "/food",
    response_model=None,
    responses={
        **_COMMON_ERRORS,
        400: {"description": "Missing food ID parameter", "model": ErrorResponse},
        404: {"description": "Food not found or no nutrition data", "model": ErrorResponse},
        500: {"description": "Failed to get food data", "model": ErrorResponse},
    },
    summary="Nutrition for one food",
)
async def get_food(
    id: str | None = Query(default=None, description="FatSecret food id"),
    detailed: bool = Query(default=False, description="Return every serving as provided"),
    user: CurrentUser = Depends(get_current_user),
) -> Union[NutritionProfile, Dict[str, Any]]:
    """
    Without `detailed`, the first serving is normalised into a
    NutritionProfile; with it, FatSecret's `food` object is returned as is.
    """
    nutrition_service.ensure_configured()
    if not id:
        raise ValidationError(message="Missing food ID parameter", field="id")

    if detailed:
        return await nutrition_service.get_food_detail(id)
    return await nutrition_service.get_nutrition(id)


@router.get(
    "/search",
    response_model=Union[FoodSearchResponse, AutocompleteResponse],
    responses={
        **_COMMON_ERRORS,
        400: {"description": "Missing query parameter", "model": ErrorResponse},
        500: {"description": "Failed to search foods", "model": ErrorResponse},
    },
    summary="Search foods or autocomplete a partial query",
)
async def search_foods(
    q: str | None = Query(default=None, description="Search text"),
    mode: Literal["search", "autocomplete"] = Query(default="search"),
    page: int = Query(default=0, ge=0),
    max: int = Query(default=20, ge=1, le=50),
    user: CurrentUser = Depends(get_current_user),
) -> Union[FoodSearchResponse, AutocompleteResponse]:
    nutrition_service.ensure_configured()
    if not q or not q.strip():
        raise ValidationError(message="Missing query parameter", field="q")

    if mode == "autocomplete":
        return await nutrition_service.autocomplete(q.strip(), max_results=max)
    return await nutrition_service.search(q.strip(), page=page, max_results=max)

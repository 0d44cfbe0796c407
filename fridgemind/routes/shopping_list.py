"""
FridgeMind API — Shopping List Routes
=======================================

What:  POST /api/shopping-list/bulk-add, /from-meal and /suggest-alternative.
       All writes land on the caller's single active list.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fridgemind.database import get_db_session
from fridgemind.dependencies import get_current_user
from fridgemind.schemas.auth import CurrentUser
from fridgemind.schemas.common import ErrorResponse
from fridgemind.schemas.shopping_list import (
    BulkAddRequest,
    BulkAddResponse,
    FromMealRequest,
    FromMealResponse,
    SuggestAlternativeRequest,
    SuggestAlternativeResponse,
)
from fridgemind.services.shopping_list_service import shopping_list_service

router = APIRouter(prefix="/api/shopping-list", tags=["Shopping List"])


@router.post(
    "/bulk-add",
    response_model=BulkAddResponse,
    responses={
        400: {"description": "No items provided", "model": ErrorResponse},
        401: {"description": "Not authenticated", "model": ErrorResponse},
        500: {"description": "Failed to add items", "model": ErrorResponse},
    },
    summary="Add recipe items to the active list",
)
async def bulk_add(
    request: BulkAddRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> BulkAddResponse:
    return await shopping_list_service.bulk_add(db, user, request)


@router.post(
    "/from-meal",
    response_model=FromMealResponse,
    responses={
        400: {"description": "Meal description is required", "model": ErrorResponse},
        401: {"description": "Not authenticated", "model": ErrorResponse},
        500: {"description": "Failed to generate shopping list", "model": ErrorResponse},
    },
    summary="Ingredients to buy for a meal, minus what is on hand",
)
async def from_meal(
    request: FromMealRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FromMealResponse:
    return await shopping_list_service.from_meal(db, user, request)


@router.post(
    "/suggest-alternative",
    response_model=SuggestAlternativeResponse,
    responses={
        400: {"description": "Item name is required", "model": ErrorResponse},
        401: {"description": "Not authenticated", "model": ErrorResponse},
        500: {"description": "Failed to suggest alternatives", "model": ErrorResponse},
    },
    summary="Substitutes for an unavailable item",
)
async def suggest_alternative(
    request: SuggestAlternativeRequest,
    user: CurrentUser = Depends(get_current_user),
) -> SuggestAlternativeResponse:
    return await shopping_list_service.suggest_alternatives(user, request)

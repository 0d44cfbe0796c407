"""
FridgeMind API — Eating-Out Routes
====================================

What:  POST /api/eating-out logs a restaurant meal from a photo;
       GET /api/eating-out lists the caller's recent meals.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from fridgemind.database import get_db_session
from fridgemind.dependencies import get_current_user
from fridgemind.schemas.auth import CurrentUser
from fridgemind.schemas.common import ErrorResponse
from fridgemind.schemas.eating_out import (
    EatingOutCreateResponse,
    EatingOutListResponse,
    EatingOutRequest,
)
from fridgemind.services.eating_out_service import eating_out_service

router = APIRouter(prefix="/api", tags=["Eating Out"])


@router.post(
    "/eating-out",
    response_model=EatingOutCreateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "No image provided", "model": ErrorResponse},
        401: {"description": "Not authenticated", "model": ErrorResponse},
        500: {"description": "Analysis or save failed", "model": ErrorResponse},
    },
    summary="Log a restaurant meal with estimated nutrition",
)
async def log_eating_out(
    request: EatingOutRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> EatingOutCreateResponse:
    return await eating_out_service.log_meal(db, user, request)


@router.get(
    "/eating-out",
    response_model=EatingOutListResponse,
    responses={
        401: {"description": "Not authenticated", "model": ErrorResponse},
        500: {"description": "Failed to fetch meals", "model": ErrorResponse},
    },
    summary="List the 50 most recent eating-out meals",
)
async def list_eating_out(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> EatingOutListResponse:
    return await eating_out_service.list_meals(db, user)

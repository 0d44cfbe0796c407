"""
FridgeMind API — Image Scan Route
===================================

What:  POST /api/scan detects food items in fridge/freezer/pantry photos.
How:   Thin handler; ScanService does validation, the vision call and dating.
       Nothing is stored, so no database session is requested.
"""

from fastapi import APIRouter, Depends

from fridgemind.dependencies import get_current_user
from fridgemind.schemas.auth import CurrentUser
from fridgemind.schemas.common import ErrorResponse
from fridgemind.schemas.scan import ScanRequest, ScanResponse
from fridgemind.services.scan_service import scan_service

router = APIRouter(prefix="/api", tags=["Scan"])


@router.post(
    "/scan",
    response_model=ScanResponse,
    responses={
        400: {"description": "No images or invalid location", "model": ErrorResponse},
        401: {"description": "Not authenticated", "model": ErrorResponse},
        500: {"description": "Failed to process images", "model": ErrorResponse},
        503: {"description": "AI circuit open", "model": ErrorResponse},
    },
    summary="Detect food items in photos",
)
async def scan_images(
    request: ScanRequest,
    user: CurrentUser = Depends(get_current_user),
) -> ScanResponse:
    """
    All images go to the vision model in one call. Each detected item gets
    purchase_date = today and expiry_date = today + estimated_expiry_days.
    """
    return await scan_service.scan(user, request)

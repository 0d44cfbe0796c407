"""
FridgeMind API — Stored Photo Route
=====================================

What:  GET /storage/meal-photos/{path} serves uploaded meal photos.
Why:   The URLs stored on eating-out rows point here.

Object keys embed a random suffix and are not guessable, so the route is
public like a public storage bucket. Paths that escape the bucket are
rejected by StorageService.resolve_blob_path.
"""

from fastapi import APIRouter
from fastapi.responses import FileResponse

from fridgemind.schemas.common import ErrorResponse
from fridgemind.services.storage_service import MEAL_PHOTOS_BUCKET, storage_service

router = APIRouter(prefix="/storage", tags=["Storage"])


@router.get(
    f"/{MEAL_PHOTOS_BUCKET}/{{object_key:path}}",
    response_class=FileResponse,
    responses={
        400: {"description": "Invalid file path", "model": ErrorResponse},
        404: {"description": "File not found", "model": ErrorResponse},
    },
    summary="Serve a stored meal photo",
)
async def get_meal_photo(object_key: str) -> FileResponse:
    path = storage_service.resolve_blob_path(object_key)
    return FileResponse(
        path,
        media_type="image/jpeg",
        # Keys are never reused
        headers={"Cache-Control": "public, max-age=31536000, immutable"},
    )

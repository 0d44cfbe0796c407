"""
FridgeMind API — Image Scan Service
=====================================

What:  Turns photos of a fridge, freezer or pantry into a reviewable list of
       detected items with purchase and expiry dates.
How:   validate → decode → one vision call for all images → date the items.
       Nothing is persisted; the app lets the user review and save.
"""

import logging
from datetime import datetime, timedelta, timezone

from fridgemind.exceptions import ValidationError
from fridgemind.schemas.auth import CurrentUser
from fridgemind.schemas.scan import (
    VALID_LOCATIONS,
    ScannedItem,
    ScanRequest,
    ScanResponse,
    ScanSummary,
)
from fridgemind.services.gemini_service import gemini_service
from fridgemind.services.llm_base import ai_call_errors
from fridgemind.services.media import decode_base64_media

logger = logging.getLogger(__name__)


class ScanService:
    """Stateless orchestrator for POST /api/scan."""

    async def scan(self, user: CurrentUser, request: ScanRequest) -> ScanResponse:
        """
        Detect food items in the submitted images.

        Every item gets purchase_date = today (UTC) and
        expiry_date = today + estimated_expiry_days.

        Raises:
            ValidationError: No images, or a location outside fridge/freezer/pantry.
            LLMServiceError: "Failed to process images" on any AI failure.
        """
        if not request.images:
            raise ValidationError(message="No images provided", field="images")
        if request.location not in VALID_LOCATIONS:
            raise ValidationError(
                message="Invalid location",
                field="location",
                context={"allowed": list(VALID_LOCATIONS)},
            )

        media = [decode_base64_media(image, field="image") for image in request.images]

        logger.info(
            "Scanning %d image(s) of %s for user %s", len(media), request.location, user.id
        )

        with ai_call_errors("Failed to process images"):
            result = await gemini_service.analyze_food_images(media)

        today = datetime.now(timezone.utc).date()
        items = [
            ScannedItem(
                **item.model_dump(),
                purchase_date=today,
                expiry_date=today + timedelta(days=item.estimated_expiry_days),
                location=request.location,
            )
            for item in result.items
        ]
        summary = ScanSummary.from_items(result.items)

        logger.info(
            "Scan complete: %d detected, %d need review",
            summary.total_detected,
            summary.needs_review,
        )
        return ScanResponse(items=items, summary=summary, location=request.location)


scan_service = ScanService()

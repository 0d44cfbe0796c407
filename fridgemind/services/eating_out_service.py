"""
FridgeMind API — Eating-Out Service
=====================================

What:  Logs restaurant meals with AI-estimated nutrition and lists them.

Orchestration Flow (POST /api/eating-out):
    ┌──────────┐    ┌──────────────┐    ┌──────────────┐    ┌──────────┐
    │ Validate │───▶│  Gemini      │───▶│ Photo upload │───▶│ Insert   │
    │ & decode │    │  (nutrition) │    │ (best-effort)│    │ (DB)     │
    └──────────┘    └──────────────┘    └──────────────┘    └──────────┘

    - Analysis fails → "Failed to analyze meal", nothing stored
    - Upload fails   → row saved with image_url = NULL
    - Insert fails   → "Failed to save meal", uploaded photo removed,
                       the computed estimate is discarded
"""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fridgemind.exceptions import DatabaseError, ValidationError
from fridgemind.models.eating_out import EatingOutLog
from fridgemind.schemas.auth import CurrentUser
from fridgemind.schemas.eating_out import (
    EatingOutCreateResponse,
    EatingOutListResponse,
    EatingOutLogResponse,
    EatingOutRequest,
)
from fridgemind.services.gemini_service import gemini_service
from fridgemind.services.llm_base import ai_call_errors
from fridgemind.services.media import decode_base64_media
from fridgemind.services.storage_service import storage_service

logger = logging.getLogger(__name__)

RECENT_MEALS_LIMIT = 50


class EatingOutService:
    """Stateless; receives the request's session on every call."""

    async def log_meal(
        self, db: AsyncSession, user: CurrentUser, request: EatingOutRequest
    ) -> EatingOutCreateResponse:
        if not request.image:
            raise ValidationError(message="No image provided", field="image")

        media = decode_base64_media(request.image, field="image")

        with ai_call_errors("Failed to analyze meal"):
            nutrition = await gemini_service.analyze_meal_nutrition(media)

        image_url = await storage_service.upload_meal_photo(request.image, user.id)

        now = datetime.now(timezone.utc)
        log = EatingOutLog(
            id=uuid.uuid4(),
            user_id=user.id,
            image_url=image_url,
            restaurant_name=request.restaurant_name or None,
            meal_name=nutrition.meal_name,
            meal_type=request.meal_type or None,
            estimated_calories=nutrition.estimated_calories,
            protein_grams=nutrition.protein_grams,
            carbs_grams=nutrition.carbs_grams,
            fat_grams=nutrition.fat_grams,
            fiber_grams=nutrition.fiber_grams,
            vegetable_servings=nutrition.vegetable_servings,
            detected_components=nutrition.detected_components,
            health_assessment=nutrition.health_assessment,
            ai_notes=nutrition.notes,
            notes=request.notes or None,
            eaten_at=now,
            created_at=now,
        )

        try:
            db.add(log)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to save eating-out log for user %s: %s", user.id, str(e))
            if image_url:
                await storage_service.delete_meal_photo(image_url, user.id)
            raise DatabaseError(
                message="Failed to save meal",
                context={"operation": "insert_eating_out_log", "error": str(e)},
            ) from e

        logger.info("Eating-out meal logged: %s (%s kcal)", log.id, nutrition.estimated_calories)
        return EatingOutCreateResponse(
            meal=EatingOutLogResponse.model_validate(log),
            nutrition=nutrition,
        )

    async def list_meals(
        self, db: AsyncSession, user: CurrentUser, limit: int = RECENT_MEALS_LIMIT
    ) -> EatingOutListResponse:
        """The caller's most recent meals, newest first."""
        try:
            result = await db.execute(
                select(EatingOutLog)
                .where(EatingOutLog.user_id == user.id)
                .order_by(EatingOutLog.eaten_at.desc())
                .limit(min(limit, RECENT_MEALS_LIMIT))
            )
            rows = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Failed to fetch eating-out logs: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to fetch meals",
                context={"operation": "list_eating_out_logs", "error": str(e)},
            ) from e

        return EatingOutListResponse(
            meals=[EatingOutLogResponse.model_validate(row) for row in rows]
        )


eating_out_service = EatingOutService()

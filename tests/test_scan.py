"""
FridgeMind API — Image Scan Tests
===================================

What:  ScanService dating/summary logic and the POST /api/scan contract.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest

from fridgemind.exceptions import (
    AIResponseParseError,
    CircuitBreakerOpenError,
    LLMServiceError,
    ValidationError,
)
from fridgemind.schemas.scan import ScanRequest, VisionResult
from fridgemind.services.scan_service import scan_service

VISION_ANSWER = VisionResult.model_validate(
    {
        "items": [
            {"name": "Whole milk", "estimated_expiry_days": 7, "confidence": 0.95},
            {"name": "Spinach", "estimated_expiry_days": 3, "confidence": 0.8},
            {"name": "Leftover curry", "estimated_expiry_days": 2, "confidence": 0.4},
        ]
    }
)


@pytest.fixture
def mock_gemini():
    with patch("fridgemind.services.scan_service.gemini_service") as gemini:
        gemini.analyze_food_images = AsyncMock(return_value=VISION_ANSWER)
        yield gemini


class TestScanService:

    @pytest.mark.asyncio
    async def test_items_are_dated_and_located(self, current_user, sample_image_b64, mock_gemini):
        result = await scan_service.scan(
            current_user, ScanRequest(images=[sample_image_b64], location="fridge")
        )

        today = datetime.now(timezone.utc).date()
        for item in result.items:
            assert item.purchase_date == today
            assert item.expiry_date == today + timedelta(days=item.estimated_expiry_days)
            assert item.location == "fridge"
        assert result.location == "fridge"

    @pytest.mark.asyncio
    async def test_summary_counts_threshold_as_high_confidence(
        self, current_user, sample_image_b64, mock_gemini
    ):
        result = await scan_service.scan(
            current_user, ScanRequest(images=[sample_image_b64], location="pantry")
        )

        assert result.summary.total_detected == 3
        assert result.summary.high_confidence == 2
        assert result.summary.needs_review == 1

    @pytest.mark.asyncio
    async def test_all_images_go_in_one_call(self, current_user, sample_image_b64, mock_gemini):
        await scan_service.scan(
            current_user,
            ScanRequest(images=[sample_image_b64, "data:image/png;base64," + sample_image_b64], location="freezer"),
        )

        mock_gemini.analyze_food_images.assert_awaited_once()
        media = mock_gemini.analyze_food_images.call_args.args[0]
        assert [m.mime_type for m in media] == ["image/jpeg", "image/png"]

    @pytest.mark.asyncio
    async def test_no_images(self, current_user, mock_gemini):
        with pytest.raises(ValidationError, match="No images provided"):
            await scan_service.scan(current_user, ScanRequest(images=[], location="fridge"))
        mock_gemini.analyze_food_images.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_location(self, current_user, sample_image_b64, mock_gemini):
        with pytest.raises(ValidationError, match="Invalid location"):
            await scan_service.scan(
                current_user, ScanRequest(images=[sample_image_b64], location="garage")
            )

    @pytest.mark.asyncio
    async def test_ai_failure_uses_route_message(self, current_user, sample_image_b64, mock_gemini):
        mock_gemini.analyze_food_images.side_effect = AIResponseParseError(raw="nope")

        with pytest.raises(LLMServiceError) as exc_info:
            await scan_service.scan(
                current_user, ScanRequest(images=[sample_image_b64], location="fridge")
            )
        assert exc_info.value.message == "Failed to process images"

    @pytest.mark.asyncio
    async def test_open_circuit_passes_through(self, current_user, sample_image_b64, mock_gemini):
        mock_gemini.analyze_food_images.side_effect = CircuitBreakerOpenError(recovery_time=30)

        with pytest.raises(CircuitBreakerOpenError):
            await scan_service.scan(
                current_user, ScanRequest(images=[sample_image_b64], location="fridge")
            )


class TestScanRoute:

    @pytest.mark.asyncio
    async def test_missing_images_is_400(self, api_client):
        response = await api_client.post("/api/scan", json={"location": "fridge"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "No images provided"
        assert body["code"] == "validation_error"
        assert body["request_id"] == response.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_ai_failure_is_500(self, api_client, sample_image_b64, mock_gemini):
        mock_gemini.analyze_food_images.side_effect = RuntimeError("boom")

        response = await api_client.post(
            "/api/scan", json={"images": [sample_image_b64], "location": "fridge"}
        )

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to process images"

    @pytest.mark.asyncio
    async def test_open_circuit_is_503_with_retry_after(self, api_client, sample_image_b64, mock_gemini):
        mock_gemini.analyze_food_images.side_effect = CircuitBreakerOpenError(recovery_time=42)

        response = await api_client.post(
            "/api/scan", json={"images": [sample_image_b64], "location": "fridge"}
        )

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "42"

    @pytest.mark.asyncio
    async def test_success(self, api_client, sample_image_b64, mock_gemini):
        response = await api_client.post(
            "/api/scan", json={"images": [sample_image_b64], "location": "freezer"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert len(body["items"]) == 3
        assert body["summary"] == {"total_detected": 3, "high_confidence": 2, "needs_review": 1}

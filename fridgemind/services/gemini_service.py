"""
FridgeMind API — Google Gemini Service Implementation
=======================================================

What:  Concrete LLM service using Google Gemini for every AI task: fridge
       scans, meal nutrition, receipt parsing and shopping suggestions.
Why:   One multimodal model covers images, PDFs and plain text prompts.
How:   Each task builds a list of content parts (inline bytes + prompt) and
       goes through one shared path:

           circuit breaker → tenacity retry → generate_content_async
           → extract_json_object → pydantic validation

Resilience Strategy:
    1. Tenacity retry with exponential backoff + jitter for transient failures
    2. Circuit breaker shared by all tasks; Gemini being down for scans means
       it is down for receipts too
    3. Per-call timeout from AI_REQUEST_TIMEOUT
    4. Parse failures are NOT retried and do not trip the breaker: the
       provider answered, the answer was unusable
"""

import json
import logging
import re
import time
import uuid
from typing import Any, Dict, List, Optional, Type, TypeVar

import google.generativeai as genai
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential_jitter,
    retry_if_exception_type,
    before_sleep_log,
    RetryError,
)

from fridgemind.config import settings
from fridgemind.exceptions import (
    AIResponseParseError,
    CircuitBreakerOpenError,
    LLMServiceError,
)
from fridgemind.schemas.eating_out import MealNutrition
from fridgemind.schemas.receipt import ParsedReceipt
from fridgemind.schemas.scan import VisionResult
from fridgemind.schemas.shopping_list import AlternativesResult, MealToListResult
from fridgemind.services import prompts
from fridgemind.services.llm_base import LLMService
from fridgemind.services.media import InlineMedia

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


# ══════════════════════════════════════════════════════════════════════════
# Response Parsing
# ══════════════════════════════════════════════════════════════════════════

def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Pull the outermost JSON object out of a model response.

    Handles answers wrapped in ```json fences or preceded by prose.

    Raises:
        AIResponseParseError: No object found, or it is not valid JSON.
    """
    if not text:
        raise AIResponseParseError(message="Empty AI response", raw="")

    match = _JSON_OBJECT.search(text)
    if not match:
        raise AIResponseParseError(message="No JSON object found in AI response", raw=text)

    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise AIResponseParseError(
            message="AI response is not valid JSON",
            raw=text,
            context={"position": e.pos},
        ) from e

    if not isinstance(parsed, dict):
        raise AIResponseParseError(message="AI response is not a JSON object", raw=text)
    return parsed


def parse_model_response(text: str, schema: Type[ModelT]) -> ModelT:
    """Extract and validate a model answer against `schema`."""
    payload = extract_json_object(text)
    try:
        return schema.model_validate(payload)
    except PydanticValidationError as e:
        raise AIResponseParseError(
            message=f"AI response does not match {schema.__name__}",
            raw=text,
            context={"errors": e.error_count()},
        ) from e


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker Implementation
# ══════════════════════════════════════════════════════════════════════════

class CircuitBreaker:
    """
    Circuit breaker guarding all Gemini calls.

    State Machine:
        CLOSED → failures counted; at threshold → OPEN
        OPEN → every call raises CircuitBreakerOpenError until
               recovery_timeout has elapsed → HALF_OPEN
        HALF_OPEN → one trial call; success → CLOSED, failure → OPEN

    Not thread-safe: uvicorn async workers run one event loop per process,
    and each process keeps its own breaker.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time: Optional[float] = None

    def can_execute(self) -> bool:
        """
        Returns True if a call may proceed.

        Raises:
            CircuitBreakerOpenError: OPEN and the recovery timeout has not elapsed.
        """
        if self.state == self.CLOSED:
            return True

        if self.state == self.OPEN:
            elapsed = time.time() - (self.last_failure_time or 0)
            if elapsed >= self.recovery_timeout:
                logger.info("Circuit breaker transitioning to HALF_OPEN after %.1fs", elapsed)
                self.state = self.HALF_OPEN
                return True
            remaining = int(self.recovery_timeout - elapsed)
            raise CircuitBreakerOpenError(recovery_time=max(1, remaining))

        return True

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Circuit breaker transitioning to CLOSED (service recovered)")
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.time()

        if self.state == self.HALF_OPEN:
            logger.warning("Circuit breaker returning to OPEN (trial request failed)")
            self.state = self.OPEN
        elif self.failure_count >= self.failure_threshold:
            logger.warning(
                "Circuit breaker OPENING after %d consecutive failures",
                self.failure_count,
            )
            self.state = self.OPEN


# ══════════════════════════════════════════════════════════════════════════
# Gemini Service
# ══════════════════════════════════════════════════════════════════════════

class GeminiService(LLMService):
    """
    Google Gemini implementation of every FridgeMind AI task.

    Error Handling Chain:
        API call fails → tenacity retries (RETRY_MAX_ATTEMPTS with backoff)
        → all retries fail → breaker records failure → LLMServiceError
        → breaker threshold reached → later calls rejected instantly
    """

    # JSON mode keeps answers machine-readable; low temperature keeps
    # receipt totals and item names literal
    GENERATION_CONFIG = {
        "response_mime_type": "application/json",
        "temperature": 0.2,
    }

    def __init__(self):
        if settings.gemini_api_key:
            genai.configure(api_key=settings.gemini_api_key)

        self.model = genai.GenerativeModel(
            settings.gemini_model,
            generation_config=self.GENERATION_CONFIG,
        )

        self.circuit_breaker = CircuitBreaker(
            failure_threshold=settings.cb_failure_threshold,
            recovery_timeout=settings.cb_recovery_timeout,
        )

        logger.info(
            "GeminiService initialized with model=%s, "
            "circuit_breaker(threshold=%d, recovery=%ds)",
            settings.gemini_model,
            settings.cb_failure_threshold,
            settings.cb_recovery_timeout,
        )

    # ── Tasks ─────────────────────────────────────────────────────────────

    async def analyze_food_images(self, images: List[InlineMedia]) -> VisionResult:
        parts: List[Any] = [image.as_part() for image in images]
        parts.append(prompts.VISION_PROMPT)
        return await self._generate_structured(parts, VisionResult, task="food_scan")

    async def analyze_meal_nutrition(self, image: InlineMedia) -> MealNutrition:
        parts = [image.as_part(), prompts.MEAL_NUTRITION_PROMPT]
        return await self._generate_structured(parts, MealNutrition, task="meal_nutrition")

    async def parse_receipt_pdf(self, document: InlineMedia) -> ParsedReceipt:
        # Gemini reads PDFs natively; force the MIME type in case the
        # client sent a bare base64 string without a data-URL header
        part = {"mime_type": "application/pdf", "data": document.data}
        return await self._generate_structured(
            [part, prompts.RECEIPT_PARSER_PROMPT], ParsedReceipt, task="receipt_pdf"
        )

    async def parse_receipt_image(self, image: InlineMedia) -> ParsedReceipt:
        return await self._generate_structured(
            [image.as_part(), prompts.RECEIPT_PARSER_PROMPT], ParsedReceipt, task="receipt_image"
        )

    async def generate_list_from_meal(
        self, meal_description: str, inventory_names: List[str]
    ) -> MealToListResult:
        prompt = prompts.build_meal_to_list_prompt(meal_description, inventory_names)
        return await self._generate_structured([prompt], MealToListResult, task="meal_to_list")

    async def suggest_alternatives(
        self, item_name: str, context: Optional[str] = None
    ) -> AlternativesResult:
        prompt = prompts.build_alternatives_prompt(item_name, context)
        return await self._generate_structured([prompt], AlternativesResult, task="alternatives")

    # ── Shared call path ──────────────────────────────────────────────────

    async def _generate_structured(
        self, parts: List[Any], schema: Type[ModelT], task: str
    ) -> ModelT:
        text = await self.generate(parts, task=task)
        try:
            return parse_model_response(text, schema)
        except AIResponseParseError as e:
            logger.error("Gemini %s answer unusable: %s | raw=%r", task, e.message, e.context.get("raw"))
            raise

    async def generate(self, parts: List[Any], task: str = "generate") -> str:
        """
        Send content parts to Gemini and return the response text.

        Flow:
            1. Check circuit breaker → may raise CircuitBreakerOpenError
            2. Call Gemini with retry logic
            3. Record success/failure in circuit breaker

        Raises:
            CircuitBreakerOpenError: Circuit is open
            LLMServiceError: Gemini failed after all retry attempts
        """
        request_id = str(uuid.uuid4())[:8]

        self.circuit_breaker.can_execute()

        logger.info("[%s] Starting Gemini %s call with %d part(s)", request_id, task, len(parts))

        try:
            result = await self._call_gemini_with_retry(parts, request_id)
            self.circuit_breaker.record_success()
            return result

        except RetryError as e:
            self.circuit_breaker.record_failure()
            last_error = e.last_attempt.exception() if e.last_attempt else None
            logger.error(
                "[%s] All Gemini retries exhausted for %s: %s",
                request_id,
                task,
                str(last_error) if last_error else "Unknown error",
            )
            raise LLMServiceError(
                message="AI request failed after multiple attempts",
                retry_after=self.circuit_breaker.recovery_timeout,
                context={
                    "request_id": request_id,
                    "task": task,
                    "attempts": settings.retry_max_attempts,
                    "error_type": type(last_error).__name__ if last_error else None,
                },
            ) from last_error
        except Exception as e:
            self.circuit_breaker.record_failure()
            logger.error("[%s] Unexpected Gemini error: %s", request_id, str(e), exc_info=True)
            raise LLMServiceError(
                message="Unexpected AI service error",
                context={"request_id": request_id, "task": task, "error_type": type(e).__name__},
            ) from e

    @retry(
        # The SDK raises generic exceptions for API errors, so retry on all
        retry=retry_if_exception_type(Exception),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )
    async def _call_gemini_with_retry(self, parts: List[Any], request_id: str) -> str:
        """
        Makes the actual Gemini API call; only this step is retried.

        Logs latency and response size for every attempt.
        """
        start_time = time.time()

        try:
            response = await self.model.generate_content_async(
                parts,
                request_options={"timeout": settings.ai_request_timeout},
            )
            duration_ms = (time.time() - start_time) * 1000
            text = response.text.strip() if response.text else ""

            logger.info(
                "[%s] Gemini call completed in %.0fms, %d chars",
                request_id,
                duration_ms,
                len(text),
            )
            return text

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.warning(
                "[%s] Gemini API call failed after %.0fms: %s",
                request_id,
                duration_ms,
                str(e),
            )
            raise

    async def health_check(self) -> bool:
        """
        Check if Gemini API is reachable by listing models (no token cost).
        """
        try:
            model_names = [m.name for m in genai.list_models()]
            target = f"models/{settings.gemini_model}"
            if target not in model_names:
                logger.warning("Configured model %s not found in available models", target)
            return True
        except Exception as e:
            logger.warning("Gemini health check failed: %s", str(e))
            return False


# ── Singleton Instance ────────────────────────────────────────────────────
# Holds the circuit breaker, which must be shared across all requests
gemini_service = GeminiService()

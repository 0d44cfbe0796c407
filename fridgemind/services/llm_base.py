"""
FridgeMind API — Abstract LLM Service Interface
=================================================

What:  Abstract base class for every AI task the API delegates to a model.
Why:   Services depend on the interface, not on Gemini, so the provider can
       be swapped (or mocked in tests) without touching calling code.
How:   Concrete implementations inherit from LLMService and implement each
       task. Every method returns a validated pydantic model, never raw text.

Tasks:
    analyze_food_images    fridge/freezer/pantry photos → detected items
    analyze_meal_nutrition restaurant meal photo       → nutrition estimate
    parse_receipt_pdf      receipt PDF                 → ParsedReceipt
    parse_receipt_image    receipt photo               → ParsedReceipt
    generate_list_from_meal meal idea + inventory      → ingredients to buy
    suggest_alternatives   unavailable item            → substitutes
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, List, Optional

from fridgemind.exceptions import CircuitBreakerOpenError, LLMServiceError, ValidationError
from fridgemind.schemas.eating_out import MealNutrition
from fridgemind.schemas.receipt import ParsedReceipt
from fridgemind.schemas.scan import VisionResult
from fridgemind.schemas.shopping_list import AlternativesResult, MealToListResult
from fridgemind.services.media import InlineMedia

logger = logging.getLogger(__name__)


@contextmanager
def ai_call_errors(message: str) -> Iterator[None]:
    """
    Report any failure of the wrapped AI call as LLMServiceError(message).

    Each route chooses its own generic message ("Failed to analyze meal").
    An open circuit and client-input errors pass through unchanged so they
    keep their own status codes.

    Usage:
        with ai_call_errors("Failed to process images"):
            result = await gemini_service.analyze_food_images(media)
    """
    try:
        yield
    except (CircuitBreakerOpenError, ValidationError):
        raise
    except Exception as e:
        context = dict(getattr(e, "context", {}) or {})
        context.setdefault("error_type", type(e).__name__)
        logger.error("%s: %s", message, str(e))
        raise LLMServiceError(message=message, context=context) from e


class LLMService(ABC):
    """
    Contract:
        - Implementations handle their own retry logic and error translation
        - Transport failures surface as LLMServiceError
        - Unusable model output surfaces as AIResponseParseError
        - A tripped circuit surfaces as CircuitBreakerOpenError
    """

    @abstractmethod
    async def analyze_food_images(self, images: List[InlineMedia]) -> VisionResult:
        """Identify food items across all images in a single model call."""
        ...

    @abstractmethod
    async def analyze_meal_nutrition(self, image: InlineMedia) -> MealNutrition:
        """Estimate calories and macros for a photographed meal."""
        ...

    @abstractmethod
    async def parse_receipt_pdf(self, document: InlineMedia) -> ParsedReceipt:
        ...

    @abstractmethod
    async def parse_receipt_image(self, image: InlineMedia) -> ParsedReceipt:
        ...

    @abstractmethod
    async def generate_list_from_meal(
        self, meal_description: str, inventory_names: List[str]
    ) -> MealToListResult:
        """
        List the ingredients needed for a meal, excluding what the user has.

        `inventory_names` may be empty; the prompt then says so explicitly.
        """
        ...

    @abstractmethod
    async def suggest_alternatives(
        self, item_name: str, context: Optional[str] = None
    ) -> AlternativesResult:
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check if the LLM service is reachable and operational.

        Lightweight: must not consume generation quota.
        """
        ...

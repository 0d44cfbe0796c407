"""
FridgeMind API — Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions for every failure class the API reports.
Why:   Services raise typed errors; global handlers in main.py turn them into
       `{"error": <message>, "code": <code>, "request_id": ...}` responses with
       the right status code. Internal detail stays in `context` and is logged,
       never returned.
Who:   Raised by services and dependencies; caught by global handlers.

Exception Hierarchy:
    FridgeMindError (base)
    ├── ValidationError            → 400 Bad Request (client can fix)
    ├── AuthenticationError        → 401 Unauthorized
    ├── NotFoundError              → 404 Not Found
    ├── ServiceNotConfiguredError  → 503 Service Unavailable (missing credentials)
    ├── CircuitBreakerOpenError    → 503 Service Unavailable (AI circuit open)
    ├── UpstreamServiceError       → 500 Internal Server Error
    │   ├── LLMServiceError
    │   │   └── AIResponseParseError
    │   ├── NutritionServiceError
    │   └── AuthProviderError
    └── DatabaseError              → 500 Internal Server Error

The message on 500-class errors is chosen by the caller for its route
("Failed to analyze meal", "Failed to search foods", ...), so a single
handler can serve every endpoint.
"""

from typing import Any, Dict, Optional


class FridgeMindError(Exception):
    """
    Base exception for all FridgeMind application errors.

    Attributes:
        message:  Client-facing error description (returned as `error`)
        context:  Debug info (logged but NOT returned to client)
    """

    code = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(FridgeMindError):
    """
    Raised when client input fails a business rule.

    HTTP:    400 Bad Request
    When:    Missing images, unknown location, empty item list, missing query.
    """

    code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(FridgeMindError):
    """
    Raised when the caller cannot be resolved to a user.

    HTTP:    401 Unauthorized
    The response never says why (missing token, expired token, provider
    down); the reason only goes to the log through `context`.
    """

    code = "unauthorized"

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Unauthorized", context=context)


class NotFoundError(FridgeMindError):
    """
    Raised when an addressed record does not exist (or is not the caller's).

    HTTP:    404 Not Found
    """

    code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message or f"{resource.capitalize()} not found", context=ctx)


class ServiceNotConfiguredError(FridgeMindError):
    """
    Raised before any outbound call when an integration has no credentials.

    HTTP:    503 Service Unavailable
    """

    code = "service_not_configured"

    def __init__(self, service: str, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["service"] = service
        super().__init__(message=f"{service} not configured", context=ctx)
        self.service = service


class CircuitBreakerOpenError(FridgeMindError):
    """
    Raised when the AI circuit breaker is OPEN.

    HTTP:    503 Service Unavailable

    CLOSED → failures counted → threshold reached → OPEN (reject instantly)
    → recovery timeout elapsed → HALF_OPEN (one trial call) → CLOSED or OPEN.
    """

    code = "service_unavailable"

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            "AI service is temporarily unavailable due to repeated failures. "
            f"Retry in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time


class UpstreamServiceError(FridgeMindError):
    """
    Raised when an external collaborator fails.

    HTTP:    500 Internal Server Error, with the caller-chosen generic message.
    """

    code = "upstream_error"


class LLMServiceError(UpstreamServiceError):
    """Raised when Gemini fails after all retries."""

    code = "ai_service_error"

    def __init__(
        self,
        message: str = "AI service request failed",
        retry_after: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if retry_after:
            ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class AIResponseParseError(LLMServiceError):
    """
    Raised when model output has no JSON object or fails schema validation.

    The raw text is kept in `context["raw"]` (truncated) for the log.
    """

    code = "ai_parse_error"

    def __init__(
        self,
        message: str = "Failed to parse AI response",
        raw: str = "",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["raw"] = raw[:500]
        super().__init__(message=message, context=ctx)


class NutritionServiceError(UpstreamServiceError):
    """Raised when the FatSecret API or its token endpoint fails."""

    code = "nutrition_service_error"


class AuthProviderError(UpstreamServiceError):
    """Raised when the auth provider cannot be reached (mapped to 401 by the gate)."""

    code = "auth_provider_error"


class DatabaseError(FridgeMindError):
    """
    Raised when a database operation fails unexpectedly.

    HTTP:    500 Internal Server Error
    The message is the route's generic text ("Failed to save meal"); the
    SQL error goes to `context` for the log only.
    """

    code = "database_error"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)

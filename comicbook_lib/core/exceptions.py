"""Custom exception hierarchy for the comic book generator.

This module defines custom exceptions for better error handling and debugging.
"""

# Standard library imports
from typing import Any, Dict, Optional


class ComicBookException(Exception):
    """Base exception for all comic book generator errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(ComicBookException):
    """Raised when there's an error in configuration.

    This exception is raised when configuration values are invalid,
    missing required settings, or when no usable LLM provider is configured.
    """

    pass


class LLMError(ComicBookException):
    """Base class for LLM-related errors.

    This is the base exception for all errors related to Language Model
    interactions, including connection issues, response errors, and quota limits.
    """

    pass


class LLMConnectionError(LLMError):
    """Raised when unable to connect to LLM provider or the call timed out."""

    pass


class LLMResponseError(LLMError):
    """Raised when LLM returns invalid or unexpected response.

    This exception is raised when the structured output cannot be parsed
    or doesn't match the requested schema.
    """

    pass


class LLMQuotaError(LLMError):
    """Raised when LLM quota or rate limit is exceeded."""

    pass


class LLMRequestError(LLMError):
    """Raised when the provider rejects the request itself.

    Bad credentials, missing permissions, unknown models and malformed
    requests fail the same way on every attempt and are not retried.
    """

    pass


class ValidationError(ComicBookException):
    """Base class for validation errors."""

    pass


class InputValidationError(ValidationError):
    """Raised when the audience inputs have an unrecognized shape.

    Attributes:
        received_type: Name of the type that was received.
    """

    def __init__(
        self,
        message: str,
        received_type: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.received_type = received_type


class StoryGenerationError(ComicBookException):
    """Base class for failures of a generation step.

    Attributes:
        step: The workflow step that failed.
        scene: The scene number being processed, if any.
    """

    def __init__(
        self,
        message: str,
        step: Optional[str] = None,
        scene: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.step = step
        self.scene = scene


class PlanGenerationError(StoryGenerationError):
    """Raised when the story plan or its critique cannot be generated."""

    pass


class SceneGenerationError(StoryGenerationError):
    """Raised when a scene cannot be generated."""

    pass


class VisualGenerationError(StoryGenerationError):
    """Raised when a scene's visual description or its critique fails."""

    pass


class StateError(ComicBookException):
    """Base class for workflow state errors."""

    pass


class InvalidStateError(StateError):
    """Raised when a step finds the state it needs missing or corrupted."""

    pass


class StateTransitionError(StateError):
    """Raised when a router selects a destination it does not declare.

    Attributes:
        from_node: The node attempting the transition.
        to_node: The target node of the transition.
    """

    def __init__(
        self,
        message: str,
        from_node: str,
        to_node: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.from_node = from_node
        self.to_node = to_node


# Utility functions for consistent error handling

# Provider responses that will not change on a retry
REQUEST_ERROR_STATUS_CODES = (400, 401, 403, 404, 422)
REQUEST_ERROR_MARKERS = (
    "authentication",
    "unauthorized",
    "invalid api key",
    "incorrect api key",
    "invalid_api_key",
    "permission denied",
    "model_not_found",
    "does not exist",
)


def handle_llm_error(error: Exception, context: str = "") -> LLMError:
    """Convert generic exceptions to specific LLM errors.

    Args:
        error: The original exception
        context: Additional context about where the error occurred

    Returns:
        Appropriate LLMError subclass
    """
    if isinstance(error, LLMError):
        return error

    error_msg = str(error)
    details = {"original_error": type(error).__name__, "context": context}

    status_code = getattr(error, "status_code", None)
    if status_code is not None:
        details["status_code"] = status_code
    if status_code == 429:
        return LLMQuotaError(f"LLM quota exceeded: {error_msg}", details)
    if status_code in REQUEST_ERROR_STATUS_CODES:
        return LLMRequestError(f"LLM request rejected: {error_msg}", details)

    lowered = error_msg.lower()
    if "rate limit" in lowered or "quota" in lowered:
        return LLMQuotaError(f"LLM quota exceeded: {error_msg}", details)
    elif any(marker in lowered for marker in REQUEST_ERROR_MARKERS):
        return LLMRequestError(f"LLM request rejected: {error_msg}", details)
    elif (
        "connection" in lowered
        or "timeout" in lowered
        or "timed out" in lowered
        or isinstance(error, (TimeoutError, ConnectionError))
    ):
        return LLMConnectionError(f"LLM connection failed: {error_msg}", details)
    else:
        return LLMResponseError(f"LLM error: {error_msg}", details)

"""
Provider exceptions for lmsbridge.

Defines the transport failures raised by the completion and embedding
client. These propagate out of the conversation loop.
"""

from enum import Enum


class FailureType(Enum):
    """Classification of provider failures."""

    AUTH_ERROR = "auth_error"
    NETWORK_ERROR = "network_error"
    SERVER_ERROR = "server_error"
    CONTEXT_LENGTH = "context_length"
    MODEL_NOT_FOUND = "model_not_found"
    INVALID_REQUEST = "invalid_request"
    UNKNOWN = "unknown"


class ProviderError(Exception):
    """Base exception for provider errors."""

    def __init__(self, message: str, provider: str | None = None):
        super().__init__(message)
        self.provider = provider


class AuthenticationError(ProviderError):
    """API key invalid or missing."""

    pass


class ModelNotFoundError(ProviderError):
    """Requested model not found or not loaded."""

    pass


class ContextLengthExceededError(ProviderError):
    """Request exceeded the model's context length."""

    pass


class NetworkError(ProviderError):
    """Network-related error (connection refused, timeout, etc.)."""

    pass


class ServerError(ProviderError):
    """Server error (5xx status codes)."""

    pass


class InvalidRequestError(ProviderError):
    """Invalid request sent to the server."""

    pass


_ERROR_CLASSES: dict[FailureType, type[ProviderError]] = {
    FailureType.AUTH_ERROR: AuthenticationError,
    FailureType.NETWORK_ERROR: NetworkError,
    FailureType.SERVER_ERROR: ServerError,
    FailureType.CONTEXT_LENGTH: ContextLengthExceededError,
    FailureType.MODEL_NOT_FOUND: ModelNotFoundError,
    FailureType.INVALID_REQUEST: InvalidRequestError,
    FailureType.UNKNOWN: ProviderError,
}


def _classify_status(status: int | None) -> FailureType:
    if status in (401, 403):
        return FailureType.AUTH_ERROR
    if status == 404:
        return FailureType.MODEL_NOT_FOUND
    if status and 500 <= status < 600:
        return FailureType.SERVER_ERROR
    if status and 400 <= status < 500:
        return FailureType.INVALID_REQUEST
    return FailureType.UNKNOWN


def classify_error(error: Exception) -> FailureType:
    """
    Classify an exception into a failure type.

    Args:
        error: The exception to classify.

    Returns:
        The failure type classification.
    """
    # Our own exceptions first
    for failure_type, error_class in _ERROR_CLASSES.items():
        if error_class is not ProviderError and isinstance(error, error_class):
            return failure_type

    from litellm.exceptions import (
        APIConnectionError,
        APIError,
        AuthenticationError as LiteLLMAuthError,
        BadRequestError,
        ContextWindowExceededError,
        NotFoundError,
        ServiceUnavailableError,
        Timeout,
    )

    if isinstance(error, LiteLLMAuthError):
        return FailureType.AUTH_ERROR
    if isinstance(error, ContextWindowExceededError):
        return FailureType.CONTEXT_LENGTH
    if isinstance(error, NotFoundError):
        return FailureType.MODEL_NOT_FOUND
    if isinstance(error, (APIConnectionError, ServiceUnavailableError, Timeout)):
        return FailureType.NETWORK_ERROR
    if isinstance(error, BadRequestError):
        return FailureType.INVALID_REQUEST
    if isinstance(error, APIError):
        return _classify_status(getattr(error, "status_code", None))

    import httpx

    if isinstance(error, httpx.HTTPStatusError):
        return _classify_status(error.response.status_code)
    if isinstance(error, httpx.TransportError):
        return FailureType.NETWORK_ERROR

    return FailureType.UNKNOWN


def wrap_provider_error(error: Exception, provider: str | None = None) -> ProviderError:
    """
    Translate a transport exception into the matching ProviderError.

    Args:
        error: The exception raised by LiteLLM or httpx.
        provider: Endpoint or provider the request was sent to.

    Returns:
        A ProviderError subclass instance (``error`` itself if already one).
    """
    if isinstance(error, ProviderError):
        return error
    error_class = _ERROR_CLASSES[classify_error(error)]
    return error_class(str(error), provider=provider)

"""
exceptions.py - SDK exception hierarchy

Provides:
- Local failures (validation, missing parameters, unsupported operations)
- Webhook signature failures
- API errors mapped from HTTP status codes
- Connectivity failures raised from httpx
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Type


MISSING_SIGNATURE = "Webhook does not contain a valid HMAC signature."
SIGNATURE_MISMATCH = (
    "Webhook received did not originate from EasyPost or had a webhook secret mismatch."
)


class PostbindError(Exception):
    """Base exception for all SDK errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": type(self).__name__, "message": self.message}


# =============================================================================
# LOCAL ERRORS
# =============================================================================

class ValidationError(PostbindError):
    """Raised when one or more declared properties fail their validator."""

    def __init__(self, errors: Dict[str, str], object_name: Optional[str] = None):
        self.errors = dict(errors)
        self.object_name = object_name
        fields = ", ".join(sorted(self.errors))
        super().__init__(f"Invalid {object_name or 'object'}: {fields}")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["object_name"] = self.object_name
        data["errors"] = self.errors
        return data


class MissingParameterError(PostbindError, ValueError):
    """Raised when an operation is called without the context it requires."""


class ResourceNotImplementedError(PostbindError, NotImplementedError):
    """Raised when an operation is intentionally unsupported for a resource."""

    def __init__(self, fn_name: str, url: Optional[str] = None):
        self.fn_name = fn_name
        self.url = url
        super().__init__(f"{fn_name} is not implemented for {url}")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["fn_name"] = self.fn_name
        data["url"] = self.url
        return data


class SignatureVerificationError(PostbindError):
    """Raised when an inbound webhook cannot be authenticated."""


# =============================================================================
# TRANSPORT ERRORS
# =============================================================================

class ApiError(PostbindError):
    """
    Raised for any non-2xx API response.

    ``code`` and ``errors`` come from the vendor's error envelope:
    ``{"error": {"code": ..., "message": ..., "errors": [...]}}``.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        code: Optional[str] = None,
        errors: Optional[List[Any]] = None,
        http_body: Optional[str] = None,
    ):
        self.status_code = status_code
        self.code = code
        self.errors = errors or []
        self.http_body = http_body
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(status_code=self.status_code, code=self.code, errors=self.errors)
        return data


class AuthenticationError(ApiError):
    """401 - missing or invalid API key."""


class ForbiddenError(ApiError):
    """403"""


class NotFoundError(ApiError):
    """404"""


class UnprocessableEntityError(ApiError):
    """422 - the API rejected the submitted object."""


class RateLimitError(ApiError):
    """429 - too many requests."""

    def __init__(self, message: str, *, retry_after: Optional[int] = None, **kwargs):
        self.retry_after = retry_after
        super().__init__(message, **kwargs)


class ServerError(ApiError):
    """5xx"""


class ApiConnectionError(PostbindError):
    """Raised when the API could not be reached or the request timed out."""


_STATUS_ERRORS: Dict[int, Type[ApiError]] = {
    401: AuthenticationError,
    403: ForbiddenError,
    404: NotFoundError,
    422: UnprocessableEntityError,
    429: RateLimitError,
}


def error_class_for_status(status_code: int) -> Type[ApiError]:
    """Pick the ApiError subclass matching an HTTP status code."""
    if status_code >= 500:
        return ServerError
    return _STATUS_ERRORS.get(status_code, ApiError)

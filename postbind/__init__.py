"""
postbind - async client for the EasyPost shipping API.
"""

__version__ = "1.0.0"

from postbind.client import Client
from postbind.exceptions import (
    ApiConnectionError,
    ApiError,
    MissingParameterError,
    PostbindError,
    ResourceNotImplementedError,
    SignatureVerificationError,
    ValidationError,
)
from postbind.logger import setup_logging
from postbind.webhooks import Event, validate_webhook

__all__ = [
    "ApiConnectionError",
    "ApiError",
    "Client",
    "Event",
    "MissingParameterError",
    "PostbindError",
    "ResourceNotImplementedError",
    "SignatureVerificationError",
    "ValidationError",
    "setup_logging",
    "validate_webhook",
]

"""
Inbound webhook authentication.

EasyPost signs every webhook delivery with the webhook's secret:

    X-Hmac-Signature: hmac-sha256-hex=<hex digest of the raw body>

Always verify the body exactly as it came off the wire. Parsing and
re-serializing it first changes the bytes and breaks the signature.
"""

import hashlib
import hmac
import unicodedata
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict

from postbind import json_utils
from postbind.exceptions import MISSING_SIGNATURE, SIGNATURE_MISMATCH, SignatureVerificationError
from postbind.logger import logger


SIGNATURE_HEADER = "X-Hmac-Signature"
SIGNATURE_PREFIX = "hmac-sha256-hex="


class Event(BaseModel):
    """A webhook event as delivered by the API."""
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    object: Optional[str] = None
    mode: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    result: Optional[Dict[str, Any]] = None
    previous_attributes: Optional[Dict[str, Any]] = None
    pending_urls: Optional[List[str]] = None
    completed_urls: Optional[List[str]] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


def _header(headers: Mapping[str, Any], name: str) -> Optional[str]:
    wanted = name.lower()
    for key, value in headers.items():
        if str(key).lower() == wanted:
            return value
    return None


def compute_signature(event_body: Union[bytes, str], webhook_secret: str) -> str:
    """
    Signature header value for a body.

    The secret is NFKD-normalized before encoding so that visually identical
    secrets typed with different code points sign the same way.
    """
    if isinstance(event_body, str):
        event_body = event_body.encode("utf-8")
    secret = unicodedata.normalize("NFKD", webhook_secret).encode("utf-8")
    digest = hmac.new(secret, msg=event_body, digestmod=hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def validate_webhook(
    event_body: Union[bytes, str],
    headers: Mapping[str, Any],
    webhook_secret: str,
    header_name: str = SIGNATURE_HEADER,
) -> Event:
    """
    Authenticate a webhook delivery and parse it.

    Args:
        event_body: Raw request body
        headers: Request headers; the signature header is looked up case-insensitively
        webhook_secret: Secret configured on the webhook
        header_name: Name of the signature header

    Returns:
        The parsed Event

    Raises:
        SignatureVerificationError: header missing or signature mismatch
    """
    signature = _header(headers, header_name)
    if signature is None:
        logger.warning(f"webhook rejected: no {header_name} header")
        raise SignatureVerificationError(MISSING_SIGNATURE)

    expected = compute_signature(event_body, webhook_secret)
    if not hmac.compare_digest(expected.encode("utf-8"), str(signature).encode("utf-8")):
        logger.warning("webhook rejected: signature mismatch")
        raise SignatureVerificationError(SIGNATURE_MISMATCH)

    return Event.model_validate(json_utils.loads(event_body))

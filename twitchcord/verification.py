"""EventSub message signature verification"""

import hashlib
import hmac
import logging
from typing import Optional

from .constants import HMAC_PREFIX

logger = logging.getLogger("twitchcord.verification")


def compute_signature(secret: str, message_id: str, timestamp: str, body: bytes) -> str:
    """Return the ``sha256=<hex>`` signature EventSub sends for this message"""
    message = message_id.encode("utf-8") + timestamp.encode("utf-8") + body
    digest = hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()
    return HMAC_PREFIX + digest


def verify_signature(
    secret: str,
    message_id: Optional[str],
    timestamp: Optional[str],
    body: bytes,
    signature: Optional[str],
) -> bool:
    """
    Check a notification's signature against the shared secret.

    The comparison runs in constant time with respect to the content of the
    signature. Missing headers, a missing secret and a signature of the wrong
    length fail immediately.

    Args:
        secret: Shared secret the subscription was created with
        message_id: Value of the message-id header
        timestamp: Value of the message-timestamp header
        body: Raw, unparsed request body
        signature: Value of the message-signature header

    Returns:
        True if the signature matches
    """
    if not secret:
        logger.error("No EventSub secret configured, rejecting message")
        return False
    if message_id is None or timestamp is None or not signature:
        return False

    expected = compute_signature(secret, message_id, timestamp, body)
    return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))

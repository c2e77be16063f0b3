"""Slack request signature verification."""

from __future__ import annotations

import hmac
import time
from hashlib import sha256
from typing import Mapping


SLACK_SIGNATURE_HEADER = "X-Slack-Signature"
SLACK_TIMESTAMP_HEADER = "X-Slack-Request-Timestamp"
VERSION = "v0"
DEFAULT_TOLERANCE = 60 * 5  # five minutes


def _as_bytes(body: str | bytes) -> bytes:
    if isinstance(body, bytes):
        return body
    return body.encode("utf-8")


def compute_signature(signing_secret: str, timestamp: str, body: str | bytes) -> str:
    """Return the Slack signature for *body* sent at *timestamp*."""

    basestring = f"{VERSION}:{timestamp}:".encode("utf-8") + _as_bytes(body)
    digest = hmac.new(signing_secret.encode("utf-8"), basestring, sha256).hexdigest()
    return f"{VERSION}={digest}"


def is_valid_slack_request(
    *,
    signing_secret: str,
    timestamp: str,
    body: str | bytes,
    signature: str,
    tolerance: int = DEFAULT_TOLERANCE,
) -> bool:
    """Validate the signature and reject timestamps outside *tolerance*."""

    if not timestamp or not signature:
        return False

    try:
        request_ts = int(timestamp)
    except (TypeError, ValueError):
        return False

    if abs(int(time.time()) - request_ts) > tolerance:
        return False

    expected = compute_signature(signing_secret, timestamp, body)
    return hmac.compare_digest(expected, signature)


def verify_request(headers: Mapping[str, str], body: str | bytes, signing_secret: str) -> bool:
    """Check the signature headers of an inbound request against *body*."""

    return is_valid_slack_request(
        signing_secret=signing_secret,
        timestamp=headers.get(SLACK_TIMESTAMP_HEADER, ""),
        body=body,
        signature=headers.get(SLACK_SIGNATURE_HEADER, ""),
    )

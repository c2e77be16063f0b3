"""Exception types raised while handling Slack interactions."""

from __future__ import annotations

from enum import Enum


class Prox2Error(Exception):
    """Base class for failures the request handlers map to HTTP outcomes."""


class PayloadError(Prox2Error, ValueError):
    """The interaction payload is missing, malformed or of an unknown type."""


class InvalidChannelError(Prox2Error):
    """A message shortcut was invoked outside the confessions channel."""

    def __init__(self, channel_id: str) -> None:
        super().__init__(f"Invalid channel ID {channel_id}")
        self.channel_id = channel_id


class LookupFailure(str, Enum):
    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"


class RecordLookupError(Prox2Error):
    """A formula did not match exactly one confession record."""

    def __init__(self, formula: str, count: int) -> None:
        super().__init__(f"Failed to find single record with {formula}, got {count}")
        self.formula = formula
        self.count = count
        self.kind = LookupFailure.NOT_FOUND if count == 0 else LookupFailure.AMBIGUOUS


class CorrelationError(Prox2Error, ValueError):
    """A modal callback id could not be decoded."""


class SubmissionError(Prox2Error):
    """A submitted modal is missing the value it was built to collect."""


class ModerationError(Prox2Error):
    """A confession could not be approved or rejected."""


class StoreError(Prox2Error):
    """The record store rejected a request or returned an unreadable body."""

"""Encode and decode the confession context carried in modal callback ids.

Slack hands a modal's ``callback_id`` back on submission, so the timestamps a
modal needs are stored there instead of in server-side state::

    reply_modal_<published_ts>
    react_modal_<published_ts>_<thread_ts>
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from .errors import CorrelationError


class ModalKind(str, Enum):
    REPLY = "reply_modal"
    REACT = "react_modal"

    @classmethod
    def for_callback_id(cls, callback_id: str) -> "ModalKind | None":
        """Return the kind whose prefix *callback_id* carries, if any."""

        for kind in cls:
            if callback_id.startswith(kind.value):
                return kind
        return None


_PATTERNS = {
    ModalKind.REPLY: re.compile(r"reply_modal_(.*)"),
    ModalKind.REACT: re.compile(r"react_modal_(.*)_(.*)"),
}


@dataclass(frozen=True)
class ModalCorrelation:
    kind: ModalKind
    published_ts: str
    thread_ts: str | None = None

    @classmethod
    def reply(cls, published_ts: str) -> "ModalCorrelation":
        return cls(kind=ModalKind.REPLY, published_ts=published_ts)

    @classmethod
    def react(cls, published_ts: str, thread_ts: str) -> "ModalCorrelation":
        return cls(kind=ModalKind.REACT, published_ts=published_ts, thread_ts=thread_ts)


def encode(correlation: ModalCorrelation) -> str:
    """Serialise *correlation* into a modal callback id."""

    if correlation.kind is ModalKind.REPLY:
        return f"{ModalKind.REPLY.value}_{correlation.published_ts}"
    if not correlation.thread_ts:
        raise CorrelationError("React correlations require a thread timestamp")
    return f"{ModalKind.REACT.value}_{correlation.published_ts}_{correlation.thread_ts}"


def decode(callback_id: str) -> ModalCorrelation:
    """Recover the correlation encoded in *callback_id*.

    Raises :class:`CorrelationError` when the id carries no known prefix, does
    not match the fixed pattern for its kind, or has an empty group.
    """

    kind = ModalKind.for_callback_id(callback_id)
    if kind is None:
        raise CorrelationError(f"Unrecognised modal callback id {callback_id!r}")

    match = _PATTERNS[kind].fullmatch(callback_id)
    if match is None:
        raise CorrelationError(f"Malformed {kind.value} callback id {callback_id!r}")

    groups = match.groups()
    if not all(groups):
        raise CorrelationError(f"Empty timestamp in callback id {callback_id!r}")

    if kind is ModalKind.REPLY:
        return ModalCorrelation.reply(groups[0])
    return ModalCorrelation.react(groups[0], groups[1])

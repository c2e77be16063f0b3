"""Block Kit payloads for the reply and react modals."""

from __future__ import annotations

from typing import Dict, Iterable, List

from .correlation import ModalCorrelation, encode
from .store import ConfessionRecord

MAX_TITLE_LENGTH = 24

REPLY_BLOCK_ID = "reply"
REPLY_ACTION_ID = "confession_reply"
EMOJI_BLOCK_ID = "emoji"
EMOJI_ACTION_ID = "emoji"
EMOJI_MIN_QUERY_LENGTH = 4

REPLY_REJECTION = "You are not the original poster of the confession, so cannot reply anonymously."
REACT_REJECTION = "You are not the original poster of the confession, so cannot react anonymously."


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 1] + "..."


def _plain_text(text: str, *, emoji: bool | None = None) -> Dict:
    element: Dict[str, object] = {"type": "plain_text", "text": text}
    if emoji is not None:
        element["emoji"] = emoji
    return element


def error_block(text: str) -> Dict:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def _modal(*, callback_id: str, title: str, submit: str, blocks: List[Dict]) -> Dict:
    return {
        "type": "modal",
        "callback_id": callback_id,
        "title": _plain_text(_truncate(title, MAX_TITLE_LENGTH), emoji=True),
        "submit": _plain_text(submit, emoji=True),
        "close": _plain_text("Cancel", emoji=True),
        "blocks": blocks,
    }


def build_reply_modal(record: ConfessionRecord, correlation: ModalCorrelation, *, error: str | None = None) -> Dict:
    """Modal with a single multiline input for an anonymous threaded reply."""

    blocks: List[Dict] = [
        {
            "type": "input",
            "block_id": REPLY_BLOCK_ID,
            "element": {
                "type": "plain_text_input",
                "multiline": True,
                "action_id": REPLY_ACTION_ID,
            },
            "label": _plain_text("Reply", emoji=True),
        }
    ]
    if error:
        blocks.append(error_block(f"Failed to reply: *{error}*"))

    return _modal(
        callback_id=encode(correlation),
        title=f"Replying to {record.label}",
        submit="Reply",
        blocks=blocks,
    )


def build_react_modal(record: ConfessionRecord, correlation: ModalCorrelation, *, error: str | None = None) -> Dict:
    """Modal whose emoji picker loads options from the block_suggestion handler."""

    blocks: List[Dict] = [
        {
            "type": "section",
            "block_id": EMOJI_BLOCK_ID,
            "text": _plain_text("Pick an emoji to react with"),
            "accessory": {
                "type": "external_select",
                "placeholder": _plain_text("Select an emoji"),
                "action_id": EMOJI_ACTION_ID,
                "min_query_length": EMOJI_MIN_QUERY_LENGTH,
            },
        }
    ]
    if error:
        blocks.append(error_block(f"Failed to react: *{error}*"))

    return _modal(
        callback_id=encode(correlation),
        title=f"Reacting to {record.label}",
        submit="React",
        blocks=blocks,
    )


def build_update_response(view: Dict) -> Dict:
    return {"response_action": "update", "view": view}


def build_emoji_options(tokens: Iterable[str]) -> Dict:
    """Options payload answering an external_select query."""

    return {
        "options": [
            {"text": _plain_text(token, emoji=True), "value": token}
            for token in tokens
        ]
    }


def build_review_update(record: ConfessionRecord, *, approved: bool) -> Dict:
    """Replacement for a staging message once it has been reviewed."""

    outcome = "approved" if approved else "rejected"
    text = f"{record.text or ''}\n\n_Confession {record.label} {outcome}._"
    return {
        "text": f"Confession {record.label} {outcome}",
        "blocks": [{"type": "section", "text": {"type": "mrkdwn", "text": text}}],
    }

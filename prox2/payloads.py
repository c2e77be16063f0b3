"""Pydantic models for the interaction payloads Slack posts to the bot."""

from __future__ import annotations

import json
from typing import Annotated, Any, Dict, List, Literal, Union
from urllib.parse import parse_qs

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from .errors import PayloadError


class SlackUser(BaseModel):
    id: str


class SlackChannel(BaseModel):
    id: str


class MessageRef(BaseModel):
    ts: str
    thread_ts: str | None = None
    text: str | None = None


class ActionEntry(BaseModel):
    action_id: str | None = None
    block_id: str | None = None
    value: str | None = None


class BlockActionsPayload(BaseModel):
    type: Literal["block_actions"]
    response_url: str | None = None
    trigger_id: str | None = None
    user: SlackUser | None = None
    message: MessageRef | None = None
    actions: List[ActionEntry] = Field(default_factory=list)


class BlockSuggestionPayload(BaseModel):
    type: Literal["block_suggestion"]
    action_id: str | None = None
    block_id: str | None = None
    value: str = ""


class MessageActionPayload(BaseModel):
    type: Literal["message_action"]
    callback_id: str
    trigger_id: str
    response_url: str
    user: SlackUser
    channel: SlackChannel
    message: MessageRef


class ViewState(BaseModel):
    values: Dict[str, Dict[str, Dict[str, Any]]] = Field(default_factory=dict)


class SubmittedView(BaseModel):
    callback_id: str = ""
    blocks: List[Dict[str, Any]] = Field(default_factory=list)
    state: ViewState = Field(default_factory=ViewState)

    def input_value(self, block_id: str, action_id: str) -> Any:
        """Return the raw state entry for an input, or ``None`` when absent."""

        return self.state.values.get(block_id, {}).get(action_id)


class ViewSubmissionPayload(BaseModel):
    type: Literal["view_submission"]
    user: SlackUser
    view: SubmittedView


InteractionPayload = Annotated[
    Union[
        BlockActionsPayload,
        BlockSuggestionPayload,
        MessageActionPayload,
        ViewSubmissionPayload,
    ],
    Field(discriminator="type"),
]

_ADAPTER: TypeAdapter[InteractionPayload] = TypeAdapter(InteractionPayload)


def extract_payload_field(raw_body: str) -> str:
    """Pull the JSON ``payload`` field out of a form-encoded request body."""

    values = parse_qs(raw_body, keep_blank_values=True).get("payload")
    if not values or not values[0]:
        raise PayloadError("Request body has no payload field")
    return values[0]


def parse_interaction(raw_payload: str) -> InteractionPayload:
    """Parse a serialised interaction into its tagged payload model."""

    try:
        data = json.loads(raw_payload)
    except json.JSONDecodeError as exc:
        raise PayloadError("Interaction payload is not valid JSON") from exc

    if not isinstance(data, dict):
        raise PayloadError("Interaction payload must be a JSON object")

    try:
        return _ADAPTER.validate_python(data)
    except ValidationError as exc:
        raise PayloadError(f"Unsupported interaction payload of type {data.get('type')!r}") from exc

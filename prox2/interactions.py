"""Dispatch Slack interaction payloads to the confession workflows."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Sequence

import structlog

from .correlation import ModalCorrelation, ModalKind, decode
from .emoji_catalog import build_candidates, filter_candidates, reaction_name, static_emoji_keywords
from .errors import InvalidChannelError, ModerationError, SubmissionError
from .moderation import ConfessionModerator
from .notifications import notify_failure, notify_success
from .payloads import (
    BlockActionsPayload,
    BlockSuggestionPayload,
    InteractionPayload,
    MessageActionPayload,
    SubmittedView,
    ViewSubmissionPayload,
)
from .slack_client import SlackClient
from .store import (
    AirtableStore,
    ConfessionRecord,
    is_same_user,
    published_or_thread_formula,
    published_ts_formula,
)
from .views import (
    EMOJI_ACTION_ID,
    EMOJI_BLOCK_ID,
    REACT_REJECTION,
    REPLY_ACTION_ID,
    REPLY_BLOCK_ID,
    REPLY_REJECTION,
    build_emoji_options,
    build_react_modal,
    build_reply_modal,
    build_update_response,
)

APPROVE_VALUE = "approve"
DISAPPROVE_VALUE = "disapprove"
REPLY_CALLBACK_ID = "reply_anonymous"
REACT_CALLBACK_ID = "react_anonymous"

NOT_OWNER_REPLY = "You are not the original poster of the confession, so you cannot reply anonymously."
NOT_OWNER_REACT = "You are not the original poster of the confession, so you cannot react anonymously."


@dataclass(frozen=True)
class HandlerResponse:
    status: int
    body: Dict[str, Any] | None = None


OK = HandlerResponse(200)
NO_CONTENT = HandlerResponse(204)
SERVER_ERROR = HandlerResponse(500)


class InteractionHandler:
    """Turn one parsed interaction into Slack/Airtable calls and an HTTP answer."""

    def __init__(
        self,
        *,
        slack: SlackClient,
        store: AirtableStore,
        moderator: ConfessionModerator,
        confessions_channel: str,
        static_emoji: Sequence[str] | None = None,
    ) -> None:
        self._slack = slack
        self._store = store
        self._moderator = moderator
        self._confessions_channel = confessions_channel
        self._static_emoji = static_emoji

    def handle(self, payload: InteractionPayload) -> HandlerResponse:
        if isinstance(payload, BlockActionsPayload):
            return self._handle_block_actions(payload)
        if isinstance(payload, BlockSuggestionPayload):
            return self._handle_block_suggestion(payload)
        if isinstance(payload, MessageActionPayload):
            return self._handle_message_action(payload)
        if isinstance(payload, ViewSubmissionPayload):
            return self._handle_view_submission(payload)
        raise TypeError(f"Unsupported interaction payload {type(payload).__name__}")

    # block_actions

    def _handle_block_actions(self, payload: BlockActionsPayload) -> HandlerResponse:
        log = structlog.get_logger().bind(interaction=payload.type)
        if not payload.actions:
            log.info("block_action_missing")
            return NO_CONTENT
        if len(payload.actions) > 1:
            log.warning("block_action_extra_ignored", count=len(payload.actions))

        action = payload.actions[0]
        if action.value not in (APPROVE_VALUE, DISAPPROVE_VALUE):
            log.info("block_action_unknown_value", value=action.value)
            return NO_CONTENT

        approved = action.value == APPROVE_VALUE
        try:
            if payload.message is None:
                raise ModerationError("Review action carries no message")
            log.info("confession_review_requested", ts=payload.message.ts, approved=approved)
            self._moderator.review(payload.message.ts, approved)
        except Exception as exc:
            log.exception("confession_review_failed", approved=approved)
            notify_failure(self._slack, payload.response_url, exc)
            return SERVER_ERROR
        return NO_CONTENT

    # block_suggestion

    def _handle_block_suggestion(self, payload: BlockSuggestionPayload) -> HandlerResponse:
        static = self._static_emoji if self._static_emoji is not None else static_emoji_keywords()
        candidates = build_candidates(static, self._slack.list_custom_emoji())
        tokens = filter_candidates(candidates, payload.value)
        structlog.get_logger().info("emoji_suggestions", query=payload.value, count=len(tokens))
        return HandlerResponse(200, build_emoji_options(tokens))

    # message_action

    def _handle_message_action(self, payload: MessageActionPayload) -> HandlerResponse:
        log = structlog.get_logger().bind(
            interaction=payload.type,
            callback_id=payload.callback_id,
            user_id=payload.user.id,
            message_ts=payload.message.ts,
        )
        try:
            if payload.channel.id != self._confessions_channel:
                raise InvalidChannelError(payload.channel.id)
            if payload.callback_id == REPLY_CALLBACK_ID:
                return self._open_reply_modal(payload, log)
            if payload.callback_id == REACT_CALLBACK_ID:
                return self._open_react_modal(payload, log)
            log.info("message_action_unknown_callback")
            return NO_CONTENT
        except Exception as exc:
            log.exception("message_action_failed")
            notify_failure(self._slack, payload.response_url, exc)
            return SERVER_ERROR

    def _open_reply_modal(self, payload: MessageActionPayload, log) -> HandlerResponse:
        record = self._store.find_single(published_ts_formula(payload.message.ts))
        if not is_same_user(record, payload.user.id):
            log.info("reply_not_owner", record_id=record.record_id)
            notify_success(self._slack, payload.response_url, NOT_OWNER_REPLY)
            return OK

        correlation = ModalCorrelation.reply(record.published_ts or payload.message.ts)
        self._slack.open_view(trigger_id=payload.trigger_id, view=build_reply_modal(record, correlation))
        log.info("reply_modal_opened", record_id=record.record_id)
        return NO_CONTENT

    def _open_react_modal(self, payload: MessageActionPayload, log) -> HandlerResponse:
        formula = published_or_thread_formula(payload.message.ts, payload.message.thread_ts)
        record = self._store.find_single(formula)
        if not is_same_user(record, payload.user.id):
            log.info("react_not_owner", record_id=record.record_id)
            notify_success(self._slack, payload.response_url, NOT_OWNER_REACT)
            return OK

        published_ts = record.published_ts or payload.message.thread_ts or payload.message.ts
        correlation = ModalCorrelation.react(published_ts, payload.message.ts)
        self._slack.open_view(trigger_id=payload.trigger_id, view=build_react_modal(record, correlation))
        log.info("react_modal_opened", record_id=record.record_id)
        return NO_CONTENT

    # view_submission

    def _handle_view_submission(self, payload: ViewSubmissionPayload) -> HandlerResponse:
        callback_id = payload.view.callback_id
        log = structlog.get_logger().bind(
            interaction=payload.type,
            callback_id=callback_id,
            user_id=payload.user.id,
        )
        if ModalKind.for_callback_id(callback_id) is None:
            log.info("view_submission_unknown_callback")
            return NO_CONTENT

        try:
            correlation = decode(callback_id)
            record = self._store.find_single(published_ts_formula(correlation.published_ts))
            if correlation.kind is ModalKind.REPLY:
                return self._submit_reply(payload, correlation, record, log)
            return self._submit_reaction(payload, correlation, record, log)
        except Exception:
            log.exception("view_submission_failed")
            return SERVER_ERROR

    def _submit_reply(self, payload, correlation: ModalCorrelation, record: ConfessionRecord, log) -> HandlerResponse:
        if not is_same_user(record, payload.user.id):
            log.info("reply_not_owner", record_id=record.record_id)
            view = build_reply_modal(record, correlation, error=REPLY_REJECTION)
            return HandlerResponse(200, build_update_response(view))

        self._slack.post_message(
            channel=self._confessions_channel,
            text=_submitted_reply(payload.view),
            thread_ts=correlation.published_ts,
        )
        log.info("reply_posted", record_id=record.record_id)
        return NO_CONTENT

    def _submit_reaction(self, payload, correlation: ModalCorrelation, record: ConfessionRecord, log) -> HandlerResponse:
        if not is_same_user(record, payload.user.id):
            log.info("react_not_owner", record_id=record.record_id)
            view = build_react_modal(record, correlation, error=REACT_REJECTION)
            return HandlerResponse(200, build_update_response(view))

        name = reaction_name(_selected_emoji(payload.view))
        self._slack.add_reaction(channel=self._confessions_channel, timestamp=correlation.thread_ts, name=name)
        log.info("reaction_added", record_id=record.record_id, name=name, thread_ts=correlation.thread_ts)
        return NO_CONTENT


def _submitted_reply(view: SubmittedView) -> str:
    entry = view.input_value(REPLY_BLOCK_ID, REPLY_ACTION_ID) or {}
    text = entry.get("value")
    if not text:
        raise SubmissionError("Reply modal was submitted without text")
    return text


def _selected_emoji(view: SubmittedView) -> str:
    entry = view.input_value(EMOJI_BLOCK_ID, EMOJI_ACTION_ID) or {}
    value = (entry.get("selected_option") or {}).get("value")
    if not value:
        raise SubmissionError("React modal was submitted without an emoji")
    return value

"""Approve or reject confessions waiting in the staging channel."""

from __future__ import annotations

import structlog

from .errors import ModerationError
from .slack_client import SlackClient
from .store import AirtableStore, ConfessionRecord, unviewed_ts_formula
from .views import build_review_update


class ConfessionModerator:
    """Publish or discard the confession behind a staging message."""

    def __init__(
        self,
        *,
        store: AirtableStore,
        slack: SlackClient,
        confessions_channel: str,
        staging_channel: str,
    ) -> None:
        self._store = store
        self._slack = slack
        self._confessions_channel = confessions_channel
        self._staging_channel = staging_channel

    def review(self, staging_ts: str, approved: bool) -> ConfessionRecord:
        log = structlog.get_logger().bind(staging_ts=staging_ts, approved=approved)

        record = self._store.find_single(unviewed_ts_formula(staging_ts))
        if record.viewed:
            raise ModerationError(f"Confession {record.label} has already been reviewed")

        if approved:
            response = self._slack.post_message(
                channel=self._confessions_channel,
                text=f"*{record.label}:* {record.text or ''}",
            )
            published_ts = response.get("ts")
            if not published_ts:
                raise ModerationError(f"Slack did not return a timestamp for {record.label}")
            fields = {"viewed": True, "approved": True, "published_ts": published_ts}
        else:
            fields = {"viewed": True, "approved": False}

        updated = self._store.update(record.record_id, fields)
        log.info("confession_reviewed", record_id=record.record_id, published_ts=updated.published_ts)

        update = build_review_update(updated, approved=approved)
        self._slack.update_message(
            channel=self._staging_channel,
            ts=staging_ts,
            text=update["text"],
            blocks=update["blocks"],
        )
        return updated

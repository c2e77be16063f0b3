"""Shared fakes for Slack, Airtable and the moderation routine."""

from __future__ import annotations

from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:  # pragma: no cover
    sys.path.insert(0, str(ROOT))

from prox2.config import AppSettings  # noqa: E402
from prox2.store import (  # noqa: E402
    AirtableStore,
    ConfessionRecord,
    hash_user_id,
    published_ts_formula,
    unviewed_ts_formula,
)

CONFESSIONS_CHANNEL = "CCONFESS"
STAGING_CHANNEL = "CSTAGING"
OWNER_ID = "UOWNER"
OTHER_ID = "UOTHER"
SALT = "pepper"


def make_record(
    *,
    published_ts: str | None = "1700000000.000100",
    unviewed_ts: str | None = None,
    owner: str = OWNER_ID,
    display_id: int = 7,
    record_id: str | None = None,
    text: str = "I never read the docs",
    viewed: bool = False,
) -> ConfessionRecord:
    return ConfessionRecord(
        record_id=record_id or f"rec{display_id}",
        id=display_id,
        text=text,
        published_ts=published_ts,
        unviewed_ts=unviewed_ts,
        uid_salt=SALT,
        uid_hash=hash_user_id(owner, SALT),
        viewed=viewed,
    )


class FakeSlack:
    def __init__(self, *, custom_emoji=None, errors=None):
        self.custom_emoji = dict(custom_emoji or {})
        self.errors = dict(errors or {})
        self.posted = []
        self.updated = []
        self.views = []
        self.reactions = []
        self.responses = []

    def _maybe_fail(self, operation):
        error = self.errors.get(operation)
        if error is not None:
            raise error

    def post_message(self, *, channel, text, blocks=None, thread_ts=None):
        self._maybe_fail("post_message")
        self.posted.append({"channel": channel, "text": text, "blocks": blocks, "thread_ts": thread_ts})
        return {"ok": True, "channel": channel, "ts": "1700000999.000001"}

    def update_message(self, *, channel, ts, text, blocks):
        self._maybe_fail("update_message")
        self.updated.append({"channel": channel, "ts": ts, "text": text, "blocks": blocks})
        return {"ok": True}

    def open_view(self, *, trigger_id, view):
        self._maybe_fail("open_view")
        self.views.append({"trigger_id": trigger_id, "view": view})
        return {"ok": True}

    def add_reaction(self, *, channel, timestamp, name):
        self._maybe_fail("add_reaction")
        self.reactions.append({"channel": channel, "timestamp": timestamp, "name": name})
        return {"ok": True}

    def list_custom_emoji(self):
        self._maybe_fail("list_custom_emoji")
        return dict(self.custom_emoji)

    def respond(self, response_url, text):
        self._maybe_fail("respond")
        self.responses.append({"url": response_url, "text": text})
        return type("FakeWebhookResponse", (), {"status_code": 200, "body": "ok"})()


class FakeStore(AirtableStore):
    """In-memory table; formulas match on quoted published/unviewed timestamps."""

    def __init__(self, records=()):
        self.records = list(records)
        self.formulas = []
        self.updates = []

    def select_first_page(self, formula):
        self.formulas.append(formula)
        matches = []
        for record in self.records:
            if record.published_ts and published_ts_formula(record.published_ts) in formula:
                matches.append(record)
            elif record.unviewed_ts and unviewed_ts_formula(record.unviewed_ts) in formula:
                matches.append(record)
        return matches

    def update(self, record_id, fields):
        self.updates.append((record_id, dict(fields)))
        for index, record in enumerate(self.records):
            if record.record_id == record_id:
                updated = record.model_copy(update=dict(fields))
                self.records[index] = updated
                return updated
        raise KeyError(record_id)


class FakeModerator:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def review(self, staging_ts, approved):
        self.calls.append((staging_ts, approved))
        if self.error is not None:
            raise self.error


@pytest.fixture
def settings():
    return AppSettings.model_validate(
        {
            "SLACK_BOT_TOKEN": "xoxb-token",
            "SLACK_SIGNING_SECRET": "secret",
            "CONFESSIONS_CHANNEL": CONFESSIONS_CHANNEL,
            "STAGING_CHANNEL": STAGING_CHANNEL,
            "AIRTABLE_API_KEY": "key",
            "AIRTABLE_BASE": "appBASE",
            "PROX2_FORWARD_URL": "https://worker.example.com/api/prox2_worker",
        }
    )


@pytest.fixture
def slack():
    return FakeSlack()


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def moderator():
    return FakeModerator()

"""Tests for the Flask application factory and its endpoints."""

import json
from types import SimpleNamespace
from urllib.parse import urlencode

import pytest
from slack_sdk.errors import SlackApiError

import app as app_module  # noqa: E402
from conftest import OTHER_ID, FakeSlack, FakeStore, make_record  # noqa: E402
from prox2 import security  # noqa: E402

TIMESTAMP = "1700000000"


class RecordingForwarder:
    def __init__(self):
        self.calls = []

    def forward(self, *, method, headers, body):
        self.calls.append({"method": method, "headers": headers, "body": body})


def _run_async_sync(func, /, *args, **kwargs):
    """Execute run_async workloads synchronously while ignoring trace context metadata."""

    kwargs.pop("trace_id", None)
    return func(*args, **kwargs)


def _signed_headers(body: str, secret: str = "secret") -> dict[str, str]:
    return {
        security.SLACK_SIGNATURE_HEADER: security.compute_signature(secret, TIMESTAMP, body),
        security.SLACK_TIMESTAMP_HEADER: TIMESTAMP,
    }


def _form(payload) -> str:
    return urlencode({"payload": json.dumps(payload)})


@pytest.fixture(autouse=True)
def frozen_clock(monkeypatch):
    monkeypatch.setattr(security, "time", SimpleNamespace(time=lambda: int(TIMESTAMP)))


@pytest.fixture
def forwarder():
    return RecordingForwarder()


@pytest.fixture
def client(settings, slack, store, moderator, forwarder):
    flask_app = app_module.create_app(
        settings,
        slack=slack,
        store=store,
        moderator=moderator,
        forwarder=forwarder,
        static_emoji=(":smile:", ":smirk:", ":sob:"),
    )
    return flask_app.test_client()


def _post_interaction(client, payload, *, headers=None):
    body = _form(payload)
    return client.post(
        "/api/interaction",
        data=body,
        content_type="application/x-www-form-urlencoded",
        headers=headers if headers is not None else _signed_headers(body),
    )


def test_invalid_signature_is_rejected_before_parsing(client, moderator):
    response = _post_interaction(
        client,
        {"type": "block_actions", "actions": [{"value": "approve"}], "message": {"ts": "123.45"}},
        headers={security.SLACK_SIGNATURE_HEADER: "v0=invalid", security.SLACK_TIMESTAMP_HEADER: TIMESTAMP},
    )

    assert response.status_code == 400
    assert response.data == b""
    assert moderator.calls == []


def test_approve_click_moderates_and_returns_no_content(client, moderator):
    response = _post_interaction(
        client,
        {
            "type": "block_actions",
            "response_url": "https://hooks.slack.com/actions/1",
            "message": {"type": "message", "ts": "123.45", "text": "staged"},
            "actions": [{"action_id": "approve", "block_id": "review", "value": "approve"}],
        },
    )

    assert response.status_code == 204
    assert moderator.calls == [("123.45", True)]


def test_emoji_suggestions_are_returned_as_options(client, slack):
    slack.custom_emoji = {"smile": "url"}

    response = _post_interaction(
        client, {"type": "block_suggestion", "action_id": "emoji", "block_id": "emoji", "value": "sm"}
    )

    assert response.status_code == 200
    values = [option["value"] for option in response.get_json()["options"]]
    assert values == [":smile:", ":smirk:"]


def test_reply_submission_by_other_user_rerenders_modal(client, slack, store):
    store.records.append(make_record(published_ts="999"))

    response = _post_interaction(
        client,
        {
            "type": "view_submission",
            "user": {"id": OTHER_ID},
            "view": {
                "callback_id": "reply_modal_999",
                "blocks": [],
                "state": {"values": {"reply": {"confession_reply": {"type": "plain_text_input", "value": "hi"}}}},
            },
        },
    )

    assert response.status_code == 200
    body = response.get_json()
    assert body["response_action"] == "update"
    assert body["view"]["blocks"][-1]["text"]["type"] == "mrkdwn"
    assert "Failed to reply" in body["view"]["blocks"][-1]["text"]["text"]
    assert slack.posted == []


@pytest.mark.parametrize("body", ["", "payload=not-json", _form({"type": "workflow_step_edit"})])
def test_unparseable_payloads_are_rejected(client, body):
    response = client.post(
        "/api/interaction",
        data=body,
        content_type="application/x-www-form-urlencoded",
        headers=_signed_headers(body),
    )

    assert response.status_code == 400


def test_emoji_listing_failure_returns_json_error(settings, store, moderator, forwarder):
    slack = FakeSlack(errors={"list_custom_emoji": SlackApiError("boom", {"ok": False, "error": "ratelimited"})})
    client = app_module.create_app(
        settings, slack=slack, store=store, moderator=moderator, forwarder=forwarder, static_emoji=()
    ).test_client()

    response = _post_interaction(client, {"type": "block_suggestion", "value": "sm"})

    assert response.status_code == 500
    body = response.get_json()
    assert body["error"] == "internal_server_error"
    assert body["trace_id"]


def test_proxy_forwards_signed_requests(monkeypatch, client, forwarder):
    monkeypatch.setattr(app_module, "run_async", _run_async_sync)
    body = "command=%2Fprox2&text=hello"

    response = client.post(
        "/api/prox2",
        data=body,
        content_type="application/x-www-form-urlencoded",
        headers=_signed_headers(body),
    )

    assert response.status_code == 200
    assert response.data == b""
    assert len(forwarder.calls) == 1
    call = forwarder.calls[0]
    assert call["method"] == "POST"
    assert call["body"] == body.encode("utf-8")
    assert call["headers"][security.SLACK_SIGNATURE_HEADER] == _signed_headers(body)[security.SLACK_SIGNATURE_HEADER]


def test_proxy_rejects_bad_signature_without_forwarding(monkeypatch, client, forwarder):
    monkeypatch.setattr(app_module, "run_async", _run_async_sync)

    response = client.post(
        "/api/prox2",
        data="text=hello",
        content_type="application/x-www-form-urlencoded",
        headers=_signed_headers("text=tampered"),
    )

    assert response.status_code == 400
    assert forwarder.calls == []


def test_proxy_acknowledges_even_when_forward_fails(monkeypatch, settings, slack, store, moderator):
    class ExplodingForwarder:
        def forward(self, **_kwargs):
            raise RuntimeError("worker down")

    submitted = []
    monkeypatch.setattr(app_module, "run_async", lambda func, /, **kwargs: submitted.append(func))
    client = app_module.create_app(
        settings, slack=slack, store=store, moderator=moderator, forwarder=ExplodingForwarder()
    ).test_client()
    body = "text=hello"

    response = client.post("/api/prox2", data=body, headers=_signed_headers(body))

    assert response.status_code == 200
    assert len(submitted) == 1


def test_unknown_route_keeps_http_status(client):
    assert client.get("/api/nothing").status_code == 404


@pytest.mark.parametrize("method", ["OPTIONS", "HEAD", "PROPFIND"])
def test_proxy_requires_signature_for_every_method(monkeypatch, client, forwarder, method):
    monkeypatch.setattr(app_module, "run_async", _run_async_sync)

    response = client.open("/api/prox2", method=method)

    assert response.status_code == 400
    assert forwarder.calls == []


@pytest.mark.parametrize("method", ["OPTIONS", "PROPFIND"])
def test_proxy_forwards_signed_uncommon_methods(monkeypatch, client, forwarder, method):
    monkeypatch.setattr(app_module, "run_async", _run_async_sync)
    body = "text=hello"

    response = client.open("/api/prox2", method=method, data=body, headers=_signed_headers(body))

    assert response.status_code == 200
    assert [call["method"] for call in forwarder.calls] == [method]

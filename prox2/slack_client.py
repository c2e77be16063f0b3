"""Thin wrapper utilities around the Slack WebClient."""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Sequence

from slack_sdk import WebClient
from slack_sdk.webhook import WebhookClient, WebhookResponse


class SlackClient:
    """Encapsulate the Slack calls the bot makes so tests can swap them out."""

    def __init__(
        self,
        *,
        token: str | None = None,
        client: WebClient | None = None,
        webhook_factory: Callable[[str], WebhookClient] = WebhookClient,
    ) -> None:
        if client is None and token is None:
            raise ValueError("Either an instantiated client or a bot token must be provided.")

        self._client = client or WebClient(token=token)
        self._webhook_factory = webhook_factory

    @property
    def client(self) -> WebClient:
        """Expose the underlying WebClient for advanced use cases."""

        return self._client

    def post_message(
        self,
        *,
        channel: str,
        text: str,
        blocks: Sequence[Mapping[str, Any]] | None = None,
        thread_ts: str | None = None,
    ) -> Mapping[str, Any]:
        """Post a message, threaded under *thread_ts* when given."""

        kwargs: Dict[str, Any] = {"channel": channel, "text": text}
        if blocks is not None:
            kwargs["blocks"] = list(blocks)
        if thread_ts is not None:
            kwargs["thread_ts"] = thread_ts
        return self._client.chat_postMessage(**kwargs)

    def update_message(
        self,
        *,
        channel: str,
        ts: str,
        text: str,
        blocks: Sequence[Mapping[str, Any]],
    ) -> Mapping[str, Any]:
        """Update an existing Slack message."""

        return self._client.chat_update(channel=channel, ts=ts, text=text, blocks=list(blocks))

    def open_view(self, *, trigger_id: str, view: Mapping[str, Any]) -> Mapping[str, Any]:
        return self._client.views_open(trigger_id=trigger_id, view=dict(view))

    def add_reaction(self, *, channel: str, timestamp: str, name: str) -> Mapping[str, Any]:
        return self._client.reactions_add(channel=channel, timestamp=timestamp, name=name)

    def list_custom_emoji(self) -> Dict[str, str]:
        """Return the workspace's custom emoji as ``{name: url}``."""

        response = self._client.emoji_list()
        return dict(response.get("emoji") or {})

    def respond(self, response_url: str, text: str) -> WebhookResponse:
        """Send an ephemeral message to an interaction's response url."""

        webhook = self._webhook_factory(response_url)
        return webhook.send(text=text, response_type="ephemeral", replace_original=False)

"""Response-url notifications sent back to the user who triggered an interaction."""

from __future__ import annotations

import structlog

from .slack_client import SlackClient

FAILURE_PREFIX = "Something went wrong:"


def notify_success(slack: SlackClient, response_url: str | None, text: str) -> None:
    """Tell the user *text*; send errors propagate."""

    log = structlog.get_logger()
    if not response_url:
        log.warning("response_url_missing", operation="notify_success")
        return

    response = slack.respond(response_url, text)
    log.info("response_url_notified", outcome="success", status_code=getattr(response, "status_code", None))


def notify_failure(slack: SlackClient, response_url: str | None, error: BaseException | str) -> None:
    """Best-effort failure notice; errors while sending are logged only."""

    log = structlog.get_logger()
    if not response_url:
        log.warning("response_url_missing", operation="notify_failure")
        return

    try:
        response = slack.respond(response_url, f"{FAILURE_PREFIX} {error}")
    except Exception as exc:  # noqa: BLE001
        log.error("response_url_failed", error=str(exc))
        return

    status_code = getattr(response, "status_code", None)
    if status_code is not None and status_code >= 400:
        log.warning("response_url_rejected", status_code=status_code, body=getattr(response, "body", None))
        return
    log.info("response_url_notified", outcome="failure", status_code=status_code)

"""Application entry point for the Prox2 confession bot."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence
from uuid import uuid4

from flask import Flask, Response, g, jsonify, request
from werkzeug.exceptions import HTTPException
import structlog
from structlog.contextvars import bind_contextvars, unbind_contextvars

from prox2.background import run_async
from prox2.config import AppSettings, get_settings
from prox2.errors import PayloadError
from prox2.interactions import InteractionHandler
from prox2.logging_config import configure_logging
from prox2.moderation import ConfessionModerator
from prox2.payloads import extract_payload_field, parse_interaction
from prox2.proxy import ProxyForwarder
from prox2.security import verify_request
from prox2.slack_client import SlackClient
from prox2.store import AirtableStore

PROXY_METHODS = [
    "GET",
    "HEAD",
    "POST",
    "PUT",
    "PATCH",
    "DELETE",
    "OPTIONS",
    "TRACE",
    "CONNECT",
    "PROPFIND",
    "PROPPATCH",
    "MKCOL",
    "COPY",
    "MOVE",
    "LOCK",
    "UNLOCK",
    "REPORT",
    "SEARCH",
]


def _register_error_handlers(flask_app: Flask) -> None:
    """Register a JSON error handler that attaches a trace identifier."""

    @flask_app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):  # type: ignore[override]
        if isinstance(error, HTTPException):
            return error
        trace_id = g.get("trace_id") or str(uuid4())
        structlog.get_logger().error(
            "unhandled_application_error",
            trace_id=trace_id,
            error=str(error),
            exc_info=error,
        )
        response = jsonify({"error": "internal_server_error", "trace_id": trace_id})
        response.status_code = 500
        return response


def _register_request_hooks(flask_app: Flask) -> None:
    """Cache the raw body and bind a trace id for every request."""

    @flask_app.before_request
    def prepare_request():
        g.trace_id = str(uuid4())
        g.raw_body = request.get_data(cache=True, parse_form_data=False)
        bind_contextvars(trace_id=g.trace_id, path=request.path)

    @flask_app.teardown_request
    def release_request(_exc):
        unbind_contextvars("trace_id", "path")


def _empty(status: int) -> Response:
    return Response(status=status)


def _load_version() -> str:
    version_file = Path(__file__).resolve().parent / "VERSION"
    if version_file.exists():
        return version_file.read_text(encoding="utf-8").strip()
    return "unknown"


_LOGGING_CONFIGURED = False


def create_app(
    settings: AppSettings | None = None,
    *,
    slack: SlackClient | None = None,
    store: AirtableStore | None = None,
    moderator: ConfessionModerator | None = None,
    forwarder: ProxyForwarder | None = None,
    static_emoji: Sequence[str] | None = None,
) -> Flask:
    """Create the Flask application, building any collaborator not supplied."""

    global _LOGGING_CONFIGURED
    settings = settings or get_settings()
    if not _LOGGING_CONFIGURED:
        configure_logging(settings.log_level)
        _LOGGING_CONFIGURED = True

    slack = slack or SlackClient(token=settings.bot_token)
    store = store or AirtableStore(
        api_key=settings.airtable_api_key,
        base_id=settings.airtable_base,
        table=settings.airtable_table,
    )
    moderator = moderator or ConfessionModerator(
        store=store,
        slack=slack,
        confessions_channel=settings.confessions_channel,
        staging_channel=settings.staging_channel,
    )
    forwarder = forwarder or ProxyForwarder(
        forward_url=settings.forward_url,
        timeout=settings.forward_timeout,
    )
    interactions = InteractionHandler(
        slack=slack,
        store=store,
        moderator=moderator,
        confessions_channel=settings.confessions_channel,
        static_emoji=static_emoji,
    )

    flask_app = Flask(__name__)
    flask_app.config["APP_VERSION"] = _load_version()
    _register_error_handlers(flask_app)
    _register_request_hooks(flask_app)

    @flask_app.route("/api/interaction", methods=["POST"])
    def interaction():
        log = structlog.get_logger()
        raw_body = g.raw_body
        if not verify_request(request.headers, raw_body, settings.signing_secret):
            log.warning("signature_invalid", endpoint="interaction")
            return _empty(400)

        try:
            payload = parse_interaction(extract_payload_field(raw_body.decode("utf-8")))
        except (PayloadError, UnicodeDecodeError) as exc:
            log.warning("interaction_rejected", error=str(exc))
            return _empty(400)

        log.info("interaction_received", interaction=payload.type)
        result = interactions.handle(payload)
        log.info("interaction_handled", interaction=payload.type, status=result.status)
        if result.body is not None:
            response = jsonify(result.body)
            response.status_code = result.status
            return response
        return _empty(result.status)

    @flask_app.route("/api/prox2", methods=PROXY_METHODS, provide_automatic_options=False)
    def prox2():
        log = structlog.get_logger()
        raw_body = g.raw_body
        if not verify_request(request.headers, raw_body, settings.signing_secret):
            log.warning("signature_invalid", endpoint="prox2")
            return _empty(400)

        run_async(
            forwarder.forward,
            method=request.method,
            headers=dict(request.headers),
            body=raw_body,
            trace_id=g.trace_id,
        )
        log.info("forward_scheduled", method=request.method)
        return _empty(200)

    @flask_app.route("/healthz", methods=["GET"])
    def healthz():
        health: dict[str, object] = {"ok": True}
        health["version"] = flask_app.config.get("APP_VERSION", "unknown")
        try:
            get_settings()
            health["config"] = "valid"
        except Exception as exc:
            health["config"] = "invalid"
            health["config_error"] = str(exc)
            health["ok"] = False
        status = 200 if health["ok"] else 503
        return jsonify(health), status

    return flask_app


if __name__ == "__main__":  # pragma: no cover - manual execution helper
    application = create_app()
    application.run(host="0.0.0.0", port=3000, debug=True)

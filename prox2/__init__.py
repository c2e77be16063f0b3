"""Prox2 package initialisation."""

from .background import run_async  # noqa: F401
from .config import AppSettings, get_settings  # noqa: F401
from .interactions import HandlerResponse, InteractionHandler  # noqa: F401
from .logging_config import configure_logging  # noqa: F401
from .moderation import ConfessionModerator  # noqa: F401
from .proxy import ProxyForwarder  # noqa: F401
from .slack_client import SlackClient  # noqa: F401
from .store import AirtableStore, ConfessionRecord  # noqa: F401

__all__ = [
    "AppSettings",
    "get_settings",
    "run_async",
    "HandlerResponse",
    "InteractionHandler",
    "configure_logging",
    "ConfessionModerator",
    "ProxyForwarder",
    "SlackClient",
    "AirtableStore",
    "ConfessionRecord",
]

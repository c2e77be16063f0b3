"""Pydantic-based configuration helpers for Prox2."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Iterable, List

from pydantic import BaseModel, Field, ValidationError, field_validator


class AppSettings(BaseModel):
    """Settings required to talk to Slack, Airtable and the forward target."""

    bot_token: str = Field(..., alias="SLACK_BOT_TOKEN")
    signing_secret: str = Field(..., alias="SLACK_SIGNING_SECRET")
    confessions_channel: str = Field(..., alias="CONFESSIONS_CHANNEL")
    staging_channel: str = Field(..., alias="STAGING_CHANNEL")
    airtable_api_key: str = Field(..., alias="AIRTABLE_API_KEY")
    airtable_base: str = Field(..., alias="AIRTABLE_BASE")
    airtable_table: str = Field("Confessions", alias="AIRTABLE_TABLE")
    forward_url: str | None = Field(None, alias="PROX2_FORWARD_URL")
    forward_timeout: float = Field(10.0, alias="FORWARD_TIMEOUT")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    @field_validator("confessions_channel", "staging_channel")
    @classmethod
    def _strip_channel(cls, value: str) -> str:
        channel = value.strip()
        if not channel:
            raise ValueError("Channel ids must be non-empty")
        return channel

    @field_validator("forward_url", mode="before")
    @classmethod
    def _blank_url_is_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @field_validator("forward_timeout")
    @classmethod
    def _ensure_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("Forward timeout must be greater than zero")
        return value

    @field_validator("log_level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"


def _format_missing(fields: Iterable[str]) -> str:
    """Return a human-friendly comma-separated list of missing env vars."""

    unique: List[str] = []
    for field in fields:
        if field not in unique:
            unique.append(field)
    return ", ".join(unique)


@lru_cache()
def get_settings() -> AppSettings:
    """Fetch and cache settings from environment variables."""

    try:
        return AppSettings.model_validate(os.environ)
    except ValidationError as exc:
        missing = [str(error["loc"][0]) for error in exc.errors() if error["type"] == "missing"]
        if not missing:
            raise RuntimeError(f"Invalid configuration: {exc}") from exc
        message = (
            "Missing required environment variables: "
            f"{_format_missing(missing)}"
        )
        raise RuntimeError(message) from exc

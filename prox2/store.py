"""Read and update confession records kept in Airtable."""

from __future__ import annotations

import hashlib
from typing import Any, Dict, List, Mapping
from urllib.parse import quote

import requests
import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import RecordLookupError, StoreError

AIRTABLE_API_URL = "https://api.airtable.com/v0"
DEFAULT_TIMEOUT = 10.0


class ConfessionRecord(BaseModel):
    """One row of the confessions table."""

    model_config = ConfigDict(populate_by_name=True)

    record_id: str
    display_id: int | str | None = Field(None, alias="id")
    text: str | None = None
    published_ts: str | None = None
    unviewed_ts: str | None = None
    uid_salt: str | None = None
    uid_hash: str | None = None
    viewed: bool = False
    approved: bool = False

    @field_validator("published_ts", "unviewed_ts", mode="before")
    @classmethod
    def _timestamp_as_text(cls, value: Any) -> str | None:
        if value is None or value == "":
            return None
        return str(value)

    @classmethod
    def from_airtable(cls, raw: Mapping[str, Any]) -> "ConfessionRecord":
        fields = dict(raw.get("fields") or {})
        return cls.model_validate({**fields, "record_id": raw["id"]})

    @property
    def label(self) -> str:
        return f"#{self.display_id}" if self.display_id is not None else self.record_id


def hash_user_id(user_id: str, salt: str) -> str:
    return hashlib.sha256(f"{salt}{user_id}".encode("utf-8")).hexdigest()


def is_same_user(record: ConfessionRecord, user_id: str) -> bool:
    """Return True when *user_id* submitted *record*."""

    if not record.uid_hash or record.uid_salt is None:
        return False
    return hash_user_id(user_id, record.uid_salt) == record.uid_hash


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def field_equals(field: str, value: str) -> str:
    return f"{{{field}}} = {_quote(value)}"


def published_ts_formula(ts: str) -> str:
    return field_equals("published_ts", ts)


def published_or_thread_formula(ts: str, thread_ts: str | None) -> str:
    """Match the record published at *ts* or at the root of its thread."""

    if not thread_ts or thread_ts == ts:
        return published_ts_formula(ts)
    return f"OR({published_ts_formula(ts)}, {published_ts_formula(thread_ts)})"


def unviewed_ts_formula(ts: str) -> str:
    return field_equals("unviewed_ts", ts)


class AirtableStore:
    """Minimal Airtable REST client scoped to a single table."""

    def __init__(
        self,
        *,
        api_key: str,
        base_id: str,
        table: str,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        api_url: str = AIRTABLE_API_URL,
    ) -> None:
        self._session = session or requests.Session()
        self._session.headers.update({"Authorization": f"Bearer {api_key}"})
        self._table_url = f"{api_url.rstrip('/')}/{quote(base_id)}/{quote(table)}"
        self._timeout = timeout

    def _request(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = self._session.request(method, url, timeout=self._timeout, **kwargs)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as exc:
            raise StoreError(f"Airtable {method} failed: {exc}") from exc
        except ValueError as exc:
            raise StoreError("Airtable returned a non-JSON body") from exc

    def select_first_page(self, formula: str) -> List[ConfessionRecord]:
        """Return the first page of records matching *formula*."""

        data = self._request("GET", self._table_url, params={"filterByFormula": formula})
        return [ConfessionRecord.from_airtable(item) for item in data.get("records", [])]

    def find_single(self, formula: str) -> ConfessionRecord:
        """Return the only record matching *formula* or raise RecordLookupError."""

        records = self.select_first_page(formula)
        if len(records) != 1:
            structlog.get_logger().warning(
                "record_lookup_failed", formula=formula, count=len(records)
            )
            raise RecordLookupError(formula, len(records))
        return records[0]

    def update(self, record_id: str, fields: Mapping[str, Any]) -> ConfessionRecord:
        data = self._request(
            "PATCH",
            f"{self._table_url}/{quote(record_id)}",
            json={"fields": dict(fields)},
        )
        return ConfessionRecord.from_airtable(data)

"""Forward signed requests to the worker that does the real work."""

from __future__ import annotations

from typing import Dict, Mapping

import requests
import structlog

# Connection-level headers that must not be replayed on a new request.
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "content-length",
        "host",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)


def forwardable_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    return {name: value for name, value in headers.items() if name.lower() not in HOP_BY_HOP_HEADERS}


class ProxyForwarder:
    """Replay an inbound request against ``forward_url``.

    The outcome is logged; Slack has already been answered.
    """

    def __init__(
        self,
        *,
        forward_url: str | None,
        timeout: float,
        session: requests.Session | None = None,
    ) -> None:
        self._forward_url = forward_url
        self._timeout = timeout
        self._session = session or requests.Session()

    def forward(self, *, method: str, headers: Mapping[str, str], body: bytes) -> requests.Response | None:
        log = structlog.get_logger().bind(method=method, forward_url=self._forward_url)
        if not self._forward_url:
            log.warning("forward_skipped", reason="no_forward_url")
            return None

        try:
            response = self._session.request(
                method,
                self._forward_url,
                headers=forwardable_headers(headers),
                data=body,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            log.error("forward_failed", error=str(exc))
            return None
        except Exception as exc:  # noqa: BLE001
            log.exception("forward_failed", error=str(exc))
            return None

        if response.status_code >= 400:
            log.warning("forward_rejected", status_code=response.status_code)
        else:
            log.info("forward_completed", status_code=response.status_code)
        return response

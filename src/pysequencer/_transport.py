"""HTTP transport for the sequencer backend."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pysequencer._constants import USER_AGENT
from pysequencer._redact import summarize_for_log
from pysequencer.config import SequencerConfig
from pysequencer.exceptions import SequencerProtocolError, SequencerTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def get_json(self, endpoint: str) -> Any: ...

    async def post_json(self, endpoint: str, payload: Mapping[str, Any] | None = None) -> Any: ...


class HttpTransport:
    """JSON-over-HTTP transport backed by a shared aiohttp session."""

    def __init__(self, config: SequencerConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    def _url(self, endpoint: str) -> str:
        if endpoint.startswith(("http://", "https://")):
            return endpoint
        return f"{self._config.base_url.rstrip('/')}/{endpoint.lstrip('/')}"

    async def _request(self, method: str, endpoint: str, payload: Mapping[str, Any] | None = None) -> Any:
        url = self._url(endpoint)
        headers = {"accept": "application/json", "user-agent": USER_AGENT}
        _logger.debug("%s %s", method, url)

        try:
            async with self._http.request(
                method,
                url,
                json=dict(payload) if payload is not None else None,
                headers=headers,
                timeout=self._timeout,
            ) as resp:
                raw = await resp.read()
                status = resp.status
                text = raw.decode("utf-8", errors="replace")
                if not 200 <= status < 300:
                    raise SequencerTransportError(
                        f"HTTP {status} from {endpoint}: {text[:200]}",
                        status_code=status,
                        endpoint=endpoint,
                    )
        except SequencerTransportError:
            raise
        except TimeoutError as exc:
            raise SequencerTransportError(
                f"Request to {endpoint} timed out after {self._config.request_timeout}s",
                endpoint=endpoint,
            ) from exc
        except aiohttp.ClientError as exc:
            raise SequencerTransportError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc

        if not text.strip():
            return None

        try:
            body = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise SequencerProtocolError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                status_code=status,
                endpoint=endpoint,
            ) from exc

        if _logger.isEnabledFor(logging.DEBUG):
            _logger.debug("%s %s -> %s", method, url, summarize_for_log(body))
        return body

    async def get_json(self, endpoint: str) -> Any:
        return await self._request("GET", endpoint)

    async def post_json(self, endpoint: str, payload: Mapping[str, Any] | None = None) -> Any:
        return await self._request("POST", endpoint, payload)

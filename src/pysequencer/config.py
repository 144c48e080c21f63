"""Client configuration for pysequencer."""

from __future__ import annotations

import dataclasses
import os
from typing import Any
from urllib.parse import urlsplit

from pysequencer._constants import (
    BASE_URL,
    DEFAULT_PAGE_SIZE,
    DEFAULT_POLL_INTERVAL_MS,
    LEFT_ENDPOINT,
    LEFT_FLUSH_ENDPOINT,
    RIGHT_ENDPOINT,
    RIGHT_FLUSH_ENDPOINT,
    SOCKET_TRANSPORTS,
)
from pysequencer.exceptions import SequencerConfigError
from pysequencer.state.events import Side


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class SequencerConfig:
    """Client configuration.

    Parameters
    ----------
    base_url : str
        Backend origin the lane and flush endpoints are resolved against.
    socket_url : str or None
        Push channel origin. ``None`` uses the origin of ``base_url``.
    socket_enabled : bool
        Open the push channel at all. When disabled the session polls.
    socket_transports : tuple[str, ...]
        socket.io transports to try, in order.
    socket_reconnection : bool
        Let the socket.io client reconnect after a dropped connection.
    poll_interval_ms : int
        Polling period in milliseconds once the fallback timer runs.
    left_endpoint, right_endpoint : str
        GET endpoints returning a lane payload.
    left_flush_endpoint, right_flush_endpoint : str
        POST endpoints flushing a lane's pending state.
    request_timeout : float
        Total timeout in seconds for one HTTP request.
    page_size : int
        Initial number of rows per page in derived lane views.
    discard_stale_responses : bool
        Drop lane responses older than the last applied one for that lane.
        ``False`` keeps plain last-write-wins.
    """

    base_url: str = BASE_URL
    socket_url: str | None = None
    socket_enabled: bool = True
    socket_transports: tuple[str, ...] = SOCKET_TRANSPORTS
    socket_reconnection: bool = True
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    left_endpoint: str = LEFT_ENDPOINT
    right_endpoint: str = RIGHT_ENDPOINT
    left_flush_endpoint: str = LEFT_FLUSH_ENDPOINT
    right_flush_endpoint: str = RIGHT_FLUSH_ENDPOINT
    request_timeout: float = 10.0
    page_size: int = DEFAULT_PAGE_SIZE
    discard_stale_responses: bool = True

    def __post_init__(self) -> None:
        if self.poll_interval_ms <= 0:
            raise SequencerConfigError(f"poll_interval_ms must be positive, got {self.poll_interval_ms}")
        if self.request_timeout <= 0:
            raise SequencerConfigError(f"request_timeout must be positive, got {self.request_timeout}")
        if self.page_size <= 0:
            raise SequencerConfigError(f"page_size must be positive, got {self.page_size}")
        if not self.base_url.strip():
            raise SequencerConfigError("base_url must be non-empty")

    @property
    def poll_interval(self) -> float:
        """Polling period in seconds."""
        return self.poll_interval_ms / 1000.0

    @property
    def resolved_socket_url(self) -> str:
        """Push channel URL: ``socket_url`` or the origin of ``base_url``."""
        if self.socket_url:
            return self.socket_url
        parts = urlsplit(self.base_url)
        if parts.scheme and parts.netloc:
            return f"{parts.scheme}://{parts.netloc}"
        return self.base_url

    def lane_endpoint(self, side: Side) -> str:
        return self.left_endpoint if Side(side) is Side.LEFT else self.right_endpoint

    def flush_endpoint(self, side: Side) -> str:
        return self.left_flush_endpoint if Side(side) is Side.LEFT else self.right_flush_endpoint

    @classmethod
    def from_env(cls, **overrides: Any) -> SequencerConfig:
        """Create configuration from ``SEQUENCER_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "SEQUENCER_BASE_URL": "base_url",
            "SEQUENCER_SOCKET_URL": "socket_url",
            "SEQUENCER_LEFT_ENDPOINT": "left_endpoint",
            "SEQUENCER_RIGHT_ENDPOINT": "right_endpoint",
            "SEQUENCER_LEFT_FLUSH_ENDPOINT": "left_flush_endpoint",
            "SEQUENCER_RIGHT_FLUSH_ENDPOINT": "right_flush_endpoint",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        interval_env = env.get("SEQUENCER_POLL_INTERVAL_MS")
        if interval_env is not None and "poll_interval_ms" not in overrides:
            config_kwargs["poll_interval_ms"] = int(interval_env)

        timeout_env = env.get("SEQUENCER_REQUEST_TIMEOUT")
        if timeout_env is not None and "request_timeout" not in overrides:
            config_kwargs["request_timeout"] = float(timeout_env)

        page_size_env = env.get("SEQUENCER_PAGE_SIZE")
        if page_size_env is not None and "page_size" not in overrides:
            config_kwargs["page_size"] = int(page_size_env)

        if "socket_enabled" not in overrides:
            config_kwargs["socket_enabled"] = _env_bool(env.get("SEQUENCER_SOCKET_ENABLED"), True)

        if "socket_reconnection" not in overrides:
            config_kwargs["socket_reconnection"] = _env_bool(env.get("SEQUENCER_SOCKET_RECONNECTION"), True)

        if "discard_stale_responses" not in overrides:
            config_kwargs["discard_stale_responses"] = _env_bool(
                env.get("SEQUENCER_DISCARD_STALE_RESPONSES"),
                True,
            )

        config_kwargs.update(overrides)

        return cls(**config_kwargs)

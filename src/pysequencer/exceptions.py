"""Custom exception hierarchy for pysequencer."""

from __future__ import annotations


class SequencerError(Exception):
    """Base exception for all pysequencer errors."""


class SequencerConfigError(SequencerError):
    """Invalid or missing configuration."""


class SequencerTransportError(SequencerError):
    """HTTP-level failure (network, timeout, non-2xx status)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class SequencerProtocolError(SequencerTransportError):
    """Response arrived but is unusable (invalid JSON, wrong shape, ``ok`` falsy).

    Subclasses :class:`SequencerTransportError` so callers handle both the
    same way: keep the previous lane state.
    """


class SequencerChannelError(SequencerError):
    """Push channel could not be set up or connected."""

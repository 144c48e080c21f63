"""Ingestion layer.

This package turns raw lane payloads from the backend into ordered,
deduplicated, typed rows ready for the state store.
"""

__all__: list[str] = []

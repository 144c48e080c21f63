#!/usr/bin/env python3
"""Live watcher for a sequencer backend.

Connects a SequencerClient (push channel plus polling fallback), prints the
connection status and the first page of each lane whenever either changes,
and optionally exports both lanes to CSV on exit.

Configuration comes from ``SEQUENCER_*`` environment variables; command line
flags override them.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass, field
from typing import Any

from pysequencer import ConnectionStatus, SequencerClient, SequencerConfig, Side
from pysequencer.state.store import ViewStateStore


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Watch both sequencing lanes of a sequencer backend.",
    )
    parser.add_argument("--base-url", help="Backend origin (default: SEQUENCER_BASE_URL or localhost:3000).")
    parser.add_argument("--socket-url", help="Push channel origin (default: origin of base URL).")
    parser.add_argument("--poll-interval-ms", type=int, help="Polling period once the fallback runs.")
    parser.add_argument("--no-socket", action="store_true", help="Skip the push channel and poll only.")
    parser.add_argument("--page-size", type=int, help="Rows printed per lane.")
    parser.add_argument("--search", default="", help="Only show rows matching this text.")
    parser.add_argument("--tentative-only", action="store_true", help="Hide finalized rows.")
    parser.add_argument("--export", metavar="DIR", help="Write one CSV per lane into DIR on exit.")
    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Maximum runtime in seconds (0 = run until Ctrl+C).",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logs.")
    return parser.parse_args()


def _build_config(args: argparse.Namespace) -> SequencerConfig:
    overrides: dict[str, Any] = {}
    if args.base_url:
        overrides["base_url"] = args.base_url
    if args.socket_url:
        overrides["socket_url"] = args.socket_url
    if args.poll_interval_ms is not None:
        overrides["poll_interval_ms"] = args.poll_interval_ms
    if args.page_size is not None:
        overrides["page_size"] = args.page_size
    if args.no_socket:
        overrides["socket_enabled"] = False
    return SequencerConfig.from_env(**overrides)


@dataclass
class _Printer:
    last_status: ConnectionStatus | None = None
    generations: dict[Side, int] = field(default_factory=dict)

    def __call__(self, store: ViewStateStore) -> None:
        if store.status != self.last_status:
            self.last_status = store.status
            print(f"[watch] status -> {store.status}")

        for side in Side:
            lane = store.lane(side)
            if self.generations.get(side) == lane.generation:
                continue
            self.generations[side] = lane.generation
            self._print_lane(store, side)

    @staticmethod
    def _print_lane(store: ViewStateStore, side: Side) -> None:
        view = store.derive(side)
        lane = store.lane(side)
        print(
            f"[watch] {side} lane: {view.total} rows, {len(lane.pending)} pending, "
            f"buffer={store.buffer!r}, page {view.page + 1}/{view.page_count}"
        )
        for row in view.rows:
            state = "final" if row.is_final else "tentative"
            print(
                f"[watch]   {row.id!s:>8}  wagon={row.wagon_no or '-':<12} "
                f"c1={row.container_no_1 or '-':<12} c2={row.container_no_2 or '-':<12} {state}"
            )


async def _watch(args: argparse.Namespace) -> None:
    config = _build_config(args)
    print(f"[watch] base_url={config.base_url} socket={config.resolved_socket_url if config.socket_enabled else 'off'}")

    async with SequencerClient(config, on_change=_Printer()) as client:
        if args.search:
            client.set_search(args.search)
        if args.tentative_only:
            client.set_tentative_only(True)
        try:
            if args.duration > 0:
                await asyncio.sleep(args.duration)
            else:
                await asyncio.Event().wait()
        finally:
            if args.export:
                for side in Side:
                    path = client.write_csv(side, args.export)
                    print(f"[watch] {side} export: {path or 'nothing to export'}")


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        asyncio.run(_watch(args))
    except KeyboardInterrupt:
        print("[watch] stopped", file=sys.stderr)
    return 0


if __name__ == "__main__":
    raise SystemExit(_main())

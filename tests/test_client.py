"""End-to-end tests for SequencerClient against in-memory fakes."""

from __future__ import annotations

from pathlib import Path

import pytest

from pysequencer import ConnectionStatus, SequencerClient, SequencerConfig, SequencerError, Side
from pysequencer._constants import (
    LEFT_ENDPOINT,
    LEFT_FLUSH_ENDPOINT,
    RIGHT_ENDPOINT,
    RIGHT_FLUSH_ENDPOINT,
)
from pysequencer.exceptions import SequencerProtocolError
from tests.fakes import ChannelRecorder, FakeSequencerBackend, lane_payload


def _config(**overrides: object) -> SequencerConfig:
    overrides.setdefault("poll_interval_ms", 1000)
    return SequencerConfig(base_url="http://sequencer.test:3000", page_size=10, **overrides)


def _backend() -> FakeSequencerBackend:
    return FakeSequencerBackend(
        lanes={
            LEFT_ENDPOINT: lane_payload(
                [{"id": 1, "time": 1000}, {"id": 2, "time": 2000}],
                buffer="B1",
                pending=[{"id": 9, "containerNumber": "MSCU1234565", "tsRaw": "2026-01-01T10:00:00Z"}],
            ),
            RIGHT_ENDPOINT: lane_payload([{"id": 7, "time": 10, "wagon_no": "R7"}]),
        }
    )


@pytest.mark.asyncio
async def test_fetch_scenario_derives_newest_first() -> None:
    backend = _backend()

    async with SequencerClient(_config(), transport=backend, channel_factory=ChannelRecorder()) as client:
        await client.drain()

        left = client.derive(Side.LEFT)
        assert [row.id for row in left.rows] == [2, 1]
        assert left.total == 2
        assert left.page_count == 1
        assert client.store.buffer == "B1"
        assert client.store.lane(Side.LEFT).pending[0].container_number == "MSCU1234565"
        assert client.status == ConnectionStatus.READY


@pytest.mark.asyncio
async def test_failed_lane_keeps_previous_state() -> None:
    backend = _backend()

    async with SequencerClient(_config(), transport=backend, channel_factory=ChannelRecorder()) as client:
        await client.drain()
        backend.lanes[RIGHT_ENDPOINT] = {"ok": False, "error": "lane offline"}
        backend.lanes[LEFT_ENDPOINT] = lane_payload([{"id": 3, "time": 3000}])

        left, right = await client.refresh()

        assert left.ok
        assert not right.ok
        assert isinstance(right.error, SequencerProtocolError)
        assert [row.id for row in client.store.rows(Side.RIGHT)] == [7]
        assert [row.id for row in client.store.rows(Side.LEFT)] == [3]
        assert client.store.buffer == "B1"


@pytest.mark.asyncio
async def test_flush_both_lanes_in_order_then_refreshes() -> None:
    backend = _backend()

    async with SequencerClient(_config(), transport=backend, channel_factory=ChannelRecorder()) as client:
        await client.drain()
        backend.calls.clear()

        results = await client.flush()

        assert [result.ok for result in results] == [True, True]
        assert backend.calls[:2] == [("POST", LEFT_FLUSH_ENDPOINT), ("POST", RIGHT_FLUSH_ENDPOINT)]
        assert backend.count(LEFT_ENDPOINT) == 1
        assert backend.count(RIGHT_ENDPOINT) == 1


@pytest.mark.asyncio
async def test_flush_failure_stops_sequence_but_still_refreshes() -> None:
    backend = _backend()
    backend.post_responses[LEFT_FLUSH_ENDPOINT] = {"ok": False, "error": "busy"}

    async with SequencerClient(_config(), transport=backend, channel_factory=ChannelRecorder()) as client:
        await client.drain()
        backend.calls.clear()

        results = await client.flush()

        assert len(results) == 1
        assert not results[0].ok
        assert backend.count(RIGHT_FLUSH_ENDPOINT, "POST") == 0
        assert backend.count(LEFT_ENDPOINT) == 1


@pytest.mark.asyncio
async def test_flush_single_lane() -> None:
    backend = _backend()

    async with SequencerClient(_config(), transport=backend, channel_factory=ChannelRecorder()) as client:
        results = await client.flush(Side.RIGHT)

        assert [(result.name, result.side) for result in results] == [("flush", Side.RIGHT)]
        assert backend.count(LEFT_FLUSH_ENDPOINT, "POST") == 0


@pytest.mark.asyncio
async def test_push_event_refreshes_through_client() -> None:
    backend = _backend()
    recorder = ChannelRecorder()

    async with SequencerClient(_config(), transport=backend, channel_factory=recorder) as client:
        await client.drain()
        backend.lanes[RIGHT_ENDPOINT] = lane_payload([{"id": 8, "time": 20}, {"id": 7, "time": 10}])

        recorder.last.emit("update", {"side": "right"})
        await client.drain()

        assert [row.id for row in client.derive(Side.RIGHT).rows] == [8, 7]


@pytest.mark.asyncio
async def test_write_csv(tmp_path: Path) -> None:
    backend = _backend()

    async with SequencerClient(_config(), transport=backend, channel_factory=ChannelRecorder()) as client:
        await client.drain()

        path = client.write_csv(Side.RIGHT, tmp_path / "exports")

        assert path is not None
        assert path.name.startswith("sequence-right-")
        assert path.suffix == ".csv"
        lines = path.read_text(encoding="utf-8").splitlines()
        assert lines[0].startswith("id,wagon_no,")
        assert lines[1].startswith('"7","R7"')


@pytest.mark.asyncio
async def test_write_csv_without_rows_writes_nothing(tmp_path: Path) -> None:
    backend = _backend()

    async with SequencerClient(_config(), transport=backend, channel_factory=ChannelRecorder()) as client:
        await client.drain()
        client.set_search("no-such-wagon")

        assert client.export_csv(Side.LEFT) is None
        assert client.write_csv(Side.LEFT, tmp_path) is None
        assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_on_change_listener_sees_updates() -> None:
    backend = _backend()
    statuses: list[ConnectionStatus] = []

    client = SequencerClient(
        _config(),
        transport=backend,
        channel_factory=ChannelRecorder(),
        on_change=lambda store: statuses.append(store.status),
    )
    async with client:
        await client.drain()

    assert statuses
    assert statuses[-1] == ConnectionStatus.READY


@pytest.mark.asyncio
async def test_view_intents_through_client() -> None:
    backend = _backend()

    async with SequencerClient(_config(), transport=backend, channel_factory=ChannelRecorder()) as client:
        await client.drain()
        client.set_page_size(1)
        client.set_page(Side.LEFT, 1)

        assert [row.id for row in client.derive(Side.LEFT).rows] == [1]

        client.set_tentative_only(True)
        assert client.view.page(Side.LEFT) == 0

        client.select_row(Side.RIGHT, 7)
        selected = client.selected_row()
        assert selected is not None
        assert selected.wagon_no == "R7"


@pytest.mark.asyncio
async def test_close_is_idempotent_and_disconnects_channel() -> None:
    backend = _backend()
    recorder = ChannelRecorder()
    client = SequencerClient(_config(), transport=backend, channel_factory=recorder)

    await client.start()
    await client.drain()
    await client.close()
    await client.close()

    assert recorder.last.disconnect_calls == 1
    with pytest.raises(SequencerError):
        await client.refresh()


@pytest.mark.asyncio
async def test_not_started_raises() -> None:
    client = SequencerClient(_config(), transport=_backend())

    with pytest.raises(SequencerError, match="not started"):
        await client.refresh()
    with pytest.raises(SequencerError):
        await client.flush()

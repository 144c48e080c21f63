from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from pysequencer._client.gateway import LaneGateway
from pysequencer._transport import HttpTransport
from pysequencer.config import SequencerConfig
from pysequencer.exceptions import (
    SequencerConfigError,
    SequencerProtocolError,
    SequencerTransportError,
)
from pysequencer.state.events import Side


def _app() -> web.Application:
    app = web.Application()
    app["flushed"] = []

    async def left(_request: web.Request) -> web.Response:
        return web.json_response(
            {
                "ok": True,
                "rows": [{"id": 1, "time": 1000}, {"id": 2, "time": 2000}],
                "pendingContainers": [{"id": 5, "containerNumber": "MSCU1234565", "tsRaw": "10:00"}],
                "buffer": "B1",
            }
        )

    async def right(_request: web.Request) -> web.Response:
        return web.json_response({"ok": False, "error": "lane offline"})

    async def flush_left(request: web.Request) -> web.Response:
        request.app["flushed"].append("left")
        return web.Response(status=204)

    async def flush_right(_request: web.Request) -> web.Response:
        return web.json_response({"ok": False, "error": "busy"})

    async def broken(_request: web.Request) -> web.Response:
        return web.Response(text="<html>oops</html>", content_type="text/html")

    async def unavailable(_request: web.Request) -> web.Response:
        return web.Response(status=503, text="maintenance")

    async def garbled(_request: web.Request) -> web.Response:
        return web.Response(body=b'{"ok": true, "rows": [], "x": "\xff\xfe"}', content_type="application/json")

    async def slow(_request: web.Request) -> web.Response:
        await asyncio.sleep(0.5)
        return web.json_response({"ok": True})

    app.router.add_get("/api/sequence", left)
    app.router.add_get("/api/sequence/right", right)
    app.router.add_post("/api/flush", flush_left)
    app.router.add_post("/api/flush/right", flush_right)
    app.router.add_get("/broken", broken)
    app.router.add_get("/unavailable", unavailable)
    app.router.add_get("/slow", slow)
    app.router.add_get("/api/sequence/garbled", garbled)
    return app


@asynccontextmanager
async def _serve(**config_overrides: object) -> AsyncIterator[tuple[HttpTransport, SequencerConfig, web.Application]]:
    app = _app()
    async with TestServer(app) as server, aiohttp.ClientSession() as session:
        config = SequencerConfig(base_url=str(server.make_url("/")), **config_overrides)
        yield HttpTransport(config, session), config, app


@pytest.mark.asyncio
async def test_get_json_returns_decoded_body() -> None:
    async with _serve() as (transport, _, _):
        body = await transport.get_json("/api/sequence")

    assert body["ok"] is True
    assert body["buffer"] == "B1"


@pytest.mark.asyncio
async def test_non_2xx_raises_transport_error() -> None:
    async with _serve() as (transport, _, _):
        with pytest.raises(SequencerTransportError) as exc_info:
            await transport.get_json("/unavailable")

    assert exc_info.value.status_code == 503
    assert exc_info.value.endpoint == "/unavailable"
    assert not isinstance(exc_info.value, SequencerProtocolError)


@pytest.mark.asyncio
async def test_invalid_json_raises_protocol_error() -> None:
    async with _serve() as (transport, _, _):
        with pytest.raises(SequencerProtocolError):
            await transport.get_json("/broken")


@pytest.mark.asyncio
async def test_undecodable_body_raises_protocol_error() -> None:
    async with _serve() as (transport, _, _):
        with pytest.raises(SequencerProtocolError) as exc_info:
            await transport.get_json("/api/sequence/garbled")

    assert exc_info.value.status_code == 200


@pytest.mark.asyncio
async def test_gateway_contains_undecodable_body() -> None:
    async with _serve(left_endpoint="/api/sequence/garbled") as (transport, config, _):
        result = await LaneGateway(config, transport).fetch_lane(Side.LEFT)

    assert not result.ok
    assert isinstance(result.error, SequencerProtocolError)


@pytest.mark.asyncio
async def test_timeout_raises_transport_error() -> None:
    async with _serve(request_timeout=0.05) as (transport, _, _):
        with pytest.raises(SequencerTransportError, match="timed out"):
            await transport.get_json("/slow")


@pytest.mark.asyncio
async def test_connection_refused_raises_transport_error() -> None:
    config = SequencerConfig(base_url="http://127.0.0.1:1", request_timeout=2.0)
    async with aiohttp.ClientSession() as session:
        transport = HttpTransport(config, session)
        with pytest.raises(SequencerTransportError):
            await transport.get_json("/api/sequence")


@pytest.mark.asyncio
async def test_gateway_fetch_lane_success() -> None:
    async with _serve() as (transport, config, _):
        result = await LaneGateway(config, transport).fetch_lane(Side.LEFT)

    assert result.ok
    assert result.error is None
    assert result.snapshot is not None
    assert [row.id for row in result.snapshot.rows] == [2, 1]
    assert result.snapshot.pending[0].container_number == "MSCU1234565"
    assert result.snapshot.buffer == "B1"


@pytest.mark.asyncio
async def test_gateway_swallows_ok_false() -> None:
    async with _serve() as (transport, config, _):
        result = await LaneGateway(config, transport).fetch_lane(Side.RIGHT)

    assert not result.ok
    assert isinstance(result.error, SequencerProtocolError)
    assert result.error.endpoint == "/api/sequence/right"


@pytest.mark.asyncio
async def test_gateway_flush_accepts_empty_body() -> None:
    async with _serve() as (transport, config, app):
        result = await LaneGateway(config, transport).trigger_action("flush", Side.LEFT)

    assert result.ok
    assert app["flushed"] == ["left"]


@pytest.mark.asyncio
async def test_gateway_flush_ok_false_is_error() -> None:
    async with _serve() as (transport, config, _):
        result = await LaneGateway(config, transport).trigger_action("flush", Side.RIGHT)

    assert not result.ok
    assert isinstance(result.error, SequencerProtocolError)
    assert "busy" in str(result.error)


@pytest.mark.asyncio
async def test_gateway_unknown_action_is_config_error() -> None:
    async with _serve() as (transport, config, _):
        result = await LaneGateway(config, transport).trigger_action("rewind", Side.LEFT)

    assert isinstance(result.error, SequencerConfigError)

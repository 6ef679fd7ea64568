"""Tests for the UI sinks and the display server."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

from aiohttp import test_utils

from nowplaying.prolink.network import TrackMetadata
from nowplaying.publisher import NullSink, UIServer, WebSocketSink, serialize

TRACK = TrackMetadata(5, "Y", "X", artist_id=9, label="no label", artwork_path="/art/5.jpg")


def _ws(closed=False):
    ws = MagicMock()
    ws.closed = closed
    ws.send_str = AsyncMock()
    ws.close = AsyncMock()
    return ws


class TestSerialize:
    def test_shape(self):
        message = json.loads(serialize(TRACK, "data:image/png;base64,AAAA"))
        assert message["artwork"] == "data:image/png;base64,AAAA"
        assert message["track"]["title"] == "Y"
        assert message["track"]["artist"] == {"id": 9, "name": "X"}
        assert message["track"]["label"] == {"name": "no label"}

    def test_missing_artwork_is_null(self):
        assert json.loads(serialize(TRACK, None))["artwork"] is None


class TestSinks:
    def test_null_sink_accepts_anything(self):
        asyncio.run(NullSink().publish(TRACK, None))

    def test_no_connection_drops_silently(self):
        sink = WebSocketSink()
        asyncio.run(sink.publish(TRACK, None))
        assert not sink.connected

    def test_open_connection_receives_json(self):
        sink, ws = WebSocketSink(), _ws()
        sink.attach(ws)
        asyncio.run(sink.publish(TRACK, "data:image/png;base64,AAAA"))
        ws.send_str.assert_awaited_once_with(serialize(TRACK, "data:image/png;base64,AAAA"))

    def test_closed_connection_drops(self):
        sink, ws = WebSocketSink(), _ws(closed=True)
        sink.attach(ws)
        asyncio.run(sink.publish(TRACK, None))
        ws.send_str.assert_not_awaited()

    def test_send_error_is_swallowed(self):
        sink, ws = WebSocketSink(), _ws()
        ws.send_str.side_effect = ConnectionResetError()
        sink.attach(ws)
        asyncio.run(sink.publish(TRACK, None))

    def test_new_connection_replaces_old(self):
        sink, first, second = WebSocketSink(), _ws(), _ws()
        assert sink.attach(first) is None
        assert sink.attach(second) is first
        sink.detach(first)  # stale detach must not drop the new display
        assert sink.connected
        asyncio.run(sink.publish(TRACK, None))
        first.send_str.assert_not_awaited()
        second.send_str.assert_awaited_once()


class TestUIServer:
    def test_status_and_websocket_push(self):
        async def go():
            sink = WebSocketSink()
            server = UIServer(sink, lambda: {"state": "online", "slots": []})
            async with test_utils.TestClient(test_utils.TestServer(server.make_app())) as client:
                resp = await client.get("/status")
                status = await resp.json()
                assert status == {"state": "online", "slots": [],
                                  "display_connected": False}

                ws = await client.ws_connect("/ws")
                for _ in range(50):
                    if sink.connected:
                        break
                    await asyncio.sleep(0.01)
                await sink.publish(TRACK, None)
                message = await ws.receive_json(timeout=2)
                await ws.close()
            return message

        message = asyncio.run(go())
        assert message["track"]["title"] == "Y"

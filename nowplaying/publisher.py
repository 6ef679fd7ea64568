# Now Playing
# Copyright (C) 2024-2026 Markus Kirsten
# SPDX-License-Identifier: GPL-3.0-or-later

"""
UI publisher — pushes resolved tracks to the now-playing display.

The pipeline only ever sees a ``UISink``.  ``NullSink`` is the default when
no display is wired up; ``WebSocketSink`` forwards to at most one connected
display, served by ``UIServer``:

  GET /ws      — WebSocket feed, push-only ({"track": ..., "artwork": ...})
  GET /status  — JSON snapshot of player slots and service state

Delivery is fire-and-forget: no display connected (or a closed one) means
the update is dropped.  There is no queue and no replay.
"""

import json
import logging
from abc import ABC, abstractmethod

from aiohttp import web

from .prolink.network import TrackMetadata

log = logging.getLogger(__name__)


def serialize(metadata: TrackMetadata, artwork: str | None) -> str:
    return json.dumps({"track": metadata.to_dict(), "artwork": artwork})


class UISink(ABC):
    @abstractmethod
    async def publish(self, metadata: TrackMetadata, artwork: str | None) -> None: ...


class NullSink(UISink):
    async def publish(self, metadata: TrackMetadata, artwork: str | None) -> None:
        pass  # no display attached


class WebSocketSink(UISink):
    """Holds the single display connection, if there is one."""

    def __init__(self):
        self._ws: web.WebSocketResponse | None = None

    @property
    def connected(self) -> bool:
        return self._ws is not None and not self._ws.closed

    def attach(self, ws: web.WebSocketResponse) -> web.WebSocketResponse | None:
        """Make *ws* the display connection. Returns the one it replaced."""
        previous, self._ws = self._ws, ws
        return previous if previous is not ws else None

    def detach(self, ws: web.WebSocketResponse) -> None:
        if self._ws is ws:
            self._ws = None

    async def close(self) -> None:
        if self.connected:
            await self._ws.close()
        self._ws = None

    async def publish(self, metadata: TrackMetadata, artwork: str | None) -> None:
        if not self.connected:
            log.debug("No display connected, dropping update for %s", metadata.title)
            return
        try:
            await self._ws.send_str(serialize(metadata, artwork))
        except Exception as e:
            log.debug("Display send failed, dropping update: %s", e)


class UIServer:
    """aiohttp app serving the display WebSocket and a status endpoint."""

    def __init__(self, sink: WebSocketSink, status_provider,
                 host: str = "0.0.0.0", port: int = 8766):
        self.sink = sink
        self.status_provider = status_provider
        self.host = host
        self.port = port
        self._runner: web.AppRunner | None = None

    def make_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/ws", self._handle_ws)
        app.router.add_get("/status", self._handle_status)
        return app

    async def start(self):
        self._runner = web.AppRunner(self.make_app())
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()
        log.info("UI WebSocket on %s:%d/ws", self.host, self.port)

    async def stop(self):
        await self.sink.close()
        if self._runner:
            await self._runner.cleanup()
            self._runner = None

    async def _handle_ws(self, request: web.Request) -> web.WebSocketResponse:
        ws = web.WebSocketResponse()
        await ws.prepare(request)

        previous = self.sink.attach(ws)
        if previous is not None and not previous.closed:
            log.info("New display connected, closing the previous one")
            await previous.close()
        else:
            log.info("Display connected")

        try:
            # Push-only — client messages are ignored
            async for msg in ws:
                pass
        finally:
            self.sink.detach(ws)
            log.info("Display disconnected")

        return ws

    async def _handle_status(self, request: web.Request) -> web.Response:
        status = self.status_provider()
        status["display_connected"] = self.sink.connected
        return web.json_response(status, headers={"Access-Control-Allow-Origin": "*"})

# Now Playing
# Copyright (C) 2024-2026 Markus Kirsten
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Typed event dispatcher.

Producers call ``emit(event)``; subscribers registered for that event type
run synchronously, in subscription order, before ``emit`` returns.  A
subscriber that needs I/O returns a coroutine, which the dispatcher runs as
a background task — so a slow subscriber never holds up the next event.

Usage:
    events = EventDispatcher()
    events.subscribe(StatusReceived, tracker.handle_status)
    events.subscribe(StatusReceived, adapter.handle_status)
    events.emit(StatusReceived(status))
    await events.drain()   # wait for spawned work (tests, shutdown)
"""

import asyncio
import inspect
import logging

from ..prolink.network import CDJStatus, Device

log = logging.getLogger(__name__)


class StatusReceived:
    """A status broadcast arrived from the network."""

    def __init__(self, status: CDJStatus):
        self.status = status


class NowPlaying:
    """The mix-status engine decided *slot* is the audible player."""

    def __init__(self, slot: int):
        self.slot = slot


class DeviceConnected:
    """A device announced itself on the network."""

    def __init__(self, device: Device):
        self.device = device


class EventDispatcher:
    def __init__(self):
        self._handlers: dict[type, list] = {}
        self._tasks: set[asyncio.Task] = set()

    def subscribe(self, event_type: type, handler) -> None:
        self._handlers.setdefault(event_type, []).append(handler)

    def emit(self, event) -> None:
        for handler in self._handlers.get(type(event), []):
            result = handler(event)
            if inspect.isawaitable(result):
                self._spawn(result, type(event).__name__)

    def _spawn(self, coro, name: str) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._on_task_done(t, name))

    def _on_task_done(self, task: asyncio.Task, name: str) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log.error("Unhandled error in %s handler: %r", name, exc)

    async def drain(self) -> None:
        """Wait until every spawned handler task (and its follow-ups) is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

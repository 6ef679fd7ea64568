# Now Playing
# Copyright (C) 2024-2026 Markus Kirsten
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Now-playing decision adapter.

A track being loaded is not the same as it being heard.  That call belongs to
the mix-status engine, which watches every broadcast from every player and
announces the slot that is actually on air.  This adapter only feeds it and
relays its answer — it makes no decisions of its own.

The engine's bookkeeping breaks if it misses a broadcast or sees them out of
order, so both are enforced here: every ``StatusReceived`` is forwarded, and
a sequence number that goes backwards raises ``BroadcastOrderError``.
"""

import logging

from .lib.events import EventDispatcher, NowPlaying, StatusReceived
from .prolink.network import CDJStatus, MixstatusEngine

log = logging.getLogger(__name__)


class BroadcastOrderError(RuntimeError):
    """A broadcast reached the engine out of network-arrival order."""


class MixstatusAdapter:
    def __init__(self, engine: MixstatusEngine, events: EventDispatcher):
        self.engine = engine
        self.events = events
        self._last_sequence: int | None = None
        engine.on_now_playing(self._on_now_playing)

    def handle_status(self, event: StatusReceived) -> None:
        """EventDispatcher subscriber for ``StatusReceived``."""
        self.ingest(event.status)

    def ingest(self, status: CDJStatus) -> None:
        seq = status.sequence
        if seq is not None:
            if self._last_sequence is not None and seq <= self._last_sequence:
                raise BroadcastOrderError(
                    f"broadcast {seq} arrived after {self._last_sequence}")
            self._last_sequence = seq
        self.engine.handle_state(status)

    def _on_now_playing(self, slot: int) -> None:
        log.info("Now playing: slot %d", slot)
        self.events.emit(NowPlaying(slot))

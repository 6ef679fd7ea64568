# Now Playing
# Copyright (C) 2024-2026 Markus Kirsten
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Device state tracker.

Players broadcast their status several times a second, almost always with
the same track loaded.  The tracker keeps the last-seen track per slot and
only reacts when it actually changes:

  same track        — nothing
  slot emptied      — remember that, nothing to resolve
  new track loaded  — remember it and prefetch metadata + artwork
"""

import logging

from .lib.events import StatusReceived
from .lib.state import DeviceStateStore
from .pipeline import ResolutionPipeline

log = logging.getLogger(__name__)


class DeviceTracker:
    def __init__(self, states: DeviceStateStore, pipeline: ResolutionPipeline):
        self.states = states
        self.pipeline = pipeline

    def handle_status(self, event: StatusReceived):
        """EventDispatcher subscriber for ``StatusReceived``.

        Decides synchronously; returns the prefetch coroutine (run as a
        background task by the dispatcher) when a new track was loaded.
        """
        status = event.status
        slot = status.device_id
        if slot not in self.states:
            log.debug("Ignoring status from device %s (not a player slot)", slot)
            return None

        state = self.states[slot]
        identity = status.identity
        if identity == state.identity:
            return None

        state.identity = identity
        if identity.is_empty:
            log.info("Slot %d emptied", slot)
            return None

        log.info("New track loaded on slot %d: track %d", slot, identity.track_id)
        return self.pipeline.prefetch(slot, identity)

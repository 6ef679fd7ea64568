# Now Playing
# Copyright (C) 2024-2026 Markus Kirsten
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Per-player state table.

One ``DeviceState`` per slot, created by the service at startup and handed
to the tracker and the pipeline.  Artwork is stored together with the
identity it was resolved for, so a later track change makes it untrusted
without anyone having to clear it.
"""

from ..prolink.network import SLOTS, TrackIdentity


class DeviceState:
    """Last-seen track and cached artwork for one slot."""

    def __init__(self, slot: int):
        self.slot = slot
        self.identity: TrackIdentity | None = None
        self.artwork: str | None = None
        self.artwork_identity: TrackIdentity | None = None

    @property
    def trusted_artwork(self) -> str | None:
        """Cached artwork, only if it belongs to the currently loaded track."""
        if self.identity is None or self.artwork is None:
            return None
        if self.artwork_identity != self.identity:
            return None
        return self.artwork

    def to_dict(self) -> dict:
        return {
            "slot": self.slot,
            "track_id": self.identity.track_id if self.identity else None,
            "identity": list(self.identity) if self.identity else None,
            "has_artwork": self.trusted_artwork is not None,
        }


class DeviceStateStore:
    """Fixed table of ``DeviceState`` keyed by slot id."""

    def __init__(self, slots=SLOTS):
        self._states: dict[int, DeviceState] = {s: DeviceState(s) for s in slots}

    def __contains__(self, slot: int):
        return slot in self._states

    def __getitem__(self, slot: int) -> DeviceState:
        return self._states[slot]

    def __iter__(self):
        return iter(self._states.values())

    def store_artwork(self, slot: int, identity: TrackIdentity, artwork: str | None) -> bool:
        """Cache *artwork* for *identity* if the slot still holds that track.

        Returns False (and stores nothing) when the slot moved on while the
        artwork was being resolved.
        """
        state = self._states[slot]
        if state.identity != identity:
            return False
        state.artwork = artwork
        state.artwork_identity = identity
        return True

    def snapshot(self) -> list[dict]:
        return [state.to_dict() for state in self]

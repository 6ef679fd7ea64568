# Now Playing
# Copyright (C) 2024-2026 Markus Kirsten
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Metadata resolution pipeline.

Turns "slot N has track T" into a (metadata, artwork) pair:

  resolve_track    — always asks the player DB, never cached
  resolve_artwork  — asks the player DB and MusicBrainz at the same time,
                     waits for both, prefers MusicBrainz
  prefetch         — run by the tracker when a new track is loaded, so the
                     artwork is usually cached before the track goes live
  on_now_playing   — run when the mix-status engine picks a slot; reuses the
                     slot's artwork if it was resolved for the loaded track,
                     then publishes to the UI
"""

import asyncio
import logging

from .lib.events import NowPlaying
from .lib.state import DeviceStateStore
from .prolink.network import NetworkSession, TrackIdentity, TrackMetadata
from .publisher import NullSink, UISink
from .sources.device import DeviceArtwork
from .sources.musicbrainz import MusicBrainzArtwork

log = logging.getLogger(__name__)

NO_LABEL_MARKER = "[no label]"
NO_LABEL = "no label"
UNKNOWN_LABEL = "unknown label"


def normalize_label(label: str | None) -> str:
    if not label:
        return UNKNOWN_LABEL
    return label.replace(NO_LABEL_MARKER, NO_LABEL)


class ResolutionPipeline:
    def __init__(self, network: NetworkSession, states: DeviceStateStore,
                 local: DeviceArtwork, remote: MusicBrainzArtwork,
                 sink: UISink | None = None):
        self.network = network
        self.states = states
        self.local = local
        self.remote = remote
        self.sink = sink or NullSink()

    async def resolve_track(self, slot: int, identity: TrackIdentity) -> TrackMetadata:
        """Fetch fresh metadata from the player DB. Raises on failure."""
        track = await self.network.get_metadata(identity)
        track.label = normalize_label(track.label)
        log.info("New track metadata received: %s - %s [%s] (slot %d, track %d)",
                 track.artist_name, track.title, track.label, slot, identity.track_id)
        return track

    async def resolve_artwork(self, slot: int, identity: TrackIdentity,
                              metadata: TrackMetadata) -> str | None:
        """Ask both sources concurrently; MusicBrainz wins if it found anything."""
        local_artwork, remote_artwork = await asyncio.gather(
            self.local.fetch(identity, metadata),
            self.remote.resolve(metadata.artist_name, metadata.title),
            return_exceptions=True,
        )
        # Both sources log their own failures; anything that still escapes is a miss
        for name, result in (("local", local_artwork), ("MusicBrainz", remote_artwork)):
            if isinstance(result, BaseException):
                log.warning("Slot %d: %s artwork failed: %r", slot, name, result)
        if isinstance(local_artwork, BaseException):
            local_artwork = None
        if isinstance(remote_artwork, BaseException):
            remote_artwork = None

        if remote_artwork:
            log.info("Slot %d: using MusicBrainz artwork", slot)
            return remote_artwork
        log.info("Slot %d: using local artwork%s", slot,
                 "" if local_artwork else " (none available)")
        return local_artwork

    async def prefetch(self, slot: int, identity: TrackIdentity) -> None:
        """Resolve and cache artwork for a newly loaded track."""
        try:
            metadata = await self.resolve_track(slot, identity)
        except Exception as e:
            log.error("Slot %d: could not fetch metadata for track %d: %s",
                      slot, identity.track_id, e)
            return

        artwork = await self.resolve_artwork(slot, identity, metadata)
        if not self.states.store_artwork(slot, identity, artwork):
            log.info("Slot %d: track changed while resolving %d, artwork discarded",
                     slot, identity.track_id)

    async def on_now_playing(self, slot: int) -> None:
        state = self.states[slot]
        identity = state.identity
        if identity is None or identity.is_empty:
            log.warning("Now playing on slot %d but no track is loaded", slot)
            return

        cached = state.trusted_artwork
        try:
            metadata = await self.resolve_track(slot, identity)
        except Exception as e:
            log.error("Slot %d: could not fetch now-playing metadata: %s", slot, e)
            return

        if cached is not None:
            log.info("Slot %d: reusing cached artwork", slot)
            artwork = cached
        else:
            artwork = await self.resolve_artwork(slot, identity, metadata)
            self.states.store_artwork(slot, identity, artwork)

        await self.sink.publish(metadata, artwork)

    def handle_now_playing(self, event: NowPlaying):
        """EventDispatcher subscriber for ``NowPlaying``."""
        if event.slot not in self.states:
            log.warning("Now playing on unknown slot %s", event.slot)
            return None
        return self.on_now_playing(event.slot)

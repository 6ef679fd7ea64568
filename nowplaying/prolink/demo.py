# Now Playing
# Copyright (C) 2024-2026 Markus Kirsten
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Demo network — two virtual CDJs mixing a short playlist.

Lets the service (and the display) run on a laptop with no players attached.
Deck 1 and deck 2 take turns: the idle deck loads the next track, starts
playing and takes master; the other deck is then emptied.  Status broadcasts
repeat every BROADCAST_INTERVAL like real players do, so the tracker's
dedupe is exercised too.

Select it with the defaults, or explicitly:
    {"network":   {"factory": "nowplaying.prolink.demo:bring_online"},
     "mixstatus": {"factory": "nowplaying.prolink.demo:DemoMixstatusEngine"}}
"""

import asyncio
import logging
from io import BytesIO

from PIL import Image

from .network import (
    ArtworkLocator,
    CDJStatus,
    Device,
    MixstatusEngine,
    MixstatusMode,
    NetworkSession,
    TrackIdentity,
    TrackMetadata,
)

log = logging.getLogger(__name__)

BROADCAST_INTERVAL = 0.2   # seconds between status packets per deck
TRACK_LENGTH = 20.0        # seconds each demo track stays on air
USB_SLOT = 3
REKORDBOX_TRACK = 1

PLAYLIST = [
    {"id": 101, "title": "Strings of Life", "artist": "Rhythim Is Rhythim",
     "label": "Transmat", "color": (200, 60, 40)},
    {"id": 102, "title": "Energy Flash", "artist": "Joey Beltram",
     "label": "R&S Records", "color": (40, 120, 200)},
    {"id": 103, "title": "Can You Feel It", "artist": "Mr. Fingers",
     "label": "[no label]", "color": (60, 180, 90)},
    {"id": 104, "title": "Windowlicker", "artist": "Aphex Twin",
     "label": None, "color": (220, 200, 50)},
]

DECKS = (
    Device(1, "CDJ-3000"),
    Device(2, "CDJ-3000"),
)


def _render_cover(color) -> bytes:
    buf = BytesIO()
    Image.new("RGB", (240, 240), color).save(buf, "JPEG", quality=85)
    return buf.getvalue()


async def bring_online() -> "DemoNetwork":
    log.info("Demo network online (%d decks)", len(DECKS))
    return DemoNetwork()


class DemoNetwork(NetworkSession):
    def __init__(self, playlist=PLAYLIST, track_length: float = TRACK_LENGTH):
        self.playlist = {entry["id"]: entry for entry in playlist}
        self.order = [entry["id"] for entry in playlist]
        self.track_length = track_length
        self._connected = False
        self._configured = False
        self._device_callbacks = []
        self._status_callbacks = []
        self._tasks: list[asyncio.Task] = []
        # deck -> (track_id, playing, master)
        self._decks = {deck.id: (0, False, False) for deck in DECKS}

    async def autoconfigure_from_peers(self) -> None:
        await asyncio.sleep(0)
        self._configured = True

    async def connect(self) -> None:
        if not self._configured:
            log.warning("Demo network connecting without autoconfiguration")
        self._connected = True
        self._tasks = [
            asyncio.create_task(self._announce()),
            asyncio.create_task(self._broadcast_loop()),
            asyncio.create_task(self._mix_loop()),
        ]

    def is_connected(self) -> bool:
        return self._connected

    async def disconnect(self) -> None:
        self._connected = False
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

    def on_device_connected(self, callback) -> None:
        self._device_callbacks.append(callback)

    def on_status(self, callback) -> None:
        self._status_callbacks.append(callback)

    async def get_metadata(self, identity: TrackIdentity) -> TrackMetadata:
        await asyncio.sleep(0.05)  # a DB round-trip
        entry = self.playlist.get(identity.track_id)
        if entry is None:
            raise LookupError(f"track {identity.track_id} not in demo database")
        return TrackMetadata(
            id=entry["id"],
            title=entry["title"],
            artist_name=entry["artist"],
            artist_id=entry["id"] * 10,
            label=entry["label"],
            artwork_path=f"/PIONEER/USBANLZ/Artwork/{entry['id']}.jpg",
        )

    async def get_artwork(self, locator: ArtworkLocator) -> bytes | None:
        await asyncio.sleep(0.05)
        entry = self.playlist.get(locator.track_id)
        if entry is None:
            return None
        return _render_cover(entry["color"])

    # ── Simulation ──

    async def _announce(self):
        for deck in DECKS:
            for callback in self._device_callbacks:
                callback(deck)
            await asyncio.sleep(BROADCAST_INTERVAL)

    async def _broadcast_loop(self):
        while self._connected:
            for deck_id, (track_id, playing, master) in self._decks.items():
                status = CDJStatus(
                    deck_id,
                    track_device_id=deck_id if track_id else 0,
                    track_slot=USB_SLOT if track_id else 0,
                    track_type=REKORDBOX_TRACK if track_id else 0,
                    track_id=track_id,
                    is_playing=playing,
                    is_master=master,
                )
                for callback in self._status_callbacks:
                    callback(status)
            await asyncio.sleep(BROADCAST_INTERVAL)

    async def _mix_loop(self):
        index = 0
        live_deck, idle_deck = DECKS[1].id, DECKS[0].id
        while self._connected:
            track_id = self.order[index % len(self.order)]
            # Cue on the idle deck, then bring it in and take master
            self._decks[idle_deck] = (track_id, False, False)
            await asyncio.sleep(self.track_length / 4)
            self._decks[idle_deck] = (track_id, True, True)
            self._decks[live_deck] = (0, False, False)
            live_deck, idle_deck = idle_deck, live_deck
            index += 1
            await asyncio.sleep(self.track_length * 3 / 4)


class DemoMixstatusEngine(MixstatusEngine):
    """Follows-master: the playing master deck is the one on air."""

    def __init__(self, mode: MixstatusMode = MixstatusMode.FOLLOWS_MASTER):
        super().__init__(mode)
        self._callbacks = []
        self._on_air: tuple[int, int] | None = None  # (deck, track_id)

    def on_now_playing(self, callback) -> None:
        self._callbacks.append(callback)

    def handle_state(self, status: CDJStatus) -> None:
        if not (status.is_master and status.is_playing and status.track_id):
            return
        current = (status.device_id, status.track_id)
        if current == self._on_air:
            return
        self._on_air = current
        for callback in self._callbacks:
            callback(status.device_id)

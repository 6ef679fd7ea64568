"""Shared fakes for the now-playing tests (no network, no hardware)."""

import asyncio
from io import BytesIO

import pytest
from PIL import Image

from nowplaying.lib.state import DeviceStateStore
from nowplaying.prolink.network import CDJStatus, NetworkSession, TrackMetadata


def make_image(fmt="PNG", color=(255, 0, 0)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", (4, 4), color).save(buf, fmt)
    return buf.getvalue()


def make_status(slot=1, track_id=5, track_device_id=None, track_slot=3,
                track_type=1, **flags) -> CDJStatus:
    return CDJStatus(
        slot,
        track_device_id=slot if track_device_id is None else track_device_id,
        track_slot=track_slot,
        track_type=track_type,
        track_id=track_id,
        **flags,
    )


class FakeNetwork(NetworkSession):
    """In-memory NetworkSession that records every call."""

    def __init__(self, metadata=None, artwork=None, connected_after_connect=True,
                 disconnect_delay=0.0, artwork_delay=0.0):
        self.metadata = metadata or {}
        self.artwork = artwork or {}
        self.connected_after_connect = connected_after_connect
        self.disconnect_delay = disconnect_delay
        self.artwork_delay = artwork_delay
        self.connected = False
        self.metadata_calls = []
        self.artwork_calls = []
        self.status_callbacks = []
        self.device_callbacks = []
        self.disconnect_calls = 0
        self.disconnected = False

    async def autoconfigure_from_peers(self):
        pass

    async def connect(self):
        self.connected = self.connected_after_connect

    def is_connected(self):
        return self.connected

    async def disconnect(self):
        self.disconnect_calls += 1
        await asyncio.sleep(self.disconnect_delay)
        self.connected = False
        self.disconnected = True

    def on_device_connected(self, callback):
        self.device_callbacks.append(callback)

    def on_status(self, callback):
        self.status_callbacks.append(callback)

    def broadcast(self, status):
        for callback in self.status_callbacks:
            callback(status)

    async def get_metadata(self, identity):
        self.metadata_calls.append(identity)
        entry = self.metadata.get(identity.track_id)
        if entry is None:
            raise LookupError(f"no track {identity.track_id}")
        artist, title = entry[:2]
        label = entry[2] if len(entry) > 2 else "Label"
        return TrackMetadata(identity.track_id, title, artist, artist_id=1,
                             label=label, artwork_path=f"/art/{identity.track_id}.jpg")

    async def get_artwork(self, locator):
        await asyncio.sleep(self.artwork_delay)
        self.artwork_calls.append(locator)
        return self.artwork.get(locator.track_id)


class FakeRemote:
    """Stands in for MusicBrainzArtwork; returns a fixed answer per title."""

    def __init__(self, answers=None, delay=0.0):
        self.answers = answers or {}
        self.delay = delay
        self.calls = []

    async def resolve(self, artist, title):
        self.calls.append((artist, title))
        await asyncio.sleep(self.delay)
        return self.answers.get(title)


@pytest.fixture
def states():
    return DeviceStateStore()

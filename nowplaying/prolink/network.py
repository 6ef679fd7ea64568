# Now Playing
# Copyright (C) 2024-2026 Markus Kirsten
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Pro DJ Link collaborator interfaces and the values that cross them.

The network itself (device discovery, status decoding, remote database
queries) lives outside this package.  Anything that implements
``NetworkSession`` can be plugged in through the ``network.factory`` config
key; ``MixstatusEngine`` is the same for the now-playing decision engine.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, NamedTuple

SLOTS = (1, 2, 3, 4)
EMPTY_TRACK_ID = 0


class TrackIdentity(NamedTuple):
    """Which physical track is loaded on a player."""
    track_device_id: int
    track_slot: int
    track_type: int
    track_id: int

    @property
    def is_empty(self) -> bool:
        return self.track_id == EMPTY_TRACK_ID


class CDJStatus:
    """One status broadcast from a player on the network."""

    def __init__(self, device_id: int, track_device_id: int, track_slot: int,
                 track_type: int, track_id: int, *, is_playing: bool = False,
                 is_master: bool = False):
        self.device_id = device_id
        self.track_device_id = track_device_id
        self.track_slot = track_slot
        self.track_type = track_type
        self.track_id = track_id
        self.is_playing = is_playing
        self.is_master = is_master
        self.sequence: int | None = None  # stamped on arrival

    @property
    def identity(self) -> TrackIdentity:
        return TrackIdentity(self.track_device_id, self.track_slot,
                             self.track_type, self.track_id)

    def __repr__(self):
        return (f"CDJStatus(device={self.device_id}, track={self.track_id}, "
                f"seq={self.sequence})")


class Device:
    """A device announced on the network (player, mixer, rekordbox)."""

    def __init__(self, id: int, name: str):
        self.id = id
        self.name = name


class TrackMetadata:
    """Title/artist/label/artwork for one track, straight from the player DB."""

    def __init__(self, id: int, title: str, artist_name: str,
                 artist_id: int | None = None, label: str | None = None,
                 artwork_path: str | None = None, album: str | None = None,
                 genre: str | None = None, tempo: float | None = None,
                 duration: int | None = None):
        self.id = id
        self.title = title
        self.artist_name = artist_name
        self.artist_id = artist_id
        self.label = label
        self.artwork_path = artwork_path
        self.album = album
        self.genre = genre
        self.tempo = tempo
        self.duration = duration

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "artist": {"id": self.artist_id, "name": self.artist_name},
            "album": self.album,
            "genre": self.genre,
            "tempo": self.tempo,
            "duration": self.duration,
            "label": {"name": self.label},
            "artwork": {"path": self.artwork_path},
        }


class ArtworkLocator(NamedTuple):
    """Address of an artwork image in a player's database."""
    device_id: int
    track_slot: int
    track_type: int
    track_id: int
    artwork_path: str


class NetworkSession(ABC):
    """Interface every Pro DJ Link network implementation must provide.

    Instances come from a ``bring_online()`` factory, which is the
    "bring the network up" step; the remaining startup steps are methods.
    """

    @abstractmethod
    async def autoconfigure_from_peers(self) -> None: ...

    @abstractmethod
    async def connect(self) -> None: ...

    @abstractmethod
    def is_connected(self) -> bool: ...

    @abstractmethod
    async def disconnect(self) -> None: ...

    @abstractmethod
    def on_device_connected(self, callback: Callable[[Device], None]) -> None: ...

    @abstractmethod
    def on_status(self, callback: Callable[[CDJStatus], None]) -> None: ...

    @abstractmethod
    async def get_metadata(self, identity: TrackIdentity) -> TrackMetadata: ...

    @abstractmethod
    async def get_artwork(self, locator: ArtworkLocator) -> bytes | None: ...


class MixstatusMode(Enum):
    FOLLOWS_MASTER = "follows_master"


class MixstatusEngine(ABC):
    """Decides which player's track is actually audible."""

    def __init__(self, mode: MixstatusMode = MixstatusMode.FOLLOWS_MASTER):
        self.mode = mode

    @abstractmethod
    def handle_state(self, status: CDJStatus) -> None: ...

    @abstractmethod
    def on_now_playing(self, callback: Callable[[int], None]) -> None: ...

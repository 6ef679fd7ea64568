"""
Pro DJ Link — the player network this service listens to.

The real network (discovery, status decoding, remote DB queries) is an
external library; this package only holds the interfaces the service
consumes and a self-contained demo network for development.

  network.py  — NetworkSession / MixstatusEngine interfaces + value types
  demo.py     — in-memory network and follows-master engine (no hardware)
"""

from .network import (
    EMPTY_TRACK_ID,
    SLOTS,
    ArtworkLocator,
    CDJStatus,
    Device,
    MixstatusEngine,
    MixstatusMode,
    NetworkSession,
    TrackIdentity,
    TrackMetadata,
)

__all__ = [
    "EMPTY_TRACK_ID",
    "SLOTS",
    "ArtworkLocator",
    "CDJStatus",
    "Device",
    "MixstatusEngine",
    "MixstatusMode",
    "NetworkSession",
    "TrackIdentity",
    "TrackMetadata",
]

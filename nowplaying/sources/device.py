# Now Playing
# Copyright (C) 2024-2026 Markus Kirsten
# SPDX-License-Identifier: GPL-3.0-or-later

"""Local artwork: the image stored in the player's own rekordbox database."""

import logging
import posixpath

from ..lib.artwork import encode_image
from ..prolink.network import ArtworkLocator, NetworkSession, TrackIdentity, TrackMetadata

log = logging.getLogger(__name__)

HIGH_RES_MARKER = "_m"


def high_res_path(path: str) -> str:
    """``/PIONEER/Artwork/00001/a1.jpg`` -> ``/PIONEER/Artwork/00001/a1_m.jpg``.

    rekordbox exports a larger copy of each artwork next to the thumbnail,
    named with an ``_m`` suffix.
    """
    root, ext = posixpath.splitext(path)
    return f"{root}{HIGH_RES_MARKER}{ext}"


class DeviceArtwork:
    def __init__(self, network: NetworkSession):
        self.network = network

    async def fetch(self, identity: TrackIdentity, metadata: TrackMetadata) -> str | None:
        """Fetch the high-res artwork for a loaded track, or None."""
        if not metadata.artwork_path:
            log.info("Track %d has no artwork in the player database", identity.track_id)
            return None

        locator = ArtworkLocator(
            device_id=identity.track_device_id,
            track_slot=identity.track_slot,
            track_type=identity.track_type,
            track_id=identity.track_id,
            artwork_path=high_res_path(metadata.artwork_path),
        )
        try:
            image_bytes = await self.network.get_artwork(locator)
        except Exception as e:
            log.warning("Error fetching artwork from player %d: %s",
                        identity.track_device_id, e)
            return None

        if not image_bytes:
            log.info("No local artwork for track %d", identity.track_id)
            return None
        return encode_image(image_bytes)

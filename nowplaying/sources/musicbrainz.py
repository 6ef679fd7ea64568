# Now Playing
# Copyright (C) 2024-2026 Markus Kirsten
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Remote artwork: MusicBrainz release lookup + Cover Art Archive image.

Two stages, both best-effort:
  1. search MusicBrainz for a recording by (artist, title), optionally
     restricted to a primary release type, and take the first recording's
     first release
  2. list that release's images on the Cover Art Archive, download the first
     one and encode it as an inline ``data:`` URI

Any miss or failure at either stage is logged and ends in None.  Nothing is
retried — the next track change is the next attempt.
"""

import asyncio
import logging

import aiohttp
import musicbrainzngs

from ..lib.artwork import encode_image

log = logging.getLogger(__name__)

COVER_ART_ARCHIVE_URL = "https://coverartarchive.org/release/{mbid}"
DEFAULT_RELEASE_TYPE = "Single"


class TrackLogAdapter(logging.LoggerAdapter):
    """Prefixes every message with the track being looked up."""

    def process(self, msg, kwargs):
        return f"[{self.extra['track']}] {msg}", kwargs


class MusicBrainzSearch:
    """Recording search against the MusicBrainz web service.

    musicbrainzngs is blocking (and rate-limits itself with sleeps), so every
    call runs in the loop's default executor.
    """

    def __init__(self, app_name: str, app_version: str, contact: str):
        musicbrainzngs.set_useragent(app_name, app_version, contact)

    async def search_recordings(self, artist: str, title: str,
                                release_type: str | None = None) -> list[list[str]]:
        """Return the release ids of each matching recording, best match first."""
        fields = {"artist": artist, "recording": title}
        if release_type:
            fields["primarytype"] = release_type
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(
            None, lambda: musicbrainzngs.search_recordings(**fields))
        return [
            [release["id"] for release in recording.get("release-list", [])]
            for recording in result.get("recording-list", [])
        ]


class CoverArtArchive:
    """Cover Art Archive client on a shared aiohttp session."""

    def __init__(self, session: aiohttp.ClientSession, timeout: float = 10):
        self._session = session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def get_cover_images(self, release_id: str) -> list[str]:
        """Image URLs for *release_id* in archive order (empty if none)."""
        url = COVER_ART_ARCHIVE_URL.format(mbid=release_id)
        async with self._session.get(url, timeout=self._timeout) as resp:
            if resp.status == 404:
                return []
            resp.raise_for_status()
            data = await resp.json(content_type=None)
        images = data.get("images") or []
        return [image["image"] for image in images if image.get("image")]

    async def download(self, url: str) -> tuple[bytes, str | None]:
        async with self._session.get(url, timeout=self._timeout) as resp:
            resp.raise_for_status()
            body = await resp.read()
            return body, resp.headers.get("Content-Type")


class MusicBrainzArtwork:
    """Resolves (artist, title) to an inline cover image, or None."""

    def __init__(self, search: MusicBrainzSearch, archive: CoverArtArchive,
                 release_type: str | None = DEFAULT_RELEASE_TYPE):
        self.search = search
        self.archive = archive
        self.release_type = release_type

    async def resolve(self, artist: str, title: str) -> str | None:
        tlog = TrackLogAdapter(log, {"track": f"{artist} - {title}"})
        release_id = await self._find_release(artist, title, tlog)
        if not release_id:
            return None
        return await self._find_artwork(release_id, tlog)

    async def _find_release(self, artist, title, tlog) -> str | None:
        try:
            tlog.info("Looking for MusicBrainz recording (type=%s)...",
                      self.release_type or "any")
            recordings = await self.search.search_recordings(
                artist, title, self.release_type)
        except Exception as e:
            tlog.error("Error getting MusicBrainz info: %s", e)
            return None

        if not recordings:
            tlog.info("No MusicBrainz entry found")
            return None
        if not recordings[0]:
            tlog.info("Best MusicBrainz recording has no releases")
            return None

        release_id = recordings[0][0]
        tlog.info("Using release %s", release_id)
        return release_id

    async def _find_artwork(self, release_id, tlog) -> str | None:
        tlog.info("Searching artwork for MusicBrainz release %s...", release_id)
        try:
            images = await self.archive.get_cover_images(release_id)
            if not images:
                tlog.info("No artwork found for MusicBrainz release %s", release_id)
                return None
            image_bytes, content_type = await self.archive.download(images[0])
        except aiohttp.ClientError as e:
            tlog.warning("Cover Art Archive request failed: %s", e)
            return None
        except Exception as e:
            tlog.warning("Error fetching cover art: %s", e)
            return None

        if not image_bytes:
            tlog.warning("Cover image returned 0 bytes")
            return None

        tlog.info("Artwork found (%d bytes)", len(image_bytes))
        return encode_image(image_bytes, content_type)

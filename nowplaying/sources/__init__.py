"""
Artwork sources — where a track's cover image can come from.

  device.py       — the player's own database (high-res variant)
  musicbrainz.py  — MusicBrainz release lookup + Cover Art Archive

The pipeline asks both at once and prefers the remote image.
"""

"""
Now Playing — live track metadata for a Pro DJ Link setup.

Listens to the players on the network, works out which track is actually
on air, looks up its title/artist/artwork and pushes it to a display.

  service.py    — lifecycle: connect, wire events, shut down on signal
  tracker.py    — per-slot track change detection
  mixstatus.py  — feeds the now-playing decision engine
  pipeline.py   — metadata + artwork resolution and caching
  publisher.py  — WebSocket display feed
  sources/      — artwork sources (player DB, MusicBrainz)
  prolink/      — network interfaces + demo network
  lib/          — config, logging, events, state, image encoding
"""

__version__ = "0.1.0"

# Now Playing
# Copyright (C) 2024-2026 Markus Kirsten
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Shared configuration loader for the now-playing service.

Loads a single JSON config file.  Search order:
  1. /etc/nowplaying/config.json   (deployed install)
  2. config.json                    (CWD — handy for local dev)

Usage:
    from nowplaying.lib.config import cfg

    port          = cfg("ui", "port", default=8766)
    release_type  = cfg("musicbrainz", "release_type", default="Single")
    network       = cfg("network")  # returns the whole dict
"""

import importlib
import json
import logging

logger = logging.getLogger(__name__)

_config: dict | None = None

_SEARCH_PATHS = [
    "/etc/nowplaying/config.json",
    "config.json",
]


def _validate(config: dict, path: str) -> None:
    """Warn about missing or suspicious config values."""
    network = config.get("network") or {}
    if not network.get("factory"):
        logger.warning("Config %s: missing network.factory — demo network will be used", path)
    mixstatus = config.get("mixstatus") or {}
    if not mixstatus.get("factory"):
        logger.warning("Config %s: missing mixstatus.factory — demo engine will be used", path)
    ui = config.get("ui") or {}
    port = ui.get("port")
    if port is not None and not isinstance(port, int):
        logger.warning("Config %s: ui.port should be an integer, got %r", path, port)


def load_config() -> dict:
    """Load config from the first JSON file found. Cached after first call."""
    global _config
    if _config is not None:
        return _config

    for path in _SEARCH_PATHS:
        try:
            with open(path) as f:
                _config = json.load(f)
                logger.info("Config loaded from %s", path)
                _validate(_config, path)
                return _config
        except FileNotFoundError:
            continue
        except json.JSONDecodeError as e:
            logger.error("Invalid JSON in %s: %s", path, e)
            continue

    logger.warning("No config.json found — using defaults")
    _config = {}
    return _config


def cfg(section: str, key: str | None = None, *, default=None):
    """Read a config value.

    cfg("ui")                          → config["ui"]
    cfg("ui", "port")                  → config["ui"]["port"]
    cfg("ui", "port", default=8766)    → config["ui"]["port"] or 8766
    """
    config = load_config()
    val = config.get(section)
    if key is None:
        return val if val is not None else default
    if isinstance(val, dict):
        return val.get(key, default)
    return default


def reload_config():
    """Force re-read from disk (for testing or hot-reload)."""
    global _config
    _config = None
    return load_config()


def load_factory(target: str):
    """Resolve a ``"package.module:callable"`` string to the callable."""
    module_name, _, attr = target.partition(":")
    if not module_name or not attr:
        raise ValueError(f"Factory must look like 'module:callable', got {target!r}")
    module = importlib.import_module(module_name)
    return getattr(module, attr)

# Now Playing
# Copyright (C) 2024-2026 Markus Kirsten
# SPDX-License-Identifier: GPL-3.0-or-later

"""Logging setup: console + rotating file, level from LOG_LEVEL."""

import logging
import os
from logging.handlers import RotatingFileHandler

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s]: %(message)s"
LOG_DATEFMT = "%d/%m/%Y %H:%M:%S"
LOG_DIR = "logs"
LOG_FILE = "application.log"
LOG_MAX_BYTES = 1 * 1024 * 1024  # 1 MB
LOG_BACKUPS = 3


def setup_logging(log_dir: str = LOG_DIR) -> None:
    """Configure the root logger once per process."""
    level = os.environ.get("LOG_LEVEL", "INFO").upper()
    handlers: list[logging.Handler] = [logging.StreamHandler()]

    try:
        os.makedirs(log_dir, exist_ok=True)
        handlers.append(RotatingFileHandler(
            os.path.join(log_dir, LOG_FILE),
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUPS,
        ))
    except OSError as e:
        # Console logging still works on a read-only filesystem
        print(f"Could not create log directory {log_dir}: {e}")

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        handlers=handlers,
    )

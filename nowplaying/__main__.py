"""Entry point: ``python -m nowplaying`` / ``now-playing``."""

import asyncio
import sys

from .lib.logs import setup_logging
from .service import main


def run():
    setup_logging()
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()

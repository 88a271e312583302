"""
Logging setup shared by the dexharvest entry points
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"


def setup_logging(verbose: bool = False) -> None:
    """Route every logger to stdout; DEBUG when *verbose*, INFO otherwise."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        stream=sys.stdout,
    )
    # urllib3 logs every retry at DEBUG; keep it for -v only
    logging.getLogger("urllib3").setLevel(level if verbose else logging.WARNING)

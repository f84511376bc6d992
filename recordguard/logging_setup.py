"""
One-time logging setup for the Flask app and the export CLI.
"""

import logging

from recordguard.config import LOG_LEVEL


def configure_logging(level: str = LOG_LEVEL) -> None:
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level)
        return
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

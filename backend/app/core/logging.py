from __future__ import annotations

import logging

from app.core.config import Settings


def setup_logging(settings: Settings) -> None:
    """Configure root logging once from settings.

    Safe to call multiple times; handlers already installed (for example by
    uvicorn or pytest) are left in place.
    """

    root = logging.getLogger()
    level = getattr(logging, settings.log_level, logging.INFO)
    if root.handlers:
        root.setLevel(level)
        return

    formatter = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )
    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(formatter)
    logging.basicConfig(level=level, handlers=[console])

    # SQL echo stays off unless explicitly requested.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

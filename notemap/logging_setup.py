"""Logging configuration for the server and the CLI."""

from __future__ import annotations

import logging
from typing import Optional

from notemap.config import settings

_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Attach a single stream handler to the ``notemap`` logger.

    Safe to call more than once; repeated calls only adjust the level.
    """
    resolved = getattr(logging, (level or settings.log_level).upper(), logging.INFO)
    root = logging.getLogger("notemap")
    root.setLevel(resolved)
    if not any(getattr(h, "_notemap", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._notemap = True  # type: ignore[attr-defined]
        root.addHandler(handler)

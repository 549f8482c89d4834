"""Logging setup shared by the web app and the maintenance scripts."""

from __future__ import annotations

import logging

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install one stream handler on the ``ppd`` logger (idempotent)."""
    logger = logging.getLogger("ppd")
    logger.setLevel(level.upper())
    if any(getattr(h, "_ppd_handler", False) for h in logger.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler._ppd_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)

"""Logging helpers shared by all modelhub modules."""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return a module logger under the `modelhub` hierarchy."""
    if not name.startswith("modelhub"):
        name = f"modelhub.{name}"
    return logging.getLogger(name)


def configure_logging(level: str | int = "INFO") -> None:
    """
    Attach a stderr handler to the root `modelhub` logger.

    Safe to call more than once; the handler is only added the first time.
    """
    root = logging.getLogger("modelhub")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    root.setLevel(level)

    if not any(getattr(h, "_modelhub_handler", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._modelhub_handler = True  # type: ignore[attr-defined]
        root.addHandler(handler)

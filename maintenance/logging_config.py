"""Logging setup shared by the CLI and the web app."""

import logging

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def setup_logging(level="INFO") -> None:
    """Attach a console handler to the package logger."""
    logger = logging.getLogger("maintenance")
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    if any(getattr(h, "_maintenance_handler", False) for h in logger.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._maintenance_handler = True
    logger.addHandler(handler)

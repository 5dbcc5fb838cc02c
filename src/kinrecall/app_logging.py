"""Logging configuration helpers."""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s: %(name)s: %(message)s"


def configure_logging(level: int | str = logging.INFO) -> None:
    """Configure the kinrecall logger with a single stream handler.

    ``level`` accepts a logging constant or a name such as ``"debug"``.
    Unknown names raise ``ValueError`` so a typo in ``LOG_LEVEL`` fails
    at startup.
    """
    if isinstance(level, str):
        level = level.strip().upper()
    logger = logging.getLogger("kinrecall")
    logger.setLevel(level)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False

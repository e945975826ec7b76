"""
Logging setup for the apisign Python SDK

The SDK only ever logs through module loggers below ``apisign_sdk``; it
never installs handlers on the root logger.
"""

import logging
from typing import Optional, Union

PACKAGE_LOGGER = "apisign_sdk"

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: Union[int, str] = logging.INFO, handler: Optional[logging.Handler] = None) -> logging.Logger:
    """
    Set the SDK log level and optionally attach a handler.

    Args:
        level: Level name ("DEBUG") or number
        handler: Handler to attach; a stream handler is added when the
            package logger has none and no handler is given

    Returns:
        logging.Logger: The package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    if isinstance(level, str):
        level = level.upper()
    logger.setLevel(level)

    if handler is None and not logger.handlers:
        handler = logging.StreamHandler()
    if handler is not None:
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    return logger

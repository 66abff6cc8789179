"""
Application-wide logger access.

`get_logger` configures logging once (from the mode derived from the
application settings) and hands out named child loggers afterwards.
"""

import logging

from appscope.core.config import get_app_settings
from appscope.core.logger.config import configured_logger

__root_logger: logging.Logger | None = None

ROOT_NAME = "appscope"


def _mode() -> str:
    settings = get_app_settings()
    if settings.TESTING:
        return "testing"
    if settings.PRODUCTION:
        return "production"
    return "development"


def get_logger(module: str | None = None) -> logging.Logger:
    """
    Return the application logger, or a child of it for `module`.

    The first call configures logging from the JSON file for the current mode
    (or `LOG_CONFIG_OVERRIDE`).

    Args:
        module (str | None, optional): Suffix for a child logger, e.g. "query".

    Returns:
        logging.Logger: The configured logger.
    """
    global __root_logger

    if __root_logger is None:
        settings = get_app_settings()
        configured_logger(
            mode=_mode(),
            config_override=settings.LOG_CONFIG_OVERRIDE,
            substitutions={"LOG_LEVEL": settings.LOG_LEVEL.upper()},
        )
        __root_logger = logging.getLogger(ROOT_NAME)

    if module is None:
        return __root_logger

    return __root_logger.getChild(module)

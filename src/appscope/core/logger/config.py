"""
Logging configuration for appscope.

Configurations live in JSON files next to this module, one per run mode
(production, development, testing). A custom file can replace them, and
`${NAME}` placeholders inside a file are substituted before it is parsed.
"""

import json
import logging
import pathlib
import typing
from logging import config as logging_config

__dir = pathlib.Path(__file__).parent
__conf: dict[str, typing.Any] | None = None

MODE_FILES = {
    "production": "logconf.prod.json",
    "development": "logconf.dev.json",
    "testing": "logconf.test.json",
}


def _log_config(path: pathlib.Path, substitutions: dict[str, str] | None = None) -> dict[str, typing.Any]:
    """
    Loads a logging configuration from a JSON file.

    Args:
        path (pathlib.Path): The path to the JSON configuration file.
        substitutions (dict[str, str] | None, optional): Placeholder values applied
            to the raw file contents before parsing. Defaults to None.

    Returns:
        dict[str, typing.Any]: The loaded logging configuration.
    """
    with open(path) as file:
        contents = file.read()

    for key, value in (substitutions or {}).items():
        contents = contents.replace(f"${{{key}}}", value)

    return json.loads(contents)


def log_config() -> dict[str, typing.Any]:
    """
    Returns the current logging configuration.

    Raises:
        ValueError: If the logger has not been configured yet.
    """
    if __conf is None:
        raise ValueError("Logger not configured, must call configured_logger first")
    return __conf


def configured_logger(
    *,
    mode: str,
    config_override: pathlib.Path | None = None,
    substitutions: dict[str, str] | None = None,
) -> logging.Logger:
    """
    Configure logging for the given mode and return the root logger.

    Args:
        mode (str): One of "production", "development" or "testing".
        config_override (pathlib.Path, optional): A path to a custom logging config.
        substitutions (dict[str, str], optional): Placeholder values for the config file.

    Raises:
        ValueError: If `mode` is unknown and no override is given.
    """
    global __conf

    if config_override:
        __conf = _log_config(config_override, substitutions)
    elif mode in MODE_FILES:
        __conf = _log_config(__dir / MODE_FILES[mode], substitutions)
    else:
        raise ValueError(f"Invalid mode: {mode}")

    logging_config.dictConfig(config=__conf)
    return logging.getLogger()

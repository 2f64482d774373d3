"""Logging setup for applications embedding promptweave."""

from __future__ import annotations

import logging

from promptweave.config import LoggingSettings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers that are chatty at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "LiteLLM", "openai")


def setup_logging(verbose: bool = False, settings: LoggingSettings | None = None) -> None:
    """
    Configure root logging.

    Args:
        verbose: If True, enable DEBUG level logging regardless of settings
        settings: Optional logging settings from the loaded config
    """
    if verbose or (settings is not None and settings.verbose):
        log_level = logging.DEBUG
    elif settings is not None:
        log_level = getattr(logging, settings.level.upper())
    else:
        log_level = logging.INFO

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

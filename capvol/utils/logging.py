# -*- coding: utf-8 -*-
"""Logging helpers. The package is silent unless the application configures a handler."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

ROOT_LOGGER_NAME = "capvol"
_NULL_HANDLER = logging.NullHandler()


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    logger = logging.getLogger(name)
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not any(isinstance(handler, logging.NullHandler) for handler in root.handlers):
        root.addHandler(_NULL_HANDLER)
    return logger


def configure_logging(level: int = logging.INFO,
                      handlers: Optional[Iterable[logging.Handler]] = None,
                      format_string: Optional[str] = None) -> None:
    """
    Attach handlers to the capvol root logger.

    Parameters
    ----------
    level : int
        Level applied to the capvol root logger.
    handlers : iterable of logging.Handler, optional
        Handlers to attach. A StreamHandler is attached if none are given.
    format_string : str, optional
        Format applied to the attached handlers.
    """
    logger = get_logger(ROOT_LOGGER_NAME)
    logger.setLevel(level)

    if handlers is None:
        handlers = [logging.StreamHandler()]
    for handler in handlers:
        if format_string:
            handler.setFormatter(logging.Formatter(format_string))
        logger.addHandler(handler)


__all__ = ["ROOT_LOGGER_NAME", "configure_logging", "get_logger"]

"""Logging utilities for kube-typegen commands."""

from __future__ import annotations

import logging

_LOGGER_NAME = "kube_typegen"


def configure_logging(*, verbose: bool = False) -> logging.Logger:
    """Send package log records to stderr; DEBUG when verbose, WARNING otherwise."""
    level = logging.DEBUG if verbose else logging.WARNING
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset stream handlers so repeated CLI invocations do not duplicate output.
    for handler in list(logger.handlers):
        if isinstance(handler, logging.StreamHandler):
            logger.removeHandler(handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter("[kube-typegen] %(levelname)s %(message)s"))
    logger.addHandler(stream_handler)
    return logger

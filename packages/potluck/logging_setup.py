"""Logging for the sign-up client.

Every module logs under the ``"potluck"`` hierarchy (``potluck.sync``,
``potluck.remote``, ...). Nothing is printed until the CLI calls
:func:`configure_logging`; before that the hierarchy ends in a
``NullHandler`` so importing the package from a script or a test stays quiet.

The threshold comes from ``--log-level`` or ``POTLUCK_LOG_LEVEL``. A value
that names no level is ignored rather than aborting the session.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "potluck"
_DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_CONFIGURED = False


def _level_from_name(name: str) -> int | None:
    name = name.strip().upper()
    if name.isdigit():
        return int(name)
    numeric = getattr(logging, name, None)
    return numeric if isinstance(numeric, int) else None


def _parse_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        parsed = _level_from_name(level)
        if parsed is not None:
            return parsed
    env_val = os.getenv("POTLUCK_LOG_LEVEL")
    if env_val:
        parsed = _level_from_name(env_val)
        if parsed is not None:
            return parsed
    return logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Route ``potluck.*`` records to ``stream``; later calls are no-ops.

    ``level`` accepts a number, a numeric string or a name such as
    ``"debug"``. When it is missing or unrecognized, ``POTLUCK_LOG_LEVEL``
    is consulted, then ``INFO`` applies. Records do not propagate to the
    root logger, so a host that configured its own handlers sees each
    refresh and submission line once.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    # The placeholder installed by get_logger would otherwise stay in front.
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    resolved = _parse_level(level)
    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))

    logger.setLevel(resolved)
    logger.addHandler(handler)
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Logger for a ``potluck.<module>`` name."""

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger"]

"""Logging setup for the Asymfit command-line tools.

Library modules only call ``logging.getLogger(__name__)``.  Entry points call
:func:`get_logger` which installs one root handler and sets the level on the
project's own logger trees, so ``-v`` turns on the per-iteration DEBUG lines
of the minimizers without making numpy/scipy/pandas chatty.
"""
from __future__ import annotations

import logging

from typing import Optional

FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# top-level logger names used by this project
PACKAGE_LOGGERS = ("asymfit", "batch", "core", "fit", "infra", "uncertainty")

_configured = False


def _ensure_configured() -> None:
    global _configured
    if not _configured:
        logging.basicConfig(level=logging.INFO, format=FORMAT)
        _configured = True


def level_for(verbose: bool) -> int:
    return logging.DEBUG if verbose else logging.INFO


def set_level(level: int) -> None:
    """Apply ``level`` to every project logger; safe to call repeatedly."""

    _ensure_configured()
    for name in PACKAGE_LOGGERS:
        logging.getLogger(name).setLevel(level)


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """Return ``logging.getLogger(name)`` after configuring output.

    ``level`` is applied on every call that passes it, not only the first.
    """

    if level is None:
        _ensure_configured()
    else:
        set_level(level)
    return logging.getLogger(name)

"""Root logger setup for the ``remex`` console client.

The effective level comes from, in order: ``REMEX_LOG_LEVEL``, a truthy
``REMEX_DEBUG``, then the ``--debug`` flag or the ``debug_logging`` setting.
"""

from __future__ import annotations

import logging
import os
from typing import Mapping, Optional

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_DATEFMT = "%H:%M:%S"
_TRUTHY = {"1", "true", "yes", "on"}
# websocket-client traces every frame at DEBUG.
_NOISY_LOGGERS = ("websocket", "urllib3")


def _env_level(environ: Optional[Mapping[str, str]] = None) -> Optional[int]:
    env = os.environ if environ is None else environ
    raw = (env.get("REMEX_LOG_LEVEL") or "").strip()
    if raw:
        if raw.isdigit():
            return int(raw)
        level = logging.getLevelName(raw.upper())
        if isinstance(level, int):
            return level
    if (env.get("REMEX_DEBUG") or "").strip().lower() in _TRUTHY:
        return logging.DEBUG
    return None


def configure_root(debug: bool = False, environ: Optional[Mapping[str, str]] = None) -> int:
    """Install the console handler once and return the effective level."""
    level = _env_level(environ)
    if level is None:
        level = logging.DEBUG if debug else logging.INFO

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=_FORMAT, datefmt=_DATEFMT)
    root.setLevel(level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))
    return level


def env_debug(environ: Optional[Mapping[str, str]] = None) -> bool:
    """True when the environment alone forces DEBUG output."""
    level = _env_level(environ)
    return level is not None and level <= logging.DEBUG

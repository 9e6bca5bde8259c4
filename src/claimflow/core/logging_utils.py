"""Central logging utilities for the claim lifecycle service.

Every module obtains its logger through :func:`get_logger`, which makes sure
the root logger has been configured once with the shared format.

Key Features
------------
1. configure_logging(): idempotent initialization of the root logger.
2. get_logger(name): typed helper that always returns a configured logger.
"""

from __future__ import annotations

import logging
from typing import Final

from beartype import beartype

__all__: Final = [
    "configure_logging",
    "get_logger",
]

_DEFAULT_LOG_FORMAT: Final = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_is_configured: bool = False


@beartype
def configure_logging(
    *, level: int | str | None = None, fmt: str = _DEFAULT_LOG_FORMAT
) -> None:
    """Configure the root logger exactly once.

    Calling this function multiple times is safe: the handler and format are
    only installed on the first invocation, later calls may still change the
    root level.
    """
    global _is_configured
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    if _is_configured:
        if level is not None:
            logging.getLogger().setLevel(level)
        return

    logging.basicConfig(level=logging.INFO if level is None else level, format=fmt)
    _is_configured = True


@beartype
def get_logger(name: str | None = None, *, level: int | None = None) -> logging.Logger:
    """Return a module-scoped logger that is guaranteed to be configured."""
    configure_logging()
    logger = logging.getLogger(name or "claimflow")
    if level is not None:
        logger.setLevel(level)
    return logger

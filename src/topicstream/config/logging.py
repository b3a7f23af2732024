"""Shared logging helpers for topicstream."""

from __future__ import annotations

import logging

# Per-request chatter from the HTTP stack; only shown with --verbose.
_CHATTY_LOGGERS = ("httpx", "httpcore", "hishel", "alembic.runtime.migration")


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger with a terse format suitable for CLI output.

    Below DEBUG the HTTP and migration loggers are held at WARNING so a
    ``watch`` session prints one line per poll rather than one per request.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(level if level <= logging.DEBUG else logging.WARNING)

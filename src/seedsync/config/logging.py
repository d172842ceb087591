"""Root logger setup for the command line."""

from __future__ import annotations

import logging

# alembic announces its context on every startup; SQL is echoed through the engine instead
_LIBRARY_LOGGERS = ("alembic", "sqlalchemy")


def configure_logging(*, verbose: bool = False, force: bool = False) -> None:
    """Log sync phases at INFO, or chunk progress and library chatter with ``verbose``."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    for name in _LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET if verbose else logging.WARNING)

from __future__ import annotations

import logging

from oddish.core.config import settings


def configure_logging(level: str | None = None) -> logging.Logger:
    """Configure the ``oddish`` logger namespace.

    ``logging.basicConfig`` is a no-op when the root logger already has
    handlers (e.g. when uvicorn installs its own before the host app's
    lifespan runs).  Configuring the ``oddish`` namespace directly, with
    ``propagate = False``, keeps library logs on stdout regardless of how
    the host application set up the root logger.

    Safe to call more than once; the handler is only attached the first time.
    """
    name = (level or settings.log_level).upper()
    log_level = getattr(logging, name, logging.INFO)
    oddish_log = logging.getLogger("oddish")
    oddish_log.setLevel(log_level)
    if not oddish_log.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s")
        )
        oddish_log.addHandler(handler)
    oddish_log.propagate = False
    return oddish_log

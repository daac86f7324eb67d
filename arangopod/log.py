"""Logging helpers for arangopod.

Modules log through ``logging.getLogger(__name__)``. Debug tracing of the
driver traffic is switched on with :func:`set_debug`, which raises the
``arangopod`` and ``arango`` (python-arango) loggers to DEBUG.
"""

import logging
from typing import Optional

TRACED_LOGGERS = ("arangopod", "arango")

_handler: Optional[logging.Handler] = None


def set_debug(enabled: bool, handler: Optional[logging.Handler] = None) -> None:
    """Enable or disable debug tracing.

    Args:
        enabled: Whether to trace at DEBUG level
        handler: Handler to install. Defaults to a stream handler, installed
            only once.
    """
    global _handler

    if enabled:
        if _handler is None:
            _handler = handler or logging.StreamHandler()
            _handler.setFormatter(
                logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s")
            )
            for name in TRACED_LOGGERS:
                logging.getLogger(name).addHandler(_handler)
        for name in TRACED_LOGGERS:
            logging.getLogger(name).setLevel(logging.DEBUG)
    else:
        for name in TRACED_LOGGERS:
            logger = logging.getLogger(name)
            logger.setLevel(logging.NOTSET)
            if _handler is not None:
                logger.removeHandler(_handler)
        _handler = None


def is_debug() -> bool:
    return logging.getLogger("arangopod").level == logging.DEBUG

"""
Logging setup shared by the HTTP handlers, the Lambda entrypoint and the scripts.
"""

import logging
import sys

_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Request-line loggers that would echo signed log download URLs at INFO.
_QUIET_LOGGERS = ("httpx", "httpcore")


def configure_logging(level: str = "INFO") -> None:
    """Apply one format and level to the root logger.

    The Lambda runtime attaches its own root handler before the entrypoint is
    imported, which turns ``basicConfig`` into a no-op; in that case the
    existing handlers are reformatted instead.
    """
    root = logging.getLogger()
    if root.handlers:
        for handler in root.handlers:
            handler.setFormatter(logging.Formatter(_FORMAT))
        root.setLevel(level.upper())
    else:
        logging.basicConfig(level=level.upper(), format=_FORMAT, stream=sys.stdout)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ["configure_logging"]

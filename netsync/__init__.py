"""Network/asset-record synchronisation.

Discovers devices and interfaces via SNMP, reconciles them against an
asset-management record source (SQL table or CSV file) and writes the
reconciled interface information back onto the devices.
"""

__version__ = "2.0.0"

import os
import sys
from typing import Any, Callable, Dict

from loguru import logger as glogger

glogger.disable(__name__)


def _loguru_skiplog_filter(record: dict) -> bool:  # type: ignore[type-arg]
    """Filter function to hide records with ``extra['skiplog']`` set.

    Channel records written through :func:`netsync.scribe.note` carry
    ``extra['channel']``; below WARNING they only go to their channel file.
    """
    extra = record.get("extra", {})
    if extra.get("skiplog", False):
        return False
    if extra.get("channel") and record["level"].no < 30:
        return False
    return True


def configure_logging(
    loguru_filter: Callable[[Dict[str, Any]], bool] = _loguru_skiplog_filter,
    level: str | None = None,
) -> None:
    """Configure a default ``loguru`` sink with a convenient format and filter."""
    os.environ["LOGURU_LEVEL"] = level or os.getenv("LOGURU_LEVEL", "INFO")
    glogger.remove()
    logger_fmt: str = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{module}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
    )
    glogger.add(sys.stderr, level=os.getenv("LOGURU_LEVEL"), format=logger_fmt, filter=loguru_filter)  # type: ignore[arg-type]
    glogger.configure(extra={"skiplog": False, "channel": None})
    glogger.enable(__name__)


from netsync.exceptions import (  # noqa: E402
    ConfigurationError,
    IncompatibleSourceError,
    NetsyncError,
    NodeListError,
    SnmpError,
)

__all__ = [
    "__version__",
    "glogger",
    "configure_logging",
    "NetsyncError",
    "ConfigurationError",
    "IncompatibleSourceError",
    "NodeListError",
    "SnmpError",
]

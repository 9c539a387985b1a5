from __future__ import annotations

import logging
import sys

from app.core.configuration import application_settings

LOG_FORMAT = "%(asctime)s level=%(levelname)s logger=%(name)s msg=%(message)s"


def configure_logging(level: str | None = None) -> int:
    """Configure root logging for the storefront service.

    - key=value lines on stdout
    - level from `level`, else the LOG_LEVEL setting; unknown names fall back to INFO
    - a second call only adjusts the level, handlers are never stacked

    Returns the numeric level applied.
    """

    name = (level or application_settings.log_level).upper().strip()
    resolved = logging.getLevelName(name)
    if not isinstance(resolved, int):
        resolved = logging.INFO

    root = logging.getLogger()
    root.setLevel(resolved)
    if root.handlers:
        return resolved

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    return resolved

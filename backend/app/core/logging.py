from __future__ import annotations

import logging

from app.core.config import Settings
from app.core.exceptions import ConfigurationError

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(settings: Settings) -> None:
    level = logging.getLevelName(settings.log_level.strip().upper())
    if not isinstance(level, int):
        raise ConfigurationError(f"Unknown log level {settings.log_level!r}")

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    root.setLevel(level)

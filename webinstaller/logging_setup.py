from __future__ import annotations

import logging

from flask import Flask

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"


def build_formatter() -> logging.Formatter:
    return logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)


def configure_logging(app: Flask) -> None:
    """Attach a single console handler to the ``webinstaller`` logger.

    Safe to call once per application; repeated calls (several apps built in
    the same process, as the test-suite does) do not stack handlers.
    """

    level = logging.getLevelName(str(app.config.get("INSTALLER_LOG_LEVEL", "INFO")).upper())
    if not isinstance(level, int):
        level = logging.INFO

    logger = logging.getLogger("webinstaller")
    logger.setLevel(level)

    if getattr(logger, "_webinstaller_configured", False):
        return

    console = logging.StreamHandler()
    console.setFormatter(build_formatter())
    logger.addHandler(console)
    setattr(logger, "_webinstaller_configured", True)

    logger.debug("Logging initialized (level=%s)", logging.getLevelName(level))

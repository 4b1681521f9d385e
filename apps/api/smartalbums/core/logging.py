"""Shared logging configuration."""

import logging

from smartalbums.core.config import Settings


def configure_logging(settings: Settings, component: str = "smartalbums") -> logging.Logger:
    log_level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        datefmt="%H:%M:%S",
    )

    # Suppress noisy third-party loggers (even in debug mode)
    for name in ("httpx", "httpcore", "sqlalchemy.engine"):
        logging.getLogger(name).setLevel(logging.WARNING)

    return logging.getLogger(component)

"""Logging setup for host applications embedding the studio core."""

from __future__ import annotations

import logging
import sys

from studio.config import Settings, settings as default_settings


def resolve_level(config: Settings) -> int:
    if config.debug:
        return logging.DEBUG
    return getattr(logging, config.log_level.upper(), logging.INFO)


def setup_logging(config: Settings | None = None) -> None:
    """Configure the root logger from ``config.log_level``.

    The core itself only calls ``logging.getLogger(__name__)``; handlers are
    the host's business, this is a convenience for scripts and REPL use.
    """
    config = config or default_settings
    logging.basicConfig(
        level=resolve_level(config),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

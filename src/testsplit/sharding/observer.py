"""Progress reporting hooks for split tasks."""

from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class SplitObserver(Protocol):
    """Receives progress and diagnostic messages from a split task."""

    def info(self, message: str) -> None:
        """Progress message (inventory size, files being written)."""
        ...

    def warning(self, message: str) -> None:
        """Non-fatal diagnostic such as an unknown group name."""
        ...


class LoggingObserver:
    """Default observer: forwards messages to the ``logging`` module."""

    def info(self, message: str) -> None:
        logger.info("%s", message)

    def warning(self, message: str) -> None:
        logger.warning("%s", message)

"""
Run log for a single import.

Every heuristic decision made during an import (which row became the header,
which layout was used, each fuzzy match, each validation mismatch) is kept in
order so it can be returned to the uploader, and mirrored to the standard
logger.
"""

from __future__ import annotations

import logging
from typing import Iterator, List, Optional

logger = logging.getLogger(__name__)


class RunLog:
    """Ordered, human-readable decision log for one import run."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.messages: List[str] = []
        self._logger = log or logger

    def info(self, message: str) -> None:
        self.messages.append(message)
        self._logger.info(message)

    def warning(self, message: str) -> None:
        self.messages.append(message)
        self._logger.warning(message)

    def error(self, message: str) -> None:
        self.messages.append(message)
        self._logger.error(message)

    def debug(self, message: str) -> None:
        # Debug detail goes to the logger only
        self._logger.debug(message)

    def __iter__(self) -> Iterator[str]:
        return iter(self.messages)

    def __len__(self) -> int:
        return len(self.messages)

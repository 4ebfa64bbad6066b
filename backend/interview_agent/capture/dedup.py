from __future__ import annotations

import logging
import time
from typing import Callable

from interview_agent.rules import CAPTION_DEDUP_WINDOW_SEC, CAPTION_MIN_CHARS

logger = logging.getLogger("interview_agent.capture.dedup")


class CaptionDeduplicator:
    """Drops caption repeats: identical text inside the window, or text too short to matter."""

    def __init__(
        self,
        window_sec: float = CAPTION_DEDUP_WINDOW_SEC,
        min_chars: int = CAPTION_MIN_CHARS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.window_sec = max(0.0, float(window_sec))
        self.min_chars = max(0, int(min_chars))
        self._clock = clock
        self._last_text = ""
        self._last_ts = 0.0

    def accept(self, text: str) -> bool:
        normalized = str(text or "").strip()
        if len(normalized) < self.min_chars:
            return False

        now = self._clock()
        if normalized == self._last_text and now - self._last_ts < self.window_sec:
            logger.debug("Duplicate caption ignored")
            return False

        self._last_text = normalized
        self._last_ts = now
        return True

    def reset(self) -> None:
        self._last_text = ""
        self._last_ts = 0.0

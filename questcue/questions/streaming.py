"""Early question signals from partial transcript fragments."""

import time
import logging
from collections import deque
from typing import Callable, Optional

from . import patterns

logger = logging.getLogger(__name__)


class StreamingQuestionDetector:
    """Scans streaming transcript fragments for question-like text.

    Both signals are advisory: they shorten perceived latency but never
    produce question records. Not thread-safe.
    """

    def __init__(
        self,
        check_interval_ms: float = 200.0,
        max_buffer_chars: int = 500,
        recent_fragment_limit: int = 15,
        hint_hold_ms: float = 2500.0,
        clock: Callable[[], float] = time.monotonic,
        question_callback: Optional[Callable[[str], None]] = None,
    ):
        """Initialize the detector.

        Args:
            check_interval_ms: Minimum time between two pattern scans
            max_buffer_chars: Rolling buffer capacity, oldest text dropped first
            recent_fragment_limit: Number of fragments kept for activity hints
            hint_hold_ms: How long a recent-activity hit keeps reporting True
            clock: Monotonic clock returning seconds
            question_callback: Called with the matched buffer text on detection
        """
        self.check_interval_ms = check_interval_ms
        self.max_buffer_chars = max_buffer_chars
        self.hint_hold_ms = hint_hold_ms
        self.clock = clock
        self.question_callback = question_callback

        self.streaming_buffer = ''
        self.recent_fragments: deque = deque(maxlen=recent_fragment_limit)
        self.last_check_ms: Optional[float] = None
        self.last_hint_ms: Optional[float] = None

    def check_fragment(self, text: str) -> bool:
        """Append a partial transcript and test the rolling buffer for a question.

        Scans run at most once per check interval; calls inside the interval
        only buffer the text and return False.
        """
        now_ms = self._now_ms()

        self.streaming_buffer += ' ' + (text or '')
        if len(self.streaming_buffer) > self.max_buffer_chars:
            self.streaming_buffer = self.streaming_buffer[-self.max_buffer_chars:]

        if self.last_check_ms is not None and now_ms - self.last_check_ms < self.check_interval_ms:
            return False
        self.last_check_ms = now_ms

        streaming_text = self.streaming_buffer.lower().strip()
        for pattern in patterns.STREAMING_PATTERNS:
            if pattern.search(streaming_text):
                logger.debug(f"Streaming question pattern {pattern.pattern!r} matched")
                self.streaming_buffer = ''
                self._notify(streaming_text)
                return True
        return False

    def feed_recent_fragment(self, text: str) -> None:
        """Remember a fragment for the recent-activity signal."""
        if not text or not text.strip():
            return
        self.recent_fragments.append(text.lower())

    def has_recent_activity(self) -> bool:
        """True if recent fragments suggest a question is being asked."""
        now_ms = self._now_ms()
        if self.last_hint_ms is not None and now_ms - self.last_hint_ms < self.hint_hold_ms:
            return True

        recent_text = ' '.join(self.recent_fragments).lower()
        if any(hint in recent_text for hint in patterns.QUICK_HINT_PATTERNS):
            self.last_hint_ms = now_ms
            return True
        return False

    def clear(self) -> None:
        """Clear all buffers and timers."""
        self.streaming_buffer = ''
        self.recent_fragments.clear()
        self.last_check_ms = None
        self.last_hint_ms = None

    def _notify(self, matched_text: str) -> None:
        if self.question_callback is None:
            return
        try:
            self.question_callback(matched_text)
        except Exception as e:
            logger.warning(f"Streaming question observer failed: {e}")

    def _now_ms(self) -> float:
        return self.clock() * 1000.0

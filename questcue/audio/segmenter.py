"""Adaptive, content-aware chunk segmentation of a continuous audio stream."""

import time
import uuid
import logging
from collections import deque
from dataclasses import fields, replace
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from ..models.audio import (
    AudioChunk,
    AudioFrame,
    ChunkingConfig,
    ChunkingDecision,
    ChunkReason,
    ContentAnalysis,
    SegmenterState,
)
from . import analysis

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 10
MULTIPLIER_WINDOW = 5
MIN_MULTIPLIER = 0.7
MAX_MULTIPLIER = 1.3
MULTIPLIER_STEP = 0.1
MS_PER_WORD = 600.0


class AdaptiveChunkSegmenter:
    """Decides when buffered audio should become a chunk.

    Each ``append`` returns an advisory ChunkingDecision. The buffer is only
    cleared by an explicit ``finalize_chunk`` call, so callers are free to
    ignore a decision or defer materialization.

    Not thread-safe: frames must be appended from a single writer.
    """

    def __init__(
        self,
        config: Optional[ChunkingConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        analysis_callback: Optional[Callable[[ContentAnalysis], None]] = None,
        chunk_callback: Optional[Callable[[AudioChunk], None]] = None,
        **overrides: Any,
    ):
        """Initialize the segmenter.

        Args:
            config: Base configuration, defaults to ChunkingConfig()
            clock: Monotonic clock returning seconds
            analysis_callback: Called with every ContentAnalysis pushed to history
            chunk_callback: Called with every finalized AudioChunk
            **overrides: Individual ChunkingConfig fields to override
        """
        self.config = config or ChunkingConfig()
        if overrides:
            self.config = self._merge_config(self.config, overrides)

        self.clock = clock
        self.analysis_callback = analysis_callback
        self.chunk_callback = chunk_callback

        self.audio_buffer: List[AudioFrame] = []
        self.buffered_samples = 0
        self.content_history: deque = deque(maxlen=HISTORY_LIMIT)
        self.adaptive_multiplier = 1.0

        self.in_silence = False
        self.silence_start_ms = 0.0
        self.last_chunk_ms = self._now_ms()

        logger.info(f"AdaptiveChunkSegmenter initialized with config: {self.config}")

    def append(self, frame) -> ChunkingDecision:
        """Buffer a frame and decide whether the buffer should become a chunk.

        Args:
            frame: AudioFrame or any sequence of float samples

        Returns:
            ChunkingDecision for the buffer including this frame
        """
        if not isinstance(frame, AudioFrame):
            frame = AudioFrame.from_samples(frame, sample_rate=self.config.sample_rate)

        self.audio_buffer.append(frame)
        self.buffered_samples += len(frame)
        now_ms = self._now_ms()

        quick_decision = self._quick_decision(frame, now_ms)
        if quick_decision.should_chunk:
            logger.debug(f"Fast-path chunk decision: {quick_decision.reason.value} "
                         f"at {self.buffered_duration_ms:.0f}ms")
            return quick_decision

        content = self._analyze_content(now_ms)
        self.content_history.append(content)
        self._update_silence_tracking(content, now_ms)

        decision = self._make_decision(content, now_ms)
        self._notify(self.analysis_callback, content)

        if decision.should_chunk:
            logger.debug(f"Chunk decision: {decision.reason.value} "
                         f"(confidence {decision.confidence:.2f}) at {self.buffered_duration_ms:.0f}ms")
        return decision

    def finalize_chunk(self) -> Optional[AudioChunk]:
        """Materialize the buffered frames into an AudioChunk and clear the buffer.

        Returns:
            The new chunk, or None if nothing is buffered
        """
        if not self.audio_buffer:
            return None

        samples = np.concatenate([frame.samples for frame in self.audio_buffer]).astype(np.float32)
        duration_ms = self._samples_to_ms(len(samples))
        chunk = AudioChunk(
            chunk_id=self._generate_chunk_id(),
            samples=samples,
            timestamp=time.time(),
            duration_ms=duration_ms,
            estimated_word_count=int(duration_ms // MS_PER_WORD),
            sample_rate=self.config.sample_rate,
        )

        self.audio_buffer = []
        self.buffered_samples = 0
        self.last_chunk_ms = self._now_ms()
        self.in_silence = False
        self.silence_start_ms = 0.0

        self._update_adaptive_multiplier()

        logger.info(f"Created chunk {chunk.chunk_id}: {chunk.duration_ms:.0f}ms, "
                    f"~{chunk.estimated_word_count} words, {len(samples)} samples")
        self._notify(self.chunk_callback, chunk)
        return chunk

    def get_state(self) -> SegmenterState:
        """Get current state for monitoring."""
        return SegmenterState(
            buffered_frame_count=len(self.audio_buffer),
            buffered_duration_ms=self.buffered_duration_ms,
            in_silence=self.in_silence,
            current_silence_duration_ms=self._current_silence_ms(self._now_ms()),
            adaptive_multiplier=self.adaptive_multiplier,
            history_length=len(self.content_history),
        )

    def reset(self) -> None:
        """Clear all buffers, history and adaptation."""
        self.audio_buffer = []
        self.buffered_samples = 0
        self.content_history.clear()
        self.adaptive_multiplier = 1.0
        self.in_silence = False
        self.silence_start_ms = 0.0
        self.last_chunk_ms = self._now_ms()
        logger.info("AdaptiveChunkSegmenter reset")

    def get_config(self) -> ChunkingConfig:
        return self.config

    def update_config(self, changes: Dict[str, Any]) -> ChunkingConfig:
        """Merge a partial configuration; buffers and history are untouched."""
        self.config = self._merge_config(self.config, changes)
        logger.info(f"Segmenter configuration updated: {self.config}")
        return self.config

    @property
    def buffered_duration_ms(self) -> float:
        return self._samples_to_ms(self.buffered_samples)

    def _quick_decision(self, frame: AudioFrame, now_ms: float) -> ChunkingDecision:
        """Cheap checks on the newest frame that can trigger a chunk immediately."""
        config = self.config
        current_ms = self.buffered_duration_ms

        if current_ms >= config.max_chunk_duration_ms * self.adaptive_multiplier:
            return ChunkingDecision(True, ChunkReason.MAX_SIZE, 1.0, 50)

        if analysis.rms(frame.samples) < config.silence_threshold_rms and self.in_silence:
            silence_ms = now_ms - self.silence_start_ms
            if (silence_ms >= config.silence_duration_ms * self.adaptive_multiplier
                    and current_ms >= config.min_chunk_duration_ms * 0.7):
                return ChunkingDecision(True, ChunkReason.SILENCE, 0.95, 25)

        if current_ms >= config.min_chunk_duration_ms * 0.6:
            if analysis.detect_question_markers(frame.samples, config.sample_rate):
                return ChunkingDecision(True, ChunkReason.CONTENT, 0.9, 50)

        return ChunkingDecision(False, ChunkReason.CONTENT, 0.0, 100)

    def _make_decision(self, content: ContentAnalysis, now_ms: float) -> ChunkingDecision:
        config = self.config
        current_ms = self.buffered_duration_ms
        since_last_chunk_ms = now_ms - self.last_chunk_ms

        adaptive_min = config.min_chunk_duration_ms * self.adaptive_multiplier
        adaptive_max = config.max_chunk_duration_ms * self.adaptive_multiplier
        adaptive_silence = config.silence_duration_ms * self.adaptive_multiplier

        if content.silence_duration_ms >= adaptive_silence and current_ms >= adaptive_min:
            return ChunkingDecision(True, ChunkReason.SILENCE, 0.95, 50)

        if content.has_question_markers and current_ms >= adaptive_min * 0.7:
            return ChunkingDecision(True, ChunkReason.CONTENT, 0.9, 75)

        if current_ms >= adaptive_max:
            return ChunkingDecision(True, ChunkReason.MAX_SIZE, 1.0, 100)

        if current_ms >= adaptive_min:
            score = self.content_score(content)
            if score >= config.content_confidence_threshold:
                return ChunkingDecision(True, ChunkReason.CONTENT, score, 150)

        if since_last_chunk_ms >= adaptive_max * 1.2:
            return ChunkingDecision(True, ChunkReason.DURATION, 0.7, 200)

        suggested_delay = min(100.0, max(50.0, adaptive_min - current_ms))
        return ChunkingDecision(False, ChunkReason.CONTENT, 0.0, suggested_delay)

    def content_score(self, content: ContentAnalysis) -> float:
        """Weighted likelihood that the buffer ends at a natural break."""
        score = 0.0
        if content.has_question_markers:
            score += 0.5
        if content.speech_density < 0.3:
            score += 0.3
        if content.energy_variance < 0.1:
            score += 0.25
        if content.silence_duration_ms > self.config.silence_duration_ms * 0.4:
            score += 0.35
        score += self.historical_pattern_score() * 0.25
        if content.has_question_markers and content.silence_duration_ms > 0:
            score += 0.2
        return min(score, 1.0)

    def historical_pattern_score(self) -> float:
        """Score trends over the last three analyses."""
        if len(self.content_history) < 3:
            return 0.0

        recent = list(self.content_history)[-3:]
        pairs = list(zip(recent, recent[1:]))
        score = 0.0

        # Growing silence suggests a natural break
        if all(later.silence_duration_ms >= earlier.silence_duration_ms for earlier, later in pairs):
            score += 0.3
        # Thinning speech suggests the end of an utterance
        if all(later.speech_density <= earlier.speech_density for earlier, later in pairs):
            score += 0.2
        if any(item.has_question_markers for item in recent):
            score += 0.5

        return min(score, 1.0)

    def _analyze_content(self, now_ms: float) -> ContentAnalysis:
        window = self._recent_samples()
        return analysis.analyze_window(
            window,
            self.config.sample_rate,
            self.config.silence_threshold_rms,
            silence_duration_ms=self._current_silence_ms(now_ms),
        )

    def _recent_samples(self) -> np.ndarray:
        """Concatenate the trailing analysis window from the buffer."""
        window_samples = int(self.config.analysis_window_ms / 1000.0 * self.config.sample_rate)
        if window_samples <= 0 or not self.audio_buffer:
            return np.zeros(0, dtype=np.float32)

        pieces = []
        remaining = window_samples
        for frame in reversed(self.audio_buffer):
            if remaining <= 0:
                break
            take = min(remaining, len(frame))
            if take:
                pieces.append(frame.samples[len(frame) - take:])
            remaining -= take

        if not pieces:
            return np.zeros(0, dtype=np.float32)
        return np.concatenate(pieces[::-1])

    def _update_silence_tracking(self, content: ContentAnalysis, now_ms: float) -> None:
        is_silent = content.rms_level < self.config.silence_threshold_rms
        if is_silent and not self.in_silence:
            self.in_silence = True
            self.silence_start_ms = now_ms
        elif not is_silent and self.in_silence:
            self.in_silence = False
            self.silence_start_ms = 0.0

    def _update_adaptive_multiplier(self) -> None:
        """Nudge thresholds toward the recent speech density.

        Uses the trailing analyses regardless of which chunk they belonged to.
        """
        if len(self.content_history) < MULTIPLIER_WINDOW:
            return

        recent = list(self.content_history)[-MULTIPLIER_WINDOW:]
        avg_density = sum(item.speech_density for item in recent) / len(recent)

        if avg_density > 0.7:
            self.adaptive_multiplier = max(MIN_MULTIPLIER, round(self.adaptive_multiplier - MULTIPLIER_STEP, 2))
        elif avg_density < 0.3:
            self.adaptive_multiplier = min(MAX_MULTIPLIER, round(self.adaptive_multiplier + MULTIPLIER_STEP, 2))

        logger.debug(f"Adaptive multiplier: {self.adaptive_multiplier} (avg density {avg_density:.2f})")

    def _current_silence_ms(self, now_ms: float) -> float:
        return now_ms - self.silence_start_ms if self.in_silence else 0.0

    def _samples_to_ms(self, sample_count: int) -> float:
        if self.config.sample_rate <= 0:
            return 0.0
        return sample_count / self.config.sample_rate * 1000.0

    def _now_ms(self) -> float:
        return self.clock() * 1000.0

    @staticmethod
    def _generate_chunk_id() -> str:
        return f"chunk_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"

    @staticmethod
    def _merge_config(config: ChunkingConfig, changes: Dict[str, Any]) -> ChunkingConfig:
        known = {f.name for f in fields(ChunkingConfig)}
        unknown = set(changes) - known
        if unknown:
            logger.warning(f"Ignoring unknown segmenter config keys: {sorted(unknown)}")
        return replace(config, **{key: value for key, value in changes.items() if key in known})

    @staticmethod
    def _notify(callback: Optional[Callable], payload: Any) -> None:
        if callback is None:
            return
        try:
            callback(payload)
        except Exception as e:
            logger.warning(f"Segmenter observer failed: {e}")

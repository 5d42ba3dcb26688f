"""Audio-related data models."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np


@dataclass(frozen=True)
class ChunkingConfig:
    """Tunable thresholds for the adaptive chunk segmenter.

    All durations are in milliseconds. Values are not range-checked.
    """
    sample_rate: int = 16000
    min_chunk_duration_ms: float = 500.0
    max_chunk_duration_ms: float = 5000.0
    silence_threshold_rms: float = 0.01
    silence_duration_ms: float = 800.0
    analysis_window_ms: float = 1000.0
    content_confidence_threshold: float = 0.7


@dataclass(frozen=True, eq=False)
class AudioFrame:
    """A contiguous block of mono float samples."""
    samples: np.ndarray
    sample_rate: int = 16000
    timestamp: Optional[float] = None  # Capture time, if known

    def __post_init__(self):
        # Frames own a read-only copy of their samples
        if self.samples is None:
            data = np.zeros(0, dtype=np.float32)
        else:
            data = np.array(self.samples, dtype=np.float32, copy=True).reshape(-1)
        data.setflags(write=False)
        object.__setattr__(self, 'samples', data)

    @classmethod
    def from_samples(cls, samples, sample_rate: int = 16000,
                     timestamp: Optional[float] = None) -> "AudioFrame":
        """Build a frame from any sample sequence, coercing to float32. None is an empty frame."""
        return cls(samples=samples, sample_rate=sample_rate, timestamp=timestamp)

    def __len__(self) -> int:
        return int(self.samples.shape[0])

    @property
    def duration_ms(self) -> float:
        if self.sample_rate <= 0:
            return 0.0
        return len(self) / self.sample_rate * 1000.0


@dataclass(eq=False)
class AudioChunk:
    """A finalized span of audio handed off for transcription."""
    chunk_id: str
    samples: np.ndarray
    timestamp: float  # Unix timestamp when the chunk was finalized
    duration_ms: float
    estimated_word_count: int
    sample_rate: int = 16000

    def to_pcm16(self) -> bytes:
        """Convert samples to little-endian 16-bit PCM bytes."""
        clipped = np.clip(self.samples.astype(np.float64), -1.0, 1.0)
        scaled = np.where(clipped < 0, clipped * 32768.0, clipped * 32767.0)
        pcm = np.floor(scaled).astype('<i2')
        return pcm.tobytes()


@dataclass(frozen=True)
class ContentAnalysis:
    """Snapshot of the trailing analysis window."""
    rms_level: float = 0.0
    silence_duration_ms: float = 0.0
    speech_density: float = 0.0
    energy_variance: float = 0.0
    has_question_markers: bool = False


class ChunkReason(Enum):
    """Why a chunking decision was (or was not) made."""
    SILENCE = "silence"
    DURATION = "duration"
    CONTENT = "content"
    MAX_SIZE = "maxSize"


@dataclass(frozen=True)
class ChunkingDecision:
    """Advisory result of appending a frame. Does not clear the buffer."""
    should_chunk: bool
    reason: ChunkReason
    confidence: float
    suggested_delay_ms: float


@dataclass(frozen=True)
class SegmenterState:
    """Monitoring snapshot of the segmenter."""
    buffered_frame_count: int
    buffered_duration_ms: float
    in_silence: bool
    current_silence_duration_ms: float
    adaptive_multiplier: float
    history_length: int

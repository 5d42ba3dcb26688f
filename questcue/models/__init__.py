"""Data models for the QuestCue core."""

from .audio import (
    AudioChunk,
    AudioFrame,
    ChunkingConfig,
    ChunkingDecision,
    ChunkReason,
    ContentAnalysis,
    SegmenterState,
)
from .transcription import TranscriptionResult
from .question import DetectedQuestion, QuestionSpan

__all__ = [
    "AudioChunk",
    "AudioFrame",
    "ChunkingConfig",
    "ChunkingDecision",
    "ChunkReason",
    "ContentAnalysis",
    "SegmenterState",
    "TranscriptionResult",
    "DetectedQuestion",
    "QuestionSpan",
]

"""Transcription-related data models."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class TranscriptionResult:
    """Result of transcribing one finalized audio chunk."""
    transcription_id: str
    text: str
    timestamp: float
    confidence: float
    chunk_id: Optional[str] = None  # Chunk the text was transcribed from
    service: str = "unknown"
    language: str = "ja-JP"

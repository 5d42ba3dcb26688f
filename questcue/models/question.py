"""Question-related data models."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class QuestionSpan:
    """Best-effort question located inside a transcript by a collaborator."""
    text: str
    timestamp: float
    confidence: float


@dataclass
class DetectedQuestion:
    """A question extracted from a transcript, with its canonical form."""
    question_id: str
    raw_text: str
    refined_text: str
    timestamp: float
    confidence: float
    source_id: Optional[str] = None  # TranscriptionResult the question came from

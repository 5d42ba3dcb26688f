"""Interfaces of the collaborators the question refiner consumes."""

from typing import Optional, Protocol

from ..models.question import QuestionSpan
from ..models.transcription import TranscriptionResult


class QuestionSpanLocator(Protocol):
    """Locates the single most likely question inside a transcript."""

    def detect_question(self, transcription: TranscriptionResult) -> Optional[QuestionSpan]:
        """Return the question span, or None if no question was found."""
        ...


class QuestionValidator(Protocol):
    """Decides whether a candidate span is a question worth answering."""

    def is_valid_question(self, candidate: QuestionSpan) -> bool:
        ...

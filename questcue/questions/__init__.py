"""Question detection module for QuestCue."""

from .base import QuestionSpanLocator, QuestionValidator
from .streaming import StreamingQuestionDetector
from .refiner import QuestionRefiner
from .publisher import QuestionPublisher
from .patterns import looks_like_question

__all__ = [
    "QuestionSpanLocator",
    "QuestionValidator",
    "StreamingQuestionDetector",
    "QuestionRefiner",
    "QuestionPublisher",
    "looks_like_question",
]

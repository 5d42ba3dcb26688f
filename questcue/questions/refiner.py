"""Splits finalized transcripts into questions and refines them to a canonical form."""

import uuid
import logging
from typing import List, Optional

from ..models.question import DetectedQuestion, QuestionSpan
from ..models.transcription import TranscriptionResult
from .base import QuestionSpanLocator, QuestionValidator
from . import patterns

logger = logging.getLogger(__name__)

MIN_TRANSCRIPT_CHARS = 3
MIN_CANDIDATE_CHARS = 2
MAX_PREFACE_STRIPS = 3


class QuestionRefiner:
    """Extracts zero or more questions from one transcription result.

    Candidates are handled independently: a failure while refining one of
    them falls back to its unrefined text and never aborts the batch.
    """

    def __init__(self, span_locator: Optional[QuestionSpanLocator] = None,
                 validator: Optional[QuestionValidator] = None):
        """Initialize question refiner.

        Args:
            span_locator: Optional collaborator that narrows the transcript to one question
            validator: Optional collaborator predicate accepting candidate questions
        """
        self.span_locator = span_locator
        self.validator = validator

    def extract_questions(self, transcription: TranscriptionResult) -> List[DetectedQuestion]:
        """Detect, validate and refine the questions in a transcript.

        Args:
            transcription: Finalized transcription of one audio chunk

        Returns:
            Questions in source order, possibly empty
        """
        text = transcription.text or ''
        if len(text.strip()) < MIN_TRANSCRIPT_CHARS:
            return []

        span = self._locate_span(transcription)
        base_text = span.text if span else text
        timestamp = span.timestamp if span else transcription.timestamp
        confidence = span.confidence if span else transcription.confidence

        questions = []
        for part in self.split_into_questions(base_text):
            core = self.trim_preface(part).strip()
            if len(core) < MIN_CANDIDATE_CHARS:
                continue

            candidate = QuestionSpan(text=core, timestamp=timestamp, confidence=confidence)
            if not (self._is_valid(candidate) or patterns.looks_like_question(core)):
                continue

            questions.append(DetectedQuestion(
                question_id=str(uuid.uuid4()),
                raw_text=core,
                refined_text=self._safe_refine(core),
                timestamp=timestamp,
                confidence=confidence,
                source_id=transcription.transcription_id,
            ))

        if questions:
            logger.debug(f"Extracted {len(questions)} question(s) from {transcription.transcription_id}")
        return questions

    def split_into_questions(self, text: str) -> List[str]:
        """Split a transcript into question-like parts, preserving order."""
        if not text:
            return []

        parts = [p.strip() for p in patterns.SENTENCE_SPLIT.split(text)]
        parts = [p for p in parts if p]

        refined_parts = []
        for part in parts:
            pieces = [p.strip() for p in patterns.QUESTION_MARK_SPLIT.split(part)]
            pieces = [p for p in pieces if p]
            if len(pieces) > 1:
                refined_parts.extend(pieces)
            else:
                refined_parts.append(part)

        final_parts = []
        for part in refined_parts:
            sub_parts = [part]
            for connector in patterns.CONNECTORS:
                sub_parts = [s.strip() for sp in sub_parts for s in sp.split(connector) if s.strip()]
            final_parts.extend(sub_parts)

        candidates = []
        for part in final_parts:
            part = patterns.EDGE_SEPARATORS.sub('', part).strip()
            if len(part) < MIN_CANDIDATE_CHARS:
                continue
            if patterns.looks_like_question(part) or patterns.has_question_ending(part):
                candidates.append(part)
        return candidates

    def trim_preface(self, text: str) -> str:
        """Remove leading filler before the core question."""
        trimmed = text.strip()
        if not trimmed or patterns.TOPIC_RETAINED.search(trimmed):
            return trimmed

        for _ in range(MAX_PREFACE_STRIPS):
            stripped = patterns.LEADING_PREFACE.sub('', trimmed, count=1).strip()
            if stripped == trimmed:
                break
            trimmed = stripped
        return trimmed

    def refine(self, text: str) -> str:
        """Reduce a question to its canonical form.

        Falls back to ``text`` when filler removal leaves too little behind.
        """
        refined = text.lower().strip()

        words = [w for w in patterns.TOKEN_SPLIT.split(refined) if w]
        cleaned = [w for w in words if w not in patterns.FILLER_WORDS]

        deduplicated = []
        last_word = ''
        for word in cleaned:
            if word != last_word or word not in patterns.FILLER_WORDS:
                deduplicated.append(word)
            last_word = word

        refined = ' '.join(deduplicated).strip()
        refined = patterns.TRAILING_PUNCTUATION.sub('', refined)
        refined = patterns.TRAILING_POLITENESS.sub('', refined)

        if not refined.endswith(('？', '?')):
            if patterns.contains_question_starter(refined) or patterns.looks_like_question(refined):
                refined += '？'

        if refined and patterns.LEADING_LATIN.match(refined[0]):
            refined = refined[0].upper() + refined[1:]

        if len(refined) < 3 or len(refined.replace('？', '').replace('?', '').strip()) < 2:
            return text
        return refined

    def _safe_refine(self, text: str) -> str:
        try:
            return self.refine(text)
        except Exception as e:
            logger.warning(f"Refinement failed, keeping raw text: {e}")
            return text

    def _locate_span(self, transcription: TranscriptionResult) -> Optional[QuestionSpan]:
        if self.span_locator is None:
            return None
        try:
            return self.span_locator.detect_question(transcription)
        except Exception as e:
            logger.warning(f"Question span lookup failed for {transcription.transcription_id}: {e}")
            return None

    def _is_valid(self, candidate: QuestionSpan) -> bool:
        if self.validator is None:
            return False
        try:
            return bool(self.validator.is_valid_question(candidate))
        except Exception as e:
            logger.warning(f"Question validator failed: {e}")
            return False

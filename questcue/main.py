"""Offline runner: segment a WAV file and detect questions in a transcript."""

import sys
import time
import uuid
import wave
import argparse
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

import numpy as np
from rich.console import Console
from rich.table import Table

from questcue.audio.analysis import has_significant_audio
from questcue.audio.analysis_pub import AnalysisPublisher
from questcue.audio.segmenter import AdaptiveChunkSegmenter
from questcue.models.audio import AudioChunk, ChunkingConfig, ChunkReason
from questcue.models.transcription import TranscriptionResult
from questcue.questions.publisher import QuestionPublisher
from questcue.questions.refiner import QuestionRefiner
from questcue.questions.streaming import StreamingQuestionDetector

from .config import QuestCueConfig

logger = logging.getLogger(__name__)


@dataclass
class SegmentedChunk:
    """A finalized chunk together with the decision that produced it."""
    chunk: AudioChunk
    reason: Optional[ChunkReason]  # None when flushed at end of input
    significant: bool


def read_wav(path: str) -> Tuple[np.ndarray, int]:
    """Read a 16-bit WAV file as mono float32 samples in [-1, 1]."""
    with wave.open(path, 'rb') as wf:
        if wf.getsampwidth() != 2:
            raise ValueError(f"Only 16-bit PCM WAV files are supported: {path}")
        channels = wf.getnchannels()
        sample_rate = wf.getframerate()
        raw = wf.readframes(wf.getnframes())

    samples = np.frombuffer(raw, dtype='<i2').astype(np.float32) / 32768.0
    if channels > 1:
        samples = samples.reshape(-1, channels).mean(axis=1)
    return samples, sample_rate


def iter_frames(samples: np.ndarray, sample_rate: int, frame_ms: float) -> Iterator[np.ndarray]:
    frame_size = max(1, int(sample_rate * frame_ms / 1000.0))
    for start in range(0, len(samples), frame_size):
        yield samples[start:start + frame_size]


class StreamClock:
    """Monotonic clock driven by the amount of audio fed, for offline input."""

    def __init__(self):
        self.seconds = 0.0

    def advance(self, seconds: float) -> None:
        self.seconds += seconds

    def __call__(self) -> float:
        return self.seconds


def segment_samples(samples: np.ndarray, config: ChunkingConfig, frame_ms: float,
                    publisher: Optional[AnalysisPublisher] = None) -> List[SegmentedChunk]:
    """Feed samples through a fresh segmenter, finalizing on every positive decision."""
    clock = StreamClock()
    segmenter = AdaptiveChunkSegmenter(
        config,
        clock=clock,
        analysis_callback=publisher.get_analysis_callback() if publisher else None,
        chunk_callback=publisher.get_chunk_callback() if publisher else None,
    )

    results = []
    for frame in iter_frames(samples, config.sample_rate, frame_ms):
        clock.advance(len(frame) / config.sample_rate)
        decision = segmenter.append(frame)
        if decision.should_chunk:
            chunk = segmenter.finalize_chunk()
            if chunk is not None:
                results.append(SegmentedChunk(chunk, decision.reason, has_significant_audio(chunk.samples)))

    tail = segmenter.finalize_chunk()
    if tail is not None:
        results.append(SegmentedChunk(tail, None, has_significant_audio(tail.samples)))
    return results


def detect_questions(lines: List[str], refiner: QuestionRefiner,
                     detector: StreamingQuestionDetector,
                     publisher: Optional[QuestionPublisher] = None):
    """Run each transcript line through the pre-detector and the refiner.

    Returns:
        List of (line, early_signal, questions) tuples
    """
    report = []
    for line in lines:
        text = line.strip()
        if not text:
            continue
        detector.feed_recent_fragment(text)
        early = detector.check_fragment(text) or detector.has_recent_activity()

        transcription = TranscriptionResult(
            transcription_id=str(uuid.uuid4()),
            text=text,
            timestamp=time.time(),
            confidence=1.0,
            service="file",
        )
        questions = refiner.extract_questions(transcription)
        if publisher is not None:
            publisher.publish_questions(questions)
        report.append((text, early, questions))
    return report


def print_chunk_report(console: Console, chunks: List[SegmentedChunk]) -> None:
    table = Table(title="Audio chunks")
    table.add_column("#", justify="right")
    table.add_column("Chunk")
    table.add_column("Duration (ms)", justify="right")
    table.add_column("Words", justify="right")
    table.add_column("Reason")
    table.add_column("Speech")

    for i, item in enumerate(chunks, 1):
        table.add_row(
            str(i),
            item.chunk.chunk_id,
            f"{item.chunk.duration_ms:.0f}",
            str(item.chunk.estimated_word_count),
            item.reason.value if item.reason else "end",
            "yes" if item.significant else "silent",
        )
    console.print(table)


def print_question_report(console: Console, report) -> None:
    table = Table(title="Transcript questions")
    table.add_column("Utterance")
    table.add_column("Early", justify="center")
    table.add_column("Questions")

    for text, early, questions in report:
        refined = "\n".join(q.refined_text for q in questions) or "-"
        table.add_row(text, "?" if early else "", refined)
    console.print(table)


class Runner:

    def __init__(self, config_path: Optional[str], log_level: Optional[str] = None):
        self.config = QuestCueConfig(config_path) if config_path else None
        level = log_level or (self.config.get('logging.level', 'INFO') if self.config else 'INFO')
        setup_logging(self.config, level)
        self.console = Console()

    def chunking_config(self) -> ChunkingConfig:
        return self.config.get_chunking_config() if self.config else ChunkingConfig()

    def run(self, audio_path: Optional[str], transcript_path: Optional[str], frame_ms: float) -> None:
        if audio_path:
            samples, sample_rate = read_wav(audio_path)
            config = self.chunking_config()
            if sample_rate != config.sample_rate:
                logger.info(f"Using WAV sample rate {sample_rate}Hz instead of {config.sample_rate}Hz")
                config = replace(config, sample_rate=sample_rate)
            chunks = segment_samples(samples, config, frame_ms, AnalysisPublisher())
            print_chunk_report(self.console, chunks)

        if transcript_path:
            lines = Path(transcript_path).read_text(encoding='utf-8').splitlines()
            streaming_settings = self.config.get_streaming_settings() if self.config else {}
            report = detect_questions(
                lines,
                QuestionRefiner(),
                StreamingQuestionDetector(**streaming_settings),
                QuestionPublisher(),
            )
            print_question_report(self.console, report)


def setup_logging(config: Optional[QuestCueConfig], level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path') if config else None
    console_output = config.get('logging.console_output', True) if config else True

    handlers = []

    # File handler - only when a log file is configured
    if log_file_path:
        Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file_path)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
        ))
        handlers.append(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("QuestCue offline runner starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")


def main() -> None:
    """Main entry point for the QuestCue offline runner."""
    parser = argparse.ArgumentParser(
        description="QuestCue - adaptive audio chunking and question detection"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: built-in settings)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (overrides config)"
    )

    parser.add_argument(
        "--audio",
        type=str,
        help="16-bit PCM WAV file to segment"
    )

    parser.add_argument(
        "--transcript",
        type=str,
        help="Text file with one transcribed utterance per line"
    )

    parser.add_argument(
        "--frame-ms",
        type=float,
        default=100.0,
        help="Frame size fed to the segmenter in milliseconds (default: 100)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="QuestCue v0.1.0"
    )

    args = parser.parse_args()
    if not args.audio and not args.transcript:
        parser.error("nothing to do: pass --audio and/or --transcript")

    try:
        runner = Runner(args.config, args.log_level)
        runner.run(args.audio, args.transcript, args.frame_ms)
    except KeyboardInterrupt:
        print("\nInterrupted")
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        logging.error(f"Application error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()

"""Signal primitives used by the chunk segmenter.

All functions take mono float samples (nominally in [-1, 1]) and degrade to
zero-valued results for empty or too-short input instead of raising.
"""

import numpy as np

from ..models.audio import ContentAnalysis

ENERGY_FRAME_MS = 25.0
MARKER_FRAME_MS = 40.0
SIGNIFICANT_AUDIO_THRESHOLD = 0.01


def rms(data: np.ndarray) -> float:
    """Root-mean-square amplitude of a sample window."""
    if data is None or len(data) == 0:
        return 0.0
    samples = np.asarray(data, dtype=np.float64)
    return float(np.sqrt(np.mean(samples * samples)))


def frame_energies(data: np.ndarray, sample_rate: int, frame_ms: float) -> np.ndarray:
    """Split a window into consecutive sub-frames and return the RMS of each.

    Trailing samples that do not fill a whole sub-frame are ignored.
    """
    frame_size = int(sample_rate * frame_ms / 1000.0)
    if data is None or frame_size <= 0 or len(data) < frame_size:
        return np.zeros(0, dtype=np.float64)

    frame_count = len(data) // frame_size
    samples = np.asarray(data[:frame_count * frame_size], dtype=np.float64)
    frames = samples.reshape(frame_count, frame_size)
    return np.sqrt(np.mean(frames * frames, axis=1))


def energy_variance(data: np.ndarray, sample_rate: int) -> float:
    """Variance of 25ms sub-frame energies, a proxy for speech activity."""
    energies = frame_energies(data, sample_rate, ENERGY_FRAME_MS)
    if len(energies) < 2:
        return 0.0
    return float(np.var(energies))


def speech_density(data: np.ndarray, sample_rate: int, silence_threshold: float) -> float:
    """Fraction of 25ms sub-frames louder than twice the silence threshold."""
    energies = frame_energies(data, sample_rate, ENERGY_FRAME_MS)
    if len(energies) == 0:
        return 0.0
    speech_frames = int(np.count_nonzero(energies > silence_threshold * 2))
    return speech_frames / len(energies)


def detect_question_markers(data: np.ndarray, sample_rate: int,
                            frame_ms: float = MARKER_FRAME_MS) -> bool:
    """Look for prosodic patterns that often end a spoken question.

    The window is flagged when any of these hold over its sub-frame energies:

    * rising intonation: at least half of the steps in the last quarter rise
    * energy spike: the last sub-frame exceeds 1.3x the window mean
    * choppy rhythm: at least 40% as many large steps (> 0.2x mean) as sub-frames

    Args:
        data: Sample window to inspect
        sample_rate: Sample rate of the window in Hz
        frame_ms: Sub-frame length in milliseconds

    Returns:
        True if any question-like pattern is present
    """
    energies = frame_energies(data, sample_rate, frame_ms)
    if len(energies) < 3:
        return False

    tail = energies[-max(2, len(energies) // 4):]
    rising_steps = int(np.count_nonzero(np.diff(tail) > 0))
    has_rising_intonation = rising_steps >= len(tail) * 0.5

    mean_energy = float(np.mean(energies))
    has_energy_spike = energies[-1] > mean_energy * 1.3

    large_steps = int(np.count_nonzero(np.abs(np.diff(energies)) > mean_energy * 0.2))
    has_question_rhythm = large_steps >= int(len(energies) * 0.4)

    return bool(has_rising_intonation or has_energy_spike or has_question_rhythm)


def has_significant_audio(data: np.ndarray, threshold: float = SIGNIFICANT_AUDIO_THRESHOLD) -> bool:
    """True when the window is louder than background noise."""
    return rms(data) > threshold


def analyze_window(data: np.ndarray, sample_rate: int, silence_threshold: float,
                   silence_duration_ms: float = 0.0) -> ContentAnalysis:
    """Compute a full ContentAnalysis snapshot for a trailing window."""
    if data is None or len(data) == 0:
        return ContentAnalysis()

    return ContentAnalysis(
        rms_level=rms(data),
        silence_duration_ms=silence_duration_ms,
        speech_density=speech_density(data, sample_rate, silence_threshold),
        energy_variance=energy_variance(data, sample_rate),
        has_question_markers=detect_question_markers(data, sample_rate),
    )

"""Pytest configuration and fixtures for QuestCue tests."""

import pytest
import tempfile
import logging

import numpy as np

from questcue.models.audio import ChunkingConfig


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SAMPLE_RATE = 16000


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast isolated tests")
    config.addinivalue_line("markers", "integration: end-to-end pipeline tests")


class FakeClock:
    """Controllable monotonic clock returning seconds."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def chunking_config():
    return ChunkingConfig(sample_rate=SAMPLE_RATE)


@pytest.fixture
def audio_test_data():
    """Generate float32 audio test data patterns."""
    def generate_audio(pattern="tone", duration_ms=100.0, level=0.5, sample_rate=SAMPLE_RATE):
        """Generate audio samples for testing.

        Args:
            pattern: 'tone' (constant level), 'sine', 'silence' or 'ramp'
            duration_ms: Duration of audio in milliseconds
            level: Amplitude (peak level for 'ramp')
            sample_rate: Sample rate in Hz

        Returns:
            np.ndarray of float32 samples
        """
        samples = int(duration_ms * sample_rate / 1000)

        if pattern == "tone":
            data = np.full(samples, level)
        elif pattern == "sine":
            t = np.arange(samples) / sample_rate
            data = level * np.sin(2 * np.pi * 440 * t)
        elif pattern == "silence":
            data = np.zeros(samples)
        elif pattern == "ramp":
            data = np.linspace(level / 16, level, samples)
        else:
            raise ValueError(f"Unknown pattern: {pattern}")

        return data.astype(np.float32)

    return generate_audio

"""Unit tests for AdaptiveChunkSegmenter."""

import pytest
import numpy as np
from unittest.mock import Mock

from questcue.audio.segmenter import AdaptiveChunkSegmenter
from questcue.models.audio import AudioFrame, ChunkingConfig, ChunkReason, ContentAnalysis


def append_timed(segmenter, clock, samples, sample_rate=16000):
    """Advance the clock by the frame's duration, then append it."""
    clock.advance_ms(len(samples) / sample_rate * 1000)
    return segmenter.append(samples)


def run_until_chunk(segmenter, clock, frame, limit=200):
    for _ in range(limit):
        decision = append_timed(segmenter, clock, frame)
        if decision.should_chunk:
            return decision
    pytest.fail("segmenter never decided to chunk")


@pytest.mark.unit
class TestSegmenterDecisions:
    """Test cases for each chunking trigger."""

    def test_max_duration_triggers_max_size(self, fake_clock, audio_test_data):
        segmenter = AdaptiveChunkSegmenter(clock=fake_clock)
        speech = audio_test_data("tone", duration_ms=100)

        decision = run_until_chunk(segmenter, fake_clock, speech)

        assert decision.reason == ChunkReason.MAX_SIZE
        assert decision.confidence == 1.0
        assert segmenter.get_state().buffered_duration_ms == pytest.approx(5000)

    def test_sustained_silence_triggers_silence(self, fake_clock, audio_test_data):
        # Content-score trigger disabled to isolate the silence path
        segmenter = AdaptiveChunkSegmenter(clock=fake_clock, content_confidence_threshold=1.01)
        for _ in range(6):
            append_timed(segmenter, fake_clock, audio_test_data("tone", duration_ms=100))

        decision = run_until_chunk(segmenter, fake_clock, audio_test_data("silence", duration_ms=100))
        state = segmenter.get_state()

        assert decision.reason == ChunkReason.SILENCE
        assert decision.confidence == 0.95
        assert state.in_silence is True
        assert state.current_silence_duration_ms >= 800
        assert state.buffered_duration_ms >= 0.7 * 500

    def test_question_marker_in_frame_triggers_content(self, fake_clock, audio_test_data):
        segmenter = AdaptiveChunkSegmenter(clock=fake_clock)
        for _ in range(3):
            assert not append_timed(segmenter, fake_clock, audio_test_data("tone", duration_ms=100)).should_chunk

        decision = append_timed(segmenter, fake_clock, audio_test_data("ramp", duration_ms=400))

        assert decision.should_chunk is True
        assert decision.reason == ChunkReason.CONTENT
        assert decision.confidence == 0.9

    def test_question_marker_needs_some_buffered_audio(self, fake_clock, audio_test_data):
        segmenter = AdaptiveChunkSegmenter(clock=fake_clock)

        # 200ms buffered is below 0.6 x 500ms minimum
        decision = append_timed(segmenter, fake_clock, audio_test_data("ramp", duration_ms=200))

        assert decision.should_chunk is False

    def test_question_marker_in_window_triggers_content(self, fake_clock, audio_test_data):
        segmenter = AdaptiveChunkSegmenter(clock=fake_clock)
        ramp = audio_test_data("ramp", duration_ms=1000)
        # 20ms frames are too short to analyze on their own
        frames = np.split(ramp, 50)

        for i, frame in enumerate(frames, 1):
            decision = append_timed(segmenter, fake_clock, frame)
            if decision.should_chunk:
                break

        assert decision.reason == ChunkReason.CONTENT
        assert decision.confidence == 0.9
        assert decision.suggested_delay_ms == 75
        assert segmenter.get_state().buffered_duration_ms == pytest.approx(360)

    def test_content_score_triggers_content(self, fake_clock, audio_test_data):
        segmenter = AdaptiveChunkSegmenter(clock=fake_clock, content_confidence_threshold=0.6)
        # Audible but below twice the silence threshold: density 0, variance 0
        quiet = audio_test_data("tone", duration_ms=100, level=0.015)

        decision = run_until_chunk(segmenter, fake_clock, quiet)

        assert decision.reason == ChunkReason.CONTENT
        assert decision.confidence == pytest.approx(0.3 + 0.25 + 0.5 * 0.25)
        assert segmenter.get_state().buffered_duration_ms == pytest.approx(500)

    def test_elapsed_time_fallback_triggers_duration(self, fake_clock, audio_test_data):
        segmenter = AdaptiveChunkSegmenter(clock=fake_clock)
        fake_clock.advance_ms(7000)

        decision = append_timed(segmenter, fake_clock, audio_test_data("tone", duration_ms=100))

        assert decision.should_chunk is True
        assert decision.reason == ChunkReason.DURATION
        assert decision.confidence == 0.7

    def test_no_chunk_suggests_delay(self, fake_clock, audio_test_data):
        segmenter = AdaptiveChunkSegmenter(clock=fake_clock)

        decision = append_timed(segmenter, fake_clock, audio_test_data("tone", duration_ms=100))

        assert decision.should_chunk is False
        assert decision.confidence == 0.0
        assert 50 <= decision.suggested_delay_ms <= 100

    def test_decision_does_not_clear_buffer(self, fake_clock, audio_test_data):
        segmenter = AdaptiveChunkSegmenter(clock=fake_clock)
        speech = audio_test_data("tone", duration_ms=100)

        run_until_chunk(segmenter, fake_clock, speech)
        count = segmenter.get_state().buffered_frame_count
        append_timed(segmenter, fake_clock, speech)

        assert count == 50
        assert segmenter.get_state().buffered_frame_count == 51

    def test_empty_frame_degrades_gracefully(self, fake_clock):
        segmenter = AdaptiveChunkSegmenter(clock=fake_clock)

        decision = segmenter.append([])

        assert decision.should_chunk is False
        assert segmenter.get_state().buffered_duration_ms == 0.0

    def test_none_frame_is_treated_as_empty(self, fake_clock):
        segmenter = AdaptiveChunkSegmenter(clock=fake_clock)

        decision = segmenter.append(None)

        assert decision.should_chunk is False
        assert segmenter.get_state().buffered_duration_ms == 0.0
        assert segmenter.finalize_chunk().samples.size == 0

    def test_reused_caller_buffer_does_not_alter_buffered_audio(self, fake_clock):
        segmenter = AdaptiveChunkSegmenter(clock=fake_clock)
        capture_buffer = np.full(1600, 0.5, dtype=np.float32)

        fake_clock.advance_ms(100)
        segmenter.append(capture_buffer)
        capture_buffer[:] = 0.0
        fake_clock.advance_ms(100)
        segmenter.append(capture_buffer)

        chunk = segmenter.finalize_chunk()

        assert np.all(chunk.samples[:1600] == 0.5)
        assert np.all(chunk.samples[1600:] == 0.0)

    def test_directly_built_frame_owns_its_samples(self):
        data = np.full(160, 0.25, dtype=np.float32)
        frame = AudioFrame(samples=data)

        data[:] = 1.0

        assert np.all(frame.samples == 0.25)
        assert frame.samples.flags.writeable is False

    def test_accepts_audio_frames(self, fake_clock, audio_test_data):
        segmenter = AdaptiveChunkSegmenter(clock=fake_clock)
        frame = AudioFrame.from_samples(audio_test_data("tone", duration_ms=100))

        segmenter.append(frame)

        assert segmenter.get_state().buffered_duration_ms == pytest.approx(100)


@pytest.mark.unit
class TestSegmenterState:
    """Test cases for finalize, state, history and adaptation."""

    def test_finalize_empty_buffer_returns_none(self, fake_clock):
        segmenter = AdaptiveChunkSegmenter(clock=fake_clock)
        assert segmenter.finalize_chunk() is None

    def test_finalize_concatenates_in_order(self, fake_clock):
        segmenter = AdaptiveChunkSegmenter(clock=fake_clock)
        first = np.linspace(0.0, 0.1, 9600, dtype=np.float32)
        second = np.linspace(0.1, 0.2, 9600, dtype=np.float32)
        append_timed(segmenter, fake_clock, first)
        append_timed(segmenter, fake_clock, second)

        chunk = segmenter.finalize_chunk()

        assert np.array_equal(chunk.samples, np.concatenate([first, second]))
        assert chunk.duration_ms == pytest.approx(1200)
        assert chunk.estimated_word_count == 2
        assert chunk.chunk_id.startswith("chunk_")

    def test_finalize_clears_buffer_and_silence(self, fake_clock, audio_test_data):
        segmenter = AdaptiveChunkSegmenter(clock=fake_clock)
        for _ in range(3):
            append_timed(segmenter, fake_clock, audio_test_data("silence", duration_ms=100))
        assert segmenter.get_state().in_silence is True

        segmenter.finalize_chunk()
        state = segmenter.get_state()

        assert state.buffered_frame_count == 0
        assert state.buffered_duration_ms == 0.0
        assert state.in_silence is False
        assert state.current_silence_duration_ms == 0.0

    def test_chunk_ids_are_unique(self, fake_clock, audio_test_data):
        segmenter = AdaptiveChunkSegmenter(clock=fake_clock)
        ids = set()
        for _ in range(5):
            append_timed(segmenter, fake_clock, audio_test_data("tone"))
            ids.add(segmenter.finalize_chunk().chunk_id)

        assert len(ids) == 5

    def test_get_state_is_idempotent(self, fake_clock, audio_test_data):
        segmenter = AdaptiveChunkSegmenter(clock=fake_clock)
        for _ in range(4):
            append_timed(segmenter, fake_clock, audio_test_data("silence"))

        assert segmenter.get_state() == segmenter.get_state()

    def test_history_is_bounded(self, fake_clock, audio_test_data):
        segmenter = AdaptiveChunkSegmenter(clock=fake_clock)
        for _ in range(30):
            append_timed(segmenter, fake_clock, audio_test_data("tone"))

        assert segmenter.get_state().history_length == 10

    def test_dense_speech_lowers_multiplier_to_floor(self, fake_clock, audio_test_data):
        segmenter = AdaptiveChunkSegmenter(clock=fake_clock)
        multipliers = []
        for _ in range(6):
            for _ in range(5):
                append_timed(segmenter, fake_clock, audio_test_data("tone"))
            segmenter.finalize_chunk()
            multipliers.append(segmenter.get_state().adaptive_multiplier)

        assert multipliers == pytest.approx([0.9, 0.8, 0.7, 0.7, 0.7, 0.7])

    def test_sparse_speech_raises_multiplier_to_ceiling(self, fake_clock, audio_test_data):
        segmenter = AdaptiveChunkSegmenter(clock=fake_clock)
        for _ in range(6):
            for _ in range(5):
                append_timed(segmenter, fake_clock, audio_test_data("silence"))
            segmenter.finalize_chunk()
            assert 0.7 <= segmenter.get_state().adaptive_multiplier <= 1.3

        assert segmenter.get_state().adaptive_multiplier == pytest.approx(1.3)

    def test_multiplier_needs_five_analyses(self, fake_clock, audio_test_data):
        segmenter = AdaptiveChunkSegmenter(clock=fake_clock)
        for _ in range(4):
            append_timed(segmenter, fake_clock, audio_test_data("tone"))

        segmenter.finalize_chunk()

        assert segmenter.get_state().adaptive_multiplier == 1.0

    def test_multiplier_history_spans_previous_chunks(self, fake_clock, audio_test_data):
        segmenter = AdaptiveChunkSegmenter(clock=fake_clock)
        for _ in range(5):
            append_timed(segmenter, fake_clock, audio_test_data("tone"))
        segmenter.finalize_chunk()

        # One silent frame: the trailing five analyses are still mostly speech
        append_timed(segmenter, fake_clock, audio_test_data("silence"))
        segmenter.finalize_chunk()

        assert segmenter.get_state().adaptive_multiplier == pytest.approx(0.8)

    def test_multiplier_scales_max_duration(self, fake_clock, audio_test_data):
        segmenter = AdaptiveChunkSegmenter(clock=fake_clock)
        for _ in range(5):
            append_timed(segmenter, fake_clock, audio_test_data("tone"))
        segmenter.finalize_chunk()

        decision = run_until_chunk(segmenter, fake_clock, audio_test_data("tone"))

        assert decision.reason == ChunkReason.MAX_SIZE
        assert segmenter.get_state().buffered_duration_ms == pytest.approx(4500)

    def test_reset_restores_defaults(self, fake_clock, audio_test_data):
        segmenter = AdaptiveChunkSegmenter(clock=fake_clock)
        for _ in range(5):
            append_timed(segmenter, fake_clock, audio_test_data("tone"))
        segmenter.finalize_chunk()
        append_timed(segmenter, fake_clock, audio_test_data("silence"))

        segmenter.reset()
        state = segmenter.get_state()

        assert state.adaptive_multiplier == 1.0
        assert state.history_length == 0
        assert state.buffered_frame_count == 0
        assert state.in_silence is False


@pytest.mark.unit
class TestSegmenterConfig:
    """Test cases for configuration handling and observers."""

    def test_default_config(self):
        segmenter = AdaptiveChunkSegmenter()
        assert segmenter.get_config() == ChunkingConfig()

    def test_constructor_overrides(self):
        segmenter = AdaptiveChunkSegmenter(ChunkingConfig(sample_rate=8000), min_chunk_duration_ms=300)
        config = segmenter.get_config()

        assert config.sample_rate == 8000
        assert config.min_chunk_duration_ms == 300
        assert config.max_chunk_duration_ms == 5000

    def test_update_config_merges_and_keeps_state(self, fake_clock, audio_test_data):
        segmenter = AdaptiveChunkSegmenter(clock=fake_clock)
        for _ in range(3):
            append_timed(segmenter, fake_clock, audio_test_data("tone"))

        config = segmenter.update_config({"silence_duration_ms": 400, "bogus_key": 1})

        assert config.silence_duration_ms == 400
        assert config.min_chunk_duration_ms == 500
        assert segmenter.get_state().buffered_frame_count == 3
        assert segmenter.get_state().history_length == 3

    def test_observers_are_notified(self, fake_clock, audio_test_data):
        on_analysis = Mock()
        on_chunk = Mock()
        segmenter = AdaptiveChunkSegmenter(clock=fake_clock, analysis_callback=on_analysis, chunk_callback=on_chunk)

        append_timed(segmenter, fake_clock, audio_test_data("tone"))
        chunk = segmenter.finalize_chunk()

        assert on_analysis.call_count == 1
        assert isinstance(on_analysis.call_args[0][0], ContentAnalysis)
        on_chunk.assert_called_once_with(chunk)

    def test_failing_observer_does_not_break_append(self, fake_clock, audio_test_data):
        segmenter = AdaptiveChunkSegmenter(clock=fake_clock, analysis_callback=Mock(side_effect=RuntimeError("boom")))

        decision = append_timed(segmenter, fake_clock, audio_test_data("tone"))

        assert decision.should_chunk is False
        assert segmenter.get_state().history_length == 1

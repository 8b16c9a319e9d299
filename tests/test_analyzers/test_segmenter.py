"""Tests for the autocorrelation pitch tracker."""

import numpy as np
import pytest

from soundprint.analyzers.segmenter import Segmenter
from soundprint.core.models import SampleSequence


def _direct_best_lag(frame, min_lag):
    """Brute-force reference: first lag with the strictly largest positive sum."""
    window = len(frame)
    best_lag, best = 0, 0.0
    lag = min_lag
    while lag < window / 2:
        corr = float(np.dot(frame[:window - lag], frame[lag:]))
        if corr > best:
            best, best_lag = corr, lag
        lag += 1
    return best_lag, best


class TestSegmentLayout:
    def test_segment_count_and_times(self):
        # 2000 samples, 500-sample windows, 100-sample hop: starts 0..1400
        channel = SampleSequence(np.zeros(2000), 1000)
        segments = Segmenter().analyze(channel)

        assert len(segments) == 15
        assert segments[0].start == 0.0
        assert segments[0].end == 0.5
        assert segments[-1].start == pytest.approx(1.4)
        assert segments[-1].end == pytest.approx(1.9)

    def test_time_ordered(self, make_sine):
        channel = SampleSequence(make_sine(25.0, duration=3.0, sr=1000), 1000)
        starts = [s.start for s in Segmenter().analyze(channel)]
        assert starts == sorted(starts)

    def test_too_short_for_one_window(self):
        assert Segmenter().analyze(SampleSequence(np.ones(500), 1000)) == ()


class TestPitch:
    def test_sine_period(self, make_sine):
        channel = SampleSequence(make_sine(25.0, duration=2.0, sr=1000, amplitude=1.0), 1000)
        segments = Segmenter().analyze(channel)

        for segment in segments:
            assert segment.pitch == pytest.approx(25.0)
            assert 0.0 < segment.confidence <= 1.0

    def test_confidence_formula(self, make_sine):
        y = make_sine(25.0, duration=2.0, sr=1000, amplitude=1.0).astype(np.float32)
        segment = Segmenter().analyze(SampleSequence(y, 1000))[0]

        best_lag, best = _direct_best_lag(y[:500].astype(np.float64), 20)
        assert best_lag == 40
        assert segment.confidence == pytest.approx(min(best / 500, 1.0), rel=1e-6)

    def test_confidence_capped_at_one(self, make_sine):
        # Large amplitudes push the raw correlation far above the window length
        y = make_sine(25.0, duration=1.0, sr=1000, amplitude=10.0)
        segments = Segmenter().analyze(SampleSequence(y, 1000))
        assert all(s.confidence == 1.0 for s in segments)

    def test_silence_has_no_pitch(self, silence):
        segments = Segmenter().analyze(silence)
        assert segments
        assert all(s.pitch == 0.0 and s.confidence == 0.0 for s in segments)

    def test_matches_direct_autocorrelation(self):
        rng = np.random.default_rng(7)
        y = rng.standard_normal(1200).astype(np.float32) * 0.3
        segmenter = Segmenter()
        frame = y[:500].astype(np.float64)

        pitch, _ = segmenter.estimate_pitch(frame, 1000)
        best_lag, best = _direct_best_lag(frame, 20)
        if best_lag:
            assert pitch == pytest.approx(1000 / best_lag)
        else:
            assert pitch == 0.0

    def test_tiny_positive_correlation_counts(self):
        # Lag 30 sums to 1e-6 against a window energy of 1e6
        frame = np.zeros(500)
        frame[0] = 1000.0
        frame[30] = 1e-9
        pitch, confidence = Segmenter().estimate_pitch(frame, 1000)
        assert pitch == pytest.approx(1000 / 30)
        assert confidence == pytest.approx(1e-6 / 500)

    def test_no_positive_correlation(self):
        # A lone impulse correlates with nothing at a non-zero lag
        frame = np.zeros(500)
        frame[0] = 1.0
        pitch, confidence = Segmenter().estimate_pitch(frame, 1000)
        assert (pitch, confidence) == (0.0, 0.0)

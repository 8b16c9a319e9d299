"""Tests for the descriptor extractor formulas."""

import numpy as np
import pytest

from soundprint.analyzers.descriptors import (
    DescriptorExtractor,
    acousticness,
    band_ratio,
    instrumentalness,
    valence,
)
from soundprint.analyzers.rhythmic import RhythmAnalysis
from soundprint.analyzers.spectral import Spectrum
from soundprint.core.models import UNIT_DESCRIPTORS, SampleSequence


def _spectrum(magnitudes, sample_rate=44100):
    mags = np.asarray(magnitudes, dtype=float)
    return Spectrum(mags, sample_rate=sample_rate, window_size=2 * len(mags))


class TestSilence:
    def test_all_zero(self, silence):
        features = DescriptorExtractor().analyze(silence)
        assert features.tempo == 0.0
        for name in UNIT_DESCRIPTORS:
            assert getattr(features, name) == 0.0, name


class TestRanges:
    @pytest.mark.parametrize("freq", [60.0, 200.0, 440.0, 1000.0, 8000.0])
    def test_unit_interval(self, make_sine, freq):
        channel = SampleSequence(make_sine(freq, amplitude=0.9), 44100)
        features = DescriptorExtractor().analyze(channel)
        for name in UNIT_DESCRIPTORS:
            value = getattr(features, name)
            assert 0.0 <= value <= 1.0, name
            assert not np.isnan(value)

    def test_noise_in_range(self):
        rng = np.random.default_rng(3)
        channel = SampleSequence(np.clip(rng.normal(0, 0.6, 44100), -1, 1), 44100)
        features = DescriptorExtractor().analyze(channel)
        for name in UNIT_DESCRIPTORS:
            assert 0.0 <= getattr(features, name) <= 1.0


class TestFormulas:
    def test_energy_is_mean_square(self, make_sine):
        y = make_sine(440.0, amplitude=0.5)
        features = DescriptorExtractor().analyze(SampleSequence(y, 44100))
        assert features.energy == pytest.approx(np.mean(y ** 2), rel=1e-5)

    def test_liveness(self):
        y = np.array([1.0, -1.0] * 500)
        features = DescriptorExtractor().analyze(SampleSequence(y, 1000))
        # energy 1, variance 1 -> min(1, 1)
        assert features.liveness == 1.0

    def test_liveness_partial(self, make_sine):
        y = make_sine(440.0, amplitude=0.5)
        features = DescriptorExtractor().analyze(SampleSequence(y, 44100))
        expected = (np.mean(y ** 2) + np.var(y)) / 2
        assert features.liveness == pytest.approx(expected, rel=1e-5)

    def test_danceability_regular_at_reference(self, clicks):
        # Onsets every 0.5 s: 120 BPM and perfectly regular
        assert DescriptorExtractor().analyze(clicks).danceability == pytest.approx(1.0)

    def test_danceability_slow_tempo(self):
        extractor = DescriptorExtractor(tempo_reference=120.0)
        rhythm = RhythmAnalysis(beats=(0.0, 1.0, 2.0), tempo=60.0)
        assert extractor.danceability(rhythm) == pytest.approx((0.5 + 1.0) / 2)

    def test_danceability_tempo_capped(self):
        rhythm = RhythmAnalysis(beats=(0.0, 0.25), tempo=240.0)
        # Two beats: tempo score 1, no regularity
        assert DescriptorExtractor().danceability(rhythm) == pytest.approx(0.5)

    def test_valence_upper_half(self):
        mags = np.zeros(8)
        mags[5] = 1.0  # above the midpoint
        mags[4] = 1.0  # midpoint itself counts as lower
        mags[1] = 2.0
        assert valence(_spectrum(mags)) == pytest.approx(0.25)

    def test_acousticness_lowest_quarter(self):
        mags = np.zeros(8)
        mags[0] = 1.0
        mags[1] = 1.0
        mags[2] = 2.0  # the quarter boundary is exclusive
        assert acousticness(_spectrum(mags)) == pytest.approx(0.5)

    def test_band_ratio_uses_bin_frequency(self):
        # 1024 bins at 44.1 kHz: bin k is k * 21.53 Hz; bins 4..13 lie in 80-300 Hz
        mags = np.zeros(1024)
        mags[3] = 1.0   # 64.6 Hz
        mags[4] = 1.0   # 86.1 Hz
        mags[13] = 1.0  # 279.9 Hz
        mags[14] = 1.0  # 301.5 Hz
        spectrum = _spectrum(mags)
        assert band_ratio(spectrum, 80.0, 300.0) == pytest.approx(0.5)
        assert instrumentalness(spectrum) == pytest.approx(0.5)

    def test_band_ratio_follows_sample_rate(self):
        mags = np.zeros(1024)
        mags[10] = 1.0
        # 10 * 22050 / 2048 = 107.7 Hz (in band); at 44.1 kHz it is 215.3 Hz (also in band)
        assert band_ratio(_spectrum(mags, 22050), 80.0, 300.0) == 1.0
        # at 8 kHz it is 39.1 Hz (out of band)
        assert band_ratio(_spectrum(mags, 8000), 80.0, 300.0) == 0.0

    def test_zero_spectrum_ratios(self):
        spectrum = _spectrum(np.zeros(1024))
        assert valence(spectrum) == 0.0
        assert acousticness(spectrum) == 0.0
        assert instrumentalness(spectrum) == 0.0
        assert band_ratio(spectrum, 300.0, 3400.0) == 0.0


class TestScenario:
    def test_440_hz_tone(self, tone_440):
        features = DescriptorExtractor().analyze(tone_440)
        assert features.acousticness > 0.0
        assert features.valence > 0.0
        values = [getattr(features, name) for name in UNIT_DESCRIPTORS]
        assert not any(np.isnan(values))

    def test_deterministic(self, tone_440):
        extractor = DescriptorExtractor()
        assert extractor.analyze(tone_440) == extractor.analyze(tone_440)

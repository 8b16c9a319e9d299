"""Tests for SpectralAnalyzer and the Spectrum model."""

import numpy as np
import pytest

from soundprint.analyzers.spectral import SpectralAnalyzer, Spectrum, direct_spectrum
from soundprint.core.models import SampleSequence


class TestSpectrumShape:
    def test_half_window_bins(self, tone_440):
        spectrum = SpectralAnalyzer(window_size=2048).analyze(tone_440)
        assert len(spectrum) == 1024

    @pytest.mark.parametrize("window", [256, 1024, 4096])
    def test_bin_count_follows_window(self, tone_440, window):
        assert len(SpectralAnalyzer(window_size=window).analyze(tone_440)) == window // 2

    def test_rejects_odd_window(self):
        with pytest.raises(ValueError):
            SpectralAnalyzer(window_size=1023)


class TestSpectrumValues:
    def test_matches_direct_transform(self, make_sine):
        y = make_sine(1000.0, duration=0.1) + make_sine(3000.0, duration=0.1, amplitude=0.2)
        channel = SampleSequence(y, 44100)

        fast = SpectralAnalyzer(window_size=512).analyze(channel).magnitudes
        reference = direct_spectrum(channel.samples.astype(np.float64), 512)

        np.testing.assert_allclose(fast, reference, rtol=1e-7, atol=1e-7)

    def test_short_input_is_zero_padded(self):
        channel = SampleSequence(np.ones(100), 44100)
        spectrum = SpectralAnalyzer(window_size=2048).analyze(channel)

        # DC bin sums the 100 ones; the padding contributes nothing
        assert spectrum.magnitudes[0] == pytest.approx(100.0)
        np.testing.assert_allclose(
            spectrum.magnitudes, direct_spectrum(np.ones(100), 2048), atol=1e-7
        )

    def test_only_first_window_is_used(self, make_sine):
        head = make_sine(440.0, duration=2048 / 44100)
        tail = make_sine(5000.0, duration=1.0)
        a = SpectralAnalyzer().analyze(SampleSequence(head, 44100))
        b = SpectralAnalyzer().analyze(SampleSequence(np.concatenate([head, tail]), 44100))
        np.testing.assert_array_equal(a.magnitudes, b.magnitudes)

    def test_silence_is_flat_zero(self, silence):
        spectrum = SpectralAnalyzer().analyze(silence)
        assert spectrum.total == 0.0
        assert not np.any(spectrum.magnitudes)

    def test_peak_bin_of_bin_centred_tone(self):
        freq = 21 * 44100 / 2048
        t = np.arange(2048) / 44100
        spectrum = SpectralAnalyzer().analyze(SampleSequence(np.sin(2 * np.pi * freq * t), 44100))
        assert int(np.argmax(spectrum.magnitudes)) == 21


class TestSpectrumModel:
    def test_frequencies(self):
        spectrum = Spectrum(np.zeros(1024), sample_rate=44100, window_size=2048)
        freqs = spectrum.frequencies
        assert len(freqs) == 1024
        assert freqs[0] == 0.0
        assert freqs[1] == pytest.approx(44100 / 2048)

    def test_magnitudes_read_only(self, tone_440):
        spectrum = SpectralAnalyzer().analyze(tone_440)
        with pytest.raises(ValueError):
            spectrum.magnitudes[0] = 1.0

"""
Spectral analyzer for the SoundPrint engine.

Computes the magnitude spectrum of the opening analysis window of a channel.
"""

from dataclasses import dataclass

import librosa
import numpy as np

from soundprint.core.analyzer_base import BaseAnalyzer
from soundprint.core.models import SampleSequence

DEFAULT_WINDOW_SIZE: int = 2048


@dataclass(frozen=True)
class Spectrum:
    """Magnitude per frequency bin, DC first, Nyquist excluded."""

    magnitudes: np.ndarray  # Shape: (window_size // 2,)
    sample_rate: int
    window_size: int

    def __post_init__(self) -> None:
        mags = np.array(self.magnitudes, dtype=np.float64, copy=True)
        mags.setflags(write=False)
        object.__setattr__(self, 'magnitudes', mags)

    def __len__(self) -> int:
        return int(self.magnitudes.shape[0])

    @property
    def frequencies(self) -> np.ndarray:
        """Centre frequency of every bin in Hz (k * sr / N)."""
        return librosa.fft_frequencies(
            sr=self.sample_rate, n_fft=self.window_size
        )[:len(self)]

    @property
    def total(self) -> float:
        """Sum of all bin magnitudes."""
        return float(np.sum(self.magnitudes))

    def to_list(self) -> list:
        return self.magnitudes.tolist()


class SpectralAnalyzer(BaseAnalyzer[Spectrum]):
    """
    Fixed-window magnitude spectrum.

    Each bin k is |sum_j x[j] * exp(-2*pi*i*k*j/N)| over the first N
    samples with a rectangular window. The real FFT yields the same bins
    as the direct correlation against a cosine/sine basis. Channels
    shorter than N are zero-padded.
    """

    def __init__(self, window_size: int = DEFAULT_WINDOW_SIZE):
        """
        Initialize spectral analyzer.

        Args:
            window_size: Analysis window length in samples (even, >= 2)
        """
        super().__init__("spectral", "1.0.0")
        if window_size < 2 or window_size % 2:
            raise ValueError(f"Window size must be an even number >= 2, got {window_size}")
        self.window_size = window_size

    def _analyze_impl(self, channel: SampleSequence) -> Spectrum:
        frame = channel.padded(self.window_size)
        bins = np.fft.rfft(frame, n=self.window_size)[: self.window_size // 2]

        return Spectrum(
            magnitudes=np.abs(bins),
            sample_rate=channel.sample_rate,
            window_size=self.window_size,
        )


def direct_spectrum(frame: np.ndarray, window_size: int) -> np.ndarray:
    """
    Reference O(N^2) transform of one frame.

    Kept for verifying the fast path; not used by the pipeline.
    """
    j = np.arange(window_size)
    padded = np.zeros(window_size)
    n = min(window_size, len(frame))
    padded[:n] = frame[:n]

    out = np.empty(window_size // 2)
    for k in range(window_size // 2):
        angle = -2.0 * np.pi * k * j / window_size
        real = np.dot(padded, np.cos(angle))
        imag = np.dot(padded, np.sin(angle))
        out[k] = np.sqrt(real * real + imag * imag)
    return out

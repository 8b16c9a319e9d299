"""
Tonal analyzer for the SoundPrint engine.

Estimates root note and mode from a magnitude spectrum.

Both estimates are coarse heuristics: spectrum bins are folded onto pitch
classes by ``bin index mod 12``, not by their frequency, so the result is
not a music-theoretic key. Downstream scoring is tuned to this output
distribution; keep the interval sets as they are.
"""

from dataclasses import dataclass
from typing import FrozenSet, Optional

import numpy as np

from soundprint.analyzers.spectral import SpectralAnalyzer, Spectrum
from soundprint.core.analyzer_base import BaseAnalyzer
from soundprint.core.models import NOTE_NAMES, SampleSequence

MAJOR_INTERVALS: FrozenSet[int] = frozenset({0, 2, 4, 5, 7, 9, 11})
MINOR_INTERVALS: FrozenSet[int] = frozenset({0, 2, 3, 5, 7, 8, 10})


@dataclass(frozen=True)
class TonalAnalysis:
    """Estimated root pitch class and mode."""

    key: str
    mode: str
    major_energy: float
    minor_energy: float


class TonalAnalyzer(BaseAnalyzer[TonalAnalysis]):
    """
    Bin-folding key and mode estimator.

    Key: pitch class of the strongest bin (first one on ties, C for
    silence). Mode: magnitude on major-interval classes against magnitude
    on the remaining minor-interval classes; major only when strictly
    greater. Classes shared by both sets count toward major.
    """

    def __init__(self, spectral_analyzer: Optional[SpectralAnalyzer] = None):
        """
        Initialize tonal analyzer.

        Args:
            spectral_analyzer: Spectrum source when analyzing a raw channel
        """
        super().__init__("tonal", "1.0.0")
        self.spectral_analyzer = spectral_analyzer or SpectralAnalyzer()

    def _analyze_impl(self, channel: SampleSequence) -> TonalAnalysis:
        return self.estimate(self.spectral_analyzer.analyze(channel))

    def estimate(self, spectrum: Spectrum) -> TonalAnalysis:
        """Key and mode for an already computed spectrum."""
        mags = spectrum.magnitudes
        classes = np.arange(len(mags)) % 12

        major_mask = np.isin(classes, sorted(MAJOR_INTERVALS))
        minor_mask = np.isin(classes, sorted(MINOR_INTERVALS)) & ~major_mask

        major_energy = float(np.sum(mags[major_mask]))
        minor_energy = float(np.sum(mags[minor_mask]))

        return TonalAnalysis(
            key=detect_key(mags),
            mode='major' if major_energy > minor_energy else 'minor',
            major_energy=major_energy,
            minor_energy=minor_energy,
        )


def detect_key(magnitudes: np.ndarray) -> str:
    """Pitch class of the strongest bin (bin index mod 12)."""
    if len(magnitudes) == 0 or not np.max(magnitudes) > 0:
        return NOTE_NAMES[0]
    return NOTE_NAMES[int(np.argmax(magnitudes)) % 12]

"""
Descriptor extractor for the SoundPrint engine.

Combines spectral, rhythmic and tonal analysis with direct sample
statistics into the ten-field descriptor vector.

Every descriptor is a fixed formula over the samples and the spectrum:
- energy: mean squared amplitude
- danceability: mean of tempo score (tempo / reference, capped at 1)
  and beat regularity
- valence: share of spectral magnitude in the upper half of the bins
- acousticness: share in the lowest quarter of the bins
- instrumentalness: 1 - share in the 80-300 Hz band
- liveness: (energy + sample variance) / 2, capped at 1
- speechiness: share in the 300-3400 Hz band
"""

from typing import Optional, Tuple

import numpy as np

from soundprint.analyzers.rhythmic import RhythmAnalysis, RhythmicAnalyzer
from soundprint.analyzers.spectral import SpectralAnalyzer, Spectrum
from soundprint.analyzers.tonal import TonalAnalysis, TonalAnalyzer
from soundprint.core.analyzer_base import BaseAnalyzer
from soundprint.core.models import DescriptorVector, SampleSequence

DEFAULT_TEMPO_REFERENCE: float = 120.0

VOCAL_BAND: Tuple[float, float] = (80.0, 300.0)  # Hz
SPEECH_BAND: Tuple[float, float] = (300.0, 3400.0)  # Hz


class DescriptorExtractor(BaseAnalyzer[DescriptorVector]):
    """Builds a DescriptorVector from one channel."""

    def __init__(
        self,
        spectral_analyzer: Optional[SpectralAnalyzer] = None,
        rhythmic_analyzer: Optional[RhythmicAnalyzer] = None,
        tonal_analyzer: Optional[TonalAnalyzer] = None,
        tempo_reference: float = DEFAULT_TEMPO_REFERENCE
    ):
        """
        Initialize descriptor extractor.

        Args:
            spectral_analyzer: Spectrum source
            rhythmic_analyzer: Beat and tempo source
            tonal_analyzer: Key and mode source
            tempo_reference: Tempo (BPM) that earns a full tempo score
        """
        super().__init__("descriptors", "1.0.0")
        self.spectral_analyzer = spectral_analyzer or SpectralAnalyzer()
        self.rhythmic_analyzer = rhythmic_analyzer or RhythmicAnalyzer()
        self.tonal_analyzer = tonal_analyzer or TonalAnalyzer(self.spectral_analyzer)
        self.tempo_reference = tempo_reference

    def _analyze_impl(self, channel: SampleSequence) -> DescriptorVector:
        spectrum = self.spectral_analyzer.analyze(channel)
        return self.extract(
            channel,
            spectrum,
            self.rhythmic_analyzer.analyze(channel),
            self.tonal_analyzer.estimate(spectrum),
        )

    def extract(
        self,
        channel: SampleSequence,
        spectrum: Spectrum,
        rhythm: RhythmAnalysis,
        tonal: TonalAnalysis
    ) -> DescriptorVector:
        """Combine precomputed stage outputs into a DescriptorVector."""
        samples = channel.samples.astype(np.float64)
        energy = mean_square(samples)

        return DescriptorVector(
            tempo=float(rhythm.tempo),
            key=tonal.key,
            mode=tonal.mode,
            energy=_unit(energy),
            danceability=_unit(self.danceability(rhythm)),
            valence=_unit(valence(spectrum)),
            acousticness=_unit(acousticness(spectrum)),
            instrumentalness=_unit(instrumentalness(spectrum)),
            liveness=_unit(min((energy + _variance(samples)) / 2.0, 1.0)),
            speechiness=_unit(band_ratio(spectrum, *SPEECH_BAND)),
        )

    def danceability(self, rhythm: RhythmAnalysis) -> float:
        tempo_score = min(rhythm.tempo / self.tempo_reference, 1.0)
        return (tempo_score + rhythm.regularity) / 2.0


def mean_square(samples: np.ndarray) -> float:
    if samples.size == 0:
        return 0.0
    return float(np.mean(samples * samples))


def _variance(samples: np.ndarray) -> float:
    if samples.size == 0:
        return 0.0
    return float(np.var(samples))


def _ratio(part: float, total: float) -> float:
    # Silence has no spectral energy at all
    if total <= 0.0:
        return 0.0
    return part / total


def valence(spectrum: Spectrum) -> float:
    """Share of magnitude in bins above the midpoint."""
    k = np.arange(len(spectrum))
    upper = float(np.sum(spectrum.magnitudes[k > len(spectrum) / 2]))
    return _ratio(upper, spectrum.total)


def acousticness(spectrum: Spectrum) -> float:
    """Share of magnitude in the lowest quarter of the bins."""
    k = np.arange(len(spectrum))
    lower = float(np.sum(spectrum.magnitudes[k < len(spectrum) / 4]))
    return _ratio(lower, spectrum.total)


def band_ratio(spectrum: Spectrum, low_hz: float, high_hz: float) -> float:
    """Share of magnitude in bins whose frequency lies in [low_hz, high_hz]."""
    freqs = spectrum.frequencies
    band = float(np.sum(spectrum.magnitudes[(freqs >= low_hz) & (freqs <= high_hz)]))
    return _ratio(band, spectrum.total)


def instrumentalness(spectrum: Spectrum) -> float:
    """1 - vocal-band share; 0 for a spectrum with no energy."""
    if spectrum.total <= 0.0:
        return 0.0
    return 1.0 - band_ratio(spectrum, *VOCAL_BAND)


def _unit(value: float) -> float:
    if not np.isfinite(value):
        return 0.0
    return float(min(max(value, 0.0), 1.0))

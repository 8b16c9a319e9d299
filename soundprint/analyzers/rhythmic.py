"""
Rhythmic analyzer for the SoundPrint engine.

Finds beat onsets with a short-time energy threshold and derives tempo
from the spacing between them.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from soundprint.core.analyzer_base import BaseAnalyzer
from soundprint.core.models import SampleSequence

DEFAULT_WINDOW_SECONDS: float = 0.1
DEFAULT_THRESHOLD: float = 0.1


@dataclass(frozen=True)
class RhythmAnalysis:
    """Beat onsets (seconds) and the tempo they imply."""

    beats: Tuple[float, ...]
    tempo: float  # BPM, 0 with fewer than two onsets

    @property
    def intervals(self) -> np.ndarray:
        """Inter-onset intervals in seconds."""
        return np.diff(np.asarray(self.beats, dtype=np.float64))

    @property
    def regularity(self) -> float:
        """
        Beat-regularity score 1 / (1 + variance(intervals)).

        Needs at least two intervals; 0 otherwise.
        """
        if len(self.beats) <= 2:
            return 0.0
        return float(1.0 / (1.0 + np.var(self.intervals)))


def tempo_from_beats(beats) -> float:
    """Tempo = 60 / mean inter-onset interval; 0 for fewer than two onsets."""
    if len(beats) < 2:
        return 0.0
    mean_interval = float(np.mean(np.diff(np.asarray(beats, dtype=np.float64))))
    if mean_interval <= 0:
        return 0.0
    return 60.0 / mean_interval


class RhythmicAnalyzer(BaseAnalyzer[RhythmAnalysis]):
    """
    Energy-threshold beat detector.

    The channel is cut into back-to-back windows; a window whose mean
    squared amplitude exceeds the threshold contributes its start time as
    an onset. Windows start at 0, w, 2w, ... while start < len - w, so the
    tail shorter than one full window past the last start is ignored.
    """

    def __init__(
        self,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        threshold: float = DEFAULT_THRESHOLD
    ):
        """
        Initialize rhythmic analyzer.

        Args:
            window_seconds: Window duration in seconds
            threshold: Mean-square energy an onset window must exceed
        """
        super().__init__("rhythmic", "1.0.0")
        self.window_seconds = window_seconds
        self.threshold = threshold

    def window_size(self, sample_rate: int) -> int:
        return int(np.floor(sample_rate * self.window_seconds))

    def _analyze_impl(self, channel: SampleSequence) -> RhythmAnalysis:
        energies = self.frame_energies(channel)
        window = self.window_size(channel.sample_rate)

        onset_frames = np.flatnonzero(energies > self.threshold)
        beats = tuple(float(i * window / channel.sample_rate) for i in onset_frames)

        return RhythmAnalysis(beats=beats, tempo=tempo_from_beats(beats))

    def frame_energies(self, channel: SampleSequence) -> np.ndarray:
        """Mean squared amplitude of every analysis window."""
        window = self.window_size(channel.sample_rate)
        if window <= 0:
            return np.zeros(0)

        n_frames = len(range(0, len(channel) - window, window))
        if n_frames == 0:
            return np.zeros(0)

        frames = channel.samples[: n_frames * window].astype(np.float64)
        frames = frames.reshape(n_frames, window)
        return np.mean(frames * frames, axis=1)

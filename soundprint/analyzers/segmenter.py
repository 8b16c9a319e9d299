"""
Segmenter / pitch tracker for the SoundPrint engine.

Slides a window across a channel and estimates the dominant period of
each window by autocorrelation.
"""

import math
from typing import Tuple

import librosa
import numpy as np

from soundprint.core.analyzer_base import BaseAnalyzer
from soundprint.core.models import SampleSequence, Segment

DEFAULT_WINDOW_SECONDS: float = 0.5
DEFAULT_HOP_SECONDS: float = 0.1
DEFAULT_MIN_LAG: int = 20


class Segmenter(BaseAnalyzer[Tuple[Segment, ...]]):
    """
    Autocorrelation pitch tracker.

    For every window the lag in [min_lag, window / 2) with the largest
    unnormalized correlation sum(x[j] * x[j + lag]) gives
    pitch = sample_rate / lag and confidence = min(r / window, 1).
    Windows without a positive correlation report pitch 0, confidence 0.
    """

    def __init__(
        self,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        hop_seconds: float = DEFAULT_HOP_SECONDS,
        min_lag: int = DEFAULT_MIN_LAG
    ):
        """
        Initialize segmenter.

        Args:
            window_seconds: Window duration in seconds
            hop_seconds: Distance between window starts in seconds
            min_lag: Smallest candidate period in samples
        """
        super().__init__("segmenter", "1.0.0")
        self.window_seconds = window_seconds
        self.hop_seconds = hop_seconds
        self.min_lag = min_lag

    def _analyze_impl(self, channel: SampleSequence) -> Tuple[Segment, ...]:
        sr = channel.sample_rate
        window = int(math.floor(sr * self.window_seconds))
        hop = int(math.floor(sr * self.hop_seconds))
        if window <= 0 or hop <= 0:
            return ()

        starts = range(0, len(channel) - window, hop)
        if len(starts) == 0:
            return ()

        # Frames share memory with the channel; read-only access only
        frames = librosa.util.frame(
            channel.samples, frame_length=window, hop_length=hop, axis=0
        )[: len(starts)]

        segments = []
        for start, frame in zip(starts, frames):
            pitch, confidence = self.estimate_pitch(frame, sr)
            segments.append(Segment(
                start=start / sr,
                end=(start + window) / sr,
                confidence=confidence,
                pitch=pitch,
            ))

        return tuple(segments)

    def estimate_pitch(self, frame: np.ndarray, sample_rate: int) -> Tuple[float, float]:
        """
        Dominant periodicity of one window.

        Returns:
            (pitch_hz, confidence), both 0 when nothing periodic is found
        """
        window = len(frame)
        max_lag = int(math.ceil(window / 2))  # lags strictly below window / 2
        if max_lag <= self.min_lag:
            return 0.0, 0.0

        y = np.asarray(frame, dtype=np.float64)
        r = librosa.autocorrelate(y, max_size=max_lag)

        best_lag = int(np.argmax(r[self.min_lag:max_lag])) + self.min_lag

        # FFT autocorrelation is only exact to rounding; re-sum the winner directly
        max_corr = float(np.dot(y[:window - best_lag], y[best_lag:]))
        if max_corr <= 0.0:
            return 0.0, 0.0

        confidence = min(max_corr / window, 1.0)
        return float(sample_rate / best_lag), float(confidence)

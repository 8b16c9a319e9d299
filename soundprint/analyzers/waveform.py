"""
Waveform envelope for the SoundPrint engine.

Reduces a channel to a fixed number of peak-to-peak amplitudes for display.
"""

from typing import Tuple

import numpy as np

from soundprint.core.analyzer_base import BaseAnalyzer
from soundprint.core.models import SampleSequence

DEFAULT_POINTS: int = 1000


class WaveformGenerator(BaseAnalyzer[Tuple[float, ...]]):
    """
    Peak-to-peak envelope with a fixed number of points.

    Block size is floor(len / points); point i covers samples
    [i * block, i * block + block). Peaks are measured against zero, so
    a block that never crosses zero still spans from 0. When the channel
    is shorter than ``points`` every block is empty and reads as 0.
    """

    def __init__(self, points: int = DEFAULT_POINTS):
        super().__init__("waveform", "1.0.0")
        if points <= 0:
            raise ValueError(f"Waveform points must be positive, got {points}")
        self.points = points

    def _analyze_impl(self, channel: SampleSequence) -> Tuple[float, ...]:
        block = len(channel) // self.points
        if block == 0:
            return (0.0,) * self.points

        blocks = channel.samples[: block * self.points].astype(np.float64)
        blocks = blocks.reshape(self.points, block)

        peaks = np.maximum(blocks.max(axis=1), 0.0)
        troughs = np.minimum(blocks.min(axis=1), 0.0)
        return tuple((peaks - troughs).tolist())

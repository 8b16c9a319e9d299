"""
Quality-adaptive mixer for the SoundPrint engine.

Combines the channels of decoded audio into one processed sequence.
"""

import logging
from typing import Optional, Sequence

import numpy as np

from soundprint.core.models import QualityTier, SampleSequence
from soundprint.utils.errors import InvalidInput

DEFAULT_THRESHOLD_RATIO: float = 0.1
DEFAULT_ATTENUATION: float = 0.5

logger = logging.getLogger(__name__)


class QualityMixer:
    """
    Mixes channels according to a quality tier.

    low, medium, high and lossless all produce the plain equal-weight
    average; their outputs are identical today. adaptive averages too,
    then scales every sample whose summed absolute amplitude does not
    exceed ``threshold_ratio`` times the peak summed amplitude by
    ``attenuation``.
    """

    def __init__(
        self,
        default_quality: QualityTier = QualityTier.ADAPTIVE,
        threshold_ratio: float = DEFAULT_THRESHOLD_RATIO,
        attenuation: float = DEFAULT_ATTENUATION
    ):
        self.default_quality = QualityTier.parse(default_quality)
        self.threshold_ratio = threshold_ratio
        self.attenuation = attenuation

    def mix(
        self,
        channels: Sequence[SampleSequence],
        quality: Optional[QualityTier] = None
    ) -> SampleSequence:
        """
        Mix channels into one sequence.

        Args:
            channels: Two or more equal-length channels (one is allowed
                      and mixes to itself)
            quality: Quality tier; the configured default when None

        Returns:
            SampleSequence: Mixed channel at the shared sample rate

        Raises:
            InvalidInput: If channels are missing or disagree in length or rate
        """
        tier = QualityTier.parse(quality, default=self.default_quality)
        stack = self._stack(channels)
        rate = channels[0].sample_rate

        averaged = np.mean(stack, axis=0)

        if tier is QualityTier.ADAPTIVE:
            mixed = self._adaptive(stack, averaged)
        else:
            mixed = averaged

        logger.debug(
            f"Mixed {len(channels)} channels ({stack.shape[1]} samples) as {tier.value}"
        )
        return SampleSequence(mixed, rate)

    def _adaptive(self, stack: np.ndarray, averaged: np.ndarray) -> np.ndarray:
        amplitude = np.sum(np.abs(stack), axis=0)
        if amplitude.size == 0:
            return averaged
        threshold = float(np.max(amplitude)) * self.threshold_ratio
        return np.where(amplitude > threshold, averaged, averaged * self.attenuation)

    @staticmethod
    def _stack(channels: Sequence[SampleSequence]) -> np.ndarray:
        if not channels:
            raise InvalidInput("At least one channel is required for mixing", field="channels")

        lengths = {len(c) for c in channels}
        if len(lengths) != 1:
            raise InvalidInput(
                f"Channels must have equal length, got {sorted(lengths)}",
                field="channels"
            )

        rates = {c.sample_rate for c in channels}
        if len(rates) != 1:
            raise InvalidInput(
                f"Channels must share one sample rate, got {sorted(rates)}",
                field="channels"
            )

        return np.stack([c.samples.astype(np.float64) for c in channels])

"""
Core data models for the SoundPrint engine.

Immutable domain models representing decoded audio and analysis results.
Every model is created, populated and returned within the handling of a
single request; nothing here is shared across requests.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

# Pitch-class symbols in bin-mapping order
NOTE_NAMES: Tuple[str, ...] = (
    'C', 'C#', 'D', 'D#', 'E', 'F', 'F#', 'G', 'G#', 'A', 'A#', 'B'
)

MODES: Tuple[str, ...] = ('major', 'minor')


class QualityTier(str, Enum):
    """Caller-selected mode controlling how channels are mixed."""

    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'
    LOSSLESS = 'lossless'
    ADAPTIVE = 'adaptive'

    @classmethod
    def parse(cls, value: Optional[str], default: "QualityTier" = None) -> "QualityTier":
        """
        Parse a quality tier name.

        Args:
            value: Tier name, or None for the default tier
            default: Tier used when value is None (adaptive if not given)

        Returns:
            QualityTier

        Raises:
            ValueError: If value is not a known tier
        """
        if value is None:
            return default or cls.ADAPTIVE
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            valid = ', '.join(t.value for t in cls)
            raise ValueError(
                f"Unknown quality tier: {value!r}. Expected one of: {valid}"
            ) from None


@dataclass(frozen=True)
class SampleSequence:
    """
    Immutable single-channel sequence of amplitudes.

    The samples are stored as a read-only float32 array, so stages can
    share a sequence without copying and none of them can mutate it.
    """

    samples: np.ndarray
    sample_rate: int

    def __post_init__(self) -> None:
        """Validate and freeze the sample buffer."""
        if int(self.sample_rate) <= 0:
            raise ValueError(f"Sample rate must be positive, got {self.sample_rate}")

        data = np.array(self.samples, dtype=np.float32, copy=True).reshape(-1)
        data.setflags(write=False)
        object.__setattr__(self, 'samples', data)
        object.__setattr__(self, 'sample_rate', int(self.sample_rate))

    def __len__(self) -> int:
        return int(self.samples.shape[0])

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        return len(self) / self.sample_rate

    def padded(self, length: int) -> np.ndarray:
        """
        Return the first ``length`` samples as float64.

        Positions past the end of the sequence read as silence.
        """
        out = np.zeros(length, dtype=np.float64)
        n = min(length, len(self))
        out[:n] = self.samples[:n]
        return out

    def to_list(self) -> List[float]:
        """Samples as a plain list of floats."""
        return self.samples.astype(np.float64).tolist()


@dataclass(frozen=True)
class DecodedAudio:
    """Decoder output: equal-length channels sharing one sample rate."""

    channels: Tuple[SampleSequence, ...]
    source_channels: int
    format: str = 'UNKNOWN'
    subtype: str = 'UNKNOWN'

    def __post_init__(self) -> None:
        """Validate channel layout."""
        channels = tuple(self.channels)
        if not channels:
            raise ValueError("Decoded audio needs at least one channel")

        rates = {c.sample_rate for c in channels}
        if len(rates) != 1:
            raise ValueError(f"Channels disagree on sample rate: {sorted(rates)}")

        lengths = {len(c) for c in channels}
        if len(lengths) != 1:
            raise ValueError(f"Channels disagree on length: {sorted(lengths)}")

        object.__setattr__(self, 'channels', channels)

    @classmethod
    def from_arrays(
        cls,
        arrays: Sequence[np.ndarray],
        sample_rate: int,
        **metadata: Any
    ) -> "DecodedAudio":
        """Build from raw per-channel arrays; one channel is duplicated."""
        channels = [SampleSequence(a, sample_rate) for a in arrays]
        source_channels = len(channels)
        if source_channels == 1:
            channels = [channels[0], channels[0]]
        return cls(channels=tuple(channels), source_channels=source_channels, **metadata)

    @property
    def sample_rate(self) -> int:
        return self.channels[0].sample_rate

    @property
    def duration(self) -> float:
        return self.channels[0].duration

    @property
    def left(self) -> SampleSequence:
        """First channel; all analysis runs on it."""
        return self.channels[0]

    @property
    def right(self) -> SampleSequence:
        return self.channels[1] if len(self.channels) > 1 else self.channels[0]


@dataclass(frozen=True)
class DescriptorVector:
    """Ten-field perceptual summary of a track."""

    tempo: float
    key: str
    mode: str
    energy: float
    danceability: float
    valence: float
    acousticness: float
    instrumentalness: float
    liveness: float
    speechiness: float

    def __post_init__(self) -> None:
        """Validate fields."""
        if not (self.tempo >= 0.0):
            raise ValueError(f"Tempo must be non-negative, got {self.tempo}")
        if self.key not in NOTE_NAMES:
            raise ValueError(f"Invalid key: {self.key}. Must be one of {NOTE_NAMES}")
        if self.mode not in MODES:
            raise ValueError(f"Invalid mode: {self.mode}. Must be one of {MODES}")
        for name in UNIT_DESCRIPTORS:
            validate_unit_interval(getattr(self, name), name)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'tempo': self.tempo,
            'key': self.key,
            'mode': self.mode,
            'energy': self.energy,
            'danceability': self.danceability,
            'valence': self.valence,
            'acousticness': self.acousticness,
            'instrumentalness': self.instrumentalness,
            'liveness': self.liveness,
            'speechiness': self.speechiness,
        }

    def to_json(self, indent: int = 2) -> str:
        """Export as JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


# Descriptors normalized to [0, 1]
UNIT_DESCRIPTORS: Tuple[str, ...] = (
    'energy', 'danceability', 'valence', 'acousticness',
    'instrumentalness', 'liveness', 'speechiness'
)


@dataclass(frozen=True)
class Segment:
    """Pitch estimate for one analysis window."""

    start: float  # seconds
    end: float  # seconds
    confidence: float  # [0.0, 1.0]
    pitch: float  # Hz, 0 when no periodicity was found

    def __post_init__(self) -> None:
        """Validate fields."""
        validate_unit_interval(self.confidence, 'confidence')
        if self.pitch < 0:
            raise ValueError(f"Pitch must be non-negative, got {self.pitch}")
        if self.end < self.start:
            raise ValueError(f"Segment ends before it starts: {self.start} > {self.end}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'start': self.start,
            'end': self.end,
            'confidence': self.confidence,
            'pitch': self.pitch,
        }


@dataclass(frozen=True)
class AnalysisResult:
    """Complete analysis result for one audio unit."""

    features: DescriptorVector
    waveform: Tuple[float, ...]
    spectrum: Tuple[float, ...]
    beats: Tuple[float, ...]
    segments: Tuple[Segment, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        """Validate beat ordering."""
        beats = tuple(self.beats)
        if any(b < a for a, b in zip(beats, beats[1:])):
            raise ValueError("Beat times must be non-decreasing")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'features': self.features.to_dict(),
            'waveform': list(self.waveform),
            'spectrum': list(self.spectrum),
            'beats': list(self.beats),
            'segments': [s.to_dict() for s in self.segments],
        }

    def to_json(self, indent: int = 2) -> str:
        """Export as JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    def get_summary(self) -> str:
        """Get human-readable summary."""
        f = self.features
        parts = [
            f"Tempo: {f.tempo:.2f} BPM",
            f"Key: {f.key} {f.mode}",
            f"Energy: {f.energy:.3f}",
            f"Beats: {len(self.beats)}",
            f"Segments: {len(self.segments)}",
        ]
        return " | ".join(parts)


@dataclass(frozen=True)
class ProcessedAudio:
    """Result of quality-adaptive mixing."""

    samples: SampleSequence
    quality: QualityTier
    track_id: Any = None

    @property
    def sample_rate(self) -> int:
        return self.samples.sample_rate

    @property
    def duration(self) -> float:
        return self.samples.duration

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the audioProcessed payload."""
        return {
            'trackId': self.track_id,
            'processedSamples': self.samples.to_list(),
            'sampleRate': self.sample_rate,
            'duration': self.duration,
        }


# Validation helpers

def validate_unit_interval(value: float, name: str = 'value') -> None:
    """Validate a score lies in [0.0, 1.0]."""
    if not (0.0 <= value <= 1.0):
        raise ValueError(f"{name} must be in [0.0, 1.0], got {value}")

"""
Analysis engine for the SoundPrint engine.

Orchestration layer that wires the decoder, the analyzers and the mixer
into the analysis, feature-extraction and processing pipelines.
"""

import logging
import time
from typing import Any, Dict, Optional, Tuple

from soundprint.analyzers.descriptors import DescriptorExtractor
from soundprint.analyzers.rhythmic import RhythmAnalysis, RhythmicAnalyzer
from soundprint.analyzers.segmenter import Segmenter
from soundprint.analyzers.spectral import SpectralAnalyzer, Spectrum
from soundprint.analyzers.tonal import TonalAnalyzer
from soundprint.analyzers.waveform import WaveformGenerator
from soundprint.core.analyzer_base import Analyzer
from soundprint.core.decoder import AudioDecoder, create_audio_decoder
from soundprint.core.mixer import QualityMixer
from soundprint.core.models import (
    AnalysisResult,
    DecodedAudio,
    DescriptorVector,
    ProcessedAudio,
    QualityTier,
    Segment,
)
from soundprint.utils.config import get_default_config


class AudioAnalysisEngine:
    """
    Main analysis engine - orchestrates all components.

    Design:
    - Dependency Injection: All dependencies injected (testable)
    - Pure pipeline: every call builds fresh results from its input;
      the engine keeps no per-request state between calls
    - Analysis runs on the first channel of the decoded audio
    """

    def __init__(
        self,
        decoder: AudioDecoder,
        spectral_analyzer: Analyzer[Spectrum],
        rhythmic_analyzer: Analyzer[RhythmAnalysis],
        tonal_analyzer: TonalAnalyzer,
        segmenter: Analyzer[Tuple[Segment, ...]],
        waveform_generator: Analyzer[Tuple[float, ...]],
        descriptor_extractor: DescriptorExtractor,
        mixer: QualityMixer,
    ):
        """
        Initialize analysis engine.

        Args:
            decoder: AudioDecoder instance
            spectral_analyzer: Magnitude spectrum stage
            rhythmic_analyzer: Beat and tempo stage
            tonal_analyzer: Key and mode stage
            segmenter: Pitch segment stage
            waveform_generator: Waveform envelope stage
            descriptor_extractor: Combines stage outputs into descriptors
            mixer: Quality-adaptive channel mixer
        """
        self.decoder = decoder
        self.spectral_analyzer = spectral_analyzer
        self.rhythmic_analyzer = rhythmic_analyzer
        self.tonal_analyzer = tonal_analyzer
        self.segmenter = segmenter
        self.waveform_generator = waveform_generator
        self.descriptor_extractor = descriptor_extractor
        self.mixer = mixer
        self.logger = logging.getLogger('engine')

    def decode(self, data: bytes) -> DecodedAudio:
        """Decode encoded bytes into channels."""
        return self.decoder.decode(data)

    def analyze(self, audio: DecodedAudio) -> AnalysisResult:
        """
        Full analysis: descriptors, waveform, spectrum, beats and segments.

        Args:
            audio: Decoded audio

        Returns:
            AnalysisResult: Complete analysis result
        """
        start_time = time.perf_counter()
        channel = audio.left

        spectrum = self.spectral_analyzer.analyze(channel)
        rhythm = self.rhythmic_analyzer.analyze(channel)
        tonal = self.tonal_analyzer.estimate(spectrum)
        features = self.descriptor_extractor.extract(channel, spectrum, rhythm, tonal)

        result = AnalysisResult(
            features=features,
            waveform=self.waveform_generator.analyze(channel),
            spectrum=tuple(spectrum.to_list()),
            beats=rhythm.beats,
            segments=self.segmenter.analyze(channel),
        )

        self.logger.info(
            f"Analysis complete in {time.perf_counter() - start_time:.3f}s "
            f"({result.get_summary()})"
        )
        return result

    def extract_features(self, audio: DecodedAudio) -> DescriptorVector:
        """Descriptor vector only."""
        start_time = time.perf_counter()
        features = self.descriptor_extractor.analyze(audio.left)
        self.logger.info(
            f"Feature extraction complete in {time.perf_counter() - start_time:.3f}s"
        )
        return features

    def process(
        self,
        audio: DecodedAudio,
        quality: Optional[QualityTier] = None,
        track_id: Any = None
    ) -> ProcessedAudio:
        """
        Mix all channels into one playback buffer.

        Args:
            audio: Decoded audio
            quality: Quality tier; the mixer default when None
            track_id: Opaque correlation token, echoed back

        Returns:
            ProcessedAudio: Mixed samples with rate and duration
        """
        tier = QualityTier.parse(quality, default=self.mixer.default_quality)
        mixed = self.mixer.mix(audio.channels, tier)
        self.logger.info(f"Processed {audio.duration:.2f}s of audio at quality {tier.value}")
        return ProcessedAudio(samples=mixed, quality=tier, track_id=track_id)


def create_analysis_engine(config: Optional[Dict[str, Any]] = None) -> AudioAnalysisEngine:
    """
    Factory function to create fully configured analysis engine.

    Args:
        config: Configuration dict (defaults used for missing sections)

    Returns:
        AudioAnalysisEngine: Configured engine
    """
    defaults = get_default_config()
    config = config or {}
    analysis = {**defaults['analysis'], **config.get('analysis', {})}
    mixer_config = {**defaults['mixer'], **config.get('mixer', {})}

    decoder = create_audio_decoder({**defaults['decoder'], **config.get('decoder', {})})

    spectral = SpectralAnalyzer(window_size=analysis['spectrum_window'])
    rhythmic = RhythmicAnalyzer(
        window_seconds=analysis['beat_window_seconds'],
        threshold=analysis['beat_threshold'],
    )
    tonal = TonalAnalyzer(spectral)

    return AudioAnalysisEngine(
        decoder=decoder,
        spectral_analyzer=spectral,
        rhythmic_analyzer=rhythmic,
        tonal_analyzer=tonal,
        segmenter=Segmenter(
            window_seconds=analysis['segment_window_seconds'],
            hop_seconds=analysis['segment_hop_seconds'],
            min_lag=analysis['min_lag'],
        ),
        waveform_generator=WaveformGenerator(points=analysis['waveform_points']),
        descriptor_extractor=DescriptorExtractor(
            spectral_analyzer=spectral,
            rhythmic_analyzer=rhythmic,
            tonal_analyzer=tonal,
            tempo_reference=analysis['tempo_reference'],
        ),
        mixer=QualityMixer(
            default_quality=QualityTier.parse(mixer_config['default_quality']),
            threshold_ratio=mixer_config['adaptive_threshold_ratio'],
            attenuation=mixer_config['adaptive_attenuation'],
        ),
    )

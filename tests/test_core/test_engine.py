"""Tests for AudioAnalysisEngine wiring and the analyzer base."""

from unittest.mock import MagicMock

import numpy as np
import pytest

from soundprint.analyzers.spectral import SpectralAnalyzer
from soundprint.core.analyzer_base import Analyzer, BaseAnalyzer
from soundprint.core.engine import create_analysis_engine
from soundprint.core.models import DecodedAudio, QualityTier, SampleSequence
from soundprint.utils.errors import AnalysisError, InvalidInput


class _Failing(BaseAnalyzer[float]):
    def __init__(self, error):
        super().__init__("failing", "0.1")
        self.error = error

    def _analyze_impl(self, channel):
        raise self.error


class TestAnalyzerBase:
    def test_unexpected_error_wrapped(self, tone_440):
        with pytest.raises(AnalysisError) as exc_info:
            _Failing(ZeroDivisionError("oops")).analyze(tone_440)
        assert exc_info.value.analyzer_name == "failing"
        assert isinstance(exc_info.value.original_error, ZeroDivisionError)

    def test_engine_errors_pass_through(self, tone_440):
        with pytest.raises(InvalidInput):
            _Failing(InvalidInput("bad")).analyze(tone_440)

    def test_name_and_version(self):
        analyzer = SpectralAnalyzer()
        assert analyzer.name == "spectral"
        assert analyzer.version == "1.0.0"


class TestEngine:
    def test_analysis_uses_left_channel(self, engine, make_sine):
        left = make_sine(440.0)
        right = np.zeros_like(left)
        audio = DecodedAudio.from_arrays([left, right], 44100)

        result = engine.analyze(audio)
        assert result.features.energy > 0.0

        flipped = engine.analyze(DecodedAudio.from_arrays([right, left], 44100))
        assert flipped.features.energy == 0.0

    def test_features_match_analysis(self, engine, make_sine):
        audio = DecodedAudio.from_arrays([make_sine(300.0)], 44100)
        assert engine.extract_features(audio) == engine.analyze(audio).features

    def test_process(self, engine, make_sine):
        audio = DecodedAudio.from_arrays([make_sine(440.0), make_sine(220.0)], 44100)
        processed = engine.process(audio, QualityTier.MEDIUM, 'trk-1')
        assert processed.track_id == 'trk-1'
        assert processed.quality is QualityTier.MEDIUM
        assert len(processed.samples) == 44100

    def test_process_default_quality(self, engine):
        audio = DecodedAudio.from_arrays([np.ones(10)], 100)
        assert engine.process(audio).quality is QualityTier.ADAPTIVE

    def test_stages_satisfy_protocol(self, engine):
        for stage in (engine.spectral_analyzer, engine.rhythmic_analyzer, engine.tonal_analyzer,
                      engine.segmenter, engine.waveform_generator, engine.descriptor_extractor):
            assert isinstance(stage, Analyzer), stage.name

    def test_plain_stage_accepted(self, engine, make_sine):
        class PeakOnly:
            name = "peak"
            version = "0.1"

            def analyze(self, channel):
                return (float(np.max(np.abs(channel.samples))),)

        engine.waveform_generator = PeakOnly()
        assert isinstance(engine.waveform_generator, Analyzer)

        audio = DecodedAudio.from_arrays([make_sine(440.0)], 44100)
        assert engine.analyze(audio).waveform == pytest.approx((0.5,), rel=1e-4)

    def test_decode_delegates(self, mono_wav_bytes):
        engine = create_analysis_engine()
        engine.decoder = MagicMock()
        engine.decode(mono_wav_bytes)
        engine.decoder.decode.assert_called_once_with(mono_wav_bytes)


class TestFactory:
    def test_config_applied(self):
        engine = create_analysis_engine({
            'analysis': {'waveform_points': 50, 'spectrum_window': 512},
            'mixer': {'default_quality': 'low'},
            'decoder': {'max_bytes': 1234},
        })
        assert engine.waveform_generator.points == 50
        assert engine.spectral_analyzer.window_size == 512
        assert engine.mixer.default_quality is QualityTier.LOW
        assert engine.decoder.max_bytes == 1234
        # Unset keys keep their defaults
        assert engine.segmenter.min_lag == 20

    def test_stages_share_spectral_analyzer(self):
        engine = create_analysis_engine()
        assert engine.descriptor_extractor.spectral_analyzer is engine.spectral_analyzer
        assert engine.tonal_analyzer.spectral_analyzer is engine.spectral_analyzer

    def test_custom_spectrum_size(self):
        engine = create_analysis_engine({'analysis': {'spectrum_window': 256}})
        audio = DecodedAudio.from_arrays([np.zeros(1000)], 1000)
        assert len(engine.analyze(audio).spectrum) == 128

"""
Analyzer implementations for the individual pipeline stages.
"""

from soundprint.analyzers.spectral import SpectralAnalyzer, Spectrum
from soundprint.analyzers.rhythmic import RhythmicAnalyzer, RhythmAnalysis
from soundprint.analyzers.tonal import TonalAnalyzer, TonalAnalysis
from soundprint.analyzers.segmenter import Segmenter
from soundprint.analyzers.waveform import WaveformGenerator
from soundprint.analyzers.descriptors import DescriptorExtractor

__all__ = [
    "SpectralAnalyzer",
    "Spectrum",
    "RhythmicAnalyzer",
    "RhythmAnalysis",
    "TonalAnalyzer",
    "TonalAnalysis",
    "Segmenter",
    "WaveformGenerator",
    "DescriptorExtractor",
]

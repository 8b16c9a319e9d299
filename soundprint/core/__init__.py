"""
Core module containing data models, decoding, mixing, the analysis
engine and the request protocol.

Uses lazy imports for modules with heavy dependencies (librosa, soundfile).
"""

# Models are lightweight - import directly
from soundprint.core.models import (
    NOTE_NAMES,
    QualityTier,
    SampleSequence,
    DecodedAudio,
    DescriptorVector,
    Segment,
    AnalysisResult,
    ProcessedAudio,
    validate_unit_interval,
)

__all__ = [
    # Models (always available)
    "NOTE_NAMES",
    "QualityTier",
    "SampleSequence",
    "DecodedAudio",
    "DescriptorVector",
    "Segment",
    "AnalysisResult",
    "ProcessedAudio",
    "validate_unit_interval",
    # Heavy modules (lazy loaded)
    "AudioDecoder",
    "create_audio_decoder",
    "QualityMixer",
    "AudioAnalysisEngine",
    "create_analysis_engine",
    "TaskDispatcher",
    "WorkerPool",
    "create_worker_pool",
]


def __getattr__(name: str):
    """Lazy load modules with heavy dependencies."""
    if name in ("AudioDecoder", "create_audio_decoder"):
        from soundprint.core.decoder import AudioDecoder, create_audio_decoder
        return AudioDecoder if name == "AudioDecoder" else create_audio_decoder
    elif name == "QualityMixer":
        from soundprint.core.mixer import QualityMixer
        return QualityMixer
    elif name in ("AudioAnalysisEngine", "create_analysis_engine"):
        from soundprint.core.engine import AudioAnalysisEngine, create_analysis_engine
        return AudioAnalysisEngine if name == "AudioAnalysisEngine" else create_analysis_engine
    elif name == "TaskDispatcher":
        from soundprint.core.dispatcher import TaskDispatcher
        return TaskDispatcher
    elif name in ("WorkerPool", "create_worker_pool"):
        from soundprint.core.worker import WorkerPool, create_worker_pool
        return WorkerPool if name == "WorkerPool" else create_worker_pool
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

"""
Audio decoder for the SoundPrint engine.

Decodes encoded audio bytes (WAV, AIFF, FLAC, OGG, MP3 where libsndfile
supports it) into per-channel sample sequences.
"""

import io
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

import librosa
import numpy as np
import soundfile as sf

from soundprint.core.models import DecodedAudio
from soundprint.utils.errors import AudioTooLargeError, DecodeError


# Constants
MAX_BYTES: int = 524288000  # 500 MB

logger = logging.getLogger(__name__)


@contextmanager
def decoding_context(data: bytes) -> Iterator[sf.SoundFile]:
    """
    Open an in-memory decoding context for one decode call.

    The sound file and its buffer are closed on every exit path,
    including a failure while reading.

    Raises:
        DecodeError: If the bytes are not a recognized audio container
    """
    buffer = io.BytesIO(data)
    try:
        try:
            sound_file = sf.SoundFile(buffer)
        except Exception as e:
            raise DecodeError(
                f"Unrecognized or corrupt audio container: {e}",
                byte_count=len(data)
            ) from e

        try:
            yield sound_file
        finally:
            sound_file.close()
    finally:
        buffer.close()


class AudioDecoder:
    """
    Decodes audio bytes and creates DecodedAudio instances.

    Stateless apart from configuration - can be used concurrently.
    """

    def __init__(
        self,
        max_bytes: int = MAX_BYTES,
        target_sample_rate: Optional[int] = None,
        normalize_clipping: bool = True
    ):
        """
        Initialize decoder with configuration.

        Args:
            max_bytes: Maximum encoded buffer size in bytes
            target_sample_rate: Resample to this rate; keep the source rate if None
            normalize_clipping: Scale clipped input back into [-1, 1]; keep the raw
                scale if False
        """
        self.max_bytes = max_bytes
        self.target_sample_rate = target_sample_rate
        self.normalize_clipping = normalize_clipping

    def decode(self, data: bytes) -> DecodedAudio:
        """
        Decode audio bytes.

        Args:
            data: Encoded audio container bytes

        Returns:
            DecodedAudio: Two or more equal-length channels; mono sources
                          are duplicated to left and right

        Raises:
            DecodeError: Buffer is empty, too large, or not decodable
        """
        self._validate_bytes(data)

        with decoding_context(bytes(data)) as sound_file:
            metadata = {
                'format': sound_file.format,
                'subtype': sound_file.subtype,
            }
            sample_rate = int(sound_file.samplerate)
            try:
                frames = sound_file.read(dtype='float32', always_2d=True)
            except Exception as e:
                raise DecodeError(
                    f"Failed to read audio frames: {e}",
                    byte_count=len(data)
                ) from e

        # (frames, channels) -> (channels, frames)
        audio_data = np.ascontiguousarray(frames.T)

        logger.info(
            f"Decoded audio: {sample_rate} Hz, {audio_data.shape[0]} ch, "
            f"{metadata['subtype']}, {audio_data.shape[1]} frames"
        )

        audio_data = self._validate_audio_data(audio_data)
        audio_data, sample_rate = self._resample(audio_data, sample_rate)

        return DecodedAudio.from_arrays(list(audio_data), sample_rate, **metadata)

    def _validate_bytes(self, data: Any) -> None:
        """Validate the encoded buffer before opening a decoding context."""
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise DecodeError(
                f"Audio data must be bytes, got {type(data).__name__}"
            )

        size = len(data)
        if size == 0:
            raise DecodeError("Audio buffer is empty", byte_count=0)

        if size > self.max_bytes:
            raise AudioTooLargeError(
                f"Audio buffer too large: {size / 1024 / 1024:.1f} MB. "
                f"Maximum: {self.max_bytes / 1024 / 1024:.1f} MB",
                byte_count=size,
                max_bytes=self.max_bytes
            )

    def _validate_audio_data(self, audio_data: np.ndarray) -> np.ndarray:
        """Validate decoded sample integrity."""
        if audio_data.size == 0:
            raise DecodeError("Audio container holds no samples")

        if not np.all(np.isfinite(audio_data)):
            raise DecodeError("Decoded audio contains non-finite samples")

        rms = np.sqrt(np.mean(audio_data.astype(np.float64) ** 2))
        if rms < 1e-6:
            logger.warning("Audio appears to be silent")

        max_abs = float(np.max(np.abs(audio_data)))
        if max_abs > 1.0 and self.normalize_clipping:
            logger.warning(f"Audio contains clipping (max: {max_abs:.2f}), normalizing")
            audio_data = audio_data / max_abs
        elif max_abs > 1.0:
            logger.warning(f"Audio contains clipping (max: {max_abs:.2f}), keeping raw scale")

        return audio_data

    def _resample(self, audio_data: np.ndarray, sample_rate: int):
        """Resample to the configured target rate, if any."""
        target = self.target_sample_rate
        if not target or target == sample_rate:
            return audio_data, sample_rate

        logger.debug(f"Resampling {sample_rate} Hz -> {target} Hz")
        resampled = librosa.resample(
            audio_data, orig_sr=sample_rate, target_sr=target, axis=-1
        )
        return resampled.astype(np.float32), int(target)


def create_audio_decoder(config: Optional[Dict[str, Any]] = None) -> AudioDecoder:
    """
    Factory function to create AudioDecoder with configuration.

    Args:
        config: Optional ``decoder`` configuration section

    Returns:
        AudioDecoder: Configured decoder instance
    """
    if config is None:
        config = {}

    return AudioDecoder(
        max_bytes=config.get('max_bytes', MAX_BYTES),
        target_sample_rate=config.get('target_sample_rate'),
        normalize_clipping=config.get('normalize_clipping', True)
    )

"""
Message protocol for the SoundPrint engine.

Requests and responses travel as plain dictionaries (camelCase keys, as
exchanged with the host application). This module converts them to and
from typed objects.

Request:
    {"type": "processAudio" | "analyzeAudio" | "extractFeatures",
     "data": {"audioBytes"?, "audioRef"?, "quality"?, "trackId"?},
     "requestId"?: str}

Responses:
    {"type": "audioProcessed", "data": {...}}
    {"type": "audioAnalysisComplete", "data": {...}}
    {"type": "featuresExtracted", "data": {...}}
    {"type": "error", "error": str, "errorType": str}

``requestId`` is echoed on every response when the request carried one.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from soundprint.core.models import QualityTier
from soundprint.utils.errors import AudioEngineError, InvalidInput, UnsupportedOperation


class RequestType(str, Enum):
    """Operations a request can ask for."""

    PROCESS_AUDIO = 'processAudio'
    ANALYZE_AUDIO = 'analyzeAudio'
    EXTRACT_FEATURES = 'extractFeatures'


class ResponseType(str, Enum):
    """Response message tags."""

    AUDIO_PROCESSED = 'audioProcessed'
    ANALYSIS_COMPLETE = 'audioAnalysisComplete'
    FEATURES_EXTRACTED = 'featuresExtracted'
    ERROR = 'error'


@dataclass(frozen=True)
class Request:
    """One typed request."""

    type: RequestType
    audio_bytes: Optional[bytes] = None
    audio_ref: Optional[str] = None
    quality: Optional[QualityTier] = None
    track_id: Any = None  # opaque, echoed unchanged
    request_id: Optional[str] = None

    @property
    def has_audio_source(self) -> bool:
        return self.audio_bytes is not None or self.audio_ref is not None

    @classmethod
    def from_message(cls, message: Any) -> "Request":
        """
        Parse a request message.

        Raises:
            InvalidInput: Malformed message or payload field
            UnsupportedOperation: Unknown type tag
        """
        if not isinstance(message, Mapping):
            raise InvalidInput(
                f"Request must be a mapping, got {type(message).__name__}"
            )

        tag = message.get('type')
        try:
            request_type = RequestType(tag)
        except (TypeError, ValueError):
            raise UnsupportedOperation(
                f"Unknown message type: {tag}", operation=str(tag)
            ) from None

        data = message.get('data') or {}
        if not isinstance(data, Mapping):
            raise InvalidInput("Request data must be a mapping", field='data')

        audio_bytes = data.get('audioBytes')
        if audio_bytes is not None:
            if not isinstance(audio_bytes, (bytes, bytearray, memoryview)):
                raise InvalidInput(
                    f"audioBytes must be bytes, got {type(audio_bytes).__name__}",
                    field='audioBytes'
                )
            audio_bytes = bytes(audio_bytes)

        audio_ref = data.get('audioRef')
        if audio_ref is not None and not isinstance(audio_ref, str):
            raise InvalidInput("audioRef must be a string", field='audioRef')

        try:
            quality = (
                QualityTier.parse(data['quality'])
                if data.get('quality') is not None else None
            )
        except ValueError as e:
            raise InvalidInput(str(e), field='quality') from None

        track_id = data.get('trackId')
        request_id = message.get('requestId')

        return cls(
            type=request_type,
            audio_bytes=audio_bytes,
            audio_ref=audio_ref,
            quality=quality,
            track_id=track_id,
            request_id=None if request_id is None else str(request_id),
        )

    def to_message(self) -> Dict[str, Any]:
        """Build the wire dictionary for this request."""
        data: Dict[str, Any] = {}
        if self.audio_bytes is not None:
            data['audioBytes'] = self.audio_bytes
        if self.audio_ref is not None:
            data['audioRef'] = self.audio_ref
        if self.quality is not None:
            data['quality'] = self.quality.value
        if self.track_id is not None:
            data['trackId'] = self.track_id

        message: Dict[str, Any] = {'type': self.type.value, 'data': data}
        if self.request_id is not None:
            message['requestId'] = self.request_id
        return message


@dataclass(frozen=True)
class Response:
    """One typed response: a payload or an error, never both."""

    type: ResponseType
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    request_id: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.type is not ResponseType.ERROR

    @classmethod
    def success(
        cls,
        response_type: ResponseType,
        data: Dict[str, Any],
        request_id: Optional[str] = None
    ) -> "Response":
        return cls(type=response_type, data=data, request_id=request_id)

    @classmethod
    def failure(
        cls,
        error: AudioEngineError,
        request_id: Optional[str] = None
    ) -> "Response":
        """Error response carrying a non-empty, human-readable message."""
        message = error.message or type(error).__name__
        return cls(
            type=ResponseType.ERROR,
            error=message,
            error_type=type(error).__name__,
            request_id=request_id,
        )

    def to_message(self) -> Dict[str, Any]:
        """Build the wire dictionary for this response."""
        message: Dict[str, Any] = {'type': self.type.value}
        if self.ok:
            message['data'] = self.data
        else:
            message['error'] = self.error
            message['errorType'] = self.error_type
        if self.request_id is not None:
            message['requestId'] = self.request_id
        return message

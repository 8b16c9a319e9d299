"""
Task dispatcher for the SoundPrint engine.

The externally visible entry point: one request message in, exactly one
response message out. The dispatcher only routes and translates errors;
all audio work happens in the engine.
"""

import logging
import time
from typing import Any, Callable, Dict, Mapping, Optional

from soundprint.core.engine import AudioAnalysisEngine
from soundprint.core.models import DecodedAudio
from soundprint.core.protocol import Request, RequestType, Response, ResponseType
from soundprint.utils.errors import AudioEngineError, InternalError, InvalidInput
from soundprint.utils.logging import create_logger_with_context

# Resolves an external audio reference (path, URL, key) to encoded bytes
ByteSource = Callable[[str], bytes]

logger = logging.getLogger(__name__)


class TaskDispatcher:
    """
    Routes typed requests to the engine.

    Handles one request at a time. Every failure, typed or not, becomes
    an ``error`` response; the dispatcher stays usable afterwards.
    """

    def __init__(
        self,
        engine: AudioAnalysisEngine,
        byte_source: Optional[ByteSource] = None
    ):
        """
        Initialize dispatcher.

        Args:
            engine: Analysis engine that performs the work
            byte_source: Optional collaborator resolving ``audioRef`` values
        """
        self.engine = engine
        self.byte_source = byte_source
        self._handlers: Dict[RequestType, Callable[[Request], Response]] = {
            RequestType.PROCESS_AUDIO: self._process_audio,
            RequestType.ANALYZE_AUDIO: self._analyze_audio,
            RequestType.EXTRACT_FEATURES: self._extract_features,
        }

    def handle(self, message: Any) -> Dict[str, Any]:
        """
        Handle one request message.

        Args:
            message: Request dictionary

        Returns:
            dict: Response message; never raises
        """
        request_id = _request_id_of(message)
        return self.dispatch(message, request_id).to_message()

    def dispatch(self, message: Any, request_id: Optional[str] = None) -> Response:
        """Handle one request message and return the typed response."""
        start_time = time.perf_counter()
        log = create_logger_with_context(__name__, {'request_id': request_id})

        try:
            request = Request.from_message(message)
            log = create_logger_with_context(__name__, {
                'request_id': request.request_id,
                'track_id': request.track_id,
                'operation': request.type.value,
            })
            log.info(f"Handling {request.type.value}")

            response = self._handlers[request.type](request)

            log.info(
                f"{request.type.value} complete in {time.perf_counter() - start_time:.3f}s"
            )
            return response

        except AudioEngineError as e:
            log.warning(f"Request failed: {type(e).__name__}: {e}")
            return Response.failure(e, request_id)

        except Exception as e:
            log.exception(f"Unexpected failure: {e}")
            error = InternalError(str(e) or f"Unexpected {type(e).__name__}", original_error=e)
            return Response.failure(error, request_id)

    def _process_audio(self, request: Request) -> Response:
        audio = self._load_audio(request)
        processed = self.engine.process(audio, request.quality, request.track_id)
        return Response.success(
            ResponseType.AUDIO_PROCESSED, processed.to_dict(), request.request_id
        )

    def _analyze_audio(self, request: Request) -> Response:
        audio = self._load_audio(request)
        result = self.engine.analyze(audio)
        return Response.success(
            ResponseType.ANALYSIS_COMPLETE, result.to_dict(), request.request_id
        )

    def _extract_features(self, request: Request) -> Response:
        audio = self._load_audio(request)
        features = self.engine.extract_features(audio)
        return Response.success(
            ResponseType.FEATURES_EXTRACTED, features.to_dict(), request.request_id
        )

    def _load_audio(self, request: Request) -> DecodedAudio:
        """Decode the request's audio, resolving ``audioRef`` if needed."""
        if request.audio_bytes is not None:
            return self.engine.decode(request.audio_bytes)

        if request.audio_ref is not None:
            if self.byte_source is None:
                raise InvalidInput(
                    "audioRef given but no byte source is configured to resolve it",
                    field='audioRef'
                )
            return self.engine.decode(self.byte_source(request.audio_ref))

        raise InvalidInput("No audio buffer provided", field='audioBytes')


def _request_id_of(message: Any) -> Optional[str]:
    if isinstance(message, Mapping) and message.get('requestId') is not None:
        return str(message['requestId'])
    return None

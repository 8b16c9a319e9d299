"""
SoundPrint - Audio Analysis CLI

Command-line front end: reads audio files, sends one request per file
through the dispatcher (or a worker pool for several files) and prints
the responses.

Example usage:
    soundprint analyze path/to/track.wav
    soundprint features --output features.json path/to/track.flac
    soundprint process --quality lossless path/to/track.wav
    soundprint analyze --workers 4 a.wav b.wav c.wav
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from soundprint.core.models import QualityTier
from soundprint.core.protocol import RequestType
from soundprint.utils.config import load_config
from soundprint.utils.errors import ConfigurationError
from soundprint.utils.logging import setup_logging

COMMANDS = {
    'analyze': RequestType.ANALYZE_AUDIO,
    'features': RequestType.EXTRACT_FEATURES,
    'process': RequestType.PROCESS_AUDIO,
}


def read_file(path: str) -> bytes:
    """Byte source for ``audioRef`` values given on the command line."""
    return Path(path).read_bytes()


def build_request(command: str, audio_file: Path, quality: Optional[str] = None) -> Dict[str, Any]:
    """Build the request message for one file."""
    data: Dict[str, Any] = {'audioRef': str(audio_file), 'trackId': audio_file.stem}
    if quality:
        data['quality'] = quality
    return {'type': COMMANDS[command].value, 'data': data}


def print_response(audio_file: Path, response: Dict[str, Any]) -> None:
    """Print a response to the console in a readable format."""
    print("\n" + "=" * 60)
    print(f"File: {audio_file.name}")
    print("-" * 60)

    kind = response.get('type')
    data = response.get('data') or {}

    if kind == 'error':
        print(f"Error ({response.get('errorType')}): {response.get('error')}")
    elif kind == 'featuresExtracted':
        _print_features(data)
    elif kind == 'audioAnalysisComplete':
        _print_features(data['features'])
        print(f"  Beats: {len(data['beats'])}")
        print(f"  Segments: {len(data['segments'])}")
        print(f"  Spectrum bins: {len(data['spectrum'])}")
        print(f"  Waveform points: {len(data['waveform'])}")
    elif kind == 'audioProcessed':
        print(f"  Samples: {len(data['processedSamples'])}")
        print(f"  Sample Rate: {data['sampleRate']} Hz")
        print(f"  Duration: {data['duration']:.2f}s")
    print("-" * 60)


def _print_features(features: Dict[str, Any]) -> None:
    print(f"  Tempo: {features['tempo']:.1f} BPM")
    print(f"  Key: {features['key']} {features['mode']}")
    for name in ('energy', 'danceability', 'valence', 'acousticness',
                 'instrumentalness', 'liveness', 'speechiness'):
        print(f"  {name.capitalize()}: {features[name]:.3f}")


def run(
    command: str,
    audio_files: List[Path],
    config: dict,
    quality: Optional[str] = None,
    output: Optional[Path] = None,
    workers: Optional[int] = None
) -> int:
    """
    Run one command over one or more files.

    Returns:
        Exit code (0 when every response succeeded, 1 otherwise)
    """
    missing = [f for f in audio_files if not f.exists()]
    if missing:
        for f in missing:
            print(f"Error: Audio file not found: {f}")
        return 1

    messages = [build_request(command, f, quality) for f in audio_files]

    if len(messages) == 1 and not workers:
        from soundprint.core.dispatcher import TaskDispatcher
        from soundprint.core.engine import create_analysis_engine

        dispatcher = TaskDispatcher(create_analysis_engine(config), byte_source=read_file)
        responses = [dispatcher.handle(messages[0])]
    else:
        from soundprint.core.worker import create_worker_pool

        if workers:
            config = {**config, 'workers': {**config.get('workers', {}), 'count': workers}}
        with create_worker_pool(config, byte_source=read_file) as pool:
            responses = pool.map(messages)

    for audio_file, response in zip(audio_files, responses):
        print_response(audio_file, response)

    if output:
        payload: Any = responses[0] if len(responses) == 1 else responses
        with open(output, 'w') as f:
            json.dump(payload, f, indent=2)
        print(f"\nJSON results saved to: {output}")

    return 0 if all(r.get('type') != 'error' for r in responses) else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="soundprint",
        description="Analyze audio files and extract perceptual descriptors"
    )
    parser.add_argument(
        "command",
        choices=sorted(COMMANDS),
        help="Operation to run on each file"
    )
    parser.add_argument(
        "audio_files",
        type=Path,
        nargs="+",
        help="Audio files to read"
    )
    parser.add_argument(
        "--quality",
        choices=[t.value for t in QualityTier],
        default=None,
        help="Mixing quality tier (process only)"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file"
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Path to save JSON output"
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Run through a worker pool of this size"
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output"
    )

    args = parser.parse_args(argv)

    try:
        config = load_config(str(args.config) if args.config else None)
    except ConfigurationError as e:
        print(f"Error: {e}")
        return 1

    logging_config = config.get("logging", {})
    setup_logging(
        level="DEBUG" if args.verbose else logging_config.get("level", "INFO"),
        log_format=logging_config.get("format", "text"),
        log_file=logging_config.get("file"),
        colored=True,
        console_enabled=True
    )

    return run(
        args.command,
        args.audio_files,
        config,
        quality=args.quality,
        output=args.output,
        workers=args.workers,
    )


if __name__ == "__main__":
    sys.exit(main())

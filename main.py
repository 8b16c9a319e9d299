"""
SoundPrint - Main Entry Point

Example usage:
    python main.py analyze path/to/track.wav
    python main.py features --config config/config.yaml path/to/track.wav
"""

import sys

from soundprint.cli import main

if __name__ == "__main__":
    sys.exit(main())

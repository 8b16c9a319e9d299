"""
SoundPrint audio analysis engine

Decodes encoded audio and derives a perceptual descriptor vector,
waveform, spectrum, beats and pitch segments, or a quality-adapted
mixed playback buffer. Requests arrive as messages through the task
dispatcher or a worker pool.
"""

__version__ = "1.0.0"

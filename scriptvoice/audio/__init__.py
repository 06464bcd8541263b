"""Audio assembly helpers.

This package collects per-chunk audio segments and merges them into one artifact.
"""

from .assembler import AudioAssembler
from .wav import WAV_HEADER_BYTES, read_wav_frames, wrap_pcm

__all__ = ["AudioAssembler", "WAV_HEADER_BYTES", "read_wav_frames", "wrap_pcm"]

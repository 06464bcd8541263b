"""Shared typed data models for Scriptvoice.

This package contains dataclasses used across chunking, synthesis, and audio
assembly modules to avoid cross-module coupling and circular imports.
"""

from .datatypes import (
    AudioFormat,
    AudioSegment,
    GenerationJob,
    GenerationResult,
    MergedAudio,
    SynthesisContext,
    SynthesisRequest,
    TextChunk,
)

__all__ = [
    "AudioFormat",
    "AudioSegment",
    "GenerationJob",
    "GenerationResult",
    "MergedAudio",
    "SynthesisContext",
    "SynthesisRequest",
    "TextChunk",
]

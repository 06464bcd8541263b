"""Core datatypes shared across Scriptvoice modules.

Responsibilities:
- Represent immutable records exchanged between chunking, synthesis, and assembly.
- Provide explicit typing for job submission and job results.

Key types:
- `TextChunk`, `SynthesisContext`, `SynthesisRequest`, `AudioFormat`,
  `AudioSegment`, `GenerationJob`, `MergedAudio`, and `GenerationResult`.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class TextChunk:
    """A bounded slice of the input text, synthesized as one request.

    Attributes:
        index: 0-based position in the final concatenation.
        content: Non-empty chunk text no longer than the configured maximum.
    """

    index: int
    content: str


@dataclass(frozen=True, slots=True)
class SynthesisContext:
    """Neighbor excerpts passed to a provider for continuity, never vocalized.

    Attributes:
        previous_excerpt: Trailing slice of the previous chunk, or empty.
        next_excerpt: Leading slice of the next chunk, or empty.
    """

    previous_excerpt: str = ""
    next_excerpt: str = ""


@dataclass(frozen=True, slots=True)
class SynthesisRequest:
    """Provider-neutral synthesis call for one chunk."""

    text: str
    language: str
    voice_id: str
    style_directives: tuple[str, ...]
    context: SynthesisContext
    model_id: str


@dataclass(frozen=True, slots=True)
class AudioFormat:
    """Shape of the audio payload a provider returns.

    Attributes:
        container: `pcm` (headerless samples), `wav`, or `mp3`.
        sample_rate: Samples per second.
        channels: Channel count.
        sample_width: Bytes per sample (PCM/WAV only).
        mime_type: MIME type of the merged artifact.
    """

    container: str
    sample_rate: int
    channels: int = 1
    sample_width: int = 2
    mime_type: str = "audio/wav"

    @property
    def file_extension(self) -> str:
        """Return the file extension for a merged artifact in this format."""

        return "mp3" if self.container == "mp3" else "wav"


@dataclass(frozen=True, slots=True)
class AudioSegment:
    """Synthesized audio for exactly one chunk.

    Attributes:
        id: Equal to the source chunk index.
        source_text: Chunk text that was vocalized.
        audio_payload: Raw provider audio bytes.
        credential_index: Pool position of the key that succeeded.
        attempts: Number of attempts used for this chunk.
    """

    id: int
    source_text: str
    audio_payload: bytes
    credential_index: int = 0
    attempts: int = 1


@dataclass(frozen=True, slots=True)
class GenerationJob:
    """Job submission parameters, immutable for the job lifetime."""

    text: str
    provider: str
    language: str
    voice_id: str
    tone: str | None = None
    style: str | None = None
    instructions: str | None = None
    model_id: str | None = None
    max_chunk_chars: int | None = None


@dataclass(frozen=True, slots=True)
class MergedAudio:
    """Final artifact concatenated from all segments in chunk order."""

    data: bytes
    audio_format: AudioFormat
    segment_count: int

    @property
    def file_extension(self) -> str:
        """Return the file extension matching the artifact container."""

        return self.audio_format.file_extension


@dataclass(frozen=True, slots=True)
class GenerationResult:
    """Successful job outcome."""

    merged_audio: MergedAudio
    segments: tuple[AudioSegment, ...]
    chunk_count: int
    provider: str
    model_id: str
    voice_id: str

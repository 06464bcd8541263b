"""Ordered collection and merge of per-chunk audio segments.

Responsibilities:
- Collect segments strictly in chunk order and notify a listener as each arrives.
- Merge all segments into one artifact with a single container header.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from ..errors import CATEGORY_EMPTY_RESULT, GenerationError
from ..models.datatypes import AudioFormat, AudioSegment, MergedAudio
from .wav import read_wav_frames, wrap_pcm

SegmentListener = Callable[[AudioSegment], None]


class AudioAssembler:
    """Accumulate audio segments for one job and merge them on completion."""

    def __init__(
        self,
        audio_format: AudioFormat,
        on_segment_ready: SegmentListener | None = None,
    ) -> None:
        """Initialize an empty assembler for segments of one audio format."""

        self.audio_format = audio_format
        self._on_segment_ready = on_segment_ready
        self._segments: list[AudioSegment] = []

    @property
    def segments(self) -> tuple[AudioSegment, ...]:
        """Return collected segments in arrival order."""

        return tuple(self._segments)

    def add(self, segment: AudioSegment) -> None:
        """Append the next segment and notify the listener before returning.

        Raises:
            ValueError: If the segment id does not follow the previous one.
        """

        expected_id = len(self._segments)
        if segment.id != expected_id:
            raise ValueError(
                f"Audio segment {segment.id} arrived out of order (expected {expected_id})."
            )
        self._segments.append(segment)
        if self._on_segment_ready is not None:
            self._on_segment_ready(segment)

    def merge(self) -> MergedAudio:
        """Merge collected segments into one artifact in chunk order.

        Raises:
            GenerationError: If no segments were collected.
            ValueError: If WAV segments have mismatched parameters.
        """

        if not self._segments:
            raise GenerationError(CATEGORY_EMPTY_RESULT)

        container = self.audio_format.container
        if container == "pcm":
            samples = b"".join(segment.audio_payload for segment in self._segments)
            data = wrap_pcm(samples, self.audio_format)
            merged_format = AudioFormat(
                container="wav",
                sample_rate=self.audio_format.sample_rate,
                channels=self.audio_format.channels,
                sample_width=self.audio_format.sample_width,
            )
        elif container == "wav":
            data, merged_format = self._merge_wav()
        else:
            data = b"".join(segment.audio_payload for segment in self._segments)
            merged_format = self.audio_format

        return MergedAudio(
            data=data,
            audio_format=merged_format,
            segment_count=len(self._segments),
        )

    def write(self, output_path: Path) -> MergedAudio:
        """Merge and write the artifact to `output_path`."""

        merged = self.merge()
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(merged.data)
        return merged

    def _merge_wav(self) -> tuple[bytes, AudioFormat]:
        """Re-encode WAV segments under one header after checking parameters match."""

        first_format, first_frames = read_wav_frames(self._segments[0].audio_payload)
        frames = [first_frames]
        for segment in self._segments[1:]:
            segment_format, segment_frames = read_wav_frames(segment.audio_payload)
            if (
                segment_format.channels != first_format.channels
                or segment_format.sample_width != first_format.sample_width
                or segment_format.sample_rate != first_format.sample_rate
            ):
                raise ValueError(f"Incompatible WAV parameters for segment {segment.id}.")
            frames.append(segment_frames)
        return wrap_pcm(b"".join(frames), first_format), first_format

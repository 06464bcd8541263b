"""TTS synthesizer interface and style directive helpers.

Responsibilities:
- Define the protocol every provider client implements for chunk-level synthesis.
- Turn job-level tone, style, and instructions into provider-neutral directives.
"""

from __future__ import annotations

from typing import Protocol

from ..models.datatypes import AudioFormat, SynthesisRequest
from .voices import is_neutral_option

NEUTRAL_PERSONA: tuple[str, ...] = ("neutral, professional narration",)


class SpeechSynthesizer(Protocol):
    """Protocol for TTS provider implementations.

    Implementations perform exactly one provider request per call and raise
    `SynthesisFailure` with a classified failure kind when it fails.
    """

    provider_id: str
    model_id: str
    output_format: AudioFormat

    def synthesize(self, request: SynthesisRequest, api_key: str) -> bytes:
        """Synthesize one chunk with the given API key and return raw audio bytes."""


def build_style_directives(
    tone: str | None,
    style: str | None,
    instructions: str | None,
) -> tuple[str, ...]:
    """Build ordered delivery directives, falling back to a neutral persona.

    Blank values and the neutral placeholder (`Standard`, `Tiêu chuẩn`) are skipped.
    """

    directives: list[str] = []
    if not is_neutral_option(tone):
        directives.append(f"{tone.strip()} tone")
    if not is_neutral_option(style):
        directives.append(f"{style.strip()} style")
    if instructions is not None and instructions.strip():
        directives.append(" ".join(instructions.split()))
    if not directives:
        return NEUTRAL_PERSONA
    return tuple(directives)


def has_custom_delivery(directives: tuple[str, ...]) -> bool:
    """Return whether directives ask for anything beyond the neutral persona."""

    return bool(directives) and directives != NEUTRAL_PERSONA

"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
generation summaries, chunk plans, voice listings, and masked key listings.
"""

from __future__ import annotations

from pathlib import Path
from typing import NoReturn

import typer

from .errors import (
    CATEGORY_AUTHENTICATION,
    CATEGORY_CONTENT_POLICY,
    CATEGORY_EMPTY_RESULT,
    CATEGORY_QUOTA,
    CATEGORY_TRANSIENT,
    CATEGORY_UNCONFIGURED,
    CATEGORY_VALIDATION,
    GenerationError,
    PipelineStageError,
)
from .models.datatypes import GenerationResult, TextChunk
from .tts.voices import VoiceProfile

_CATEGORY_HINTS = {
    CATEGORY_UNCONFIGURED: (
        "Pass `--api-key`, run `scriptvoice keys set <provider>`, or set "
        "`GEMINI_API_KEYS` / `ELEVENLABS_API_KEYS`."
    ),
    CATEGORY_AUTHENTICATION: "Check that the configured API keys are valid and enabled.",
    CATEGORY_QUOTA: "Add more API keys to the pool or wait for the provider quota to reset.",
    CATEGORY_VALIDATION: "Check voice, language, and model options (`scriptvoice voices`).",
    CATEGORY_CONTENT_POLICY: "Revise the flagged text and rerun.",
    CATEGORY_TRANSIENT: "Retry later; the provider may be temporarily unavailable.",
    CATEGORY_EMPTY_RESULT: "Retry; if it persists, lower `--chunk-size`.",
}
_PREVIEW_CHARS = 60


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, PipelineStageError):
        typer.secho(
            f"{command_name} failed at stage `{exc.stage}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    elif isinstance(exc, GenerationError):
        location = ""
        if exc.chunk_index is not None:
            location = f" (chunk {exc.chunk_index + 1}, {exc.attempts} attempt(s))"
        typer.secho(
            f"{command_name} failed [{exc.category}]{location}: {exc.message}",
            fg=typer.colors.RED,
            err=True,
        )
        hint = _CATEGORY_HINTS.get(exc.category)
        if hint:
            typer.secho(f"Hint: {hint}", fg=typer.colors.YELLOW, err=True)
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def echo_generation_summary(result: GenerationResult, output_path: Path) -> None:
    """Print the merged artifact location and job totals."""

    typer.echo(f"Provider: {result.provider} (model {result.model_id}, voice {result.voice_id})")
    typer.echo(f"Chunks: {result.chunk_count}")
    typer.echo(f"Attempts: {sum(segment.attempts for segment in result.segments)}")
    typer.echo(f"Audio bytes: {len(result.merged_audio.data)}")
    typer.echo(f"Merged audio: {output_path}")


def echo_chunk_plan(chunks: list[TextChunk], max_length: int) -> None:
    """Print one row per planned chunk and a total line."""

    for chunk in chunks:
        preview = " ".join(chunk.content.split())
        if len(preview) > _PREVIEW_CHARS:
            preview = f"{preview[: _PREVIEW_CHARS - 3]}..."
        typer.echo(f"{chunk.index + 1}. [{len(chunk.content)} chars] {preview}")
    typer.echo(f"Total chunks: {len(chunks)} (max {max_length} chars)")


def echo_voice_list(voices: list[VoiceProfile]) -> None:
    """Print voice catalogue rows."""

    if not voices:
        typer.echo("No voices match the selected filters.")
        return
    for voice in voices:
        typer.echo(
            f"{voice.voice_id}  {voice.name}  ({voice.gender}, {voice.language})  {voice.traits}"
        )


def mask_api_key(api_key: str) -> str:
    """Return a display-safe form of an API key."""

    if len(api_key) <= 8:
        return "*" * len(api_key)
    return f"{api_key[:4]}...{api_key[-4:]}"

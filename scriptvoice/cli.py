"""Command-line interface for Scriptvoice.

Responsibilities:
- Expose user-facing commands for generation, chunk planning, voices, and keys.
- Convert CLI arguments into `ScriptvoiceConfig` and `GenerationJob` values.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import Annotated

import typer

from .audio.wav import wrap_pcm
from .cli_rendering import (
    echo_chunk_plan,
    echo_generation_summary,
    echo_voice_list,
    exit_with_command_error,
    mask_api_key,
)
from .cli_runtime import resolve_api_key_sources
from .config import ConfigLoader, RuntimeConfigSources, ScriptvoiceConfig
from .credentials import create_credential_store
from .errors import PipelineStageError
from .keys.cursor_store import JsonFileCursorStore
from .models.datatypes import AudioFormat, AudioSegment, GenerationJob, TextChunk
from .parsing import normalize_key_list, normalize_optional_string
from .pipeline import GenerationPipeline
from .provider_factory import ProviderFactory
from .telemetry.logger import RunLogger
from .tts.voices import LANGUAGES, models_for, voices_for

app = typer.Typer(
    name="scriptvoice",
    no_args_is_help=True,
    help="Scriptvoice CLI: long-text speech generation with multi-key failover.",
)
keys_app = typer.Typer(
    name="keys",
    no_args_is_help=True,
    help="Manage provider API keys stored in the system keyring.",
)
app.add_typer(keys_app, name="keys")


class GenerationProgressIndicator:
    """Render per-chunk progress lines and optionally write each segment to disk."""

    def __init__(
        self,
        command_name: str,
        audio_format: AudioFormat,
        segments_dir: Path | None = None,
    ) -> None:
        """Initialize progress output settings for a command invocation."""

        self._command_name = command_name
        self._audio_format = audio_format
        self._segments_dir = segments_dir
        self._total = 0

    def on_chunk_start(self, chunk: TextChunk, total: int) -> None:
        """Print one progress line before a chunk is requested."""

        self._total = total
        typer.echo(
            f"[progress] command={self._command_name} "
            f"chunk={chunk.index + 1}/{total} chars={len(chunk.content)}"
        )

    def on_segment_ready(self, segment: AudioSegment) -> None:
        """Print a segment-ready line and write the segment file when requested."""

        typer.echo(
            f"[segment] {segment.id + 1}/{self._total} ready "
            f"bytes={len(segment.audio_payload)} attempts={segment.attempts}"
        )
        if self._segments_dir is None:
            return
        self._segments_dir.mkdir(parents=True, exist_ok=True)
        payload = segment.audio_payload
        if self._audio_format.container == "pcm":
            payload = wrap_pcm(payload, self._audio_format)
        segment_path = (
            self._segments_dir / f"segment_{segment.id + 1:03d}.{self._audio_format.file_extension}"
        )
        segment_path.write_bytes(payload)


def _load_base_config(config_path: Path | None) -> ScriptvoiceConfig:
    """Load the YAML config when requested, else the environment config."""

    try:
        if config_path is None:
            return ConfigLoader.from_env()
        return ConfigLoader.from_yaml(config_path)
    except FileNotFoundError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Config file not found: `{config_path}`.",
            hint="Provide an existing path via `--config <path.yaml>`.",
        ) from exc
    except ValueError as exc:
        source = f"config file `{config_path}`" if config_path else "environment configuration"
        raise PipelineStageError(
            stage="config",
            detail=f"Invalid {source}: {exc}",
            hint="Fix config schema/values and rerun.",
        ) from exc


def _resolve_command_config(
    config_path: Path | None,
    provider: str | None = None,
    language: str | None = None,
    voice: str | None = None,
    tone: str | None = None,
    style: str | None = None,
    instructions: str | None = None,
    model: str | None = None,
    chunk_size: int | None = None,
) -> ScriptvoiceConfig:
    """Resolve effective command config from file/env defaults and CLI overrides."""

    base_config = _load_base_config(config_path)
    overrides: dict[str, object] = {}
    resolved_provider = normalize_optional_string(provider)
    if resolved_provider is not None and resolved_provider != base_config.provider:
        overrides.update(provider=resolved_provider, model=None, voice=None)
    for field_name, value in (
        ("language", language),
        ("voice", voice),
        ("tone", tone),
        ("style", style),
        ("instructions", instructions),
        ("model", model),
    ):
        normalized = normalize_optional_string(value)
        if normalized is not None:
            overrides[field_name] = normalized
    if chunk_size is not None:
        overrides["chunk_size_chars"] = chunk_size

    config = dataclasses.replace(base_config, **overrides)
    try:
        config.validate()
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=str(exc),
            hint="Run `scriptvoice --help` for supported option values.",
        ) from exc
    return config


def _apply_runtime_sources(
    base_config: ScriptvoiceConfig,
    runtime_cli_values: dict[str, str],
    runtime_secure_values: dict[str, str],
) -> ScriptvoiceConfig:
    """Attach runtime source mappings while keeping base config values intact."""

    return dataclasses.replace(
        base_config,
        runtime_sources=RuntimeConfigSources(
            cli=runtime_cli_values,
            secure=runtime_secure_values,
            env=base_config.runtime_sources.env,
        ),
    )


def _read_text_file(text_file: Path) -> str:
    """Read UTF-8 input text and map failures to stage errors."""

    try:
        return text_file.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise PipelineStageError(
            stage="input",
            detail=f"Input text file not found: `{text_file}`.",
            hint="Pass an existing UTF-8 text file.",
        ) from exc
    except UnicodeDecodeError as exc:
        raise PipelineStageError(
            stage="input",
            detail=f"Input text file `{text_file}` is not valid UTF-8.",
            hint="Re-save the file with UTF-8 encoding.",
        ) from exc


def _require_provider(provider: str) -> str:
    """Validate a provider argument for key management commands."""

    try:
        ScriptvoiceConfig.validate_provider_id(provider)
    except ValueError as exc:
        raise PipelineStageError(
            stage="provider",
            detail=str(exc),
            hint="Use `gemini` or `elevenlabs`.",
        ) from exc
    return provider


@app.command("generate")
def generate_command(
    text_file: Annotated[Path, typer.Argument(help="UTF-8 text file to vocalize.")],
    out: Annotated[
        Path | None,
        typer.Option("--out", "-o", help="Merged audio output path (default: next to input)."),
    ] = None,
    provider: Annotated[
        str | None, typer.Option("--provider", help="TTS provider: gemini or elevenlabs.")
    ] = None,
    language: Annotated[
        str | None, typer.Option("--language", help="Output locale, e.g. vi-VN or en-US.")
    ] = None,
    voice: Annotated[str | None, typer.Option("--voice", help="Provider voice id.")] = None,
    tone: Annotated[str | None, typer.Option("--tone", help="Delivery tone.")] = None,
    style: Annotated[str | None, typer.Option("--style", help="Delivery style.")] = None,
    instructions: Annotated[
        str | None, typer.Option("--instructions", help="Free-form delivery instructions.")
    ] = None,
    model: Annotated[str | None, typer.Option("--model", help="Provider model id.")] = None,
    chunk_size: Annotated[
        int | None,
        typer.Option("--chunk-size", min=1, help="Maximum characters per request."),
    ] = None,
    api_key: Annotated[
        list[str] | None,
        typer.Option("--api-key", help="API key for this run (repeat for a key pool)."),
    ] = None,
    segments_dir: Annotated[
        Path | None,
        typer.Option("--segments-dir", help="Write each segment here as soon as it is ready."),
    ] = None,
    config_file: Annotated[
        Path | None, typer.Option("--config", help="Optional YAML config file.")
    ] = None,
    no_keyring: Annotated[
        bool, typer.Option("--no-keyring", help="Do not read API keys from the keyring.")
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", help="Emit debug logs.")] = False,
) -> None:
    """Generate one continuous audio file from a long text file."""

    try:
        run_logger = RunLogger(verbose=verbose)
        config = _resolve_command_config(
            config_file,
            provider=provider,
            language=language,
            voice=voice,
            tone=tone,
            style=style,
            instructions=instructions,
            model=model,
            chunk_size=chunk_size,
        )
        runtime_cli_values, runtime_secure_values = resolve_api_key_sources(
            config.provider,
            api_key,
            use_secure_store=not no_keyring,
        )
        config = _apply_runtime_sources(config, runtime_cli_values, runtime_secure_values)
        job = GenerationJob(
            text=_read_text_file(text_file),
            provider=config.provider,
            language=config.language,
            voice_id=config.resolved_voice(),
            tone=config.tone,
            style=config.style,
            instructions=config.instructions,
            model_id=config.resolved_model(),
            max_chunk_chars=config.chunk_size_chars,
        )
        progress = GenerationProgressIndicator(
            "generate",
            ProviderFactory.output_format_for(config.provider),
            segments_dir,
        )
        pipeline = GenerationPipeline(
            config,
            run_logger=run_logger,
            cursor_store=JsonFileCursorStore(config.resolved_cursor_state_path(), run_logger),
            on_chunk_start=progress.on_chunk_start,
        )
        result = pipeline.run(job, on_segment_ready=progress.on_segment_ready)
        output_path = out or text_file.with_suffix(f".{result.merged_audio.file_extension}")
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(result.merged_audio.data)
    except Exception as exc:
        exit_with_command_error("generate", exc)

    echo_generation_summary(result, output_path)


@app.command("chunks")
def chunks_command(
    text_file: Annotated[Path, typer.Argument(help="UTF-8 text file to plan.")],
    provider: Annotated[
        str | None, typer.Option("--provider", help="Provider whose chunk size applies.")
    ] = None,
    chunk_size: Annotated[
        int | None,
        typer.Option("--chunk-size", min=1, help="Maximum characters per request."),
    ] = None,
    config_file: Annotated[
        Path | None, typer.Option("--config", help="Optional YAML config file.")
    ] = None,
) -> None:
    """Print the chunk plan for a text file without calling any provider."""

    try:
        config = _resolve_command_config(config_file, provider=provider, chunk_size=chunk_size)
        job = GenerationJob(
            text=_read_text_file(text_file),
            provider=config.provider,
            language=config.language,
            voice_id=config.resolved_voice(),
            max_chunk_chars=config.chunk_size_chars,
        )
        max_length = config.resolved_chunk_size()
        chunks = GenerationPipeline(config).plan_chunks(job)
    except Exception as exc:
        exit_with_command_error("chunks", exc)

    echo_chunk_plan(chunks, max_length)


@app.command("voices")
def voices_command(
    provider: Annotated[
        str, typer.Option("--provider", help="Provider to list voices for.")
    ] = "gemini",
    language: Annotated[
        str | None, typer.Option("--language", help="Only voices for this locale.")
    ] = None,
) -> None:
    """List catalogue voices, models, and languages for a provider."""

    try:
        _require_provider(provider)
    except Exception as exc:
        exit_with_command_error("voices", exc)

    echo_voice_list(voices_for(provider, normalize_optional_string(language)))
    typer.echo("Models: " + ", ".join(model.model_id for model in models_for(provider)))
    typer.echo("Languages: " + ", ".join(option.code for option in LANGUAGES))


@keys_app.command("set")
def keys_set_command(
    provider: Annotated[str, typer.Argument(help="Provider: gemini or elevenlabs.")],
    api_key: Annotated[
        list[str] | None,
        typer.Option("--api-key", help="Key to store (repeatable); prompts when omitted."),
    ] = None,
) -> None:
    """Store a provider key list in secure credential storage, replacing any existing one."""

    try:
        _require_provider(provider)
        keys = normalize_key_list(api_key or [])
        if not keys:
            keys = normalize_key_list(
                typer.prompt(
                    f"{provider} API keys, comma-separated (hidden input)",
                    default="",
                    hide_input=True,
                    show_default=False,
                )
            )
        if not keys:
            raise PipelineStageError(
                stage="credentials",
                detail="No API key entered.",
                hint="Provide at least one non-empty API key.",
            )
        try:
            create_credential_store().set_api_keys(provider, keys)
        except Exception as exc:
            raise PipelineStageError(
                stage="credentials",
                detail=f"Failed to store API keys securely: {exc}",
                hint="Install and configure a keyring backend and retry.",
            ) from exc
    except Exception as exc:
        exit_with_command_error("keys set", exc)

    typer.echo(f"Stored {len(keys)} {provider} API key(s) in secure credential storage.")


@keys_app.command("show")
def keys_show_command(
    provider: Annotated[str, typer.Argument(help="Provider: gemini or elevenlabs.")],
) -> None:
    """Show masked stored keys for a provider."""

    try:
        _require_provider(provider)
        credential_store = create_credential_store()
        available = credential_store.is_available()
        stored_keys = credential_store.get_api_keys(provider) if available else []
    except Exception as exc:
        exit_with_command_error("keys show", exc)

    typer.echo(f"Secure credential storage: {'available' if available else 'unavailable'}")
    typer.echo(f"Stored {provider} API keys: {len(stored_keys)}")
    for index, key in enumerate(stored_keys):
        typer.echo(f"  [{index}] {mask_api_key(key)}")


@keys_app.command("clear")
def keys_clear_command(
    provider: Annotated[str, typer.Argument(help="Provider: gemini or elevenlabs.")],
) -> None:
    """Remove the stored key list for a provider."""

    try:
        _require_provider(provider)
        removed = create_credential_store().clear_api_keys(provider)
    except Exception as exc:
        exit_with_command_error("keys clear", exc)

    if removed:
        typer.echo(f"Stored {provider} API keys cleared from secure credential storage.")
    else:
        typer.echo(f"No stored {provider} API keys found in secure credential storage.")


def main() -> None:
    """CLI entrypoint for console scripts."""
    app()


if __name__ == "__main__":
    main()

"""Configuration model and loaders for Scriptvoice.

Responsibilities:
- Define runtime configuration as a typed dataclass.
- Provide deterministic precedence resolution for provider API keys.
- Provide loader entry points for file- and environment-based configuration.

Key types:
- `ScriptvoiceConfig`: normalized runtime settings for generation jobs.
- `ProviderDefaults`: per-provider model, voice, chunk size, and key variables.
- `RuntimeConfigSources`: optional value sources for precedence resolution.
- `ConfigLoader`: static construction helpers for `ScriptvoiceConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .parsing import normalize_key_list, normalize_optional_string
from .tts.voices import ELEVENLABS_DEFAULT_MODEL, GEMINI_DEFAULT_MODEL


@dataclass(frozen=True, slots=True)
class ProviderDefaults:
    """Defaults applied when a provider setting is not configured.

    Attributes:
        model: Default model identifier.
        voice: Default voice identifier.
        chunk_size_chars: Default maximum chunk length.
        keys_env_key: Environment variable holding a comma/newline separated key list.
        fallback_env_keys: Single-key environment variables, checked in order.
    """

    model: str
    voice: str
    chunk_size_chars: int
    keys_env_key: str
    fallback_env_keys: tuple[str, ...]


PROVIDER_DEFAULTS: dict[str, ProviderDefaults] = {
    "gemini": ProviderDefaults(
        model=GEMINI_DEFAULT_MODEL,
        voice="Kore",
        chunk_size_chars=1500,
        keys_env_key="GEMINI_API_KEYS",
        fallback_env_keys=("GEMINI_API_KEY", "API_KEY"),
    ),
    "elevenlabs": ProviderDefaults(
        model=ELEVENLABS_DEFAULT_MODEL,
        voice="21m00Tcm4TlvDq8ikWAM",
        chunk_size_chars=2500,
        keys_env_key="ELEVENLABS_API_KEYS",
        fallback_env_keys=("ELEVENLABS_API_KEY",),
    ),
}
_SUPPORTED_PROVIDER_IDS = frozenset(PROVIDER_DEFAULTS)
DEFAULT_CURSOR_STATE_PATH = Path("~/.scriptvoice/cursors.json")


@dataclass(frozen=True, slots=True)
class RuntimeConfigSources:
    """Source mappings used for deterministic runtime value precedence.

    Attributes:
        cli: Values explicitly provided by CLI arguments.
        secure: Values loaded from secure local credential storage.
        env: Values loaded from environment variables.
    """

    cli: Mapping[str, str] = field(default_factory=dict)
    secure: Mapping[str, str] = field(default_factory=dict)
    env: Mapping[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class ScriptvoiceConfig:
    """Runtime configuration shared by generation jobs.

    Attributes:
        provider: Default provider identifier (`gemini` or `elevenlabs`).
        language: Default output locale code.
        voice: Default voice identifier, provider default when unset.
        tone: Default tone option.
        style: Default style option.
        instructions: Default free-form delivery instructions.
        model: Model identifier, provider default when unset.
        chunk_size_chars: Maximum chunk length, provider default when unset.
        context_chars: Maximum length of each context excerpt (`0` disables context).
        request_timeout_seconds: Per-request HTTP timeout.
        transient_backoff_seconds: Pause before retrying after a transient failure.
        min_request_interval_seconds: Minimum spacing between requests per key.
        cursor_state_path: Optional JSON file persisting pool cursors.
        api_keys: Configured API keys, used when no runtime source supplies any.
        runtime_sources: Optional runtime source overrides injected by CLI.
    """

    provider: str = "gemini"
    language: str = "vi-VN"
    voice: str | None = None
    tone: str | None = None
    style: str | None = None
    instructions: str | None = None
    model: str | None = None
    chunk_size_chars: int | None = None
    context_chars: int = 250
    request_timeout_seconds: float = 60.0
    transient_backoff_seconds: float = 1.0
    min_request_interval_seconds: float = 0.0
    cursor_state_path: Path | None = None
    api_keys: tuple[str, ...] = ()
    runtime_sources: RuntimeConfigSources = field(default_factory=RuntimeConfigSources)

    def validate(self) -> None:
        """Validate configuration values before any job runs."""

        self.validate_provider_id(self.provider)
        self._require_non_empty(self.language, "language")
        if self.chunk_size_chars is not None and self.chunk_size_chars <= 0:
            raise ValueError("`chunk_size_chars` must be a positive integer.")
        if self.context_chars < 0:
            raise ValueError("`context_chars` must be zero or a positive integer.")
        if self.request_timeout_seconds <= 0:
            raise ValueError("`request_timeout_seconds` must be positive.")
        if self.transient_backoff_seconds < 0:
            raise ValueError("`transient_backoff_seconds` must not be negative.")
        if self.min_request_interval_seconds < 0:
            raise ValueError("`min_request_interval_seconds` must not be negative.")

    def provider_defaults(self, provider: str | None = None) -> ProviderDefaults:
        """Return defaults for `provider`, or for the configured provider."""

        provider_id = provider or self.provider
        self.validate_provider_id(provider_id)
        return PROVIDER_DEFAULTS[provider_id]

    def resolved_model(self, provider: str | None = None) -> str:
        """Return the configured model when it belongs to `provider`, else its default."""

        provider_id = provider or self.provider
        if self.model is not None and provider_id == self.provider:
            return self.model
        return self.provider_defaults(provider_id).model

    def resolved_voice(self, provider: str | None = None) -> str:
        """Return the configured voice when it belongs to `provider`, else its default."""

        provider_id = provider or self.provider
        if self.voice is not None and provider_id == self.provider:
            return self.voice
        return self.provider_defaults(provider_id).voice

    def resolved_chunk_size(self, provider: str | None = None) -> int:
        """Return the configured chunk size, or the provider default."""

        if self.chunk_size_chars is not None:
            return self.chunk_size_chars
        return self.provider_defaults(provider).chunk_size_chars

    def resolved_cursor_state_path(self) -> Path:
        """Return the cursor state file path with `~` expanded."""

        path = self.cursor_state_path or DEFAULT_CURSOR_STATE_PATH
        return path.expanduser()

    def resolved_api_keys(
        self,
        provider: str | None = None,
        sources: RuntimeConfigSources | None = None,
    ) -> list[str]:
        """Resolve the API key list for a provider.

        Precedence is `cli` > `secure` > `env` list variable > configured `api_keys`.
        The first source yielding at least one key wins.
        """

        defaults = self.provider_defaults(provider)
        resolved_sources = sources if sources is not None else self.runtime_sources

        for mapping, key in (
            (resolved_sources.cli, "api_keys"),
            (resolved_sources.secure, "api_keys"),
            (resolved_sources.env, defaults.keys_env_key),
        ):
            keys = normalize_key_list(mapping.get(key))
            if keys:
                return keys
        return normalize_key_list(list(self.api_keys))

    def resolved_fallback_api_key(
        self,
        provider: str | None = None,
        sources: RuntimeConfigSources | None = None,
    ) -> str | None:
        """Resolve the single fallback key used when the key list is empty."""

        defaults = self.provider_defaults(provider)
        resolved_sources = sources if sources is not None else self.runtime_sources
        for env_key in defaults.fallback_env_keys:
            value = normalize_optional_string(resolved_sources.env.get(env_key))
            if value is not None:
                return value
        return None

    @staticmethod
    def validate_provider_id(provider_id: str) -> None:
        """Validate a provider identifier against supported providers."""

        if provider_id not in _SUPPORTED_PROVIDER_IDS:
            supported = ", ".join(sorted(_SUPPORTED_PROVIDER_IDS))
            raise ValueError(f"Unsupported provider `{provider_id}`; supported: {supported}.")

    @staticmethod
    def _require_non_empty(value: str, field_name: str) -> None:
        """Validate that string fields are not empty."""

        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"`{field_name}` must be a non-empty string.")


class ConfigLoader:
    """Factory methods for creating `ScriptvoiceConfig` from external sources."""

    _SUPPORTED_YAML_KEYS = frozenset(
        {
            "provider",
            "language",
            "voice",
            "tone",
            "style",
            "instructions",
            "model",
            "chunk_size_chars",
            "context_chars",
            "request_timeout_seconds",
            "transient_backoff_seconds",
            "min_request_interval_seconds",
            "cursor_state_path",
            "api_keys",
        }
    )
    _RUNTIME_ENV_KEYS = frozenset(
        key
        for defaults in PROVIDER_DEFAULTS.values()
        for key in (defaults.keys_env_key, *defaults.fallback_env_keys)
    )

    @staticmethod
    def from_yaml(path: Path, env: Mapping[str, str] | None = None) -> ScriptvoiceConfig:
        """Create a validated config from a YAML file.

        API key environment variables are still attached as runtime sources.
        """

        path_text = path.read_text(encoding="utf-8")
        payload = ConfigLoader._parse_yaml_payload(path_text, path)
        return ConfigLoader._build_config_from_mapping(
            payload,
            source_label=f"YAML `{path}`",
            runtime_env=ConfigLoader.runtime_env(env),
        )

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> ScriptvoiceConfig:
        """Create a validated config from `SCRIPTVOICE_*` environment variables."""

        env_map: Mapping[str, str] = os.environ if env is None else env
        cursor_state_path = ConfigLoader._optional_env_string(
            env_map, "SCRIPTVOICE_CURSOR_STATE_PATH"
        )

        config = ScriptvoiceConfig(
            provider=ConfigLoader._optional_env_string(env_map, "SCRIPTVOICE_PROVIDER")
            or "gemini",
            language=ConfigLoader._optional_env_string(env_map, "SCRIPTVOICE_LANGUAGE")
            or "vi-VN",
            voice=ConfigLoader._optional_env_string(env_map, "SCRIPTVOICE_VOICE"),
            tone=ConfigLoader._optional_env_string(env_map, "SCRIPTVOICE_TONE"),
            style=ConfigLoader._optional_env_string(env_map, "SCRIPTVOICE_STYLE"),
            instructions=ConfigLoader._optional_env_string(env_map, "SCRIPTVOICE_INSTRUCTIONS"),
            model=ConfigLoader._optional_env_string(env_map, "SCRIPTVOICE_MODEL"),
            chunk_size_chars=ConfigLoader._optional_env_positive_int(
                env_map, "SCRIPTVOICE_CHUNK_SIZE_CHARS"
            ),
            context_chars=ConfigLoader._optional_env_non_negative_int(
                env_map, "SCRIPTVOICE_CONTEXT_CHARS", default=250
            ),
            request_timeout_seconds=ConfigLoader._optional_env_float(
                env_map, "SCRIPTVOICE_REQUEST_TIMEOUT_SECONDS", default=60.0
            ),
            transient_backoff_seconds=ConfigLoader._optional_env_float(
                env_map, "SCRIPTVOICE_TRANSIENT_BACKOFF_SECONDS", default=1.0
            ),
            min_request_interval_seconds=ConfigLoader._optional_env_float(
                env_map, "SCRIPTVOICE_MIN_REQUEST_INTERVAL_SECONDS", default=0.0
            ),
            cursor_state_path=Path(cursor_state_path) if cursor_state_path else None,
            runtime_sources=RuntimeConfigSources(env=ConfigLoader.runtime_env(env_map)),
        )
        config.validate()
        return config

    @staticmethod
    def runtime_env(env: Mapping[str, str] | None = None) -> dict[str, str]:
        """Return the non-blank API key environment variables from `env`."""

        env_map: Mapping[str, str] = os.environ if env is None else env
        return {
            key: value
            for key, value in env_map.items()
            if key in ConfigLoader._RUNTIME_ENV_KEYS
            and normalize_optional_string(value) is not None
        }

    @staticmethod
    def _parse_yaml_payload(raw_text: str, path: Path) -> Mapping[str, Any]:
        """Parse YAML text and enforce a mapping root payload."""

        try:
            payload = yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            raise ValueError(f"YAML config `{path}` could not be parsed: {exc}") from exc

        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"YAML config `{path}` must contain a top-level mapping/object.")
        return payload

    @staticmethod
    def _build_config_from_mapping(
        payload: Mapping[str, Any],
        source_label: str,
        runtime_env: Mapping[str, str],
    ) -> ScriptvoiceConfig:
        """Build a validated config from a normalized mapping payload."""

        ConfigLoader._validate_yaml_keys(payload, source_label)
        optional = ConfigLoader._optional_non_empty_string
        cursor_state_path = optional(payload, "cursor_state_path", source_label)

        config = ScriptvoiceConfig(
            provider=optional(payload, "provider", source_label) or "gemini",
            language=optional(payload, "language", source_label) or "vi-VN",
            voice=optional(payload, "voice", source_label),
            tone=optional(payload, "tone", source_label),
            style=optional(payload, "style", source_label),
            instructions=optional(payload, "instructions", source_label),
            model=optional(payload, "model", source_label),
            chunk_size_chars=ConfigLoader._optional_int(
                payload, "chunk_size_chars", source_label, default=None, minimum=1
            ),
            context_chars=ConfigLoader._optional_int(
                payload, "context_chars", source_label, default=250, minimum=0
            ),
            request_timeout_seconds=ConfigLoader._optional_number(
                payload, "request_timeout_seconds", source_label, default=60.0
            ),
            transient_backoff_seconds=ConfigLoader._optional_number(
                payload, "transient_backoff_seconds", source_label, default=1.0
            ),
            min_request_interval_seconds=ConfigLoader._optional_number(
                payload, "min_request_interval_seconds", source_label, default=0.0
            ),
            cursor_state_path=Path(cursor_state_path) if cursor_state_path else None,
            api_keys=tuple(normalize_key_list(payload.get("api_keys"))),
            runtime_sources=RuntimeConfigSources(env=dict(runtime_env)),
        )
        config.validate()
        return config

    @staticmethod
    def _validate_yaml_keys(payload: Mapping[str, Any], source_label: str) -> None:
        """Reject unsupported YAML keys."""

        unknown = sorted(str(key) for key in set(payload).difference(ConfigLoader._SUPPORTED_YAML_KEYS))
        if unknown:
            key_list = ", ".join(unknown)
            raise ValueError(f"{source_label} includes unsupported key(s): {key_list}.")

    @staticmethod
    def _optional_non_empty_string(
        payload: Mapping[str, Any], key: str, source_label: str
    ) -> str | None:
        """Read an optional scalar field and normalize blank values to `None`."""

        if key not in payload:
            return None
        raw_value = payload[key]
        if isinstance(raw_value, Mapping | list):
            raise ValueError(f"{source_label} field `{key}` must be a scalar value.")
        return normalize_optional_string(raw_value)

    @staticmethod
    def _optional_int(
        payload: Mapping[str, Any],
        key: str,
        source_label: str,
        default: int | None,
        minimum: int,
    ) -> int | None:
        """Read and validate an integer payload field with a lower bound."""

        if key not in payload or payload[key] is None:
            return default

        raw_value = payload[key]
        qualifier = "a positive integer" if minimum > 0 else "a non-negative integer"
        if isinstance(raw_value, bool):
            raise ValueError(f"{source_label} field `{key}` must be {qualifier}.")
        if isinstance(raw_value, int):
            parsed = raw_value
        else:
            normalized = normalize_optional_string(raw_value)
            if normalized is None:
                return default
            try:
                parsed = int(normalized)
            except ValueError as exc:
                raise ValueError(f"{source_label} field `{key}` must be {qualifier}.") from exc

        if parsed < minimum:
            raise ValueError(f"{source_label} field `{key}` must be {qualifier}.")
        return parsed

    @staticmethod
    def _optional_number(
        payload: Mapping[str, Any], key: str, source_label: str, default: float
    ) -> float:
        """Read a non-negative numeric payload field."""

        if key not in payload or payload[key] is None:
            return default
        raw_value = payload[key]
        if isinstance(raw_value, bool):
            raise ValueError(f"{source_label} field `{key}` must be a number.")
        try:
            parsed = float(raw_value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"{source_label} field `{key}` must be a number.") from exc
        if parsed < 0:
            raise ValueError(f"{source_label} field `{key}` must not be negative.")
        return parsed

    @staticmethod
    def _optional_env_string(env: Mapping[str, str], key: str) -> str | None:
        """Read and normalize optional string environment variable values."""

        if key not in env:
            return None
        return normalize_optional_string(env.get(key))

    @staticmethod
    def _optional_env_positive_int(env: Mapping[str, str], key: str) -> int | None:
        """Read an optional positive integer from environment mapping."""

        raw_value = ConfigLoader._optional_env_string(env, key)
        if raw_value is None:
            return None
        try:
            parsed = int(raw_value)
        except ValueError as exc:
            raise ValueError(f"Environment variable `{key}` must be a positive integer.") from exc
        if parsed <= 0:
            raise ValueError(f"Environment variable `{key}` must be a positive integer.")
        return parsed

    @staticmethod
    def _optional_env_non_negative_int(env: Mapping[str, str], key: str, default: int) -> int:
        """Read an optional non-negative integer from environment mapping."""

        raw_value = ConfigLoader._optional_env_string(env, key)
        if raw_value is None:
            return default
        try:
            parsed = int(raw_value)
        except ValueError as exc:
            raise ValueError(
                f"Environment variable `{key}` must be a non-negative integer."
            ) from exc
        if parsed < 0:
            raise ValueError(f"Environment variable `{key}` must be a non-negative integer.")
        return parsed

    @staticmethod
    def _optional_env_float(env: Mapping[str, str], key: str, default: float) -> float:
        """Read an optional non-negative number from environment mapping."""

        raw_value = ConfigLoader._optional_env_string(env, key)
        if raw_value is None:
            return default
        try:
            parsed = float(raw_value)
        except ValueError as exc:
            raise ValueError(f"Environment variable `{key}` must be a number.") from exc
        if parsed < 0:
            raise ValueError(f"Environment variable `{key}` must not be negative.")
        return parsed

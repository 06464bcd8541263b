"""CLI API-key runtime resolution helpers.

This module isolates runtime source assembly for provider API keys (explicit
CLI keys and secure keyring storage) from the command wiring layer.
"""

from __future__ import annotations

from typing import Callable, Protocol

from .credentials import create_credential_store
from .errors import PipelineStageError
from .parsing import normalize_key_list


class CredentialStoreProtocol(Protocol):
    """Protocol for secure credential store operations used by CLI runtime resolution."""

    def is_available(self) -> bool:
        """Return whether secure storage can be used."""

    def get_api_keys(self, provider_id: str) -> list[str]:
        """Return the stored key list for a provider."""


def resolve_api_key_sources(
    provider: str,
    api_keys: list[str] | None,
    use_secure_store: bool = True,
    credential_store_factory: Callable[[], CredentialStoreProtocol] = create_credential_store,
) -> tuple[dict[str, str], dict[str, str]]:
    """Resolve CLI and secure runtime source mappings for one provider's key list.

    Key lists are encoded as newline-separated strings under the `api_keys` key.
    """

    runtime_cli_values: dict[str, str] = {}
    cli_keys = normalize_key_list(api_keys or [])
    if cli_keys:
        runtime_cli_values["api_keys"] = "\n".join(cli_keys)

    runtime_secure_values: dict[str, str] = {}
    if cli_keys or not use_secure_store:
        return runtime_cli_values, runtime_secure_values

    credential_store = credential_store_factory()
    if not credential_store.is_available():
        return runtime_cli_values, runtime_secure_values
    try:
        stored_keys = credential_store.get_api_keys(provider)
    except Exception as exc:
        raise PipelineStageError(
            stage="credentials",
            detail=f"Failed to read stored API keys for `{provider}`: {exc}",
            hint="Fix the keyring backend, or rerun with `--no-keyring` and `--api-key`.",
        ) from exc
    if stored_keys:
        runtime_secure_values["api_keys"] = "\n".join(stored_keys)
    return runtime_cli_values, runtime_secure_values

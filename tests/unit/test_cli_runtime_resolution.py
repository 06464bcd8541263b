"""Unit tests for CLI API key runtime resolution helpers."""

from __future__ import annotations

import pytest

from scriptvoice.cli_runtime import resolve_api_key_sources
from scriptvoice.errors import PipelineStageError


class InMemoryCredentialStore:
    """In-memory credential store implementation for runtime-resolution tests."""

    def __init__(self, stored: dict[str, list[str]] | None = None, available: bool = True) -> None:
        """Initialize the store with optional stored key lists."""

        self._stored = stored or {}
        self._available = available
        self.reads: list[str] = []

    def is_available(self) -> bool:
        """Return configured availability."""

        return self._available

    def get_api_keys(self, provider_id: str) -> list[str]:
        """Return the stored key list and record the read."""

        self.reads.append(provider_id)
        return list(self._stored.get(provider_id, []))


class FailingCredentialStore:
    """Credential store that raises when reading stored keys."""

    def is_available(self) -> bool:
        """Report availability so the read is attempted."""

        return True

    def get_api_keys(self, provider_id: str) -> list[str]:
        """Raise deterministic storage failure used for error-path assertions."""

        raise RuntimeError("backend locked")


def test_cli_keys_win_and_skip_secure_store() -> None:
    """Explicit CLI keys should be normalized and the keyring left untouched."""

    store = InMemoryCredentialStore({"gemini": ["secure-key"]})

    cli_values, secure_values = resolve_api_key_sources(
        "gemini",
        [" cli-a ", "", "cli-b"],
        credential_store_factory=lambda: store,
    )

    assert cli_values == {"api_keys": "cli-a\ncli-b"}
    assert secure_values == {}
    assert store.reads == []


def test_secure_keys_are_loaded_when_no_cli_keys() -> None:
    """Stored keys should become the secure runtime source for the provider."""

    store = InMemoryCredentialStore({"elevenlabs": ["el-a", "el-b"]})

    cli_values, secure_values = resolve_api_key_sources(
        "elevenlabs",
        None,
        credential_store_factory=lambda: store,
    )

    assert cli_values == {}
    assert secure_values == {"api_keys": "el-a\nel-b"}
    assert store.reads == ["elevenlabs"]


def test_unavailable_or_disabled_store_yields_no_secure_values() -> None:
    """An unavailable backend or `use_secure_store=False` should skip the keyring."""

    unavailable = InMemoryCredentialStore({"gemini": ["secure"]}, available=False)
    enabled = InMemoryCredentialStore({"gemini": ["secure"]})

    assert resolve_api_key_sources(
        "gemini", None, credential_store_factory=lambda: unavailable
    ) == ({}, {})
    assert resolve_api_key_sources(
        "gemini", None, use_secure_store=False, credential_store_factory=lambda: enabled
    ) == ({}, {})
    assert unavailable.reads == []
    assert enabled.reads == []


def test_read_failure_maps_to_stage_error() -> None:
    """Keyring read failures should surface as actionable stage errors."""

    with pytest.raises(PipelineStageError) as exc_info:
        resolve_api_key_sources(
            "gemini",
            None,
            credential_store_factory=FailingCredentialStore,
        )

    assert exc_info.value.stage == "credentials"
    assert "backend locked" in exc_info.value.detail
    assert "--no-keyring" in (exc_info.value.hint or "")

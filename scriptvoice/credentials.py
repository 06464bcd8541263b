"""Secure credential storage helpers for the Scriptvoice CLI.

Responsibilities:
- Persist per-provider API key lists in an OS-backed secure credential store.
- Provide deterministic read/write/delete operations for provider key lists.
- Avoid logging or exposing secret values in diagnostics.

Key types:
- `CredentialStore`: interface for provider key list persistence.
- `KeyringCredentialStore`: keyring-backed secure credential storage.
"""

from __future__ import annotations

from dataclasses import dataclass
import json

import keyring

from .parsing import normalize_key_list, parse_stored_key_list


_DEFAULT_SERVICE_NAME = "scriptvoice"
_FAIL_BACKEND_MODULE = "keyring.backends.fail"


def _account_name(provider_id: str) -> str:
    """Return the keyring account name holding a provider's key list."""

    return f"{provider_id}_api_keys"


class CredentialStore:
    """Interface for secure provider key list operations."""

    def is_available(self) -> bool:
        """Return whether secure credential operations are available."""

        raise NotImplementedError

    def get_api_keys(self, provider_id: str) -> list[str]:
        """Load the stored key list for a provider, empty when none is stored."""

        raise NotImplementedError

    def set_api_keys(self, provider_id: str, api_keys: list[str]) -> None:
        """Persist a provider key list in secure storage."""

        raise NotImplementedError

    def clear_api_keys(self, provider_id: str) -> bool:
        """Delete a stored key list and return whether one existed."""

        raise NotImplementedError


@dataclass(slots=True)
class KeyringCredentialStore(CredentialStore):
    """Secure credential store backed by the `keyring` package.

    Each provider's keys are stored as one JSON array under the account
    `<provider>_api_keys`. A plain single-key value from older installs is read as
    a one-key list.
    """

    service_name: str = _DEFAULT_SERVICE_NAME

    def _load_keyring_module(self):
        """Return the `keyring` module used for storage operations."""

        return keyring

    def is_available(self) -> bool:
        """Return `False` when keyring resolved to its fail-only backend."""

        keyring_module = self._load_keyring_module()
        get_backend = getattr(keyring_module, "get_keyring", None)
        if get_backend is None:
            return True
        return type(get_backend()).__module__ != _FAIL_BACKEND_MODULE

    def get_api_keys(self, provider_id: str) -> list[str]:
        """Get the normalized key list for a provider, empty when missing."""

        value = self._load_keyring_module().get_password(
            self.service_name, _account_name(provider_id)
        )
        return parse_stored_key_list(value)

    def set_api_keys(self, provider_id: str, api_keys: list[str]) -> None:
        """Persist a normalized, non-empty key list for a provider."""

        if not self.is_available():
            raise RuntimeError(
                "Secure credential storage is unavailable: no usable keyring backend "
                "was found on this system."
            )
        normalized = normalize_key_list(api_keys)
        if not normalized:
            raise ValueError("At least one non-empty API key is required.")
        self._load_keyring_module().set_password(
            self.service_name,
            _account_name(provider_id),
            json.dumps(normalized),
        )

    def clear_api_keys(self, provider_id: str) -> bool:
        """Remove the stored key list and report whether one was present."""

        keyring_module = self._load_keyring_module()
        account = _account_name(provider_id)
        if keyring_module.get_password(self.service_name, account) is None:
            return False
        keyring_module.delete_password(self.service_name, account)
        return True


def create_credential_store() -> CredentialStore:
    """Create the default secure credential store implementation."""

    return KeyringCredentialStore()

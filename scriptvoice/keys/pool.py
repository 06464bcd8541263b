"""Round-robin credential pool for one provider.

Responsibilities:
- Hold the ordered API keys configured for a provider.
- Yield the key at the persisted cursor without mutating state.
- Advance the cursor only after a confirmed successful request.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
import threading

from ..errors import ProviderNotConfiguredError
from ..parsing import normalize_key_list, normalize_optional_string
from .cursor_store import CursorStore, InMemoryCursorStore


@dataclass(frozen=True, slots=True)
class Credential:
    """One pool entry.

    Attributes:
        index: Position of the key inside the pool.
        key: Opaque secret value. Never logged.
    """

    index: int
    key: str

    def __repr__(self) -> str:
        """Return a representation that does not leak the secret."""

        return f"Credential(index={self.index}, key='***')"


class CredentialPool:
    """Ordered API keys for one provider with a persisted round-robin cursor."""

    def __init__(
        self,
        provider_id: str,
        keys: Iterable[str],
        cursor_store: CursorStore | None = None,
        fallback_key: str | None = None,
    ) -> None:
        """Initialize the pool from caller-supplied keys.

        Args:
            provider_id: Provider identifier used as the cursor key.
            keys: Ordered keys; entries are trimmed and blanks dropped.
            cursor_store: Cursor persistence, in-memory when omitted.
            fallback_key: Single key used only when `keys` is empty.
        """

        normalized = normalize_key_list(list(keys))
        if not normalized:
            fallback = normalize_optional_string(fallback_key)
            if fallback is not None:
                normalized = [fallback]
        self.provider_id = provider_id
        self._keys = tuple(normalized)
        self._cursor_store: CursorStore = (
            cursor_store if cursor_store is not None else InMemoryCursorStore()
        )
        self._lock = threading.RLock()

    @property
    def keys(self) -> tuple[str, ...]:
        """Return the ordered pool keys."""

        return self._keys

    @property
    def size(self) -> int:
        """Return the number of keys in the pool."""

        return len(self._keys)

    @property
    def is_configured(self) -> bool:
        """Return whether the pool holds at least one key."""

        return bool(self._keys)

    @property
    def cursor(self) -> int:
        """Return the current cursor clamped into the valid range."""

        stored = self._cursor_store.get(self.provider_id)
        if not self._keys or stored < 0 or stored >= len(self._keys):
            return 0
        return stored

    def next(self) -> Credential:
        """Return the credential at the cursor without advancing it.

        Raises:
            ProviderNotConfiguredError: If the pool is empty.
        """

        return self.credential_at(0)

    def credential_at(self, offset: int) -> Credential:
        """Return the credential `offset` positions after the cursor, wrapping."""

        if not self._keys:
            raise ProviderNotConfiguredError(self.provider_id)
        index = (self.cursor + offset) % len(self._keys)
        return Credential(index=index, key=self._keys[index])

    def advance(self, succeeded_index: int) -> None:
        """Move the cursor past the key that just succeeded."""

        if not self._keys:
            raise ProviderNotConfiguredError(self.provider_id)
        next_index = (succeeded_index + 1) % len(self._keys)
        self._cursor_store.set(self.provider_id, next_index)

    @contextmanager
    def job_scope(self) -> Iterator[CredentialPool]:
        """Hold the pool lock so no other job moves the cursor mid-job."""

        with self._lock:
            yield self

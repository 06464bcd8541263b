"""Persistence for per-provider credential pool cursors.

Responsibilities:
- Store the round-robin cursor of each provider pool outside the pool object.
- Offer an in-memory store for library use and a JSON file store that survives
  process restarts.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Protocol

from ..telemetry.logger import RunLogger


class CursorStore(Protocol):
    """Key-value store of pool cursors keyed by provider identifier."""

    def get(self, provider_id: str) -> int:
        """Return the stored cursor for a provider, `0` when unknown."""

    def set(self, provider_id: str, value: int) -> None:
        """Persist the cursor for a provider."""


class InMemoryCursorStore:
    """Process-local cursor store."""

    def __init__(self, initial: dict[str, int] | None = None) -> None:
        """Initialize with optional pre-seeded cursor values."""

        self._values: dict[str, int] = dict(initial or {})

    def get(self, provider_id: str) -> int:
        """Return the cursor for a provider, `0` when unknown."""

        return self._values.get(provider_id, 0)

    def set(self, provider_id: str, value: int) -> None:
        """Store the cursor for a provider."""

        self._values[provider_id] = value


class JsonFileCursorStore:
    """Cursor store backed by one JSON object file (`{"gemini": 2, ...}`)."""

    def __init__(self, path: Path, run_logger: RunLogger | None = None) -> None:
        """Initialize the store with the JSON file location."""

        self.path = path
        self._run_logger = run_logger

    def get(self, provider_id: str) -> int:
        """Return the persisted cursor, treating unreadable state as `0`."""

        value = self._load().get(provider_id, 0)
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            return 0
        return value

    def set(self, provider_id: str, value: int) -> None:
        """Persist the cursor for a provider, keeping other providers' values."""

        payload = self._load()
        payload[provider_id] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True),
            encoding="utf-8",
        )

    def _load(self) -> dict[str, object]:
        """Load the cursor payload, returning an empty mapping on missing/corrupt files."""

        if not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            if self._run_logger is not None:
                self._run_logger.log_event(
                    "WARNING",
                    "credentials",
                    "cursor_state_unreadable",
                    error_type=type(exc).__name__,
                )
            return {}
        if not isinstance(payload, dict):
            return {}
        return payload

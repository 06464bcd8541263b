"""Request pacing for provider calls.

Responsibilities:
- Enforce a minimum interval between requests sent with the same credential slot.
- Keep pacing policy out of the provider request code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from time import monotonic, sleep
from typing import Callable


@dataclass(slots=True)
class RateLimiter:
    """Minimum-interval limiter keyed by provider and credential slot."""

    min_interval_seconds: float = 0.0
    clock: Callable[[], float] = monotonic
    sleeper: Callable[[float], None] = sleep
    _next_allowed_at: dict[str, float] = field(default_factory=dict)

    def wait_seconds(self, slot: str) -> float:
        """Return how long a request for `slot` would have to wait right now."""

        if self.min_interval_seconds <= 0.0:
            return 0.0
        return max(0.0, self._next_allowed_at.get(slot, 0.0) - self.clock())

    def acquire(self, slot: str) -> None:
        """Block until a request for `slot` is allowed, then reserve the next window."""

        if self.min_interval_seconds <= 0.0:
            return
        delay = self.wait_seconds(slot)
        if delay > 0.0:
            self.sleeper(delay)
        self._next_allowed_at[slot] = self.clock() + self.min_interval_seconds

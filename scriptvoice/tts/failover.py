"""Multi-key retry and failover loop for provider requests.

Responsibilities:
- Attempt one operation against each pool credential at most once, starting at
  the pool cursor.
- Stop on the first success or the first non-retryable failure.
- Advance the pool cursor only after a confirmed success.
"""

from __future__ import annotations

from dataclasses import dataclass
from time import sleep
from typing import Callable, Generic, TypeVar

from ..errors import (
    CATEGORY_TRANSIENT,
    ChunkAbortedError,
    PoolExhaustedError,
    ProviderNotConfiguredError,
    SynthesisFailure,
)
from ..keys.pool import CredentialPool
from ..telemetry.logger import RunLogger

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class AttemptOutcome(Generic[T]):
    """Successful result of the failover loop.

    Attributes:
        value: Operation return value.
        credential_index: Pool index of the key that succeeded.
        attempts: Number of attempts made, including the successful one.
    """

    value: T
    credential_index: int
    attempts: int


def classify_synthesis_failure(exc: BaseException) -> SynthesisFailure | None:
    """Return provider failures as-is; anything else is not a provider failure."""

    if isinstance(exc, SynthesisFailure):
        return exc
    return None


class FailoverController:
    """Run an operation with round-robin failover across a credential pool."""

    def __init__(
        self,
        run_logger: RunLogger | None = None,
        *,
        transient_backoff_seconds: float = 0.0,
        sleeper: Callable[[float], None] = sleep,
    ) -> None:
        """Initialize logging and transient-failure backoff settings."""

        self._run_logger = run_logger
        self.transient_backoff_seconds = transient_backoff_seconds
        self._sleeper = sleeper

    def execute(
        self,
        pool: CredentialPool,
        operation: Callable[[str], T],
        classify: Callable[[BaseException], SynthesisFailure | None] = classify_synthesis_failure,
        *,
        label: str = "request",
    ) -> AttemptOutcome[T]:
        """Run `operation(api_key)` until it succeeds or the pool is exhausted.

        Args:
            pool: Credential pool to walk, starting at its cursor.
            operation: Callable performing exactly one provider request.
            classify: Maps a raised exception to a `SynthesisFailure`, or `None` when
                the exception is not a provider failure and must propagate unchanged.
            label: Short tag included in log events.

        Returns:
            The operation value with the succeeding credential index and attempt count.

        Raises:
            ProviderNotConfiguredError: If the pool is empty.
            ChunkAbortedError: On the first non-retryable failure.
            PoolExhaustedError: When every credential failed with a retryable failure.
        """

        if not pool.is_configured:
            raise ProviderNotConfiguredError(pool.provider_id)

        first_failure: SynthesisFailure | None = None
        for attempt in range(1, pool.size + 1):
            credential = pool.credential_at(attempt - 1)
            try:
                value = operation(credential.key)
            except Exception as exc:
                failure = classify(exc)
                if failure is None:
                    raise
                if first_failure is None:
                    first_failure = failure
                self._log_attempt_failure(pool, label, attempt, credential.index, failure)
                if not failure.retryable:
                    raise ChunkAbortedError(first_failure, attempt) from failure
                if (
                    failure.category == CATEGORY_TRANSIENT
                    and attempt < pool.size
                    and self.transient_backoff_seconds > 0.0
                ):
                    self._sleeper(self.transient_backoff_seconds)
                continue

            pool.advance(credential.index)
            if self._run_logger is not None and attempt > 1:
                self._run_logger.log_event(
                    "INFO",
                    "synthesize",
                    "failover_recovered",
                    provider=pool.provider_id,
                    target=label,
                    attempts=attempt,
                    key_index=credential.index,
                )
            return AttemptOutcome(value=value, credential_index=credential.index, attempts=attempt)

        if first_failure is None:
            raise ProviderNotConfiguredError(pool.provider_id)
        raise PoolExhaustedError(first_failure, pool.size) from first_failure

    def _log_attempt_failure(
        self,
        pool: CredentialPool,
        label: str,
        attempt: int,
        credential_index: int,
        failure: SynthesisFailure,
    ) -> None:
        """Log one failed attempt with the redacted provider diagnostic at DEBUG."""

        if self._run_logger is None:
            return
        self._run_logger.log_attempt_failure(
            "synthesize",
            attempt=attempt,
            credential_index=credential_index,
            failure_kind=failure.failure_kind,
            retryable=failure.retryable,
            provider=pool.provider_id,
            target=label,
            status=failure.status_code,
        )
        self._run_logger.log_event(
            "DEBUG",
            "synthesize",
            "attempt_detail",
            provider=pool.provider_id,
            target=label,
            detail=str(failure),
        )

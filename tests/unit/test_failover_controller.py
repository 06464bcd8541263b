"""Unit tests for the multi-key retry and failover loop."""

from __future__ import annotations

import io

import pytest

from scriptvoice.errors import (
    CATEGORY_AUTHENTICATION,
    CATEGORY_QUOTA,
    ChunkAbortedError,
    PoolExhaustedError,
    ProviderNotConfiguredError,
    SynthesisFailure,
)
from scriptvoice.keys import CredentialPool, InMemoryCursorStore
from scriptvoice.telemetry.logger import RunLogger
from scriptvoice.tts.failover import FailoverController


class _ScriptedOperation:
    """Callable that maps API keys to a scripted failure or a result value."""

    def __init__(self, failures: dict[str, SynthesisFailure | Exception]) -> None:
        """Initialize with failures keyed by API key."""

        self._failures = failures
        self.keys_used: list[str] = []

    def __call__(self, api_key: str) -> bytes:
        """Record the key and raise or return per script."""

        self.keys_used.append(api_key)
        failure = self._failures.get(api_key)
        if failure is not None:
            raise failure
        return f"audio-from-{api_key}".encode()


def _failure(kind: str) -> SynthesisFailure:
    """Build a classified failure for a given failure kind."""

    return SynthesisFailure(f"{kind} happened", failure_kind=kind)


def test_retryable_failure_fails_over_to_next_key_and_moves_cursor() -> None:
    """Quota failure on A should succeed on B and leave the cursor on A."""

    store = InMemoryCursorStore()
    pool = CredentialPool("gemini", ["key-a", "key-b"], cursor_store=store)
    operation = _ScriptedOperation({"key-a": _failure("quota_exceeded")})

    outcome = FailoverController().execute(pool, operation)

    assert outcome.value == b"audio-from-key-b"
    assert outcome.credential_index == 1
    assert outcome.attempts == 2
    assert operation.keys_used == ["key-a", "key-b"]
    assert pool.next().key == "key-a"


def test_single_key_invalid_is_exhausted_after_one_attempt() -> None:
    """An invalid key in a one-key pool should exhaust the pool with auth category."""

    pool = CredentialPool("gemini", ["key-a"])
    operation = _ScriptedOperation({"key-a": _failure("invalid_api_key")})

    with pytest.raises(PoolExhaustedError) as exc_info:
        FailoverController().execute(pool, operation)

    assert exc_info.value.attempts == 1
    assert exc_info.value.first_failure.category == CATEGORY_AUTHENTICATION
    assert operation.keys_used == ["key-a"]


def test_non_retryable_failure_stops_without_second_attempt() -> None:
    """Content policy rejection on the first key must not try the other keys."""

    pool = CredentialPool("gemini", ["key-a", "key-b", "key-c"])
    operation = _ScriptedOperation({"key-a": _failure("content_policy")})

    with pytest.raises(ChunkAbortedError) as exc_info:
        FailoverController().execute(pool, operation)

    assert exc_info.value.attempts == 1
    assert operation.keys_used == ["key-a"]
    assert pool.cursor == 0


def test_exhaustion_reports_first_failure_not_last() -> None:
    """The terminal error should carry the first classified failure."""

    pool = CredentialPool("gemini", ["key-a", "key-b", "key-c"])
    first = _failure("quota_exceeded")
    operation = _ScriptedOperation(
        {"key-a": first, "key-b": _failure("server_error"), "key-c": _failure("timeout")}
    )

    with pytest.raises(PoolExhaustedError) as exc_info:
        FailoverController().execute(pool, operation)

    assert exc_info.value.first_failure is first
    assert exc_info.value.first_failure.category == CATEGORY_QUOTA
    assert exc_info.value.attempts == 3
    assert operation.keys_used == ["key-a", "key-b", "key-c"]


def test_cursor_is_not_advanced_when_every_key_fails() -> None:
    """Failed attempts must leave the persisted cursor untouched."""

    store = InMemoryCursorStore({"gemini": 1})
    pool = CredentialPool("gemini", ["key-a", "key-b"], cursor_store=store)
    operation = _ScriptedOperation(
        {"key-a": _failure("rate_limited"), "key-b": _failure("rate_limited")}
    )

    with pytest.raises(PoolExhaustedError):
        FailoverController().execute(pool, operation)

    assert operation.keys_used == ["key-b", "key-a"]
    assert store.get("gemini") == 1


def test_transient_failures_back_off_between_attempts() -> None:
    """Transient failures should sleep before the next key but not after the last."""

    sleeps: list[float] = []
    pool = CredentialPool("gemini", ["key-a", "key-b", "key-c"])
    operation = _ScriptedOperation(
        {"key-a": _failure("server_error"), "key-b": _failure("transport")}
    )
    controller = FailoverController(transient_backoff_seconds=0.25, sleeper=sleeps.append)

    outcome = controller.execute(pool, operation)

    assert outcome.credential_index == 2
    assert sleeps == [0.25, 0.25]


def test_unclassified_exceptions_propagate_unchanged() -> None:
    """Errors that are not provider failures should escape the loop immediately."""

    pool = CredentialPool("gemini", ["key-a", "key-b"])
    operation = _ScriptedOperation({"key-a": KeyError("bug")})

    with pytest.raises(KeyError):
        FailoverController().execute(pool, operation)

    assert operation.keys_used == ["key-a"]


def test_custom_classifier_can_map_foreign_exceptions() -> None:
    """A provider-specific classifier should drive retry decisions."""

    pool = CredentialPool("elevenlabs", ["key-a", "key-b"])
    operation = _ScriptedOperation({"key-a": ConnectionError("reset")})

    def classify(exc: BaseException) -> SynthesisFailure | None:
        if isinstance(exc, ConnectionError):
            return SynthesisFailure(str(exc), failure_kind="transport")
        return None

    outcome = FailoverController().execute(pool, operation, classify)

    assert outcome.value == b"audio-from-key-b"


def test_empty_pool_raises_not_configured() -> None:
    """An empty pool should fail before any request is made."""

    operation = _ScriptedOperation({})

    with pytest.raises(ProviderNotConfiguredError):
        FailoverController().execute(CredentialPool("gemini", []), operation)

    assert operation.keys_used == []


def test_attempt_failures_are_logged_without_keys() -> None:
    """Attempt logs should reference key indexes and never the key values."""

    sink = io.StringIO()
    pool = CredentialPool("gemini", ["secret-key-a", "secret-key-b"])
    operation = _ScriptedOperation({"secret-key-a": _failure("quota_exceeded")})

    FailoverController(RunLogger(sink, verbose=True)).execute(pool, operation, label="chunk-0")

    output = sink.getvalue()
    assert "event=attempt_failed" in output
    assert "failure_kind=quota_exceeded" in output
    assert "key_index=0" in output
    assert "event=failover_recovered" in output
    assert "secret-key" not in output

"""Unit tests for the round-robin credential pool and cursor persistence."""

from __future__ import annotations

import io
import json
from pathlib import Path

import pytest

from scriptvoice.errors import ProviderNotConfiguredError
from scriptvoice.keys import CredentialPool, InMemoryCursorStore, JsonFileCursorStore
from scriptvoice.telemetry.logger import RunLogger


def test_pool_normalizes_keys_and_keeps_order() -> None:
    """Blank entries should be dropped while the given order is preserved."""

    pool = CredentialPool("gemini", [" key-a ", "", "key-b", "   ", "key-c"])

    assert pool.keys == ("key-a", "key-b", "key-c")
    assert pool.size == 3
    assert pool.is_configured is True


def test_round_robin_uses_each_key_once_before_repeating() -> None:
    """N consecutive successes should use N distinct keys in insertion order."""

    pool = CredentialPool("gemini", ["key-a", "key-b", "key-c"])
    used: list[str] = []

    for _ in range(4):
        credential = pool.next()
        used.append(credential.key)
        pool.advance(credential.index)

    assert used == ["key-a", "key-b", "key-c", "key-a"]


def test_next_does_not_move_the_cursor() -> None:
    """Reading the current credential must not change pool state."""

    pool = CredentialPool("gemini", ["key-a", "key-b"])

    assert pool.next().index == 0
    assert pool.next().index == 0
    assert pool.cursor == 0


def test_credential_at_wraps_from_cursor() -> None:
    """Offsets should walk the pool starting at the cursor and wrap around."""

    pool = CredentialPool("gemini", ["key-a", "key-b", "key-c"])
    pool.advance(1)

    assert [pool.credential_at(offset).index for offset in range(3)] == [2, 0, 1]


def test_out_of_range_cursor_is_clamped_to_zero() -> None:
    """A stored cursor beyond the current key count should restart at the first key."""

    store = InMemoryCursorStore({"gemini": 7})
    pool = CredentialPool("gemini", ["key-a", "key-b"], cursor_store=store)

    assert pool.cursor == 0
    assert pool.next().key == "key-a"


def test_fallback_key_is_used_only_when_list_is_empty() -> None:
    """The single fallback key should fill an empty pool and be ignored otherwise."""

    fallback_pool = CredentialPool("gemini", [], fallback_key=" solo-key ")
    listed_pool = CredentialPool("gemini", ["key-a"], fallback_key="solo-key")

    assert fallback_pool.keys == ("solo-key",)
    assert listed_pool.keys == ("key-a",)


def test_empty_pool_raises_not_configured() -> None:
    """An empty pool should refuse to yield credentials."""

    pool = CredentialPool("elevenlabs", ["", "  "])

    assert pool.is_configured is False
    with pytest.raises(ProviderNotConfiguredError, match="elevenlabs"):
        pool.next()
    with pytest.raises(ProviderNotConfiguredError):
        pool.advance(0)


def test_credential_repr_masks_secret() -> None:
    """Credential representations must not leak the key value."""

    credential = CredentialPool("gemini", ["super-secret-value"]).next()

    assert "super-secret-value" not in repr(credential)


def test_pools_share_cursor_store_per_provider() -> None:
    """Providers should keep independent cursors in one shared store."""

    store = InMemoryCursorStore()
    gemini_pool = CredentialPool("gemini", ["g1", "g2"], cursor_store=store)
    eleven_pool = CredentialPool("elevenlabs", ["e1", "e2", "e3"], cursor_store=store)

    gemini_pool.advance(0)
    eleven_pool.advance(1)

    assert store.get("gemini") == 1
    assert store.get("elevenlabs") == 2


def test_json_cursor_store_survives_new_instances(tmp_path: Path) -> None:
    """Cursor values written to disk should be visible to a fresh store and pool."""

    state_path = tmp_path / "state" / "cursors.json"
    first_pool = CredentialPool(
        "gemini", ["key-a", "key-b", "key-c"], cursor_store=JsonFileCursorStore(state_path)
    )
    first_pool.advance(1)

    reloaded_pool = CredentialPool(
        "gemini", ["key-a", "key-b", "key-c"], cursor_store=JsonFileCursorStore(state_path)
    )

    assert json.loads(state_path.read_text(encoding="utf-8")) == {"gemini": 2}
    assert reloaded_pool.next().key == "key-c"


def test_json_cursor_store_keeps_other_providers(tmp_path: Path) -> None:
    """Writing one provider cursor should not drop other providers."""

    state_path = tmp_path / "cursors.json"
    state_path.write_text(json.dumps({"elevenlabs": 1}), encoding="utf-8")
    store = JsonFileCursorStore(state_path)

    store.set("gemini", 3)

    assert json.loads(state_path.read_text(encoding="utf-8")) == {"elevenlabs": 1, "gemini": 3}


@pytest.mark.parametrize("payload", ['{"gemini": -2}', '{"gemini": "1"}', '{"gemini": true}', "[1]"])
def test_json_cursor_store_ignores_invalid_values(tmp_path: Path, payload: str) -> None:
    """Invalid stored cursor values should read as `0`."""

    state_path = tmp_path / "cursors.json"
    state_path.write_text(payload, encoding="utf-8")

    assert JsonFileCursorStore(state_path).get("gemini") == 0


def test_json_cursor_store_logs_corrupt_state(tmp_path: Path) -> None:
    """Unparseable state should read as empty and emit a warning event."""

    state_path = tmp_path / "cursors.json"
    state_path.write_text("{not json", encoding="utf-8")
    sink = io.StringIO()

    value = JsonFileCursorStore(state_path, RunLogger(sink)).get("gemini")

    assert value == 0
    assert "event=cursor_state_unreadable" in sink.getvalue()
    assert "level=WARNING" in sink.getvalue()


def test_job_scope_is_reentrant() -> None:
    """The job lock should allow nested scopes from the same thread."""

    pool = CredentialPool("gemini", ["key-a"])

    with pool.job_scope() as outer:
        with pool.job_scope() as inner:
            assert outer is inner is pool

"""Shared pytest fixtures for the full Scriptvoice test suite."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from scriptvoice.errors import SynthesisFailure
from scriptvoice.models.datatypes import AudioFormat, SynthesisRequest

PCM_FORMAT = AudioFormat(container="pcm", sample_rate=24000, channels=1, sample_width=2)


class ScriptedSynthesizer:
    """Deterministic synthesizer double driven by a per-call script.

    Each script entry is either a `SynthesisFailure` to raise or `None` to return
    PCM bytes derived from the request text.
    """

    provider_id = "gemini"
    model_id = "test-model"
    output_format = PCM_FORMAT

    def __init__(
        self,
        script: list[SynthesisFailure | None] | None = None,
        payload_for: Callable[[SynthesisRequest], bytes] | None = None,
    ) -> None:
        """Initialize with an optional failure script and payload builder."""

        self._script = list(script or [])
        self._payload_for = payload_for or (lambda request: b"\x01\x00" * len(request.text))
        self.calls: list[tuple[SynthesisRequest, str]] = []

    def synthesize(self, request: SynthesisRequest, api_key: str) -> bytes:
        """Record the call and follow the next script entry."""

        self.calls.append((request, api_key))
        if self._script:
            failure = self._script.pop(0)
            if failure is not None:
                raise failure
        return self._payload_for(request)


@pytest.fixture
def scripted_synthesizer_factory() -> Callable[..., ScriptedSynthesizer]:
    """Provide a factory for scripted synthesizer doubles."""

    return ScriptedSynthesizer


@pytest.fixture
def no_sleep() -> Callable[[float], None]:
    """Provide a sleeper that returns immediately."""

    return lambda seconds: None

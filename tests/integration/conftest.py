"""Integration-test fixtures for deterministic provider behavior."""

from __future__ import annotations

import base64
import json
import os
from pathlib import Path
from typing import Any

import pytest
import requests


class MockProviderResponse:
    """Minimal requests response mock shared by integration tests."""

    def __init__(self, *, content: bytes, status_code: int = 200) -> None:
        """Initialize with a raw body and status code."""

        self.content = content
        self.status_code = status_code

    def raise_for_status(self) -> None:
        """Raise HTTP error when status code indicates failure."""

        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}", response=self)


class ProviderPostRecorder:
    """`requests.post` replacement answering Gemini and ElevenLabs endpoints.

    Keys listed in `rejected_keys` receive an HTTP 429 quota response.
    """

    def __init__(self, rejected_keys: set[str] | None = None) -> None:
        """Initialize call recording and the rejected key set."""

        self.rejected_keys = rejected_keys or set()
        self.calls: list[dict[str, Any]] = []

    def __call__(self, url: str, **kwargs: Any) -> MockProviderResponse:
        """Return a deterministic provider response for the request."""

        headers = kwargs.get("headers") or {}
        api_key = headers.get("x-goog-api-key") or headers.get("xi-api-key") or ""
        self.calls.append({"url": url, "api_key": api_key, **kwargs})
        if api_key in self.rejected_keys:
            body = {"error": {"message": "Quota exceeded", "status": "RESOURCE_EXHAUSTED"}}
            return MockProviderResponse(content=json.dumps(body).encode(), status_code=429)

        if "generativelanguage" in url:
            samples = b"\x10\x00" * 240
            body = {
                "candidates": [
                    {
                        "content": {
                            "parts": [
                                {"inlineData": {"data": base64.b64encode(samples).decode()}}
                            ]
                        },
                        "finishReason": "STOP",
                    }
                ]
            }
            return MockProviderResponse(content=json.dumps(body).encode())
        return MockProviderResponse(content=b"ID3-fake-mp3-frame")


@pytest.fixture
def provider_post(monkeypatch: pytest.MonkeyPatch) -> ProviderPostRecorder:
    """Patch `requests.post` with a recording provider double."""

    recorder = ProviderPostRecorder()
    monkeypatch.setattr(requests, "post", recorder)
    return recorder


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Clear provider key variables and keep cursor state inside the test folder."""

    for name in (
        "GEMINI_API_KEYS",
        "GEMINI_API_KEY",
        "API_KEY",
        "ELEVENLABS_API_KEYS",
        "ELEVENLABS_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)
    for name in list(os.environ):
        if name.startswith("SCRIPTVOICE_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SCRIPTVOICE_CURSOR_STATE_PATH", str(tmp_path / "cursors.json"))

"""Unit tests for the Gemini REST synthesizer."""

from __future__ import annotations

import base64
import json
from typing import Any

import pytest
import requests

from scriptvoice.errors import SynthesisFailure
from scriptvoice.models.datatypes import SynthesisContext, SynthesisRequest
from scriptvoice.tts.gemini import GeminiSynthesizer
from scriptvoice.tts.synthesizer import NEUTRAL_PERSONA


class _MockRequestsResponse:
    """Minimal requests response mock for Gemini client tests."""

    def __init__(self, *, payload: Any, status_code: int = 200) -> None:
        """Initialize with a JSON-serializable payload or raw bytes."""

        self.content = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
        self.status_code = status_code

    def raise_for_status(self) -> None:
        """Raise HTTP error when status code indicates failure."""

        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}", response=self)


class _RecordingPost:
    """`requests.post` replacement that records calls and returns one response."""

    def __init__(self, response: _MockRequestsResponse | Exception) -> None:
        """Initialize with the response or exception to produce."""

        self._response = response
        self.calls: list[dict[str, Any]] = []

    def __call__(self, url: str, **kwargs: Any) -> _MockRequestsResponse:
        """Record the call and return or raise the scripted outcome."""

        self.calls.append({"url": url, **kwargs})
        if isinstance(self._response, Exception):
            raise self._response
        return self._response


def _request(**overrides: Any) -> SynthesisRequest:
    """Build a Gemini synthesis request with overridable fields."""

    values: dict[str, Any] = {
        "text": "Xin chào thế giới.",
        "language": "vi-VN",
        "voice_id": "Kore_US",
        "style_directives": NEUTRAL_PERSONA,
        "context": SynthesisContext(),
        "model_id": "gemini-2.5-flash-preview-tts",
    }
    values.update(overrides)
    return SynthesisRequest(**values)


def _audio_payload(audio: bytes) -> dict[str, Any]:
    """Build a successful `generateContent` response body."""

    return {
        "candidates": [
            {
                "content": {
                    "parts": [
                        {"inlineData": {"mimeType": "audio/L16;rate=24000",
                                        "data": base64.b64encode(audio).decode()}}
                    ]
                },
                "finishReason": "STOP",
            }
        ]
    }


def test_synthesize_posts_generate_content_and_decodes_pcm(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Successful responses should return decoded PCM and send the expected request."""

    post = _RecordingPost(_MockRequestsResponse(payload=_audio_payload(b"\x01\x02\x03\x04")))
    monkeypatch.setattr(requests, "post", post)

    audio = GeminiSynthesizer(timeout_seconds=12.0).synthesize(_request(), "gemini-key")

    assert audio == b"\x01\x02\x03\x04"
    call = post.calls[0]
    assert call["url"] == (
        "https://generativelanguage.googleapis.com/v1beta/models/"
        "gemini-2.5-flash-preview-tts:generateContent"
    )
    assert call["headers"]["x-goog-api-key"] == "gemini-key"
    assert call["timeout"] == 12.0
    speech_config = call["json"]["generationConfig"]["speechConfig"]
    assert speech_config["voiceConfig"]["prebuiltVoiceConfig"]["voiceName"] == "Kore"
    assert call["json"]["generationConfig"]["responseModalities"] == ["AUDIO"]


def test_prompt_labels_context_as_not_spoken() -> None:
    """Context excerpts should be present in the prompt but marked for continuity only."""

    prompt = GeminiSynthesizer().build_prompt(
        _request(
            style_directives=("calm tone",),
            context=SynthesisContext(previous_excerpt="trước đó", next_excerpt="sau đó"),
        )
    )

    lines = prompt.splitlines()
    assert lines[0] == "Say in Vietnamese with Language: Vietnamese, calm tone."
    assert 'do not read aloud: "trước đó"' in lines[1]
    assert 'do not read aloud: "sau đó"' in lines[2]
    assert lines[-2] == "Read aloud only the text below:"
    assert lines[-1] == "Xin chào thế giới."


def test_prompt_without_context_has_no_continuity_lines() -> None:
    """Requests without context should not mention neighbor text."""

    prompt = GeminiSynthesizer().build_prompt(_request())

    assert "continuity" not in prompt


@pytest.mark.parametrize(
    ("status_code", "body", "expected_kind"),
    [
        (
            400,
            {"error": {"message": "API key not valid. Please pass a valid API key.",
                       "status": "INVALID_ARGUMENT",
                       "details": [{"reason": "API_KEY_INVALID"}]}},
            "invalid_api_key",
        ),
        (403, {"error": {"message": "Permission denied", "status": "PERMISSION_DENIED"}},
         "invalid_api_key"),
        (429, {"error": {"message": "Quota exceeded", "status": "RESOURCE_EXHAUSTED"}},
         "quota_exceeded"),
        (404, {"error": {"message": "models/x is not found", "status": "NOT_FOUND"}},
         "not_found"),
        (400, {"error": {"message": "Invalid voice name", "status": "INVALID_ARGUMENT"}},
         "validation"),
        (503, {"error": {"message": "The model is overloaded", "status": "UNAVAILABLE"}},
         "server_error"),
        (504, b"gateway timeout", "timeout"),
    ],
)
def test_http_errors_are_classified(
    monkeypatch: pytest.MonkeyPatch,
    status_code: int,
    body: Any,
    expected_kind: str,
) -> None:
    """HTTP failures should map to deterministic failure kinds."""

    monkeypatch.setattr(
        requests,
        "post",
        _RecordingPost(_MockRequestsResponse(payload=body, status_code=status_code)),
    )

    with pytest.raises(SynthesisFailure) as exc_info:
        GeminiSynthesizer().synthesize(_request(), "gemini-key")

    assert exc_info.value.failure_kind == expected_kind
    assert exc_info.value.status_code == status_code


def test_error_messages_redact_api_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    """Provider diagnostics must never echo the API key back."""

    leaked_key = "AIzaSyA1234567890abcdefghijklmnop"
    body = {"error": {"message": f"API key {leaked_key} not valid.", "status": "INVALID_ARGUMENT"}}
    monkeypatch.setattr(
        requests,
        "post",
        _RecordingPost(_MockRequestsResponse(payload=body, status_code=400)),
    )

    with pytest.raises(SynthesisFailure) as exc_info:
        GeminiSynthesizer().synthesize(_request(), leaked_key)

    assert leaked_key not in str(exc_info.value)
    assert "[redacted-key]" in str(exc_info.value)


@pytest.mark.parametrize(
    ("body", "expected_kind"),
    [
        ({"promptFeedback": {"blockReason": "SAFETY"}}, "content_policy"),
        ({"candidates": [{"finishReason": "PROHIBITED_CONTENT"}]}, "content_policy"),
        ({"candidates": []}, "empty_result"),
        ({"candidates": [{"content": {"parts": [{"text": "no audio"}]}}]}, "empty_result"),
        ({"candidates": [{"content": {"parts": [{"inlineData": {"data": "%%%"}}]}}]},
         "empty_result"),
        (b"<html>oops</html>", "empty_result"),
    ],
)
def test_unusable_success_bodies_are_classified(
    monkeypatch: pytest.MonkeyPatch,
    body: Any,
    expected_kind: str,
) -> None:
    """HTTP 200 responses without usable audio should still fail the attempt."""

    monkeypatch.setattr(requests, "post", _RecordingPost(_MockRequestsResponse(payload=body)))

    with pytest.raises(SynthesisFailure) as exc_info:
        GeminiSynthesizer().synthesize(_request(), "gemini-key")

    assert exc_info.value.failure_kind == expected_kind


@pytest.mark.parametrize(
    ("error", "expected_kind"),
    [
        (requests.Timeout("read timed out"), "timeout"),
        (requests.ConnectionError("connection refused"), "transport"),
    ],
)
def test_transport_errors_are_classified(
    monkeypatch: pytest.MonkeyPatch,
    error: Exception,
    expected_kind: str,
) -> None:
    """Network-layer failures should be transient failure kinds."""

    monkeypatch.setattr(requests, "post", _RecordingPost(error))

    with pytest.raises(SynthesisFailure) as exc_info:
        GeminiSynthesizer().synthesize(_request(), "gemini-key")

    assert exc_info.value.failure_kind == expected_kind
    assert exc_info.value.retryable is True


def test_blank_api_key_fails_without_request(monkeypatch: pytest.MonkeyPatch) -> None:
    """A blank key should fail as an authentication problem before any HTTP call."""

    post = _RecordingPost(_MockRequestsResponse(payload=_audio_payload(b"\x00\x00")))
    monkeypatch.setattr(requests, "post", post)

    with pytest.raises(SynthesisFailure) as exc_info:
        GeminiSynthesizer().synthesize(_request(), "   ")

    assert exc_info.value.failure_kind == "invalid_api_key"
    assert post.calls == []

"""Gemini generative-audio synthesizer.

Responsibilities:
- Build the Gemini `generateContent` request for one chunk, including the
  non-vocalized continuity context.
- Extract base64 PCM audio from the response and classify failures.
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any

from ..errors import SynthesisFailure
from ..models.datatypes import AudioFormat, SynthesisRequest
from .http_client import ProviderHttpClient
from .rate_limiter import RateLimiter
from .voices import GEMINI_DEFAULT_MODEL, language_display_name, provider_voice_name


class GeminiSynthesizer(ProviderHttpClient):
    """Gemini TTS client returning raw 24 kHz mono 16-bit PCM per chunk."""

    provider_id = "gemini"
    provider_label = "Gemini"
    output_format = AudioFormat(container="pcm", sample_rate=24000, channels=1, sample_width=2)
    _BLOCKING_FINISH_REASONS = frozenset({"SAFETY", "PROHIBITED_CONTENT", "BLOCKLIST", "SPII"})

    def __init__(
        self,
        model_id: str = GEMINI_DEFAULT_MODEL,
        *,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout_seconds: float = 60.0,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        """Initialize Gemini client settings."""

        super().__init__(
            base_url=base_url,
            timeout_seconds=timeout_seconds,
            rate_limiter=rate_limiter,
        )
        self.model_id = model_id

    def synthesize(self, request: SynthesisRequest, api_key: str) -> bytes:
        """Synthesize one chunk and return headerless PCM samples."""

        model_id = request.model_id or self.model_id
        payload = {
            "contents": [{"parts": [{"text": self.build_prompt(request)}]}],
            "generationConfig": {
                "responseModalities": ["AUDIO"],
                "speechConfig": {
                    "voiceConfig": {
                        "prebuiltVoiceConfig": {
                            "voiceName": provider_voice_name(self.provider_id, request.voice_id),
                        }
                    }
                },
            },
        }
        raw = self._post(
            endpoint_path=f"/models/{model_id}:generateContent",
            api_key=api_key,
            headers={"x-goog-api-key": api_key},
            payload=payload,
        )
        return self._extract_audio(raw)

    def build_prompt(self, request: SynthesisRequest) -> str:
        """Build the spoken-text prompt with delivery directives and context.

        Context excerpts are labelled so the model uses them for intonation only.
        """

        language_name = language_display_name(request.language)
        directives = [f"Language: {language_name}", *request.style_directives]
        lines = [f"Say in {language_name} with {', '.join(directives)}."]
        if request.context.previous_excerpt:
            lines.append(
                "Preceding text, for continuity only, do not read aloud: "
                f"\"{request.context.previous_excerpt}\""
            )
        if request.context.next_excerpt:
            lines.append(
                "Following text, for continuity only, do not read aloud: "
                f"\"{request.context.next_excerpt}\""
            )
        lines.append("Read aloud only the text below:")
        lines.append(request.text)
        return "\n".join(lines)

    def _extract_audio(self, raw: bytes) -> bytes:
        """Decode the first inline audio part from a `generateContent` response."""

        try:
            payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise SynthesisFailure(
                "Gemini returned a non-JSON response.",
                failure_kind="empty_result",
            ) from exc
        if not isinstance(payload, dict):
            raise SynthesisFailure("Gemini response is malformed.", failure_kind="empty_result")

        feedback = payload.get("promptFeedback")
        if isinstance(feedback, dict) and feedback.get("blockReason"):
            raise SynthesisFailure(
                f"Gemini blocked the prompt ({feedback['blockReason']}).",
                failure_kind="content_policy",
                provider_code=str(feedback["blockReason"]),
            )

        candidates = payload.get("candidates")
        if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
            raise SynthesisFailure("Gemini response has no candidates.", failure_kind="empty_result")
        candidate = candidates[0]

        finish_reason = candidate.get("finishReason")
        if finish_reason in self._BLOCKING_FINISH_REASONS:
            raise SynthesisFailure(
                f"Gemini stopped generation ({finish_reason}).",
                failure_kind="content_policy",
                provider_code=finish_reason,
            )

        encoded = self._first_inline_data(candidate)
        if not encoded:
            raise SynthesisFailure("Gemini response contains no audio.", failure_kind="empty_result")
        try:
            audio = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise SynthesisFailure(
                "Gemini audio payload is not valid base64.",
                failure_kind="empty_result",
            ) from exc
        if not audio:
            raise SynthesisFailure("Gemini audio payload is empty.", failure_kind="empty_result")
        return audio

    @staticmethod
    def _first_inline_data(candidate: dict[str, Any]) -> str | None:
        """Return the base64 data of the first inline audio part, if present."""

        content = candidate.get("content")
        if not isinstance(content, dict):
            return None
        parts = content.get("parts")
        if not isinstance(parts, list):
            return None
        for part in parts:
            if not isinstance(part, dict):
                continue
            inline = part.get("inlineData") or part.get("inline_data")
            if isinstance(inline, dict) and isinstance(inline.get("data"), str):
                return inline["data"]
        return None

    def _provider_error_fields(self, payload: Any) -> tuple[str | None, str | None]:
        """Return Gemini `error.message` and the most specific error code."""

        if not isinstance(payload, dict):
            return None, None
        error_payload = payload.get("error")
        if not isinstance(error_payload, dict):
            return None, None

        message = error_payload.get("message")
        code = error_payload.get("status")
        details = error_payload.get("details")
        if isinstance(details, list):
            for detail in details:
                if isinstance(detail, dict) and isinstance(detail.get("reason"), str):
                    code = detail["reason"]
                    break
        return (
            message.strip() if isinstance(message, str) and message.strip() else None,
            code.strip() if isinstance(code, str) and code.strip() else None,
        )

    def _classify_http_failure(
        self,
        status_code: int,
        provider_message: str,
        provider_code: str | None,
    ) -> str:
        """Classify Gemini HTTP errors into failure kinds."""

        message_lower = provider_message.lower()
        normalized_code = (provider_code or "").upper()

        if status_code == 400 and (
            normalized_code == "API_KEY_INVALID" or "api key" in message_lower
        ):
            return "invalid_api_key"
        if status_code in {401, 403}:
            return "invalid_api_key"
        if status_code == 404:
            return "not_found"
        if status_code == 429 or normalized_code == "RESOURCE_EXHAUSTED":
            return "quota_exceeded"
        if status_code in {408, 504}:
            return "timeout"
        if status_code >= 500:
            return "server_error"
        return "validation"

"""ElevenLabs REST synthesizer.

Responsibilities:
- Build the `text-to-speech` request for one chunk with continuity text.
- Return MP3 bytes and classify ElevenLabs error payloads.
"""

from __future__ import annotations

from typing import Any

from ..errors import SynthesisFailure
from ..models.datatypes import AudioFormat, SynthesisRequest
from .http_client import ProviderHttpClient
from .rate_limiter import RateLimiter
from .synthesizer import has_custom_delivery
from .voices import ELEVENLABS_DEFAULT_MODEL, model_supports_language_code


class ElevenLabsSynthesizer(ProviderHttpClient):
    """ElevenLabs TTS client returning 44.1 kHz MP3 per chunk."""

    provider_id = "elevenlabs"
    provider_label = "ElevenLabs"
    output_format = AudioFormat(
        container="mp3",
        sample_rate=44100,
        channels=1,
        sample_width=2,
        mime_type="audio/mpeg",
    )
    OUTPUT_FORMAT_PARAM = "mp3_44100_128"

    _STATUS_FAILURE_KINDS = {
        "quota_exceeded": "quota_exceeded",
        "too_many_concurrent_requests": "rate_limited",
        "system_busy": "rate_limited",
        "invalid_api_key": "invalid_api_key",
        "missing_permissions": "invalid_api_key",
        "voice_not_found": "not_found",
        "model_not_found": "not_found",
    }

    def __init__(
        self,
        model_id: str = ELEVENLABS_DEFAULT_MODEL,
        *,
        base_url: str = "https://api.elevenlabs.io/v1",
        timeout_seconds: float = 60.0,
        rate_limiter: RateLimiter | None = None,
        stability: float = 0.5,
        similarity_boost: float = 0.75,
    ) -> None:
        """Initialize ElevenLabs client settings."""

        super().__init__(
            base_url=base_url,
            timeout_seconds=timeout_seconds,
            rate_limiter=rate_limiter,
        )
        self.model_id = model_id
        self.stability = stability
        self.similarity_boost = similarity_boost

    def synthesize(self, request: SynthesisRequest, api_key: str) -> bytes:
        """Synthesize one chunk and return MP3 bytes."""

        audio = self._post(
            endpoint_path=f"/text-to-speech/{request.voice_id}",
            api_key=api_key,
            headers={"xi-api-key": api_key, "Accept": "audio/mpeg"},
            params={"output_format": self.OUTPUT_FORMAT_PARAM},
            payload=self.build_payload(request),
        )
        if not audio:
            raise SynthesisFailure(
                "ElevenLabs returned an empty audio body.",
                failure_kind="empty_result",
            )
        return audio

    def build_payload(self, request: SynthesisRequest) -> dict[str, Any]:
        """Build the JSON body for one chunk.

        `previous_text`/`next_text` are used by the API for prosody and are not spoken.
        """

        model_id = request.model_id or self.model_id
        payload: dict[str, Any] = {
            "text": request.text,
            "model_id": model_id,
            "voice_settings": {
                "stability": self.stability,
                "similarity_boost": self.similarity_boost,
                "style": 0.5 if has_custom_delivery(request.style_directives) else 0.0,
            },
        }
        if request.context.previous_excerpt:
            payload["previous_text"] = request.context.previous_excerpt
        if request.context.next_excerpt:
            payload["next_text"] = request.context.next_excerpt
        if model_supports_language_code(model_id):
            payload["language_code"] = request.language.split("-", 1)[0].lower()
        return payload

    def _provider_error_fields(self, payload: Any) -> tuple[str | None, str | None]:
        """Return ElevenLabs `detail.message` and `detail.status`."""

        if not isinstance(payload, dict):
            return None, None
        detail = payload.get("detail")
        if isinstance(detail, str):
            return detail.strip() or None, None
        if isinstance(detail, list):
            messages = [
                str(item.get("msg"))
                for item in detail
                if isinstance(item, dict) and item.get("msg")
            ]
            return ("; ".join(messages) or None), None
        if not isinstance(detail, dict):
            return None, None

        message = detail.get("message")
        status = detail.get("status")
        return (
            message.strip() if isinstance(message, str) and message.strip() else None,
            status.strip() if isinstance(status, str) and status.strip() else None,
        )

    def _classify_http_failure(
        self,
        status_code: int,
        provider_message: str,
        provider_code: str | None,
    ) -> str:
        """Classify ElevenLabs HTTP errors, preferring the `detail.status` code."""

        normalized_code = (provider_code or "").lower()
        if normalized_code in self._STATUS_FAILURE_KINDS:
            return self._STATUS_FAILURE_KINDS[normalized_code]
        if "moderation" in normalized_code or normalized_code == "content_against_policy":
            return "content_policy"

        if status_code in {401, 403}:
            return "invalid_api_key"
        if status_code == 404:
            return "not_found"
        if status_code == 429:
            return "rate_limited"
        if status_code in {408, 504}:
            return "timeout"
        if status_code >= 500:
            return "server_error"
        return "validation"

"""Provider factory helpers for TTS synthesizers.

Responsibilities:
- Resolve provider identifiers to concrete synthesizer implementations.
- Keep orchestration independent from concrete provider class construction.
"""

from __future__ import annotations

from .models.datatypes import AudioFormat
from .tts.elevenlabs import ElevenLabsSynthesizer
from .tts.gemini import GeminiSynthesizer
from .tts.rate_limiter import RateLimiter
from .tts.synthesizer import SpeechSynthesizer


class ProviderFactory:
    """Factory for provider-backed synthesizers used by the pipeline."""

    @staticmethod
    def create_synthesizer(
        provider_id: str,
        model: str,
        *,
        timeout_seconds: float = 60.0,
        rate_limiter: RateLimiter | None = None,
    ) -> SpeechSynthesizer:
        """Create a synthesizer client for a provider identifier."""

        if provider_id == "gemini":
            return GeminiSynthesizer(
                model_id=model,
                timeout_seconds=timeout_seconds,
                rate_limiter=rate_limiter,
            )
        if provider_id == "elevenlabs":
            return ElevenLabsSynthesizer(
                model_id=model,
                timeout_seconds=timeout_seconds,
                rate_limiter=rate_limiter,
            )
        raise ValueError(f"Unsupported TTS provider `{provider_id}`.")

    @staticmethod
    def output_format_for(provider_id: str) -> AudioFormat:
        """Return the per-chunk audio format a provider returns."""

        if provider_id == "gemini":
            return GeminiSynthesizer.output_format
        if provider_id == "elevenlabs":
            return ElevenLabsSynthesizer.output_format
        raise ValueError(f"Unsupported TTS provider `{provider_id}`.")

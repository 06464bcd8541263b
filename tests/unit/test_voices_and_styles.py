"""Unit tests for voice catalogues, style directives, and provider construction."""

from __future__ import annotations

import pytest

from scriptvoice.provider_factory import ProviderFactory
from scriptvoice.tts.elevenlabs import ElevenLabsSynthesizer
from scriptvoice.tts.gemini import GeminiSynthesizer
from scriptvoice.tts.synthesizer import NEUTRAL_PERSONA, build_style_directives, has_custom_delivery
from scriptvoice.tts.voices import (
    CUSTOM_VOICE_ID,
    is_known_voice,
    language_display_name,
    model_supports_language_code,
    provider_voice_name,
    voices_for,
)


def test_style_directives_fall_back_to_neutral_persona() -> None:
    """Blank and neutral placeholder options should yield the neutral persona."""

    assert build_style_directives(None, None, None) == NEUTRAL_PERSONA
    assert build_style_directives("Tiêu chuẩn", " standard ", "   ") == NEUTRAL_PERSONA
    assert has_custom_delivery(NEUTRAL_PERSONA) is False


def test_style_directives_keep_tone_style_instruction_order() -> None:
    """Custom options should be emitted in tone, style, instructions order."""

    directives = build_style_directives("Cảm xúc", "Bản tin thời sự", "  speak\n slowly  ")

    assert directives == ("Cảm xúc tone", "Bản tin thời sự style", "speak slowly")
    assert has_custom_delivery(directives) is True


@pytest.mark.parametrize(
    ("provider", "voice_id", "expected"),
    [
        ("gemini", "Kore", True),
        ("gemini", "Kore_JP", True),
        ("gemini", "Sulafat", True),
        ("gemini", "NotAVoice", False),
        ("gemini", CUSTOM_VOICE_ID, False),
        ("elevenlabs", "any-account-voice-id", True),
        ("elevenlabs", "  ", False),
    ],
)
def test_is_known_voice(provider: str, voice_id: str, expected: bool) -> None:
    """Voice validation should follow each provider's catalogue rules."""

    assert is_known_voice(provider, voice_id) is expected


def test_gemini_voice_suffix_is_stripped_for_requests() -> None:
    """Locale-suffixed catalogue ids should map to the bare prebuilt name."""

    assert provider_voice_name("gemini", "Puck_GB") == "Puck"
    assert provider_voice_name("elevenlabs", "Puck_GB") == "Puck_GB"


def test_voices_for_filters_language_and_keeps_multilingual() -> None:
    """Language filters should include voices marked as multilingual."""

    gemini_us = voices_for("gemini", "en-US")
    eleven_ja = voices_for("elevenlabs", "ja-JP")

    assert gemini_us
    assert all(voice.language == "en-US" for voice in gemini_us)
    assert {voice.language for voice in eleven_ja} == {"multi", "ja-JP"}


def test_language_helpers() -> None:
    """Language names and language-code support should come from the catalogues."""

    assert language_display_name("vi-vn") == "Vietnamese"
    assert language_display_name("fr-FR") == "fr-FR"
    assert model_supports_language_code("eleven_v3") is True
    assert model_supports_language_code("eleven_multilingual_v2") is False


def test_provider_factory_builds_configured_synthesizers() -> None:
    """Factory should map provider ids to clients with the requested model and timeout."""

    gemini = ProviderFactory.create_synthesizer("gemini", "gemini-2.5-pro-preview-tts")
    eleven = ProviderFactory.create_synthesizer(
        "elevenlabs", "eleven_v3", timeout_seconds=5.0
    )

    assert isinstance(gemini, GeminiSynthesizer)
    assert gemini.model_id == "gemini-2.5-pro-preview-tts"
    assert isinstance(eleven, ElevenLabsSynthesizer)
    assert eleven.timeout_seconds == 5.0
    assert ProviderFactory.output_format_for("gemini").container == "pcm"
    assert ProviderFactory.output_format_for("elevenlabs").container == "mp3"


def test_provider_factory_rejects_unknown_provider() -> None:
    """Unknown providers should raise a clear `ValueError`."""

    with pytest.raises(ValueError, match="azure"):
        ProviderFactory.create_synthesizer("azure", "model")

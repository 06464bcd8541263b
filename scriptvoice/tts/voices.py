"""Voice, language, and style catalogues for synthesis configuration.

Responsibilities:
- Represent provider voice identities with their language and traits.
- Provide the language, tone, style, and model option lists used by the CLI.
- Decouple pipeline logic from provider-specific voice naming.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class VoiceProfile:
    """Declarative voice entry used by TTS providers.

    Attributes:
        provider: Provider identifier (`gemini` or `elevenlabs`).
        voice_id: Provider voice identifier as submitted by callers.
        name: Human-readable voice name.
        gender: `female`, `male`, or `custom`.
        traits: Short free-text description.
        language: Locale code, `multi` for multilingual voices.
    """

    provider: str
    voice_id: str
    name: str
    gender: str
    traits: str
    language: str

    @property
    def provider_voice_name(self) -> str:
        """Return the provider-native voice name with any locale suffix removed."""

        return provider_voice_name(self.provider, self.voice_id)


@dataclass(frozen=True, slots=True)
class LanguageOption:
    """Supported output language."""

    code: str
    name: str
    native_name: str


@dataclass(frozen=True, slots=True)
class ModelOption:
    """Selectable provider model."""

    provider: str
    model_id: str
    name: str
    supports_language_code: bool = False


LANGUAGES: tuple[LanguageOption, ...] = (
    LanguageOption("vi-VN", "Vietnamese", "Tiếng Việt"),
    LanguageOption("en-US", "English (US)", "English (US)"),
    LanguageOption("en-GB", "English (UK)", "English (UK)"),
    LanguageOption("ja-JP", "Japanese", "日本語"),
    LanguageOption("ko-KR", "Korean", "한국어"),
)

NEUTRAL_OPTION_VALUES = frozenset({"standard", "tiêu chuẩn", "neutral"})

TONES: tuple[str, ...] = (
    "Tiêu chuẩn",
    "Điềm tĩnh",
    "Cảm xúc",
    "Điện ảnh",
    "Người máy",
    "Kể chuyện",
    "Truyền cảm hứng",
    "Thì thầm",
    "Tài liệu sâu sắc",
)

STYLES: tuple[str, ...] = (
    "Tiêu chuẩn",
    "Người dẫn chuyện nam uy quyền",
    "Người kể chuyện nữ nhẹ nhàng",
    "Giọng TikTok nhanh",
    "Giọng AI Robot",
    "Bản tin thời sự",
    "Trò chuyện đời thường",
    "YouTuber năng động",
    "Hướng dẫn viên nhẹ nhàng",
)

GEMINI_DEFAULT_MODEL = "gemini-2.5-flash-preview-tts"
ELEVENLABS_DEFAULT_MODEL = "eleven_multilingual_v2"

MODELS: tuple[ModelOption, ...] = (
    ModelOption("gemini", GEMINI_DEFAULT_MODEL, "Gemini 2.5 Flash TTS"),
    ModelOption("gemini", "gemini-2.5-pro-preview-tts", "Gemini 2.5 Pro TTS"),
    ModelOption("elevenlabs", "eleven_v3", "Eleven v3", supports_language_code=True),
    ModelOption("elevenlabs", ELEVENLABS_DEFAULT_MODEL, "Multilingual v2"),
    ModelOption(
        "elevenlabs", "eleven_flash_v2_5", "Flash v2.5", supports_language_code=True
    ),
    ModelOption("elevenlabs", "eleven_flash_v2", "Flash v2"),
    ModelOption(
        "elevenlabs", "eleven_turbo_v2_5", "Turbo v2.5", supports_language_code=True
    ),
    ModelOption("elevenlabs", "eleven_turbo_v2", "Turbo v2"),
)

CUSTOM_VOICE_ID = "custom_input"

GEMINI_PREBUILT_VOICES = frozenset(
    {
        "Achernar", "Achird", "Algenib", "Algieba", "Alnilam", "Aoede", "Autonoe",
        "Callirrhoe", "Charon", "Despina", "Enceladus", "Erinome", "Fenrir", "Gacrux",
        "Iapetus", "Kore", "Laomedeia", "Leda", "Orus", "Puck", "Pulcherrima",
        "Rasalgethi", "Sadachbia", "Sadaltager", "Schedar", "Sulafat", "Umbriel",
        "Vindemiatrix", "Zephyr", "Zubenelgenubi",
    }
)

VOICES: tuple[VoiceProfile, ...] = (
    VoiceProfile("gemini", "Aoede", "Ngọc Huyền (Aoede)", "female", "Confident, news", "vi-VN"),
    VoiceProfile("gemini", "Charon", "Minh Quân (Charon)", "male", "Warm, documentary", "vi-VN"),
    VoiceProfile("gemini", "Fenrir", "Thanh Tùng (Fenrir)", "male", "Lively, reviews", "vi-VN"),
    VoiceProfile("gemini", "Kore", "Diệu Linh (Kore)", "female", "Relaxed, storytelling", "vi-VN"),
    VoiceProfile("gemini", "Puck", "Hoàng Bách (Puck)", "male", "Natural, reportage", "vi-VN"),
    VoiceProfile("gemini", "Zephyr", "Mai Anh (Zephyr)", "female", "Sweet, audiobooks", "vi-VN"),
    VoiceProfile("gemini", "Aoede_US", "Aoede (US)", "female", "Confident, professional", "en-US"),
    VoiceProfile("gemini", "Charon_US", "Charon (US)", "male", "Deep, authoritative", "en-US"),
    VoiceProfile("gemini", "Fenrir_US", "Fenrir (US)", "male", "Energetic, strong", "en-US"),
    VoiceProfile("gemini", "Kore_US", "Kore (US)", "female", "Calm, soothing", "en-US"),
    VoiceProfile("gemini", "Puck_US", "Puck (US)", "male", "Natural, spoken", "en-US"),
    VoiceProfile("gemini", "Zephyr_US", "Zephyr (US)", "female", "High pitched, sweet", "en-US"),
    VoiceProfile("gemini", "Puck_GB", "Arthur (Puck)", "male", "British, formal", "en-GB"),
    VoiceProfile("gemini", "Kore_GB", "Emma (Kore)", "female", "British, gentle", "en-GB"),
    VoiceProfile("gemini", "Fenrir_GB", "Harry (Fenrir)", "male", "British, energetic", "en-GB"),
    VoiceProfile("gemini", "Kore_JP", "Sakura (Kore)", "female", "Soft, anime style", "ja-JP"),
    VoiceProfile("gemini", "Charon_JP", "Kenji (Charon)", "male", "Deep, samurai", "ja-JP"),
    VoiceProfile("gemini", "Zephyr_JP", "Hina (Zephyr)", "female", "High pitch, cute", "ja-JP"),
    VoiceProfile("gemini", "Aoede_KR", "Ji-woo (Aoede)", "female", "Professional, news", "ko-KR"),
    VoiceProfile("gemini", "Puck_KR", "Min-ho (Puck)", "male", "Casual, drama", "ko-KR"),
    VoiceProfile("elevenlabs", "pNInz6obpgDQGcFmaJgB", "Adam", "male", "US, deep, narration", "multi"),
    VoiceProfile("elevenlabs", "ErXwobaYiN019PkySvjV", "Antoni", "male", "US, balanced, podcast", "multi"),
    VoiceProfile("elevenlabs", "IKne3meq5aSn9XLyUdCD", "Charlie", "male", "Australian, casual", "multi"),
    VoiceProfile("elevenlabs", "TxGEqnHWrfWFTfGW9XjX", "Josh", "male", "US, deep, storytelling", "multi"),
    VoiceProfile("elevenlabs", "VR6AewLTigWg4xSOukaG", "Arnold", "male", "US, crisp", "multi"),
    VoiceProfile("elevenlabs", "21m00Tcm4TlvDq8ikWAM", "Rachel", "female", "US, calm narration", "multi"),
    VoiceProfile("elevenlabs", "AZnzlk1XvdvUeBnXmlld", "Domi", "female", "US, strong, news", "multi"),
    VoiceProfile("elevenlabs", "EXAVITQu4vr4xnSDxMaL", "Bella", "female", "US, gentle, storytelling", "multi"),
    VoiceProfile("elevenlabs", "FGY2WhTYpPnrIDTdsKH5", "Laura", "female", "US, upbeat, social", "multi"),
    VoiceProfile("elevenlabs", "jsCqWAovK2LkecY7zXl4", "Freya", "female", "US, low, narration", "multi"),
    VoiceProfile("elevenlabs", "XrExE9yKIg1WjnnlVkGX", "Matilda", "female", "US, warm, audiobook", "multi"),
    VoiceProfile("elevenlabs", "JBFqnCBsd6RMkjVDRZzb", "George", "male", "British, warm, narration", "multi"),
    VoiceProfile("elevenlabs", "bVMeCyTHy58xNoL34h3p", "Jeremy", "male", "British, deep", "multi"),
    VoiceProfile("elevenlabs", "ODq5zmih8GrVes37Dizj", "Patrick", "male", "British, hype", "multi"),
    VoiceProfile("elevenlabs", "7Y44f81P8s14FvG8l8Xl", "Takumi", "male", "Japanese, calm", "ja-JP"),
    VoiceProfile("elevenlabs", "bIHjv166Xa93aQ9gX0lD", "Kyoko", "female", "Japanese, anime, clear", "ja-JP"),
    VoiceProfile("elevenlabs", "YkO5Hq58XX50Q6S2w1lE", "Jin-Soo", "male", "Korean, news, serious", "ko-KR"),
    VoiceProfile("elevenlabs", "65r76831Q871w21285Xl", "So-Young", "female", "Korean, gentle, storytelling", "ko-KR"),
)


def provider_voice_name(provider: str, voice_id: str) -> str:
    """Return the voice name a provider expects for a catalogue voice id.

    Gemini catalogue ids carry a locale suffix (`Kore_US`) that the API does not
    accept, so only the part before the first underscore is sent.
    """

    if provider == "gemini":
        return voice_id.split("_", 1)[0]
    return voice_id


def find_language(code: str) -> LanguageOption | None:
    """Return the language option for a locale code, case-insensitively."""

    normalized = code.strip().lower()
    for option in LANGUAGES:
        if option.code.lower() == normalized:
            return option
    return None


def language_display_name(code: str) -> str:
    """Return the prompt-facing language name, falling back to the raw code."""

    option = find_language(code)
    return option.name if option is not None else code


def voices_for(provider: str, language: str | None = None) -> list[VoiceProfile]:
    """List catalogue voices for a provider, optionally filtered by language.

    Multilingual voices (`multi`) match every language.
    """

    matches: list[VoiceProfile] = []
    for voice in VOICES:
        if voice.provider != provider:
            continue
        if language is not None and voice.language not in {language, "multi"}:
            continue
        matches.append(voice)
    return matches


def find_voice(provider: str, voice_id: str) -> VoiceProfile | None:
    """Return the catalogue entry for a provider voice id, if any."""

    for voice in VOICES:
        if voice.provider == provider and voice.voice_id == voice_id:
            return voice
    return None


def is_known_voice(provider: str, voice_id: str) -> bool:
    """Return whether a voice id is usable for a provider.

    ElevenLabs accepts arbitrary account voice ids, so any non-blank id passes for it.
    Gemini accepts catalogue ids and bare prebuilt voice names.
    """

    if not voice_id.strip() or voice_id == CUSTOM_VOICE_ID:
        return False
    if provider == "elevenlabs":
        return True
    if find_voice(provider, voice_id) is not None:
        return True
    return provider == "gemini" and provider_voice_name(provider, voice_id) in GEMINI_PREBUILT_VOICES


def models_for(provider: str) -> list[ModelOption]:
    """List selectable models for a provider."""

    return [model for model in MODELS if model.provider == provider]


def model_supports_language_code(model_id: str) -> bool:
    """Return whether an ElevenLabs model accepts an explicit `language_code`."""

    for model in MODELS:
        if model.model_id == model_id:
            return model.supports_language_code
    return False


def is_neutral_option(value: str | None) -> bool:
    """Return whether a tone/style value is blank or the neutral placeholder."""

    if value is None:
        return True
    normalized = value.strip().lower()
    return not normalized or normalized in NEUTRAL_OPTION_VALUES

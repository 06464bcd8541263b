"""Text-to-speech provider clients and request orchestration.

This package contains the provider synthesizers, the shared HTTP layer, voice
catalogues, and the multi-key failover controller used by the generation pipeline.
"""

from .elevenlabs import ElevenLabsSynthesizer
from .failover import AttemptOutcome, FailoverController, classify_synthesis_failure
from .gemini import GeminiSynthesizer
from .rate_limiter import RateLimiter
from .synthesizer import NEUTRAL_PERSONA, SpeechSynthesizer, build_style_directives
from .voices import VoiceProfile

__all__ = [
    "AttemptOutcome",
    "ElevenLabsSynthesizer",
    "FailoverController",
    "GeminiSynthesizer",
    "NEUTRAL_PERSONA",
    "RateLimiter",
    "SpeechSynthesizer",
    "VoiceProfile",
    "build_style_directives",
    "classify_synthesis_failure",
]

"""WAV container helpers built on the standard `wave` module."""

from __future__ import annotations

import io
import wave

from ..models.datatypes import AudioFormat

WAV_HEADER_BYTES = 44


def wrap_pcm(samples: bytes, audio_format: AudioFormat) -> bytes:
    """Wrap raw little-endian PCM samples in a single canonical WAV header."""

    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav_file:
        wav_file.setnchannels(audio_format.channels)
        wav_file.setsampwidth(audio_format.sample_width)
        wav_file.setframerate(audio_format.sample_rate)
        wav_file.writeframes(samples)
    return buffer.getvalue()


def read_wav_frames(payload: bytes) -> tuple[AudioFormat, bytes]:
    """Return the format and raw frames of a WAV payload.

    Raises:
        ValueError: If the payload is not a readable WAV file.
    """

    try:
        with wave.open(io.BytesIO(payload), "rb") as wav_file:
            audio_format = AudioFormat(
                container="wav",
                sample_rate=wav_file.getframerate(),
                channels=wav_file.getnchannels(),
                sample_width=wav_file.getsampwidth(),
            )
            frames = wav_file.readframes(wav_file.getnframes())
    except (wave.Error, EOFError) as exc:
        raise ValueError("Audio payload is not a readable WAV file.") from exc
    return audio_format, frames


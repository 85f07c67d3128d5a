"""PCM/WAV conversion for synthesized narration.

The speech endpoint returns bare 16-bit little-endian mono PCM. Generic
decoders cannot consume that, so a RIFF/WAVE header is synthesized around the
samples before decoding.
"""

from __future__ import annotations

import base64
import binascii
import io
import wave

import numpy as np
from scipy.io import wavfile

from growthpath.domain import AudioDecodeError, DecodedAudio

SAMPLE_WIDTH_BYTES = 2
CHANNELS = 1


def encode_wav(pcm_bytes: bytes, sample_rate: int) -> bytes:
    """Wrap raw 16-bit mono PCM in a WAV container."""

    if not isinstance(sample_rate, int) or sample_rate <= 0:
        raise AudioDecodeError(f"Invalid sample rate: {sample_rate!r}")

    usable = len(pcm_bytes) - (len(pcm_bytes) % SAMPLE_WIDTH_BYTES)
    with io.BytesIO() as buffer:
        with wave.open(buffer, "wb") as wave_file:
            wave_file.setnchannels(CHANNELS)
            wave_file.setsampwidth(SAMPLE_WIDTH_BYTES)
            wave_file.setframerate(sample_rate)
            wave_file.writeframes(pcm_bytes[:usable])
        return buffer.getvalue()


def decode_wav(wav_bytes: bytes) -> DecodedAudio:
    """Decode a WAV container into float32 samples in [-1, 1]."""

    try:
        sample_rate, data = wavfile.read(io.BytesIO(wav_bytes))
    except (ValueError, EOFError) as exc:
        raise AudioDecodeError(f"Unable to decode audio: {exc}") from exc

    if data.ndim > 1:
        data = data.mean(axis=1)
    if data.dtype == np.int16:
        samples = data.astype(np.float32) / 32768.0
    else:
        samples = data.astype(np.float32)
    return DecodedAudio(samples=samples, sample_rate=int(sample_rate))


def decode_base64(payload: str) -> bytes:
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise AudioDecodeError(f"Audio payload is not valid base64: {exc}") from exc


def decode_pcm(pcm_bytes: bytes, sample_rate: int) -> DecodedAudio:
    """Frame raw PCM as WAV and decode it, as a browser decoder would."""

    return decode_wav(encode_wav(pcm_bytes, sample_rate))


__all__ = ["decode_base64", "decode_pcm", "decode_wav", "encode_wav"]

"""Audio helpers: WAV framing and step playback."""

from .codec import decode_base64, decode_pcm, decode_wav, encode_wav
from .playback import (
    AudioSink,
    PlaybackEngine,
    PlaybackState,
    SoundDeviceSink,
    open_default_sink,
)

__all__ = [
    "AudioSink",
    "PlaybackEngine",
    "PlaybackState",
    "SoundDeviceSink",
    "decode_base64",
    "decode_pcm",
    "decode_wav",
    "encode_wav",
    "open_default_sink",
]

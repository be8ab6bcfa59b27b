"""WAV container helpers for the raw PCM returned by speech synthesis."""

import io
import wave

SAMPLE_RATE = 24000
NUM_CHANNELS = 1
BITS_PER_SAMPLE = 16
WAV_HEADER_SIZE = 44


def pcm_to_wav(
    pcm: bytes,
    sample_rate: int = SAMPLE_RATE,
    num_channels: int = NUM_CHANNELS,
    bits_per_sample: int = BITS_PER_SAMPLE,
) -> bytes:
    """Prefix little-endian PCM samples with a canonical 44-byte RIFF/WAVE header"""
    out = io.BytesIO()
    with wave.open(out, "wb") as wav:
        wav.setnchannels(num_channels)
        wav.setsampwidth(bits_per_sample // 8)
        wav.setframerate(sample_rate)
        wav.writeframes(pcm)
    return out.getvalue()


def pcm_duration_seconds(wav: bytes, sample_rate: int = SAMPLE_RATE) -> float:
    """Duration of a mono 16-bit WAV produced by pcm_to_wav"""
    samples = max(len(wav) - WAV_HEADER_SIZE, 0) // (BITS_PER_SAMPLE // 8)
    return samples / sample_rate

"""
Basic audio processing functions: PCM16 conversions, loudness and resampling.
"""
import base64
from fractions import Fraction
from typing import Union

import numpy as np
from scipy.signal import resample_poly


def stereo_to_mono(x: np.ndarray) -> np.ndarray:
    """Convert multi-channel audio to mono by averaging channels."""
    if x.ndim == 1:
        return x
    return np.mean(x, axis=1)


def float_to_pcm16(samples: np.ndarray) -> bytes:
    """Encode [-1, 1] float samples as 16-bit signed little-endian PCM."""
    scaled = np.clip(np.asarray(samples, dtype=np.float32) * 32768.0, -32768, 32767)
    return scaled.astype("<i2").tobytes()


def pcm16_to_float(data: bytes, num_channels: int = 1) -> np.ndarray:
    """
    Decode 16-bit little-endian PCM to float32 samples in [-1, 1).

    Multi-channel input is interleaved and comes back as (frames, channels).
    Raises ValueError for empty input or a byte count that is not a whole
    number of frames.
    """
    frame_bytes = 2 * num_channels
    if not data:
        raise ValueError("Empty PCM frame")
    if len(data) % frame_bytes:
        raise ValueError(f"PCM frame of {len(data)} bytes is not a multiple of {frame_bytes}")
    samples = np.frombuffer(data, dtype="<i2").astype(np.float32) / 32768.0
    if num_channels > 1:
        samples = samples.reshape(-1, num_channels)
    return samples


def average_abs_loudness(samples: np.ndarray) -> float:
    """Mean absolute amplitude, the loudness estimate used for 'is speaking'."""
    if samples.size == 0:
        return 0.0
    return float(np.mean(np.abs(samples)))


def resample_to(samples: np.ndarray, sr_from: int, sr_to: int) -> np.ndarray:
    """Resample mono audio between arbitrary integer rates."""
    if sr_from == sr_to:
        return samples.astype(np.float32, copy=False)
    ratio = Fraction(sr_to, sr_from)
    return resample_poly(samples, up=ratio.numerator, down=ratio.denominator).astype(np.float32)


def encode_frame_b64(pcm: bytes) -> str:
    """Wrap a PCM frame for a text transport."""
    return base64.b64encode(pcm).decode("ascii")


def decode_frame_b64(data: Union[bytes, str]) -> bytes:
    """Unwrap an inbound frame; raw bytes from the SDK pass through untouched."""
    if isinstance(data, str):
        return base64.b64decode(data)
    return bytes(data)

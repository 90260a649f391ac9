"""Audio processing and capture modules."""

# Import processing functions immediately (numpy/scipy only)
from .processing import (
    stereo_to_mono,
    float_to_pcm16,
    pcm16_to_float,
    average_abs_loudness,
    resample_to,
    encode_frame_b64,
    decode_frame_b64,
)
from .capture import AudioCapture, CaptureFrame, MicrophoneUnavailableError

__all__ = [
    "AudioCapture",
    "CaptureFrame",
    "MicrophoneUnavailableError",
    "stereo_to_mono",
    "float_to_pcm16",
    "pcm16_to_float",
    "average_abs_loudness",
    "resample_to",
    "encode_frame_b64",
    "decode_frame_b64",
]

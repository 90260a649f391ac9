"""
Audio I/O for live voice interviews.

- processing: PCM conversions, loudness, resampling and microphone capture
- playback: scheduling and rendering of model audio
"""

from .processing import AudioCapture, CaptureFrame, MicrophoneUnavailableError
from .playback import PlaybackScheduler, ScheduledBuffer, SpeakerOutput

__all__ = [
    "AudioCapture",
    "CaptureFrame",
    "MicrophoneUnavailableError",
    "PlaybackScheduler",
    "ScheduledBuffer",
    "SpeakerOutput",
]

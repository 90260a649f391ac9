"""Playback of inbound model audio."""

from .scheduler import PlaybackScheduler, ScheduledBuffer, AudioOutput
from .speaker import SpeakerOutput

__all__ = ["PlaybackScheduler", "ScheduledBuffer", "AudioOutput", "SpeakerOutput"]

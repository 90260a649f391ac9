"""Infrastructure components for the Cognify studio.

This module contains low-level technical components that provide
foundational capabilities for practice sessions.
"""

# Audio infrastructure
from .audio import (
    AudioCapture, CaptureFrame, MicrophoneUnavailableError,
    PlaybackScheduler, ScheduledBuffer, SpeakerOutput
)

# LLM infrastructure
from .llm import VertexRestClient, ProviderError, RealtimeSessionChannel, ChannelMessage, ChannelError

# Persistence
from .data import LocalStore

__all__ = [
    # Audio capture and playback
    "AudioCapture", "CaptureFrame", "MicrophoneUnavailableError",
    "PlaybackScheduler", "ScheduledBuffer", "SpeakerOutput",

    # LLM clients
    "VertexRestClient", "ProviderError",
    "RealtimeSessionChannel", "ChannelMessage", "ChannelError",

    # Persistence
    "LocalStore"
]

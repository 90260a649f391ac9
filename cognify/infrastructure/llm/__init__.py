"""LLM clients: Vertex REST for one-shot generation, Gemini Live for realtime audio."""

from .client import VertexRestClient, ProviderError
from .live import RealtimeSessionChannel, ChannelMessage, ChannelError

__all__ = [
    "VertexRestClient",
    "ProviderError",
    "RealtimeSessionChannel",
    "ChannelMessage",
    "ChannelError",
]

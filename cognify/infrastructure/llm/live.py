"""
Realtime duplex channel to the Gemini Live API.

One channel wraps one live connection: PCM audio and text prompts go out,
model audio and transcription fragments for both speakers come back.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Optional

from google import genai
from google.genai import types

from ...config import LIVE_MODEL, LIVE_VOICE_NAME, SAMPLE_RATE_IN, VERTEX_LOCATION
from ..audio.processing import decode_frame_b64

logger = logging.getLogger("realtime_channel")


class ChannelError(RuntimeError):
    """The realtime channel could not be opened or was lost."""


@dataclass
class ChannelMessage:
    """One inbound event from the live model. Any field may be empty."""
    audio: Optional[bytes] = None
    user_transcript: Optional[str] = None
    model_transcript: Optional[str] = None
    turn_complete: bool = False


class RealtimeSessionChannel:
    """Owns a single live connection; open once, close any number of times."""

    def __init__(self,
                 model: str = LIVE_MODEL,
                 voice: str = LIVE_VOICE_NAME,
                 api_key: Optional[str] = None,
                 vertex_project: Optional[str] = None,
                 vertex_location: str = VERTEX_LOCATION):
        self.model = model
        self.voice = voice

        if vertex_project:
            self.client = genai.Client(vertexai=True, project=vertex_project, location=vertex_location)
        elif api_key:
            self.client = genai.Client(api_key=api_key)
        else:
            raise ValueError("Either api_key or vertex_project must be provided")

        self._session = None
        self._session_context = None
        self._opened = False
        self._closed = False
        self._audio_sent = 0

    @property
    def is_open(self) -> bool:
        return self._session is not None and not self._closed

    def _build_config(self, system_instruction: Optional[str]) -> types.LiveConnectConfig:
        config = types.LiveConnectConfig(
            response_modalities=[types.Modality.AUDIO],
            speech_config=types.SpeechConfig(
                voice_config=types.VoiceConfig(
                    prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=self.voice)
                )
            ),
            input_audio_transcription=types.AudioTranscriptionConfig(),
            output_audio_transcription=types.AudioTranscriptionConfig(),
        )
        if system_instruction:
            config.system_instruction = types.Content(parts=[types.Part(text=system_instruction)])
        return config

    async def open(self, system_instruction: Optional[str] = None) -> None:
        """Connect to the live model. Raises ChannelError on any failure."""
        if self._opened:
            raise ChannelError("Realtime channel was already opened")
        self._opened = True
        if self._closed:
            raise ChannelError("Realtime channel is closed")

        context = self.client.aio.live.connect(
            model=self.model,
            config=self._build_config(system_instruction),
        )
        try:
            session = await context.__aenter__()
        except Exception as e:
            self._closed = True
            logger.error("Failed to open live session: %s", e)
            raise ChannelError(f"Failed to open live session: {e}") from e

        if self._closed:
            # close() ran while the handshake was in flight
            await context.__aexit__(None, None, None)
            raise ChannelError("Realtime channel was closed while opening")
        self._session_context = context
        self._session = session
        logger.info("Live session established (model=%s, voice=%s)", self.model, self.voice)

    async def send_audio(self, pcm: bytes) -> None:
        """Send one 16 kHz PCM16 frame. Dropped silently once closed."""
        if not self.is_open:
            return
        try:
            await self._session.send_realtime_input(
                audio=types.Blob(data=pcm, mime_type=f"audio/pcm;rate={SAMPLE_RATE_IN}")
            )
        except Exception as e:
            raise ChannelError(f"Failed to send audio: {e}") from e
        self._audio_sent += 1
        if self._audio_sent % 100 == 0:
            logger.debug("Sent %d audio frames", self._audio_sent)

    async def send_text(self, text: str) -> None:
        """Send a plain-text control prompt on the same stream as the audio."""
        if not self.is_open:
            return
        try:
            await self._session.send_realtime_input(text=text)
        except Exception as e:
            raise ChannelError(f"Failed to send text: {e}") from e
        logger.debug("Sent prompt: %s", text)

    async def messages(self) -> AsyncIterator[ChannelMessage]:
        """
        Yield inbound messages until the channel is closed.

        A transport failure while the channel is open raises ChannelError; a
        local close() simply ends the iteration.
        """
        while self.is_open:
            try:
                async for response in self._session.receive():
                    if self._closed:
                        return
                    message = self._to_message(response)
                    if message is not None:
                        yield message
            except asyncio.CancelledError:
                raise
            except Exception as e:
                if self._closed:
                    return
                logger.error("Live session receive failed: %s", e)
                self._closed = True
                raise ChannelError(f"Live session lost: {e}") from e

    def _to_message(self, response) -> Optional[ChannelMessage]:
        server_content = getattr(response, "server_content", None)
        if not server_content:
            return None

        message = ChannelMessage(turn_complete=bool(server_content.turn_complete))

        model_turn = server_content.model_turn
        if model_turn and model_turn.parts:
            chunks = [
                decode_frame_b64(part.inline_data.data)
                for part in model_turn.parts
                if part.inline_data and part.inline_data.data
            ]
            if chunks:
                message.audio = b"".join(chunks)

        if server_content.input_transcription and server_content.input_transcription.text:
            message.user_transcript = server_content.input_transcription.text
        if server_content.output_transcription and server_content.output_transcription.text:
            message.model_transcript = server_content.output_transcription.text

        return message

    async def close(self) -> None:
        """Release the connection. Safe to call repeatedly and after errors."""
        self._closed = True
        context, self._session_context = self._session_context, None
        self._session = None
        if context is None:
            return
        try:
            await context.__aexit__(None, None, None)
        except Exception as e:
            # The transport is already gone; nothing left to release
            logger.debug("Ignoring error while closing live session: %s", e)
        logger.info("Live session closed")

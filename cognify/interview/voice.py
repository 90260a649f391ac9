"""
Live voice session: microphone to model, model to speaker.

Four tasks run while the session is open:

    capture -> outbound queue -> send -> channel
    channel -> receive -> inbound queue -> playback -> scheduler

The outbound queue is bounded and drops its oldest frame when full, so a
slow network costs stale audio rather than memory. The inbound queue is
bounded too; the receive task waits on it so model audio is never dropped.
"""
import asyncio
import logging
from typing import Callable, List, Optional

from .schemas import TranscriptBuffer
from ..config import FRAME_QUEUE_SIZE, PLAYBACK_QUEUE_SIZE
from ..infrastructure.audio.processing import AudioCapture, MicrophoneUnavailableError
from ..infrastructure.audio.playback import PlaybackScheduler, SpeakerOutput
from ..infrastructure.llm import RealtimeSessionChannel, ChannelError

logger = logging.getLogger("voice_session")

LostCallback = Callable[[Exception], None]


class VoiceSession:
    """
    Owns one realtime channel plus the audio devices around it.

    A session is opened once. ``close()`` is idempotent and is also what
    runs when the channel drops on its own; in that case ``on_lost`` is
    called afterwards with the error.
    """

    def __init__(self,
                 channel: RealtimeSessionChannel,
                 capture: AudioCapture,
                 scheduler: PlaybackScheduler,
                 output=None,
                 on_lost: Optional[LostCallback] = None,
                 frame_queue_size: int = FRAME_QUEUE_SIZE,
                 playback_queue_size: int = PLAYBACK_QUEUE_SIZE):
        self.channel = channel
        self.capture = capture
        self.scheduler = scheduler
        self.output = output
        self.on_lost = on_lost
        self.frame_queue_size = frame_queue_size
        self.playback_queue_size = playback_queue_size

        self._user = TranscriptBuffer()
        self._model = TranscriptBuffer()
        self._outbound: Optional[asyncio.Queue] = None
        self._inbound: Optional[asyncio.Queue] = None
        self._tasks: List[asyncio.Task] = []
        self._opened = False
        self._closed = False
        self._user_speaking = False
        self.frames_dropped = 0
        self.error: Optional[Exception] = None

    @property
    def is_open(self) -> bool:
        return self._opened and not self._closed

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def user_transcript(self) -> str:
        return self._user.text

    @property
    def model_transcript(self) -> str:
        return self._model.text

    @property
    def is_user_speaking(self) -> bool:
        return self._user_speaking and not self._closed

    @property
    def is_ai_speaking(self) -> bool:
        return self.scheduler.is_playing

    async def open(self, opening_prompt: str, system_instruction: Optional[str] = None) -> None:
        """
        Acquire the audio devices, connect, send the opening prompt and start streaming.

        Raises:
            MicrophoneUnavailableError: Microphone or speaker could not be opened
            ChannelError: The live connection could not be established
        """
        if self._opened:
            raise RuntimeError("Voice session was already opened")
        self._opened = True

        try:
            await asyncio.to_thread(self.capture.start)
            await self._check_not_closed()
            if self.output is not None:
                try:
                    await asyncio.to_thread(self.output.start)
                except (IOError, OSError) as e:
                    raise MicrophoneUnavailableError(f"Audio output unavailable: {e}") from e
                await self._check_not_closed()
            await self.channel.open(system_instruction)
            await self._check_not_closed()
            await self.channel.send_text(opening_prompt)
            await self._check_not_closed()
        except (MicrophoneUnavailableError, ChannelError) as e:
            logger.error(f"Voice session failed to open: {e}")
            self.error = e
            await self.close()
            raise

        self._outbound = asyncio.Queue(maxsize=self.frame_queue_size)
        self._inbound = asyncio.Queue(maxsize=self.playback_queue_size)
        self._tasks = [
            asyncio.create_task(self._capture_loop(), name="voice-capture"),
            asyncio.create_task(self._send_loop(), name="voice-send"),
            asyncio.create_task(self._receive_loop(), name="voice-receive"),
            asyncio.create_task(self._playback_loop(), name="voice-playback"),
        ]
        logger.info("Voice session open")

    async def _check_not_closed(self) -> None:
        """
        close() can run while open() waits on a device or the handshake.
        Whatever was acquired after that point is released here.
        """
        if not self._closed:
            return
        await asyncio.to_thread(self.capture.stop)
        if self.output is not None:
            self.output.close()
        await self.channel.close()
        raise ChannelError("Voice session was closed while opening")

    async def send_prompt(self, text: str) -> None:
        """
        Send a text instruction to the model.

        Raises:
            ChannelError: The channel failed; the session has been torn down
        """
        if self._closed:
            raise ChannelError("Voice session is closed")
        try:
            await self.channel.send_text(text)
        except ChannelError as e:
            await self._lose(e)
            raise

    def reset_transcripts(self) -> None:
        self._user.clear()
        self._model.clear()

    def _push_outbound(self, pcm: bytes) -> None:
        if self._outbound.full():
            self._outbound.get_nowait()
            self.frames_dropped += 1
            if self.frames_dropped % 50 == 1:
                logger.warning(f"Outbound audio backlog; dropped {self.frames_dropped} frames so far")
        self._outbound.put_nowait(pcm)

    async def _capture_loop(self) -> None:
        while not self._closed:
            try:
                frame = await asyncio.to_thread(self.capture.read_frame)
            except MicrophoneUnavailableError as e:
                if not self._closed:
                    await self._lose(e)
                return
            if self._closed:
                return
            self._user_speaking = frame.is_speaking
            self._push_outbound(frame.pcm)

    async def _send_loop(self) -> None:
        while not self._closed:
            pcm = await self._outbound.get()
            if self._closed:
                return
            try:
                await self.channel.send_audio(pcm)
            except ChannelError as e:
                await self._lose(e)
                return

    async def _receive_loop(self) -> None:
        try:
            async for message in self.channel.messages():
                if self._closed:
                    return
                if message.user_transcript:
                    self._user.append(message.user_transcript)
                if message.model_transcript:
                    self._model.append(message.model_transcript)
                if message.audio:
                    await self._inbound.put(message.audio)
        except ChannelError as e:
            await self._lose(e)
            return

        if not self._closed:
            await self._lose(ChannelError("Live session ended unexpectedly"))

    async def _playback_loop(self) -> None:
        while not self._closed:
            frame = await self._inbound.get()
            if self._closed:
                return
            self.scheduler.enqueue(frame)

    async def _lose(self, error: Exception) -> None:
        if self._closed:
            return
        logger.error(f"Voice session lost: {error}")
        self.error = error
        await self.close()
        if self.on_lost is not None:
            self.on_lost(error)

    async def close(self) -> None:
        """
        Tear everything down: stop the tasks, silence playback, release the
        microphone and the connection. Safe to call more than once.
        """
        if self._closed:
            return
        self._closed = True
        self._user_speaking = False

        current = asyncio.current_task()
        tasks = [t for t in self._tasks if t is not current and not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        self.scheduler.close()
        await asyncio.to_thread(self.capture.stop)
        await self.channel.close()
        if self.output is not None:
            self.output.close()
        logger.info("Voice session closed")


def create_voice_session(config, on_lost: Optional[LostCallback] = None) -> VoiceSession:
    """Wire a voice session to the real microphone, speaker and live model."""
    channel = RealtimeSessionChannel(
        model=config.live_model,
        voice=config.live_voice_name,
        api_key=config.gemini_api_key,
        vertex_project=None if config.gemini_api_key else config.google_cloud_project,
        vertex_location=config.vertex_location,
    )
    output = SpeakerOutput()
    return VoiceSession(
        channel=channel,
        capture=AudioCapture(),
        scheduler=PlaybackScheduler(output),
        output=output,
        on_lost=on_lost,
    )

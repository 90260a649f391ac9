import asyncio
import base64
from types import SimpleNamespace

import pytest

from cognify.infrastructure.llm import ChannelError, RealtimeSessionChannel


class FakeLiveSession:
    def __init__(self, responses, error=None):
        self.responses = responses
        self.error = error
        self.realtime_inputs = []

    async def send_realtime_input(self, **kwargs):
        self.realtime_inputs.append(kwargs)

    async def receive(self):
        for response in self.responses:
            yield response
        if self.error is not None:
            raise self.error


class FakeConnect:
    def __init__(self, session=None, error=None, delay=0.0):
        self.session = session
        self.error = error
        self.delay = delay
        self.entered = 0
        self.exited = 0

    async def __aenter__(self):
        self.entered += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.session

    async def __aexit__(self, *exc):
        self.exited += 1


def _channel(connect):
    channel = RealtimeSessionChannel(api_key="test-key")
    channel.client = SimpleNamespace(aio=SimpleNamespace(live=SimpleNamespace(connect=lambda **_: connect)))
    return channel


def _server_content(audio=None, user=None, model=None, turn_complete=False):
    parts = []
    if audio is not None:
        parts.append(SimpleNamespace(inline_data=SimpleNamespace(data=audio)))
    return SimpleNamespace(server_content=SimpleNamespace(
        turn_complete=turn_complete,
        model_turn=SimpleNamespace(parts=parts) if parts else None,
        input_transcription=SimpleNamespace(text=user) if user else None,
        output_transcription=SimpleNamespace(text=model) if model else None,
    ))


def test_message_conversion_unwraps_base64_audio_and_transcripts():
    channel = RealtimeSessionChannel(api_key="test-key")
    pcm = b"\x01\x00\x02\x00"

    message = channel._to_message(_server_content(audio=base64.b64encode(pcm).decode("ascii"),
                                                  user="hi", model="hello", turn_complete=True))
    assert message.audio == pcm
    assert message.user_transcript == "hi"
    assert message.model_transcript == "hello"
    assert message.turn_complete

    assert channel._to_message(_server_content(audio=pcm)).audio == pcm
    assert channel._to_message(SimpleNamespace(server_content=None)) is None


def test_open_once_then_send_and_close():
    async def run():
        session = FakeLiveSession([])
        connect = FakeConnect(session)
        channel = _channel(connect)

        await channel.open("Be an interviewer.")
        assert channel.is_open
        with pytest.raises(ChannelError):
            await channel.open()

        await channel.send_text("Question 2: Why?")
        await channel.send_audio(b"\x00\x00" * 4)
        assert session.realtime_inputs[0] == {"text": "Question 2: Why?"}
        assert session.realtime_inputs[1]["audio"].mime_type == "audio/pcm;rate=16000"

        await channel.close()
        await channel.close()
        assert connect.exited == 1
        assert not channel.is_open

        await channel.send_text("ignored")
        assert len(session.realtime_inputs) == 2

    asyncio.run(run())


def test_open_failure_raises_channel_error():
    async def run():
        channel = _channel(FakeConnect(error=OSError("handshake failed")))
        with pytest.raises(ChannelError):
            await channel.open()
        assert not channel.is_open

    asyncio.run(run())


def test_transport_error_ends_messages_with_channel_error():
    async def run():
        session = FakeLiveSession([_server_content(model="Hello")], error=ConnectionError("reset"))
        channel = _channel(FakeConnect(session))
        await channel.open()

        received = []
        with pytest.raises(ChannelError):
            async for message in channel.messages():
                received.append(message)

        assert [m.model_transcript for m in received] == ["Hello"]
        assert not channel.is_open
        await channel.close()

    asyncio.run(run())


def test_close_during_handshake_releases_the_connection():
    async def run():
        connect = FakeConnect(FakeLiveSession([]), delay=0.05)
        channel = _channel(connect)

        opening = asyncio.create_task(channel.open())
        while not connect.entered:
            await asyncio.sleep(0.005)
        await channel.close()
        assert connect.exited == 0

        with pytest.raises(ChannelError):
            await opening
        assert connect.exited == 1
        assert not channel.is_open

        with pytest.raises(ChannelError):
            await channel.open()

    asyncio.run(run())

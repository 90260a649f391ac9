"""
Testing infrastructure with mock services for the practice studio.

Nothing here touches the network or audio hardware.
"""
import asyncio
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

import numpy as np

from .models import Answer, ATSAnalysis, Feedback, JobRecommendation, Question, UserProfile
from ..infrastructure.audio.playback import ScheduledBuffer
from ..infrastructure.audio.processing import CaptureFrame, MicrophoneUnavailableError, float_to_pcm16
from ..infrastructure.llm import ChannelError, ChannelMessage, ProviderError


def make_questions(count: int, category: str = "DSA") -> List[Question]:
    return [
        Question(id=f"q{i + 1}", text=f"Question number {i + 1}?", category=category,
                 tags=[category], difficulty="Medium")
        for i in range(count)
    ]


def make_profile(**overrides) -> UserProfile:
    data = dict(
        name="Ada",
        designation="Software Engineer",
        target_role="Senior Backend Engineer",
        skill_level="Senior",
        domain="Software Engineering",
    )
    data.update(overrides)
    return UserProfile(**data)


def tone_pcm(samples: int, amplitude: float = 0.5) -> bytes:
    """A PCM16 frame of constant amplitude."""
    return float_to_pcm16(np.full(samples, amplitude, dtype=np.float32))


class MockProvider:
    """
    Scripted stand-in for InterviewProvider.

    ``scores`` are returned in order by ``evaluate_answer``; an entry that is
    an Exception is raised instead. Call start/end times are recorded so
    tests can check that scoring never overlaps.
    """

    def __init__(self,
                 questions: Optional[List[Question]] = None,
                 scores: Optional[List[Any]] = None,
                 question_error: Optional[Exception] = None,
                 hint: str = "Lead with impact.",
                 hint_error: Optional[Exception] = None,
                 strengths: Optional[List[str]] = None,
                 evaluation_delay: float = 0.0):
        self.questions = questions if questions is not None else make_questions(5)
        self.scores = list(scores or [])
        self.question_error = question_error
        self.hint = hint
        self.hint_error = hint_error
        self.strengths = strengths if strengths is not None else ["structured thinking"]
        self.evaluation_delay = evaluation_delay

        self.generate_calls: List[Dict[str, Any]] = []
        self.evaluated: List[Answer] = []
        self.evaluation_windows: List[tuple] = []
        self.hint_requests: List[str] = []
        self._lock = threading.Lock()
        self._in_flight = 0
        self.max_in_flight = 0

    def generate_questions(self, profile: UserProfile, mode: str, count: int) -> List[Question]:
        self.generate_calls.append({"mode": mode, "count": count, "profile": profile})
        if self.question_error is not None:
            raise self.question_error
        return list(self.questions)

    def get_instant_hint(self, question_text: str, profile: UserProfile) -> str:
        self.hint_requests.append(question_text)
        if self.hint_error is not None:
            raise self.hint_error
        return self.hint

    def evaluate_answer(self, profile: UserProfile, answer: Answer) -> Feedback:
        with self._lock:
            self._in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self._in_flight)
            index = len(self.evaluated)
            self.evaluated.append(answer)
        started = time.monotonic()
        try:
            if self.evaluation_delay:
                time.sleep(self.evaluation_delay)
            score = self.scores[index] if index < len(self.scores) else 75
            if isinstance(score, Exception):
                raise score
            return Feedback(
                score=score,
                strengths=list(self.strengths),
                weaknesses=["could quantify results"],
                improved_answer="A sharper answer.",
                analysis="Solid.",
            )
        finally:
            with self._lock:
                self._in_flight -= 1
            self.evaluation_windows.append((started, time.monotonic()))

    def analyze_resume_ats(self, resume_text: str, job_description: str) -> ATSAnalysis:
        raise ProviderError("not scripted")

    def recommend_jobs(self, profile: UserProfile, count: int = 4) -> List[JobRecommendation]:
        raise ProviderError("not scripted")


class MockCapture:
    """
    Microphone stand-in.

    Plays ``frames`` once (each a CaptureFrame), then blocks until stopped.
    ``deny`` makes ``start()`` fail like a refused permission prompt, and
    ``start_delay`` makes it as slow as a real device open. Like a real
    device, a start() that finishes after stop() leaves the microphone open.
    """

    def __init__(self, frames: Optional[List[CaptureFrame]] = None, deny: bool = False,
                 frame_interval: float = 0.005, start_delay: float = 0.0):
        self.frames = list(frames or [])
        self.deny = deny
        self.frame_interval = frame_interval
        self.start_delay = start_delay
        self.started = False
        self.stop_calls = 0
        self._stopped = threading.Event()

    @property
    def is_active(self) -> bool:
        return self.started and not self._stopped.is_set()

    def start(self) -> None:
        if self.start_delay:
            time.sleep(self.start_delay)
        if self.deny:
            raise MicrophoneUnavailableError("Permission denied")
        self.started = True
        self._stopped.clear()

    def read_frame(self) -> CaptureFrame:
        if self.frames and not self._stopped.is_set():
            time.sleep(self.frame_interval)
            return self.frames.pop(0)
        # Nothing left to say; wait for stop() the way a silent mic would block
        while not self._stopped.wait(0.01):
            pass
        raise MicrophoneUnavailableError("Microphone is not open")

    def stop(self) -> None:
        self.stop_calls += 1
        self._stopped.set()


class MockChannel:
    """
    Realtime channel stand-in.

    ``inbound`` messages are delivered after open; afterwards the stream
    stays idle until ``close()`` or ``drop()``.
    """

    def __init__(self, inbound: Optional[List[ChannelMessage]] = None,
                 open_error: Optional[Exception] = None,
                 open_delay: float = 0.0):
        self.inbound = list(inbound or [])
        self.open_error = open_error
        self.open_delay = open_delay
        self.sent_audio: List[bytes] = []
        self.sent_text: List[str] = []
        self.system_instruction: Optional[str] = None
        self.open_calls = 0
        self.close_calls = 0
        self._open = False
        self._closed = False
        self._dropped: Optional[Exception] = None
        self._wake: Optional[asyncio.Event] = None

    @property
    def is_open(self) -> bool:
        return self._open and not self._closed

    async def open(self, system_instruction: Optional[str] = None) -> None:
        self.open_calls += 1
        if self.open_delay:
            await asyncio.sleep(self.open_delay)
        if self.open_error is not None:
            raise self.open_error
        self.system_instruction = system_instruction
        self._wake = asyncio.Event()
        self._open = True

    async def send_audio(self, pcm: bytes) -> None:
        if not self.is_open:
            return
        self.sent_audio.append(pcm)

    async def send_text(self, text: str) -> None:
        if not self.is_open:
            return
        self.sent_text.append(text)

    async def messages(self):
        while self.inbound and self.is_open:
            yield self.inbound.pop(0)
            await asyncio.sleep(0)
        while self.is_open and self._dropped is None:
            await self._wake.wait()
            self._wake.clear()
        if self._dropped is not None:
            raise ChannelError(f"Live session lost: {self._dropped}")

    def drop(self, reason: str = "connection reset") -> None:
        """Simulate the remote end going away."""
        self._dropped = ConnectionError(reason)
        if self._wake is not None:
            self._wake.set()

    async def close(self) -> None:
        self.close_calls += 1
        self._closed = True
        if self._wake is not None:
            self._wake.set()


@dataclass
class FakeAudioOutput:
    """
    Audio output with a manual clock.

    ``advance(seconds)`` moves the clock and finishes every buffer whose end
    time has passed, like a real device reaching the end of a sound.
    """
    now: float = 0.0
    playing: List[ScheduledBuffer] = field(default_factory=list)
    played: List[ScheduledBuffer] = field(default_factory=list)
    stopped: List[ScheduledBuffer] = field(default_factory=list)
    started: bool = False
    closed: bool = False

    @property
    def current_time(self) -> float:
        return self.now

    def start(self) -> None:
        self.started = True
        self.closed = False

    def play(self, buffer: ScheduledBuffer) -> None:
        self.playing.append(buffer)
        self.played.append(buffer)

    def stop(self, buffer: ScheduledBuffer) -> None:
        if buffer in self.playing:
            self.playing.remove(buffer)
        self.stopped.append(buffer)

    def advance(self, seconds: float) -> None:
        self.now += seconds
        done = [b for b in self.playing if b.end_time <= self.now + 1e-9]
        for buffer in done:
            self.playing.remove(buffer)
            buffer.finish()

    def close(self) -> None:
        self.closed = True


class MemoryStore:
    """Session store that keeps saved sessions in a list."""

    def __init__(self):
        self.saved = []

    def save_session(self, session) -> None:
        self.saved.insert(0, session.model_copy(deep=True))

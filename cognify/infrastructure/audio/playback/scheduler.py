"""
Gap-free scheduling of inbound model audio on an output clock.
"""
import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol, Set

import numpy as np

from ....config import SAMPLE_RATE_OUT
from ..processing import pcm16_to_float

logger = logging.getLogger("playback")


@dataclass(eq=False)
class ScheduledBuffer:
    """A decoded buffer waiting to play, or playing, at ``start_time`` on the output clock."""
    samples: np.ndarray
    start_time: float
    duration: float
    on_ended: Optional[Callable[["ScheduledBuffer"], None]] = None
    stopped: bool = False
    _finished: bool = field(default=False, repr=False)

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration

    def finish(self) -> None:
        """Called by the output once the last sample has been rendered."""
        if self._finished:
            return
        self._finished = True
        if self.on_ended is not None and not self.stopped:
            self.on_ended(self)


class AudioOutput(Protocol):
    """What the scheduler needs from a playback device."""

    @property
    def current_time(self) -> float: ...

    def play(self, buffer: ScheduledBuffer) -> None: ...

    def stop(self, buffer: ScheduledBuffer) -> None: ...


class PlaybackScheduler:
    """
    Schedules frames back to back in arrival order.

    Each frame starts at ``max(next_start_time, now)`` so late frames never
    overlap earlier ones and early frames never leave gaps. Once closed,
    every in-flight buffer is stopped and later frames are ignored.
    """

    def __init__(self, output: AudioOutput, sample_rate: int = SAMPLE_RATE_OUT):
        self.output = output
        self.sample_rate = sample_rate
        self.next_start_time = output.current_time
        self._active: Set[ScheduledBuffer] = set()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def is_playing(self) -> bool:
        """True while any scheduled buffer has not finished ("AI speaking")."""
        with self._lock:
            return bool(self._active)

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def active_buffers(self) -> List[ScheduledBuffer]:
        with self._lock:
            return sorted(self._active, key=lambda b: b.start_time)

    def enqueue(self, frame: bytes) -> Optional[ScheduledBuffer]:
        """Decode and schedule one PCM16 frame; returns None if it was dropped."""
        try:
            samples = pcm16_to_float(frame)
        except ValueError as e:
            logger.debug("Dropping malformed audio frame: %s", e)
            return None

        with self._lock:
            if self._closed:
                logger.debug("Dropping audio frame that arrived after close")
                return None

            start = max(self.next_start_time, self.output.current_time)
            buffer = ScheduledBuffer(
                samples=samples,
                start_time=start,
                duration=samples.size / self.sample_rate,
                on_ended=self._on_ended,
            )
            self._active.add(buffer)
            self.next_start_time = buffer.end_time
            # Handed to the output under the lock so close() cannot miss it
            self.output.play(buffer)

        return buffer

    def _on_ended(self, buffer: ScheduledBuffer) -> None:
        with self._lock:
            self._active.discard(buffer)

    def close(self) -> None:
        """Stop everything immediately (no fade) and refuse further frames."""
        with self._lock:
            self._closed = True
            buffers = list(self._active)
            self._active.clear()
            for buffer in buffers:
                buffer.stopped = True
                self.output.stop(buffer)
        if buffers:
            logger.info("Stopped %d in-flight playback buffers", len(buffers))

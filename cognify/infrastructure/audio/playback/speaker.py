"""
PyAudio output device that renders scheduled buffers against its own sample clock.
"""
import logging
import threading
from typing import List, Optional

import numpy as np

from ....config import SAMPLE_RATE_OUT, OUTPUT_BUFFER_FRAMES
from ..processing import float_to_pcm16
from .scheduler import ScheduledBuffer
from ....utils import with_suppressed_audio_warnings

logger = logging.getLogger("speaker")


class SpeakerOutput:
    """
    Callback-mode output stream.

    ``current_time`` counts rendered samples, so a buffer scheduled at time t
    starts exactly t * sample_rate samples after the stream started.
    Overlapping buffers are mixed.
    """

    def __init__(self,
                 sample_rate: int = SAMPLE_RATE_OUT,
                 output_device: Optional[int] = None,
                 frames_per_buffer: int = OUTPUT_BUFFER_FRAMES):
        self.sample_rate = sample_rate
        self.output_device = output_device
        self.frames_per_buffer = frames_per_buffer

        self._pending: List[ScheduledBuffer] = []
        self._frames_rendered = 0
        self._lock = threading.Lock()
        self._pa = None
        self._stream = None

    @property
    def current_time(self) -> float:
        with self._lock:
            return self._frames_rendered / self.sample_rate

    @with_suppressed_audio_warnings
    def start(self) -> None:
        if self._stream is not None:
            return
        import pyaudio

        self._pa = pyaudio.PyAudio()
        self._stream = self._pa.open(
            format=pyaudio.paInt16,
            channels=1,
            rate=self.sample_rate,
            output=True,
            output_device_index=self.output_device,
            frames_per_buffer=self.frames_per_buffer,
            stream_callback=self._callback,
        )
        self._stream.start_stream()
        logger.info(f"Speaker output started at {self.sample_rate} Hz")

    def play(self, buffer: ScheduledBuffer) -> None:
        with self._lock:
            self._pending.append(buffer)

    def stop(self, buffer: ScheduledBuffer) -> None:
        with self._lock:
            if buffer in self._pending:
                self._pending.remove(buffer)

    def render(self, frame_count: int) -> np.ndarray:
        """Mix the next ``frame_count`` samples and advance the clock."""
        out = np.zeros(frame_count, dtype=np.float32)
        finished: List[ScheduledBuffer] = []

        with self._lock:
            t0 = self._frames_rendered
            t1 = t0 + frame_count
            for buffer in list(self._pending):
                start = int(round(buffer.start_time * self.sample_rate))
                end = start + buffer.samples.size
                lo, hi = max(start, t0), min(end, t1)
                if hi > lo:
                    out[lo - t0:hi - t0] += buffer.samples[lo - start:hi - start]
                if end <= t1:
                    self._pending.remove(buffer)
                    finished.append(buffer)
            self._frames_rendered = t1

        # Completion callbacks run outside the lock; they take the scheduler's lock
        for buffer in finished:
            buffer.finish()
        return np.clip(out, -1.0, 1.0)

    def _callback(self, in_data, frame_count, time_info, status):
        import pyaudio

        if status:
            logger.debug(f"Output stream status flags: {status}")
        return float_to_pcm16(self.render(frame_count)), pyaudio.paContinue

    def close(self) -> None:
        with self._lock:
            self._pending.clear()
        stream, self._stream = self._stream, None
        pa, self._pa = self._pa, None
        if stream is not None:
            try:
                stream.stop_stream()
                stream.close()
            except (IOError, OSError) as e:
                logger.warning(f"Error closing speaker stream: {e}")
        if pa is not None:
            pa.terminate()
            logger.info("Speaker output closed")

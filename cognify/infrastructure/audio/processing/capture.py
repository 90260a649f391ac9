"""
Microphone capture that produces fixed-size 16 kHz PCM16 frames with a loudness estimate.
"""
import logging
import math
import threading
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ....config import CAPTURE_BLOCK_SIZE, SAMPLE_RATE_IN, SPEAKING_THRESHOLD
from .processing import average_abs_loudness, float_to_pcm16, pcm16_to_float, resample_to, stereo_to_mono
from ....utils import with_suppressed_audio_warnings

logger = logging.getLogger("audio_capture")


class MicrophoneUnavailableError(RuntimeError):
    """Microphone access was denied or no usable input device exists."""


@dataclass
class CaptureFrame:
    """One block of outbound audio."""
    pcm: bytes  # 16-bit signed little-endian, mono, SAMPLE_RATE_IN
    loudness: float  # mean absolute amplitude on [-1, 1]
    is_speaking: bool


class AudioCapture:
    """
    Owns the microphone input stream.

    Frames are produced at a fixed block size whether or not anyone is
    talking. ``is_speaking`` is a bare threshold on loudness, so it flaps
    near the threshold.
    """

    def __init__(self,
                 input_device: Optional[int] = None,
                 sr_target: int = SAMPLE_RATE_IN,
                 block_size: int = CAPTURE_BLOCK_SIZE,
                 speaking_threshold: float = SPEAKING_THRESHOLD):
        self.input_device = input_device
        self.sr_target = sr_target
        self.block_size = block_size
        self.speaking_threshold = speaking_threshold
        self.sr_capture = sr_target
        self.num_channels = 1

        self._pa = None
        self._stream = None
        self._lock = threading.Lock()

    @property
    def is_active(self) -> bool:
        return self._stream is not None

    @property
    def native_block_size(self) -> int:
        """Samples to read from the device for one target-rate block."""
        return int(math.ceil(self.block_size * self.sr_capture / self.sr_target))

    @with_suppressed_audio_warnings
    def start(self) -> None:
        """Open the microphone. Raises MicrophoneUnavailableError when it cannot."""
        if self._stream is not None:
            return

        try:
            import pyaudio
        except ImportError as e:
            raise MicrophoneUnavailableError(f"PyAudio is not available: {e}") from e

        pa = pyaudio.PyAudio()
        try:
            info = (pa.get_device_info_by_index(self.input_device)
                    if self.input_device is not None else pa.get_default_input_device_info())
        except (IOError, OSError) as e:
            pa.terminate()
            raise MicrophoneUnavailableError(f"No input device available: {e}") from e

        logger.info(f"Using input device {info.get('index')}: {info.get('name')}")

        # Prefer capturing at the target rate; otherwise use the device default and resample
        candidates = [self.sr_target, int(info.get("defaultSampleRate", self.sr_target))]
        last_error: Optional[Exception] = None
        for rate in dict.fromkeys(candidates):
            self.sr_capture = rate
            try:
                self._stream = pa.open(
                    format=pyaudio.paInt16,
                    channels=self.num_channels,
                    rate=rate,
                    input=True,
                    input_device_index=info.get("index"),
                    frames_per_buffer=self.native_block_size,
                )
                break
            except (IOError, OSError, ValueError) as e:
                logger.warning(f"Could not open microphone at {rate} Hz: {e}")
                last_error = e

        if self._stream is None:
            pa.terminate()
            raise MicrophoneUnavailableError(f"Failed to open microphone: {last_error}")

        self._pa = pa
        logger.info(f"Microphone opened at {self.sr_capture} Hz, block {self.native_block_size} samples")

    def read_frame(self) -> CaptureFrame:
        """
        Block until one frame is available and return it encoded.

        Raises MicrophoneUnavailableError if the stream has been stopped.
        """
        with self._lock:
            stream = self._stream
            if stream is None:
                raise MicrophoneUnavailableError("Microphone is not open")
            try:
                raw = stream.read(self.native_block_size, exception_on_overflow=False)
            except (IOError, OSError) as e:
                raise MicrophoneUnavailableError(f"Microphone read failed: {e}") from e

        return self.encode_block(raw)

    def encode_block(self, raw: bytes) -> CaptureFrame:
        """Convert one native-rate block into a fixed-size target-rate frame."""
        samples = stereo_to_mono(pcm16_to_float(raw, self.num_channels))
        samples = resample_to(samples, self.sr_capture, self.sr_target)

        # Resampling can be off by a sample; keep frames exactly block_size long
        if samples.size > self.block_size:
            samples = samples[:self.block_size]
        elif samples.size < self.block_size:
            samples = np.pad(samples, (0, self.block_size - samples.size))

        loudness = average_abs_loudness(samples)
        return CaptureFrame(
            pcm=float_to_pcm16(samples),
            loudness=loudness,
            is_speaking=loudness > self.speaking_threshold,
        )

    def stop(self) -> None:
        """Close the microphone. Safe to call more than once."""
        with self._lock:
            stream, self._stream = self._stream, None
            pa, self._pa = self._pa, None
        if stream is not None:
            try:
                stream.stop_stream()
                stream.close()
            except (IOError, OSError) as e:
                logger.warning(f"Error closing microphone: {e}")
        if pa is not None:
            pa.terminate()
            logger.info("Microphone closed")

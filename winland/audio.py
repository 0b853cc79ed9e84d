"""Audio bridge that carries PCM data between Wayland clients and the host."""

from __future__ import annotations

import enum
import logging
import math
import sys
import threading
from array import array
from typing import Union

logger = logging.getLogger(__name__)

SAMPLE_RATE = 48000
CHANNELS = 2
BUFFER_SIZE = 4096
QUEUE_BUFFERS = 2
MILLIBEL_MIN = -32768
MILLIBEL_MAX = 32767

_INT16_MIN = -32768
_INT16_MAX = 32767


class AudioError(Exception):
    """Raised when an audio operation cannot be carried out."""


class AudioFormat(enum.IntEnum):
    S16_LE = 0
    S16_BE = 1
    FLOAT_LE = 2
    FLOAT_BE = 3

    @property
    def is_float(self) -> bool:
        return self in (AudioFormat.FLOAT_LE, AudioFormat.FLOAT_BE)

    @property
    def sample_width(self) -> int:
        return 4 if self.is_float else 2

    @property
    def byteorder(self) -> str:
        return "big" if self in (AudioFormat.S16_BE, AudioFormat.FLOAT_BE) else "little"


def volume_to_millibel(volume: float) -> int:
    """Convert a linear volume (1.0 is full) to millibels, as OpenSL ES expects."""
    if volume <= 0.0:
        return MILLIBEL_MIN
    millibel = int(2000.0 * math.log10(volume))
    return max(MILLIBEL_MIN, min(MILLIBEL_MAX, millibel))


def _scale(data: bytes, audio_format: AudioFormat, gain: float) -> bytes:
    """Multiply every sample by ``gain``, clipping integer samples."""
    if gain == 1.0 or not data:
        return data
    if gain == 0.0:
        return bytes(len(data))
    samples = array("f" if audio_format.is_float else "h")
    samples.frombytes(data)
    swap = audio_format.byteorder != sys.byteorder
    if swap:
        samples.byteswap()
    if audio_format.is_float:
        scaled = array("f", (s * gain for s in samples))
    else:
        scaled = array(
            "h",
            (max(_INT16_MIN, min(_INT16_MAX, int(round(s * gain)))) for s in samples),
        )
    if swap:
        scaled.byteswap()
    return scaled.tobytes()


class AudioBridge:
    """Moves PCM audio through a bounded queue with volume and mute control.

    Data written with :meth:`process_input` has the input gain applied and is
    queued; :meth:`process_output` and :meth:`next_playback_buffer` drain the
    queue with the output gain applied.
    """

    def __init__(self) -> None:
        self.initialized = False
        self.running = False
        self.sample_rate = SAMPLE_RATE
        self.channels = CHANNELS
        self.format = AudioFormat.S16_LE
        self.buffer_size = BUFFER_SIZE
        self.input_volume = 1.0
        self.output_volume = 1.0
        self.input_muted = False
        self.output_muted = False
        self.output_millibel = 0
        self._pending = bytearray()
        self._lock = threading.RLock()

    def init(self) -> None:
        """Set the default format and prepare the queue."""
        if self.initialized:
            logger.info("Audio bridge already initialized")
            return
        self.running = False
        self.sample_rate = SAMPLE_RATE
        self.channels = CHANNELS
        self.format = AudioFormat.S16_LE
        self.buffer_size = BUFFER_SIZE
        self.output_millibel = volume_to_millibel(self.output_volume)
        with self._lock:
            self._pending.clear()
        self.initialized = True
        logger.info("Audio bridge initialized")

    def terminate(self) -> None:
        if not self.initialized:
            return
        self.stop()
        with self._lock:
            self._pending.clear()
        self.initialized = False
        logger.info("Audio bridge terminated")

    def _require_initialized(self) -> None:
        if not self.initialized:
            logger.error("Audio bridge not initialized")
            raise AudioError("audio bridge is not initialized")

    def start(self) -> None:
        self._require_initialized()
        if self.running:
            logger.info("Audio bridge already running")
            return
        self.running = True
        logger.info("Audio bridge started")

    def stop(self) -> None:
        if not self.running:
            return
        self.running = False
        logger.info("Audio bridge stopped")

    def set_format(
        self, sample_rate: int, channels: int, audio_format: Union[AudioFormat, int]
    ) -> None:
        """Change the stream format; not allowed while running."""
        if self.running:
            logger.error("Cannot change format while running")
            raise AudioError("cannot change format while running")
        try:
            fmt = AudioFormat(audio_format)
        except ValueError as exc:
            raise AudioError(f"unknown audio format: {audio_format}") from exc
        with self._lock:
            if fmt != self.format:
                self._pending.clear()
            self.sample_rate = sample_rate
            self.channels = channels
            self.format = fmt
        logger.info("Audio format set: %d Hz, %d channels", sample_rate, channels)

    def get_format(self) -> tuple[int, int, AudioFormat]:
        """Return ``(sample_rate, channels, format)``."""
        return self.sample_rate, self.channels, self.format

    @property
    def capacity(self) -> int:
        """Size of the queue in bytes."""
        return self.buffer_size * self.format.sample_width * QUEUE_BUFFERS

    def _input_gain(self) -> float:
        return 0.0 if self.input_muted else max(self.input_volume, 0.0)

    def _output_gain(self) -> float:
        return 0.0 if self.output_muted else max(self.output_volume, 0.0)

    def process_input(self, data: bytes) -> int:
        """Queue PCM data; return how many bytes fit into the queue."""
        self._require_initialized()
        if data is None:
            raise AudioError("data is required")
        width = self.format.sample_width
        if len(data) % width:
            raise AudioError(f"data length is not a multiple of {width} bytes")
        with self._lock:
            room = self.capacity - len(self._pending)
            room -= room % width
            chunk = bytes(data[:room])
            self._pending.extend(_scale(chunk, self.format, self._input_gain()))
        return len(chunk)

    def process_output(self, size: int) -> bytes:
        """Take at most ``size`` bytes (whole samples) from the queue."""
        self._require_initialized()
        if size < 0:
            raise AudioError("size must not be negative")
        width = self.format.sample_width
        with self._lock:
            count = min(size, len(self._pending))
            count -= count % width
            chunk = bytes(self._pending[:count])
            del self._pending[:count]
        return _scale(chunk, self.format, self._output_gain())

    def next_playback_buffer(self) -> bytes:
        """Return one full playback buffer, padded with silence."""
        if not self.running:
            raise AudioError("audio bridge is not running")
        wanted = self.buffer_size * self.format.sample_width
        data = self.process_output(wanted)
        return data + bytes(wanted - len(data))

    def available_input(self) -> int:
        """Bytes that can still be queued."""
        if not self.initialized:
            return 0
        with self._lock:
            return self.capacity - len(self._pending)

    def available_output(self) -> int:
        """Bytes waiting to be read."""
        with self._lock:
            return len(self._pending)

    def set_input_volume(self, volume: float) -> None:
        self.input_volume = volume

    def set_output_volume(self, volume: float) -> None:
        self._require_initialized()
        self.output_volume = volume
        self.output_millibel = volume_to_millibel(volume)

    def set_input_mute(self, mute: bool) -> None:
        self.input_muted = bool(mute)

    def set_output_mute(self, mute: bool) -> None:
        if not self.initialized:
            return
        self.output_muted = bool(mute)
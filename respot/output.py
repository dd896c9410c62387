"""Audio output devices fed from a source of interleaved float samples."""

from __future__ import annotations

import abc
import logging
import math
import os
import queue
import struct
import threading
from array import array
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

log = logging.getLogger(__name__)

_CHUNK_SAMPLES = 4 * 1024

# format name -> (struct code, integer scale, bit width); scale None means raw float32
_PIPE_FORMATS: dict[str, tuple[str, float | None, int]] = {
    "s16le": ("H", 32768.0, 16),
    "s32le": ("I", 2147483648.0, 32),
    "f32le": ("f", None, 32),
}

_NATIVE_BACKENDS = frozenset({"alsa", "pulseaudio", "audio-toolbox"})


class _SampleReader(Protocol):
    def read(self, count: int) -> list[float]: ...


class UnsupportedBackendError(ValueError):
    """The audio backend exists but is not available in this package."""

    def __init__(self, backend: str) -> None:
        super().__init__(f"audio backend {backend} is not available")
        self.backend = backend


class Output(abc.ABC):
    """An audio output device."""

    @abc.abstractmethod
    def pause(self) -> None:
        """Pause the output."""

    @abc.abstractmethod
    def resume(self) -> None:
        """Resume the output."""

    @abc.abstractmethod
    def drop(self) -> None:
        """Empty the audio buffer without waiting."""

    @abc.abstractmethod
    def delay_ms(self) -> int:
        """Return the output device delay in milliseconds."""

    @abc.abstractmethod
    def set_volume(self, vol: float) -> None:
        """Set the volume, between 0 and 1."""

    @abc.abstractmethod
    def errors(self) -> queue.Queue[Exception]:
        """Return the queue receiving the error that stopped the device, if any."""

    @abc.abstractmethod
    def close(self) -> None:
        """Close the output."""

    def __enter__(self) -> Output:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


@dataclass
class OutputOptions:
    """Settings used to create an output device.

    ``reader.read(count)`` returns up to ``count`` interleaved samples; a
    shorter result means the end of the data. ``volume_update`` must be a
    bounded queue; it receives every volume change.
    """

    backend: str
    reader: _SampleReader
    sample_rate: int = 44100
    channel_count: int = 2
    device: str = ""
    mixer: str = ""
    control: str = ""
    buffer_time_micro: int = 0
    period_count: int = 0
    initial_volume: float = 1.0
    external_volume: bool = False
    volume_update: queue.Queue[float] | None = None
    output_pipe: str = ""
    output_pipe_format: str = "s16le"


def new_output(options: OutputOptions) -> Output:
    """Create the output device selected by ``options.backend``."""
    if options.backend == "pipe":
        return PipeOutput(options)
    if options.backend in _NATIVE_BACKENDS:
        raise UnsupportedBackendError(options.backend)
    raise ValueError(f"unknown audio backend: {options.backend}")


def send_volume_update(updates: queue.Queue[float], value: float) -> None:
    """Replace any pending value in ``updates`` with ``value`` without blocking."""
    if updates.maxsize == 0:
        raise ValueError("channel must be buffered")
    try:
        updates.get_nowait()
    except queue.Empty:
        pass
    updates.put_nowait(value)


def _to_int(value: float, bits: int) -> int:
    if not math.isfinite(value):
        return 0
    return int(value) & ((1 << bits) - 1)


def encode_samples(samples: Iterable[float], pipe_format: str) -> bytes:
    """Encode float samples as little endian bytes in ``pipe_format``."""
    try:
        code, scale, bits = _PIPE_FORMATS[pipe_format]
    except KeyError:
        raise ValueError(f"unknown output pipe format: {pipe_format}") from None

    values = array("f", samples)
    if scale is None:
        return struct.pack(f"<{len(values)}f", *values)
    return struct.pack(
        f"<{len(values)}{code}", *(_to_int(v * scale, bits) for v in values)
    )


class PipeOutput(Output):
    """Writes encoded samples to a file or named pipe from a background thread."""

    def __init__(self, options: OutputOptions) -> None:
        if options.output_pipe_format not in _PIPE_FORMATS:
            raise ValueError(f"unknown output pipe format: {options.output_pipe_format}")
        if options.reader is None:
            raise ValueError("output needs a reader")

        self._reader = options.reader
        self._format = options.output_pipe_format
        self._volume = options.initial_volume
        self._external_volume = options.external_volume
        self._volume_update = options.volume_update
        self._errors: queue.Queue[Exception] = queue.Queue(maxsize=2)
        self._cond = threading.Condition()
        self._paused = False
        self._closed = False

        try:
            fd = os.open(options.output_pipe, os.O_WRONLY)
        except OSError as err:
            raise OSError(err.errno, f"failed to open fifo: {err}") from err
        self._file = os.fdopen(fd, "wb")

        self._thread = threading.Thread(
            target=self._output_loop, name="pipe-output", daemon=True
        )
        self._thread.start()

    def _report(self, err: Exception) -> None:
        try:
            self._errors.put_nowait(err)
        except queue.Full:
            log.warning("dropping output error: %s", err)

    def _shutdown_locked(self) -> None:
        try:
            self._file.close()
        except OSError:
            pass
        self._closed = True
        self._cond.notify_all()

    def _output_loop(self) -> None:
        try:
            while True:
                with self._cond:
                    self._cond.wait_for(lambda: self._closed or not self._paused)
                    if self._closed:
                        return

                try:
                    samples = list(self._reader.read(_CHUNK_SAMPLES))
                except Exception as err:
                    with self._cond:
                        if not self._closed:
                            self._report(err)
                            self._shutdown_locked()
                    return

                with self._cond:
                    if self._closed:
                        return

                    if not self._external_volume:
                        # Squared so the perceived loudness follows the volume linearly.
                        gain = self._volume * self._volume
                        samples = [s * gain for s in samples]

                    if samples:
                        try:
                            self._file.write(encode_samples(samples, self._format))
                            self._file.flush()
                        except OSError as err:
                            self._report(err)
                            self._shutdown_locked()
                            return

                    if len(samples) < _CHUNK_SAMPLES:
                        self._paused = True
        finally:
            self.close()

    def pause(self) -> None:
        with self._cond:
            if self._closed:
                return
            self._paused = True
            self._cond.notify_all()

    def resume(self) -> None:
        with self._cond:
            if self._closed:
                return
            self._paused = False
            self._cond.notify_all()

    def drop(self) -> None:
        """Wait for a write in progress and push out what is still held locally."""
        with self._cond:
            if self._closed:
                return
            try:
                self._file.flush()
            except OSError as err:
                self._report(err)
                self._shutdown_locked()

    def delay_ms(self) -> int:
        return 0

    def set_volume(self, vol: float) -> None:
        if not 0 <= vol <= 1:
            raise ValueError(f"invalid volume value: {vol:.2f}")
        with self._cond:
            self._volume = vol
        if self._volume_update is not None:
            send_volume_update(self._volume_update, vol)

    def errors(self) -> queue.Queue[Exception]:
        return self._errors

    def close(self) -> None:
        with self._cond:
            if self._closed:
                return
            self._shutdown_locked()
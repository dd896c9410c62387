"""The player: owns the output device and switches between audio streams."""

from __future__ import annotations

import enum
import logging
import queue
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from .media import AudioSource
from .output import Output, OutputOptions, new_output
from .source import SwitchingAudioSource

log = logging.getLogger(__name__)

SAMPLE_RATE = 44100
CHANNELS = 2
MAX_STATE_VOLUME = 65535

_EVENT_QUEUE_SIZE = 128
_POLL_INTERVAL = 0.02

OutputFactory = Callable[[SwitchingAudioSource, float], Output]


class EventType(enum.Enum):
    PLAY = enum.auto()
    RESUME = enum.auto()
    PAUSE = enum.auto()
    STOP = enum.auto()
    NOT_PLAYING = enum.auto()


@dataclass(frozen=True)
class Event:
    type: EventType


@dataclass
class PlayerOptions:
    """Settings for a player.

    ``output_factory`` creates the output device from the reader and the
    initial volume; when left unset an output is built from the audio
    settings below. ``volume_update`` must be a bounded queue.
    """

    normalisation_enabled: bool = False
    normalisation_use_album_gain: bool = False
    normalisation_pregain: float = 0.0
    country_code: str | None = None

    audio_backend: str = ""
    audio_device: str = ""
    mixer_device: str = ""
    mixer_control_name: str = ""
    audio_buffer_time: int = 0
    audio_period_count: int = 0
    external_volume: bool = False
    volume_update: queue.Queue[float] | None = None
    audio_output_pipe: str = ""
    audio_output_pipe_format: str = "s16le"

    output_factory: OutputFactory | None = None

    def create_output(self, reader: SwitchingAudioSource, volume: float) -> Output:
        if self.output_factory is not None:
            return self.output_factory(reader, volume)
        return new_output(
            OutputOptions(
                backend=self.audio_backend,
                reader=reader,
                sample_rate=SAMPLE_RATE,
                channel_count=CHANNELS,
                device=self.audio_device,
                mixer=self.mixer_device,
                control=self.mixer_control_name,
                initial_volume=volume,
                buffer_time_micro=self.audio_buffer_time,
                period_count=self.audio_period_count,
                external_volume=self.external_volume,
                volume_update=self.volume_update,
                output_pipe=self.audio_output_pipe,
                output_pipe_format=self.audio_output_pipe_format,
            )
        )


class _CommandType(enum.Enum):
    SET = enum.auto()
    PLAY = enum.auto()
    PAUSE = enum.auto()
    STOP = enum.auto()
    SEEK = enum.auto()
    POSITION = enum.auto()
    VOLUME = enum.auto()
    CLOSE = enum.auto()


@dataclass(frozen=True)
class _SetData:
    source: AudioSource
    primary: bool
    paused: bool = False
    drop: bool = False


@dataclass
class _Command:
    type: _CommandType
    data: Any = None
    resp: queue.Queue[Any] | None = None

    def reply(self, value: Any) -> None:
        if self.resp is not None:
            self.resp.put(value)


class Player:
    """Plays audio sources on an output device managed by a background thread."""

    def __init__(self, options: PlayerOptions | None = None) -> None:
        self.options = options if options is not None else PlayerOptions()
        self._commands: queue.Queue[_Command] = queue.Queue()
        self._events: queue.Queue[Event] = queue.Queue(maxsize=_EVENT_QUEUE_SIZE)
        self._source = SwitchingAudioSource()
        self._out: Output | None = None
        self._volume = 1.0
        self._started_playing: float | None = None
        self._closed = False
        self._close_lock = threading.Lock()
        self._thread = threading.Thread(target=self._manage_loop, name="player", daemon=True)
        self._thread.start()

    # Loop side

    def _emit(self, event_type: EventType) -> None:
        self._events.put(Event(event_type))

    def _manage_loop(self) -> None:
        handlers = {
            _CommandType.SET: self._handle_set,
            _CommandType.PLAY: self._handle_play,
            _CommandType.PAUSE: self._handle_pause,
            _CommandType.STOP: self._handle_stop,
            _CommandType.SEEK: self._handle_seek,
            _CommandType.POSITION: self._handle_position,
            _CommandType.VOLUME: self._handle_volume,
        }
        try:
            while True:
                try:
                    cmd = self._commands.get(timeout=_POLL_INTERVAL)
                except queue.Empty:
                    cmd = None

                if cmd is not None:
                    if cmd.type is _CommandType.CLOSE:
                        break
                    try:
                        handlers[cmd.type](cmd)
                    except Exception as err:
                        if cmd.resp is None:
                            log.warning("player command %s failed: %s", cmd.type.name, err)
                        cmd.reply(err)

                self._check_output_error()
                self._check_source_done()
        finally:
            try:
                self._source.close()
            except Exception as err:
                log.debug("failed closing sources: %s", err)
            self._close_output()

    def _check_output_error(self) -> None:
        if self._out is None:
            return
        try:
            err = self._out.errors().get_nowait()
        except queue.Empty:
            return
        if err is not None:
            log.error("output device failed: %s", err)
        self._close_output()
        log.debug("cleared closed output device")
        self._emit(EventType.STOP)

    def _check_source_done(self) -> None:
        while True:
            try:
                self._source.done.get_nowait()
            except queue.Empty:
                return
            self._emit(EventType.NOT_PLAYING)

    def _close_output(self) -> None:
        if self._out is None:
            return
        try:
            self._out.close()
        except Exception as err:
            log.debug("failed closing output device: %s", err)
        self._out = None

    def _handle_set(self, cmd: _Command) -> None:
        data: _SetData = cmd.data
        if not data.primary:
            self._source.set_secondary(data.source)
            cmd.reply(None)
            return

        if self._out is None:
            self._out = self.options.create_output(self._source, self._volume)
            log.debug("created new output device")

        self._source.set_primary(data.source)
        if data.paused:
            self._out.pause()
        else:
            self._out.resume()

        if data.drop:
            try:
                self._out.drop()
            except Exception as err:
                log.debug("failed dropping output buffer: %s", err)

        self._started_playing = time.monotonic()
        cmd.reply(None)
        self._emit(EventType.PAUSE if data.paused else EventType.PLAY)

    def _handle_play(self, cmd: _Command) -> None:
        if self._out is None:
            cmd.reply(None)
            return
        self._out.resume()
        cmd.reply(None)
        self._emit(EventType.RESUME)

    def _handle_pause(self, cmd: _Command) -> None:
        if self._out is None:
            cmd.reply(None)
            return
        self._out.pause()
        cmd.reply(None)
        self._emit(EventType.PAUSE)

    def _handle_stop(self, cmd: _Command) -> None:
        if self._out is not None:
            self._close_output()
            log.debug("closed output device because of stop command")
        cmd.reply(None)
        self._emit(EventType.STOP)

    def _handle_seek(self, cmd: _Command) -> None:
        if self._out is not None:
            self._source.set_position_ms(cmd.data)
            self._out.drop()
        cmd.reply(None)

    def _handle_position(self, cmd: _Command) -> None:
        pos = self._source.position_ms()
        if self._out is None:
            cmd.reply(pos)
            return
        try:
            delay = self._out.delay_ms()
        except Exception as err:
            log.warning("failed getting output device delay: %s", err)
            delay = 0
        cmd.reply(pos - delay)

    def _handle_volume(self, cmd: _Command) -> None:
        self._volume = cmd.data
        if self._out is not None:
            self._out.set_volume(self._volume)

    # Caller side

    def _send(self, cmd: _Command) -> None:
        if self._closed:
            raise RuntimeError("player is closed")
        self._commands.put(cmd)

    def _call(self, kind: _CommandType, data: Any = None) -> Any:
        resp: queue.Queue[Any] = queue.Queue(maxsize=1)
        self._send(_Command(kind, data, resp))
        result = resp.get()
        if isinstance(result, Exception):
            raise result
        return result

    def has_been_playing_for(self) -> timedelta:
        """Time since the primary stream was last set, zero if never."""
        started = self._started_playing
        if started is None:
            return timedelta(0)
        return timedelta(seconds=time.monotonic() - started)

    def receive(self, timeout: float | None = None) -> Event | None:
        """Return the next player event, or None if none came within ``timeout``."""
        try:
            return self._events.get(timeout=timeout)
        except queue.Empty:
            return None

    def close(self) -> None:
        """Stop the player, closing its sources and output device."""
        with self._close_lock:
            if self._closed:
                return
            self._commands.put(_Command(_CommandType.CLOSE))
            self._closed = True
        self._thread.join()

    def set_volume(self, val: int) -> None:
        """Set the volume on the 0..MAX_STATE_VOLUME scale."""
        if not 0 <= val <= MAX_STATE_VOLUME:
            raise ValueError(f"invalid volume value: {val}")
        self._send(_Command(_CommandType.VOLUME, val / MAX_STATE_VOLUME))

    def play(self) -> None:
        self._call(_CommandType.PLAY)

    def pause(self) -> None:
        self._call(_CommandType.PAUSE)

    def stop(self) -> None:
        self._call(_CommandType.STOP)

    def seek_ms(self, pos: int) -> None:
        self._call(_CommandType.SEEK, pos)

    def position_ms(self) -> int:
        """Current playback position, corrected by the output device delay."""
        return self._call(_CommandType.POSITION)

    def set_primary_stream(self, source: AudioSource, paused: bool = False, drop: bool = False) -> None:
        self._call(_CommandType.SET, _SetData(source, primary=True, paused=paused, drop=drop))

    def set_secondary_stream(self, source: AudioSource) -> None:
        self._call(_CommandType.SET, _SetData(source, primary=False))

    def __enter__(self) -> Player:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
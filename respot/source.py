"""An audio source that switches from a primary to a secondary source at its end."""

from __future__ import annotations

import queue
import threading

from .media import AudioSource


class SwitchingAudioSource:
    """Reads from the primary source and moves on to the secondary one at EOF.

    Every time a source reaches its end an item is put on ``done``.
    ``read`` blocks until a primary source has been set.
    """

    def __init__(self) -> None:
        self._sources: list[AudioSource | None] = [None, None]
        self._which = 0
        self._cond = threading.Condition()
        self.done: queue.SimpleQueue[None] = queue.SimpleQueue()

    def set_primary(self, source: AudioSource) -> None:
        with self._cond:
            self._sources[self._which] = source
            self._cond.notify_all()

    def set_secondary(self, source: AudioSource) -> None:
        with self._cond:
            self._sources[1 - self._which] = source
            self._cond.notify_all()

    def read(self, count: int) -> list[float]:
        """Read up to ``count`` samples; a short result means every source ended."""
        with self._cond:
            self._cond.wait_for(lambda: self._sources[self._which] is not None)

            samples: list[float] = []
            while len(samples) < count:
                wanted = count - len(samples)
                current = self._sources[self._which]
                chunk = current.read(wanted)
                samples.extend(chunk)
                if len(chunk) >= wanted:
                    break

                self.done.put(None)
                other = 1 - self._which
                if self._sources[other] is None:
                    break

                self._sources[self._which] = None
                self._which = other
            return samples

    def set_position_ms(self, pos: int) -> None:
        with self._cond:
            current = self._sources[self._which]
            if current is not None:
                current.set_position_ms(pos)

    def position_ms(self) -> int:
        with self._cond:
            current = self._sources[self._which]
            return 0 if current is None else current.position_ms()

    def close(self) -> None:
        """Close both sources that support closing; raise if any of them failed."""
        with self._cond:
            sources = list(self._sources)

        errors: list[Exception] = []
        for source in sources:
            closer = getattr(source, "close", None)
            if source is None or not callable(closer):
                continue
            try:
                closer()
            except Exception as err:
                errors.append(err)

        if len(errors) == 1:
            raise errors[0]
        if errors:
            raise RuntimeError("; ".join(str(err) for err in errors)) from errors[0]
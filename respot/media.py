"""Playable media descriptions and the audio interfaces shared by the player."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Generic, Protocol, TypeVar, runtime_checkable

T = TypeVar("T", covariant=True)


class MediaRestrictedError(Exception):
    """The media may not be played in the current country."""

    def __init__(self, message: str = "media is restricted") -> None:
        super().__init__(message)


class NoSupportedFormatsError(Exception):
    """The media offers no audio file in a format that can be played."""

    def __init__(self, message: str = "no supported formats") -> None:
        super().__init__(message)


class AudioFormat(enum.Enum):
    OGG_VORBIS_96 = "OGG_VORBIS_96"
    OGG_VORBIS_160 = "OGG_VORBIS_160"
    OGG_VORBIS_320 = "OGG_VORBIS_320"
    MP3_96 = "MP3_96"
    MP3_160 = "MP3_160"
    MP3_256 = "MP3_256"
    MP3_320 = "MP3_320"
    AAC_24 = "AAC_24"
    AAC_48 = "AAC_48"
    FLAC_FLAC = "FLAC_FLAC"


@dataclass(frozen=True)
class AudioFile:
    file_id: bytes
    format: AudioFormat


@dataclass(frozen=True)
class Restriction:
    """A country restriction: either an allow list or a deny list.

    Country lists are concatenated two-letter codes, e.g. ``"ITFRDE"``.
    """

    countries_allowed: str | None = None
    countries_forbidden: str | None = None


@dataclass
class Track:
    gid: bytes
    name: str
    duration: int
    files: list[AudioFile] = field(default_factory=list)
    alternatives: list[Track] = field(default_factory=list)
    restrictions: list[Restriction] = field(default_factory=list)


@dataclass
class Episode:
    gid: bytes
    name: str
    duration: int
    audio: list[AudioFile] = field(default_factory=list)
    restrictions: list[Restriction] = field(default_factory=list)


class Media:
    """Either a track or an episode."""

    __slots__ = ("_track", "_episode")

    def __init__(self, track: Track | None = None, episode: Episode | None = None) -> None:
        if (track is None) == (episode is None):
            raise ValueError("media needs exactly one of track or episode")
        self._track = track
        self._episode = episode

    @classmethod
    def from_track(cls, track: Track) -> Media:
        if track is None:
            raise ValueError("nil track")
        return cls(track=track)

    @classmethod
    def from_episode(cls, episode: Episode) -> Media:
        if episode is None:
            raise ValueError("nil episode")
        return cls(episode=episode)

    def is_track(self) -> bool:
        return self._track is not None

    def is_episode(self) -> bool:
        return self._episode is not None

    def track(self) -> Track:
        if self._track is None:
            raise TypeError("not a track")
        return self._track

    def episode(self) -> Episode:
        if self._episode is None:
            raise TypeError("not an episode")
        return self._episode

    def _item(self) -> Track | Episode:
        return self._track if self._track is not None else self._episode

    def name(self) -> str:
        return self._item().name

    def duration(self) -> int:
        """Duration in milliseconds."""
        return self._item().duration

    def restrictions(self) -> list[Restriction]:
        return self._item().restrictions

    def __repr__(self) -> str:
        kind = "track" if self.is_track() else "episode"
        return f"Media({kind}={self.name()!r})"


@runtime_checkable
class AudioSource(Protocol):
    """A seekable source of interleaved float samples.

    ``read(count)`` returns up to ``count`` samples; a result shorter than
    ``count`` means the source has reached its end. Other failures raise.
    """

    def read(self, count: int) -> list[float]: ...

    def set_position_ms(self, pos: int) -> None: ...

    def position_ms(self) -> int: ...


@runtime_checkable
class PageResolver(Protocol, Generic[T]):
    """Resolves pages of items by index; raises EOFError past the last page."""

    def page(self, idx: int) -> list[T]: ...
"""A loaded stream of playable media."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from .media import AudioFile, AudioSource, Media


class MediaKind(enum.Enum):
    TRACK = "track"
    EPISODE = "episode"


@dataclass
class Stream:
    playback_id: bytes
    source: AudioSource
    media: Media
    file: AudioFile

    def matches(self, kind: MediaKind, gid: bytes) -> bool:
        """Return whether this stream plays the media of ``kind`` with ``gid``."""
        if kind is MediaKind.TRACK and self.media.is_track():
            return gid == self.media.track().gid
        if kind is MediaKind.EPISODE and self.media.is_episode():
            return gid == self.media.episode().gid
        return False
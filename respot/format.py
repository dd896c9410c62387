"""Choosing an audio file by bitrate."""

from __future__ import annotations

from collections.abc import Iterable

from .media import AudioFile, AudioFormat

_BITRATES = {
    AudioFormat.OGG_VORBIS_96: 96,
    AudioFormat.OGG_VORBIS_160: 160,
    AudioFormat.OGG_VORBIS_320: 320,
}


def get_format_bitrate(fmt: AudioFormat) -> int:
    """Return the bitrate of a playable format, or 0 if it is not playable."""
    return _BITRATES.get(fmt, 0)


def select_best_media_format(
    files: Iterable[AudioFile], preferred_bitrate: int
) -> AudioFile | None:
    """Return the file whose bitrate is closest to ``preferred_bitrate``.

    On ties the earliest file wins; an empty input gives None.
    """
    best: AudioFile | None = None
    best_dist = 0
    for candidate in files:
        dist = abs(get_format_bitrate(candidate.format) - preferred_bitrate)
        if best is None or dist < best_dist:
            best = candidate
            best_dist = dist
    return best
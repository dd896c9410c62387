from respot.media import AudioFile, AudioFormat, Episode, Media, Track
from respot.stream import MediaKind, Stream

TRACK_GID = bytes(range(16))
EPISODE_GID = bytes(range(16, 32))


class NullSource:
    def read(self, count):
        return []

    def set_position_ms(self, pos):
        pass

    def position_ms(self):
        return 0


def make_stream(media):
    return Stream(
        playback_id=b"\x00" * 16,
        source=NullSource(),
        media=media,
        file=AudioFile(b"\x01", AudioFormat.OGG_VORBIS_160),
    )


def test_track_stream_matches_track_gid():
    stream = make_stream(Media.from_track(Track(gid=TRACK_GID, name="t", duration=1)))
    assert stream.matches(MediaKind.TRACK, TRACK_GID) is True
    assert stream.matches(MediaKind.TRACK, EPISODE_GID) is False


def test_track_stream_does_not_match_episode_kind():
    stream = make_stream(Media.from_track(Track(gid=TRACK_GID, name="t", duration=1)))
    assert stream.matches(MediaKind.EPISODE, TRACK_GID) is False


def test_episode_stream_matches_episode_gid():
    stream = make_stream(Media.from_episode(Episode(gid=EPISODE_GID, name="e", duration=1)))
    assert stream.matches(MediaKind.EPISODE, EPISODE_GID) is True
    assert stream.matches(MediaKind.TRACK, EPISODE_GID) is False
# respot

`respot` holds the parts of a Spotify Connect style receiver that work without a
connection to Spotify's servers. Each module can be used by itself.

## Modules

- **`respot.paged_list`**: `PagedList` loads items page by page from any object
  with a `page(idx)` method. That method returns a list and raises `EOFError`
  after the last page. The list keeps a current position (`get`, `move`,
  `move_start`). `iter_start` and `iter_here` give `PagedListIterator` cursors
  with `next`/`prev`, and `next` fetches more pages when needed. `shuffle(rnd)`
  and `unshuffle(rnd)` take `random.Random` instances seeded the same way;
  `unshuffle` restores the original order and the current item stays current.
- **`respot.source`**: `SwitchingAudioSource` reads from a primary source. When
  that source returns fewer samples than asked for, it moves on to the secondary
  source. Each time a source ends, an item is put on its `done` queue.
- **`respot.output`**: `new_output(OutputOptions(...))` creates a `PipeOutput`
  for the `"pipe"` backend. It writes samples from a background thread to an
  existing file or named pipe as `s16le`, `s32le` or `f32le`.
  - Unless `external_volume` is set, the volume is applied squared.
  - `encode_samples` converts the samples and `send_volume_update` publishes
    volume changes on a bounded queue.
  - The `"alsa"`, `"pulseaudio"` and `"audio-toolbox"` backends raise
    `UnsupportedBackendError`. Any other name raises `ValueError`.
- **`respot.player`**: `Player` runs a background thread. It creates the output
  device (through `PlayerOptions.output_factory`, or `new_output` from the audio
  settings) when a primary stream is first set.
  - Control methods: `play`, `pause`, `stop`, `seek_ms`, `position_ms`,
    `set_volume` (scale 0 to `MAX_STATE_VOLUME`), `set_primary_stream` and
    `set_secondary_stream`.
  - `receive(timeout)` returns `Event`s of type `EventType.PLAY`, `RESUME`,
    `PAUSE`, `STOP` or `NOT_PLAYING`.
- **`respot.vorbis_metadata`**: `extract_metadata_page(data)` parses the seek
  table and replay-gain segments in the first Ogg page. It returns the remaining
  bytes and a `MetadataPage`, and raises `MetadataError` on bad input.
  `MetadataPage` has `track_factor`, `album_factor` and `seek_position`.
- **`respot.zeroconf`**: `Zeroconf` is an HTTP server that answers the
  `getInfo` and `addUser` actions.
  - The caller supplies the key exchange object, with `public_key_bytes()` and
    `exchange(peer_key)`.
  - `serve(handler)` passes each `NewUserRequest` to `handler`, and its return
    value accepts or refuses the request.
  - `decrypt_blob` checks and decrypts a credentials blob. It raises
    `BadChecksumError` on a checksum mismatch.
- **`respot.media`**: `Track`, `Episode`, `Media`, `AudioFile`, `AudioFormat`
  and `Restriction`, and the `AudioSource` and `PageResolver` protocols.
- **`respot.format`**: `select_best_media_format` picks the file whose bitrate
  is closest to the preferred one. `get_format_bitrate` gives the bitrate of a
  format.
- **`respot.restriction`**: `is_media_restricted(media, country)` checks the
  media's country restrictions for a two-letter country code.
- **`respot.stream`**: `Stream.matches(kind, gid)` tells whether a stream plays
  the given track or episode.
- **`respot.state`**: `AppState.read(config_dir)` loads `state.json`. If it
  finds no username there, it falls back to `credentials.json`.
  `AppState.write()` replaces `state.json` atomically.
- **`respot.platform_info`**: `get_os`, `get_cpu_family`, `get_platform` and
  `get_platform_specific_data` describe the running or given platform.
- **`respot.version`**: version and user-agent strings. For development builds
  a commit hash can be given in the `RESPOT_BUILD_COMMIT` environment variable.
- **`respot.utils`**: `obfuscate_username` masks a username for logging.

## Installation

```
pip install .
pip install ".[test]"   # with test dependencies
```

## Example

```python
import random

from respot.paged_list import PagedList


class Pages:
    def page(self, idx):
        if idx >= 2:
            raise EOFError
        return [idx * 10 + i for i in range(5)]


tracks = PagedList(Pages())
tracks.move_start()
tracks.shuffle(random.Random(42))
tracks.unshuffle(random.Random(42))
print(tracks.get().item)  # 0
```

Writing audio to a named pipe. `my_reader` is any object whose `read(count)`
returns up to `count` float samples:

```python
from respot.output import OutputOptions, new_output

out = new_output(OutputOptions(
    backend="pipe",
    reader=my_reader,
    output_pipe="/tmp/respot.pcm",
    output_pipe_format="s16le",
))
...
out.close()
```

## What this package does not do

- It does not connect to Spotify or log in.
- It does not fetch track metadata and does not decrypt or decode audio streams.
- It does not advertise itself over mDNS. `Zeroconf` only serves HTTP.
- It has no sound-card backends; only the pipe output exists.
- It provides no command-line program.

## Tests

```
pytest
```
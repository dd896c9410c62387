"""Reading the metadata page that precedes the Ogg Vorbis audio of a stream."""

from __future__ import annotations

import logging
import math
import struct
from dataclasses import dataclass

log = logging.getLogger(__name__)

_SEGMENT_SEEK_TABLE = 0
_SEGMENT_REPLAY_GAIN = 1
_SEGMENT_FFFFFFFF = 2

_HEAD_READ_SIZE = 512
_OGG_HEADER_SIZE = 27
_SEEK_TABLE_ENTRIES = 100
_BYTES_SCALE = 1.525879e-05

_SEEK_TABLE_LOOKUP = (
    0, 112, 197, 327, 374, 394, 407, 417, 425, 433, 439, 444, 449, 454, 458, 462, 466, 470, 473, 477, 480, 483, 486,
    489, 491, 494, 497, 499, 502, 504, 506, 509, 511, 513, 515, 517, 519, 521, 523, 525, 527, 529, 531, 533, 535, 537,
    538, 540, 542, 544, 545, 547, 549, 550, 552, 554, 555, 557, 558, 560, 562, 563, 565, 566, 568, 569, 571, 572, 574,
    575, 577, 578, 580, 581, 583, 584, 585, 587, 588, 590, 591, 593, 594, 595, 597, 598, 599, 601, 602, 604, 605, 606,
    608, 609, 610, 612, 613, 615, 616, 617, 619, 620, 621, 623, 624, 625, 627, 628, 629, 631, 632, 634, 635, 636, 638,
    639, 640, 642, 643, 644, 646, 647, 649, 650, 651, 653, 654, 655, 657, 658, 660, 661, 662, 664, 665, 667, 668, 669,
    671, 672, 674, 675, 677, 678, 679, 681, 682, 684, 685, 687, 688, 690, 691, 693, 694, 696, 697, 699, 700, 702, 704,
    705, 707, 708, 710, 712, 713, 715, 716, 718, 720, 721, 723, 725, 727, 728, 730, 732, 734, 735, 737, 739, 741, 743,
    745, 747, 748, 750, 752, 754, 756, 758, 760, 763, 765, 767, 769, 771, 773, 776, 778, 780, 782, 785, 787, 790, 792,
    795, 797, 800, 803, 805, 808, 811, 814, 817, 820, 823, 826, 829, 833, 836, 840, 843, 847, 851, 855, 859, 863, 868,
    872, 877, 882, 887, 893, 898, 904, 911, 918, 925, 933, 941, 951, 961, 972, 985, 1000, 1017, 1039, 1067, 1108, 1183,
    1520, 2658, 4666, 8191,
)


def _build_crc_table() -> tuple[int, ...]:
    table = []
    for i in range(256):
        r = i << 24
        for _ in range(8):
            r = ((r << 1) ^ 0x04C11DB7) if r & 0x80000000 else (r << 1)
            r &= 0xFFFFFFFF
        table.append(r)
    return tuple(table)


_CRC_TABLE = _build_crc_table()


def _ogg_crc(data: bytes) -> int:
    crc = 0
    for byte in data:
        crc = ((crc << 8) & 0xFFFFFFFF) ^ _CRC_TABLE[((crc >> 24) & 0xFF) ^ byte]
    return crc


def _f32(value: float) -> float:
    """Round ``value`` to single precision."""
    return struct.unpack("<f", struct.pack("<f", value))[0]


class MetadataError(ValueError):
    """The metadata page is missing, malformed or incomplete."""


@dataclass(frozen=True)
class MetadataPage:
    """Seek table and replay gain information of a stream."""

    seek_samples: int
    seek_size: int
    offset: int
    seek_table: tuple[int, ...]
    track_gain_db: float
    track_peak: float
    album_gain_db: float
    album_peak: float

    @staticmethod
    def _factor(gain_db: float, pregain: float, peak: float, kind: str) -> float:
        exponent = _f32(_f32(gain_db + pregain) / 20)
        factor = _f32(10.0**exponent)
        if _f32(factor * peak) > 1:
            log.warning(
                "reducing %s normalisation factor to prevent clipping, "
                "please add negative pregain to avoid",
                kind,
            )
            factor = _f32(1 / peak)
        return factor

    def track_factor(self, pregain: float) -> float:
        """Return the gain factor that normalises the track, pregain in dB."""
        return self._factor(self.track_gain_db, pregain, self.track_peak, "track")

    def album_factor(self, pregain: float) -> float:
        """Return the gain factor that normalises the album, pregain in dB."""
        return self._factor(self.album_gain_db, pregain, self.album_peak, "album")

    def seek_position(self, samples_pos: int) -> int:
        """Return the approximate byte offset of the sample ``samples_pos``."""
        if self.seek_samples == 0:
            raise ValueError("seek table covers no samples")

        rel_pos = _f32(_f32(_f32(samples_pos) * 100) / _f32(self.seek_samples))
        int_pos = math.trunc(rel_pos)
        if int_pos <= 0:
            int_pos = 1
        elif int_pos > 99:
            int_pos = 99

        prev, curr = self.seek_table[int_pos - 1], self.seek_table[int_pos]
        interpolated = _f32(_f32(_f32(curr - prev) * _f32(rel_pos - int_pos)) + prev)

        bytes_pos = _f32(_f32(interpolated * _f32(_BYTES_SCALE)) * _f32(self.seek_size))
        if bytes_pos < 0:
            return 0
        return int(bytes_pos)


def _first_packet(head: bytes) -> tuple[bytes, int]:
    """Return the first packet of the first Ogg page and the page length."""
    if len(head) < _OGG_HEADER_SIZE or head[:4] != b"OggS":
        raise MetadataError("vorbis: not a valid Ogg bitstream")

    segments = head[26]
    table_end = _OGG_HEADER_SIZE + segments
    if len(head) < table_end:
        raise MetadataError("vorbis: not a valid Ogg bitstream")
    lacing = head[_OGG_HEADER_SIZE:table_end]
    page_len = table_end + sum(lacing)
    if len(head) < page_len:
        raise MetadataError("vorbis: not a valid Ogg bitstream")

    page = head[:page_len]
    stored_crc = int.from_bytes(page[22:26], "little")
    if _ogg_crc(page[:22] + b"\x00\x00\x00\x00" + page[26:]) != stored_crc:
        raise MetadataError("vorbis: not a valid Ogg bitstream")

    if page[4] != 0:
        raise MetadataError("vorbis: the supplied page does not belong this Vorbis stream")

    size = 0
    complete = False
    if not page[5] & 0x01:
        for value in lacing:
            size += value
            if value < 255:
                complete = True
                break
    if not complete:
        raise MetadataError("vorbis: unable to fetch initial Vorbis packet from the first page")

    return page[table_end : table_end + size], page_len


def _parse_seek_table(payload: bytes) -> tuple[int, int, int, tuple[int, ...]]:
    if len(payload) < 4:
        raise MetadataError("failed reading seek table samples size: unexpected EOF")
    if len(payload) < 8:
        raise MetadataError("failed reading seek table bytes size: unexpected EOF")
    if len(payload) < 9:
        raise MetadataError("failed reading seek table offset: unexpected EOF")
    if len(payload) < 9 + _SEEK_TABLE_ENTRIES:
        raise MetadataError("failed reading seek table index: unexpected EOF")

    samples, size, offset_idx = struct.unpack_from("<IIB", payload)
    offset = -_SEEK_TABLE_LOOKUP[offset_idx]

    table = []
    cum = offset
    for idx in payload[9 : 9 + _SEEK_TABLE_ENTRIES]:
        cum += _SEEK_TABLE_LOOKUP[idx]
        table.append(cum)
    return samples, size, offset, tuple(table)


def _parse_replay_gain(payload: bytes) -> tuple[float, float, float, float]:
    names = ("track gain", "track peek", "album gain", "album peek")
    for i, name in enumerate(names):
        if len(payload) < 4 * (i + 1):
            raise MetadataError(f"failed reading {name} metadata: unexpected EOF")
    if len(payload) > 16:
        raise MetadataError("replay gain metadata underrun")
    return struct.unpack("<4f", payload)


def extract_metadata_page(data: bytes) -> tuple[bytes, MetadataPage]:
    """Parse the metadata page at the start of ``data``.

    Returns the stream without the metadata page, and the parsed page.
    """
    data = bytes(data)
    head = data[:_HEAD_READ_SIZE]
    if len(head) < _HEAD_READ_SIZE:
        raise MetadataError("failed reading vorbis stream head")

    body, page_len = _first_packet(head)
    if not body or body[0] != 0x81:
        raise MetadataError("invalid metadata page")

    seek: tuple[int, int, int, tuple[int, ...]] | None = None
    gain: tuple[float, float, float, float] | None = None

    pos = 1
    while pos < len(body):
        if len(body) - pos < 2:
            raise MetadataError("failed reading segment length: unexpected EOF")
        (seg_len,) = struct.unpack_from("<H", body, pos)
        pos += 2

        segment = body[pos : pos + seg_len]
        if len(segment) < seg_len:
            raise MetadataError("failed reading segment data: unexpected EOF")
        pos += seg_len
        if not segment:
            raise MetadataError("empty metadata page segment")

        kind, payload = segment[0], segment[1:]
        if kind == _SEGMENT_SEEK_TABLE:
            seek = _parse_seek_table(payload)
        elif kind == _SEGMENT_REPLAY_GAIN:
            gain = _parse_replay_gain(payload)
        elif kind == _SEGMENT_FFFFFFFF:
            if len(payload) < 4:
                raise MetadataError("failed reading FFFFFFFF value: unexpected EOF")
            (value,) = struct.unpack_from("<i", payload)
            if value != -1:
                log.warning("unexpected FFFFFFFF value: %d", value)
        else:
            log.warning("unknown metadata page segment: %x (len: %d)", kind, seg_len)

    if seek is None:
        raise MetadataError("no seek table metadata found")
    if gain is None:
        raise MetadataError("no replay gain metadata found")

    samples, size, offset, table = seek
    track_gain, track_peak, album_gain, album_peak = gain
    page = MetadataPage(
        seek_samples=samples,
        seek_size=size,
        offset=offset,
        seek_table=table,
        track_gain_db=track_gain,
        track_peak=track_peak,
        album_gain_db=album_gain,
        album_peak=album_peak,
    )
    return data[page_len:], page
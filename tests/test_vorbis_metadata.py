import struct

import pytest

from respot.vorbis_metadata import MetadataError, MetadataPage, extract_metadata_page

TAIL = bytes(range(256)) * 3


def ogg_crc(data):
    table = []
    for i in range(256):
        r = i << 24
        for _ in range(8):
            r = ((r << 1) ^ 0x04C11DB7) if r & 0x80000000 else (r << 1)
            r &= 0xFFFFFFFF
        table.append(r)
    crc = 0
    for byte in data:
        crc = ((crc << 8) & 0xFFFFFFFF) ^ table[((crc >> 24) & 0xFF) ^ byte]
    return crc


def seek_segment(samples=100000, size=500000, offset_index=2, indices=(1,) * 100):
    return bytes([0]) + struct.pack("<IIB", samples, size, offset_index) + bytes(indices)


def gain_segment(tg=-6.0, tp=0.25, ag=-3.0, ap=0.5, extra=b""):
    return bytes([1]) + struct.pack("<4f", tg, tp, ag, ap) + extra


def packet(*segments, first=0x81):
    return bytes([first]) + b"".join(struct.pack("<H", len(s)) + s for s in segments)


def ogg_page(pkt, corrupt=False):
    lacing = [255] * (len(pkt) // 255) + [len(pkt) % 255]
    header = (
        b"OggS"
        + bytes([0, 2])
        + (0).to_bytes(8, "little")
        + (0x1234).to_bytes(4, "little")
        + (0).to_bytes(4, "little")
    )
    rest = bytes([len(lacing)]) + bytes(lacing) + pkt
    crc = ogg_crc(header + b"\x00\x00\x00\x00" + rest)
    if corrupt:
        crc ^= 1
    return header + crc.to_bytes(4, "little") + rest


def stream(pkt, **kwargs):
    return ogg_page(pkt, **kwargs) + TAIL


def parse(**gain):
    return extract_metadata_page(stream(packet(seek_segment(), gain_segment(**gain))))


def test_rest_of_stream_follows_metadata_page():
    rest, _ = parse()
    assert rest == TAIL


def test_seek_table_is_cumulative():
    _, page = parse()
    assert page.seek_samples == 100000
    assert page.seek_size == 500000
    assert page.offset == -197
    assert len(page.seek_table) == 100
    assert page.seek_table[0] == page.offset + 112
    diffs = {b - a for a, b in zip(page.seek_table, page.seek_table[1:])}
    assert diffs == {112}


def test_replay_gain_values():
    _, page = parse()
    assert (page.track_gain_db, page.track_peak) == (-6.0, 0.25)
    assert (page.album_gain_db, page.album_peak) == (-3.0, 0.5)


def test_unknown_and_ffffffff_segments_are_ignored():
    pkt = packet(
        bytes([7, 1, 2, 3]),
        bytes([2]) + struct.pack("<i", -1),
        seek_segment(),
        gain_segment(),
    )
    rest, page = extract_metadata_page(stream(pkt))
    assert rest == TAIL
    assert page.track_peak == 0.25


def test_missing_replay_gain():
    with pytest.raises(MetadataError, match="no replay gain"):
        extract_metadata_page(stream(packet(seek_segment())))


def test_missing_seek_table():
    with pytest.raises(MetadataError, match="no seek table"):
        extract_metadata_page(stream(packet(gain_segment())))


def test_wrong_packet_type():
    with pytest.raises(MetadataError, match="invalid metadata page"):
        extract_metadata_page(stream(packet(seek_segment(), gain_segment(), first=0x01)))


def test_short_stream():
    with pytest.raises(MetadataError, match="stream head"):
        extract_metadata_page(ogg_page(packet(seek_segment(), gain_segment())))


def test_corrupt_crc():
    pkt = packet(seek_segment(), gain_segment())
    with pytest.raises(MetadataError, match="not a valid Ogg"):
        extract_metadata_page(stream(pkt, corrupt=True))


def test_not_ogg():
    with pytest.raises(MetadataError, match="not a valid Ogg"):
        extract_metadata_page(b"\x00" * 600)


def test_page_larger_than_head():
    pkt = packet(bytes([9]) + bytes(600), seek_segment(), gain_segment())
    with pytest.raises(MetadataError, match="not a valid Ogg"):
        extract_metadata_page(stream(pkt))


def test_replay_gain_underrun():
    pkt = packet(seek_segment(), gain_segment(extra=b"\x00"))
    with pytest.raises(MetadataError, match="underrun"):
        extract_metadata_page(stream(pkt))


def test_truncated_seek_table():
    pkt = packet(seek_segment()[:50], gain_segment())
    with pytest.raises(MetadataError, match="seek table index"):
        extract_metadata_page(stream(pkt))


def test_empty_segment():
    with pytest.raises(MetadataError):
        extract_metadata_page(stream(packet(b"", seek_segment(), gain_segment())))


def test_zero_gain_gives_unit_factor():
    _, page = parse(tg=0.0, tp=0.5, ag=0.0, ap=0.5)
    assert page.track_factor(0.0) == 1.0
    assert page.album_factor(0.0) == 1.0


def test_pregain_adds_to_gain():
    _, shifted = parse(tg=-6.0)
    _, plain = parse(tg=0.0)
    assert shifted.track_factor(0.0) == pytest.approx(plain.track_factor(-6.0))
    assert shifted.track_factor(0.0) < 1.0


def test_factor_limited_to_prevent_clipping():
    _, page = parse()
    assert page.track_factor(30.0) == 1 / page.track_peak
    assert page.album_factor(30.0) == 1 / page.album_peak


def test_seek_position_start_is_zero():
    _, page = parse()
    assert page.seek_position(0) == 0


def test_seek_position_monotonic_and_bounded():
    _, page = parse()
    positions = [page.seek_position(s) for s in range(0, 100000, 997)]
    assert positions == sorted(positions)
    assert all(0 <= p <= page.seek_size for p in positions)
    assert positions[-1] > 0


def test_seek_position_without_samples():
    page = MetadataPage(0, 100, 0, tuple(range(100)), 0.0, 1.0, 0.0, 1.0)
    with pytest.raises(ValueError):
        page.seek_position(10)
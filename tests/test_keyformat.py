import pytest

from iavl.keyformat import FastPrefixFormatter, KeyFormat, ScanKind

EMPTY = ([], b"e")
THREE_BYTES = ([bytes([1, 2, 3])], bytes([ord("e"), 0, 0, 0, 0, 0, 1, 2, 3]))
EIGHT_BYTES = (
    [bytes([1, 2, 3, 4, 5, 6, 7, 8])],
    bytes([ord("e"), 1, 2, 3, 4, 5, 6, 7, 8]),
)


@pytest.mark.parametrize(
    "segments, expected",
    [
        EMPTY,
        THREE_BYTES,
        EIGHT_BYTES,
        (
            [
                bytes([1, 2, 3, 4, 5, 6, 7, 8]),
                bytes([1, 2, 3, 4, 5, 6, 7, 8]),
                bytes([1, 1, 2, 2, 3, 3]),
            ],
            bytes(
                [ord("e"), 1, 2, 3, 4, 5, 6, 7, 8, 1, 2, 3, 4, 5, 6, 7, 8]
                + [0, 0, 1, 1, 2, 2, 3, 3]
            ),
        ),
    ],
)
def test_key_bytes_three_int_format(segments, expected):
    kf = KeyFormat(b"e", 8, 8, 8)
    assert kf.key_bytes(*segments) == expected


@pytest.mark.parametrize(
    "segments, expected",
    [
        EMPTY,
        THREE_BYTES,
        EIGHT_BYTES,
        (
            [bytes([1, 2, 3, 4, 5, 6, 7, 8]), bytes([1, 2, 3, 4, 5, 6, 7, 8, 9])],
            bytes([ord("e"), 1, 2, 3, 4, 5, 6, 7, 8, 1, 2, 3, 4, 5, 6, 7, 8, 9]),
        ),
        (
            [bytes([1, 2, 3, 4, 5, 6, 7, 8]), b"hellohello"],
            bytes([ord("e"), 1, 2, 3, 4, 5, 6, 7, 8])
            + bytes([0x68, 0x65, 0x6C, 0x6C, 0x6F, 0x68, 0x65, 0x6C, 0x6C, 0x6F]),
        ),
    ],
)
def test_key_bytes_zero_suffix_format(segments, expected):
    kf = KeyFormat(b"e", 8, 0)
    assert kf.key_bytes(*segments) == expected


def test_key_and_scan():
    kf = KeyFormat("e", 8, 8, 8)
    key = bytes(
        [ord("e"), 0, 0, 0, 0, 0, 0, 0, 100, 0, 0, 0, 0, 0, 0, 0, 200]
        + [0, 0, 0, 0, 0, 0, 1, 144]
    )
    assert kf.key(100, 200, 400) == key

    assert kf.scan(key, ScanKind.INT64, ScanKind.INT64, ScanKind.INT64) == (
        100,
        200,
        400,
    )
    assert kf.scan(key, ScanKind.INT64, ScanKind.INT64, ScanKind.BYTES) == (
        100,
        200,
        bytes([0, 0, 0, 0, 0, 0, 1, 144]),
    )
    assert kf.key(100, 200) == bytes(
        [ord("e"), 0, 0, 0, 0, 0, 0, 0, 100, 0, 0, 0, 0, 0, 0, 0, 200]
    )


def test_negative_keys():
    kf = KeyFormat(b"e", 8, 8)
    a, b = -100, -200
    key = bytes(
        [ord("e")]
        + [0xFF] * 7
        + [0xFF + a + 1]
        + [0xFF] * 7
        + [0xFF + b + 1]
    )
    assert kf.key(a, b) == key
    assert kf.scan(key, ScanKind.INT64, ScanKind.INT64) == (a, b)


def test_overflow():
    kf = KeyFormat(b"o", 8, 8)
    a = 1 << 62
    b = 1 << 63
    key = bytes([ord("o"), 0x40, 0, 0, 0, 0, 0, 0, 0, 0x80, 0, 0, 0, 0, 0, 0, 0])
    assert kf.key(a, b) == key
    assert kf.scan(key, ScanKind.INT64, ScanKind.INT64) == (a, -(1 << 63))
    assert kf.scan(key, ScanKind.INT64, ScanKind.UINT64) == (a, b)


def test_zero_width_must_be_last():
    with pytest.raises(ValueError):
        KeyFormat(b"e", 8, 0, 8)


def test_segment_longer_than_layout_is_rejected():
    kf = KeyFormat(b"e", 4)
    with pytest.raises(ValueError):
        kf.key_bytes(bytes(5))


def test_too_many_args_is_rejected():
    kf = KeyFormat(b"e", 8)
    with pytest.raises(ValueError):
        kf.key(1, 2)
    with pytest.raises(ValueError):
        kf.key_bytes(b"a", b"b")


def test_unsupported_type_is_rejected():
    kf = KeyFormat(b"e", 8)
    with pytest.raises(TypeError):
        kf.key(1.5)


def test_scan_more_kinds_than_segments():
    kf = KeyFormat(b"e", 8, 8)
    key = kf.key(7)
    with pytest.raises(ValueError):
        kf.scan(key, ScanKind.INT64, ScanKind.INT64)


def test_scan_bytes_drops_missing_segments():
    kf = KeyFormat(b"e", 8, 8, 8)
    key = kf.key(1, 2)
    segments = kf.scan_bytes(key)
    assert len(segments) == 2
    assert kf.key_bytes(*segments) == key


def test_unbounded_scan_returns_rest_of_key():
    kf = KeyFormat(b"e", 8, 0)
    key = kf.key(3, b"hellohello")
    assert kf.scan(key, ScanKind.UINT64, ScanKind.BYTES) == (3, b"hellohello")


def test_four_byte_segment_round_trip():
    kf = KeyFormat(b"n", 8, 4)
    key = kf.key(9, -1)
    assert len(key) == kf.length()
    assert kf.scan(key, ScanKind.INT64, ScanKind.INT32) == (9, -1)
    assert kf.scan(key, ScanKind.INT64, ScanKind.UINT32) == (9, 0xFFFFFFFF)


def test_length_and_prefix():
    kf = KeyFormat(b"e", 8, 16, 32)
    assert kf.length() == 57
    assert kf.prefix() == "e"
    assert kf.key() == b"e"


def test_fast_prefix_formatter_key_pads_and_truncates():
    fmt = FastPrefixFormatter(b"f", 4)
    assert fmt.key(b"\x01\x02") == b"f\x01\x02\x00\x00"
    assert fmt.key(b"\x01\x02\x03\x04\x05") == b"f\x01\x02\x03\x04"
    assert fmt.length() == 5
    assert fmt.prefix() == b"f"


def test_fast_prefix_formatter_int64_round_trip():
    fmt = FastPrefixFormatter(b"s", 8)
    key = fmt.key_int64(-5)
    assert len(key) == fmt.length()
    assert fmt.scan(key, ScanKind.INT64) == -5
    assert fmt.scan(fmt.key(b"abc"), ScanKind.BYTES) == b"abc" + bytes(5)


def test_fast_prefix_formatter_int64_needs_room():
    fmt = FastPrefixFormatter(b"s", 4)
    with pytest.raises(ValueError):
        fmt.key_int64(1)
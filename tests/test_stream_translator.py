from io import BytesIO
import time
import os

import lz4.block
import pytest

from lz4_java_translator.block_header import COMPRESSION_METHOD_RAW, MAGIC_AND_HEADER_LENGTH
from lz4_java_translator.errors import InvalidMagic, InvalidLength, DecompressionFailure, ChecksumMismatch
from lz4_java_translator.stream_translator import (
    decompress_block,
    decompress_frame,
    iter_blocks,
    iter_decompressed_segments,
    lz4_java_checksum,
    translate,
    translate_stream,
)

from lz4_java_blocks import block_bytes, make_block, end_block, make_stream


CHUNKS = [
    b'Lorem ipsum dolor sit amet, ' * 200,
    os.urandom(3000),
    b'\x00' * 65536,
    b'x',
]


class CountingDecompressor:

    def __init__(self):
        self.calls = 0

    def __call__(self, frame):
        self.calls += 1
        return decompress_frame(frame)


def test_round_trip():
    assert translate(make_stream(*CHUNKS)) == b''.join(CHUNKS)


def test_empty_input():
    assert translate(b'') == b''


def test_only_end_block():
    decompressor = CountingDecompressor()

    assert translate(end_block(), decompressor) == b''
    assert decompressor.calls == 0


def test_two_blocks_scenario():
    payload = lz4.block.compress(b'ABC', store_size = False)
    buffer = block_bytes(0x26, payload, 3, lz4_java_checksum(b'ABC')) + block_bytes(0x26, b'', 0, 0)
    decompressor = CountingDecompressor()

    assert translate(buffer, decompressor) == b'ABC'
    assert decompressor.calls == 1


def test_zero_length_blocks_contribute_nothing():
    buffer = end_block() + make_block(b'middle') + end_block() + end_block()

    assert translate(buffer) == b'middle'


def test_segments_are_yielded_in_order():
    segments = list(iter_decompressed_segments(make_stream(b'one', b'two', b'three')))

    assert segments == [b'one', b'two', b'three']


def test_offsets_strictly_increase():
    buffer = make_stream(*CHUNKS) + end_block()

    offsets = [header.offset for header in iter_blocks(buffer)]

    assert offsets[0] == 0
    assert all(a < b for a, b in zip(offsets, offsets[1:]))
    assert len(offsets) <= len(buffer) // MAGIC_AND_HEADER_LENGTH


def test_invalid_magic_aborts_translation():
    first = make_block(b'valid block')
    buffer = first + b'XXXXXXXX' + make_block(b'never seen')[8:]
    decompressor = CountingDecompressor()

    with pytest.raises(InvalidMagic) as error:
        translate(buffer, decompressor)

    assert error.value.offset == len(first)


def test_trailing_garbage_is_rejected():
    with pytest.raises(InvalidMagic):
        translate(make_stream(b'data') + b'\x00\x01')


def test_truncated_stream():
    with pytest.raises(InvalidLength):
        translate(make_stream(b'abcdefgh' * 100)[:-30])


def test_decompression_failure():
    corrupted = block_bytes(0x26, b'\x1fA\x00\x00', 20, 0)
    buffer = make_block(b'fine') + corrupted

    with pytest.raises(DecompressionFailure) as error:
        translate(buffer)

    assert error.value.offset == len(make_block(b'fine'))


def test_decompressor_errors_are_wrapped():
    def failing_decompressor(frame):
        raise RuntimeError('broken')

    with pytest.raises(DecompressionFailure) as error:
        translate(make_stream(b'data'), failing_decompressor)

    assert isinstance(error.value.__cause__, RuntimeError)
    assert error.value.offset == 0


def test_raw_block_round_trip():
    data = os.urandom(100)
    buffer = make_block(b'compressed ' * 10) + make_block(data, method = COMPRESSION_METHOD_RAW) + end_block()

    assert translate(buffer) == b'compressed ' * 10 + data


def test_checksums_verified_on_request():
    buffer = make_stream(*CHUNKS)

    assert translate(buffer, verify_checksums = True) == b''.join(CHUNKS)


def test_wrong_checksum_ignored_by_default():
    buffer = make_block(b'payload', checksum = 1234) + end_block()

    assert translate(buffer) == b'payload'


def test_wrong_checksum_detected():
    buffer = make_block(b'payload', checksum = 1234) + end_block()

    with pytest.raises(ChecksumMismatch):
        translate(buffer, verify_checksums = True)


def test_wrong_uncompressed_length_detected():
    buffer = make_block(b'payload', uncompressed_length = 8) + end_block()

    with pytest.raises(ChecksumMismatch):
        translate(buffer, verify_checksums = True)


def test_decompress_block_skips_empty_block():
    header = next(iter_blocks(end_block()))
    decompressor = CountingDecompressor()

    assert decompress_block(header, decompressor, verify_checksums = True) == b''
    assert decompressor.calls == 0


def test_parallel_translation_keeps_order():
    chunks = [bytes([index]) * (1000 + index) + os.urandom(50) for index in range(40)]
    buffer = make_stream(*chunks)

    assert translate(buffer, jobs = 4) == translate(buffer) == b''.join(chunks)


def test_parallel_translation_propagates_errors():
    buffer = make_stream(b'a' * 100, b'b' * 100) + b'broken!!'

    with pytest.raises(InvalidMagic):
        translate(buffer, jobs = 4)


def test_stream_translation_matches_buffer():
    buffer = make_stream(*CHUNKS)

    assert translate_stream(BytesIO(buffer)) == translate(buffer)


def test_stream_translation_truncated():
    with pytest.raises(InvalidLength):
        translate_stream(BytesIO(make_stream(b'abcdefgh' * 100)[:-30]))


def test_compressible_block_fully_decoded():
    assert translate(make_stream(b'\x00' * 65536)) == b'\x00' * 65536
    assert translate(make_stream(bytes(range(256)) * 64)) == bytes(range(256)) * 64


def test_block_above_frame_size_class():
    data = b'\x00' * (6 * 1024 * 1024) + b'tail'
    buffer = make_block(data, level = 13) + end_block()

    assert translate(buffer, verify_checksums = True) == data


def test_raw_block_above_frame_size_class():
    data = os.urandom(5 * 1024 * 1024)
    buffer = make_block(data, method = COMPRESSION_METHOD_RAW, level = 13) + end_block()

    assert translate(buffer) == data


def test_parallel_translation_stops_after_failure():
    decoded_frames = []

    def decompressor(frame):
        decoded = decompress_frame(frame)
        decoded_frames.append(decoded)
        if decoded == b'first':
            raise RuntimeError('broken')
        time.sleep(0.05)
        return decoded

    buffer = make_stream(b'first', *[bytes([index]) * 100 for index in range(40)])

    with pytest.raises(DecompressionFailure):
        translate(buffer, decompressor, jobs = 2)

    assert len(decoded_frames) < 10

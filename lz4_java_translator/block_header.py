#!/usr/bin/env python3
#-*- encoding: Utf-8 -*-
from ctypes import LittleEndianStructure, c_uint8, c_int32, sizeof
from typing import BinaryIO, Tuple, Union
import logging

from lz4_java_translator.errors import InvalidMagic, InvalidLength, TruncatedInput

"""
    This file contains a decoder for the block headers written by the
    LZ4BlockOutputStream class of the jpountz/lz4-java library [1].

    A stream is a plain succession of blocks, without any global header:

    +----------+-------+-------------------+---------------------+----------+---------------------+
    | LZ4Block | token | compressed length | uncompressed length | checksum | payload             |
    | 8 bytes  | 1     | 4 (LE)            | 4 (LE)              | 4 (LE)   | "compressed length" |
    +----------+-------+-------------------+---------------------+----------+---------------------+

    The stream is terminated by an empty block (both lengths set to zero),
    written when the Java output stream gets closed.

    [1] https://github.com/lz4/lz4-java/blob/master/src/java/net/jpountz/lz4/LZ4BlockOutputStream.java
"""

LZ4_JAVA_MAGIC = b'LZ4Block'

COMPRESSION_METHOD_RAW = 0x10
COMPRESSION_METHOD_LZ4 = 0x20

COMPRESSION_LEVEL_BASE = 10


class LZ4JavaBlockHeader(LittleEndianStructure):

    _pack_ = True
    _fields_ = [
        ('token', c_uint8), # Compression method (high nibble) and level (low nibble)
        ('compressed_length', c_int32),
        ('uncompressed_length', c_int32),
        ('checksum', c_int32) # XXH32 of the uncompressed contents, masked to 28 bits
    ]

    offset : int = 0 # Position of the magic in the input
    payload : bytes = b''

    @property
    def payload_offset(self) -> int:
        return self.offset + MAGIC_AND_HEADER_LENGTH

    @property
    def next_offset(self) -> int:
        return self.payload_offset + self.compressed_length

    @property
    def compression_method(self) -> int:
        return self.token & 0xF0

    @property
    def compression_level(self) -> int:
        return self.token & 0x0F

    @property
    def max_block_size(self) -> int:
        return 1 << (COMPRESSION_LEVEL_BASE + self.compression_level)


HEADER_LENGTH = sizeof(LZ4JavaBlockHeader) # 13 bytes

MAGIC_AND_HEADER_LENGTH = len(LZ4_JAVA_MAGIC) + HEADER_LENGTH # 21 bytes


"""
    Compare the bytes found at a given offset with the
    "LZ4Block" magic, one byte after the other.
"""

def check_magic(buffer : bytes, offset : int, base_offset : int = 0):

    found = bytes(buffer[offset:offset + len(LZ4_JAVA_MAGIC)])

    for index, byte in enumerate(found):
        if byte != LZ4_JAVA_MAGIC[index]:
            raise InvalidMagic(found, index, base_offset + offset)

    if len(found) < len(LZ4_JAVA_MAGIC):
        raise TruncatedInput('Input ends within the block magic', base_offset + offset)


"""
    Decode the block starting at "offset" (which should point to
    the "LZ4Block" magic) in the given buffer.

    :param base_offset: Added to offsets reported in the header and errors,
        when "buffer" is only a window over a larger input.

    :returns A tuple of the decoded header (whose "payload" attribute
        holds the compressed payload) and the offset of the next block.
"""

def decode_block_header(buffer : Union[bytes, bytearray, memoryview], offset : int,
    base_offset : int = 0) -> Tuple[LZ4JavaBlockHeader, int]:

    check_magic(buffer, offset, base_offset)

    header_start = offset + len(LZ4_JAVA_MAGIC)
    payload_start = header_start + HEADER_LENGTH

    if payload_start > len(buffer):
        raise TruncatedInput('Input ends within the block header (%d bytes missing)' % (
            payload_start - len(buffer)), base_offset + offset)

    header = LZ4JavaBlockHeader.from_buffer_copy(buffer[header_start:payload_start])
    header.offset = base_offset + offset

    if header.compressed_length < 0:
        raise InvalidLength('Negative compressed length (%d)' % header.compressed_length, header.offset)

    if header.uncompressed_length < 0:
        raise InvalidLength('Negative uncompressed length (%d)' % header.uncompressed_length, header.offset)

    payload_end = payload_start + header.compressed_length

    if payload_end > len(buffer):
        raise InvalidLength('Compressed length %d exceeds the %d bytes left in the input' % (
            header.compressed_length, len(buffer) - payload_start), header.offset)

    header.payload = bytes(buffer[payload_start:payload_end])

    return header, offset + MAGIC_AND_HEADER_LENGTH + header.compressed_length


"""
    Read the next block from a binary file object, "position"
    being the current offset in the stream (for error messages).

    :returns The decoded header, or None at the end of the stream.
"""

def read_block(stream : BinaryIO, position : int = 0) -> LZ4JavaBlockHeader:

    magic_and_header = stream.read(MAGIC_AND_HEADER_LENGTH)

    if not magic_and_header:
        return None

    if len(magic_and_header) < MAGIC_AND_HEADER_LENGTH:
        decode_block_header(magic_and_header, 0, position) # Raises the adequate error

    # Peek at the compressed length so that the payload can be read
    # before the actual decoding

    check_magic(magic_and_header, 0, position)

    compressed_length = LZ4JavaBlockHeader.from_buffer_copy(
        magic_and_header[len(LZ4_JAVA_MAGIC):]).compressed_length

    payload = stream.read(compressed_length) if compressed_length > 0 else b''

    header, next_offset = decode_block_header(magic_and_header + payload, 0, position)

    logging.debug('[+] Read block at offset 0x%08x (%d bytes)' % (position, next_offset))

    return header

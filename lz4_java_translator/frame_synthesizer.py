#!/usr/bin/env python3
#-*- encoding: Utf-8 -*-
from ctypes import LittleEndianStructure, c_uint8, c_uint32
from enum import IntEnum, IntFlag
import xxhash

from lz4_java_translator.block_header import LZ4JavaBlockHeader, COMPRESSION_METHOD_RAW

"""
    This file wraps the payload of a single lz4-java block into a
    minimal frame of the standard LZ4 format [1] (magic 0x184D2204),
    so that it can be handed over to a regular LZ4 frame decoder.

    The frame carries no content size, no content checksum, no block
    checksum and no dictionary: only the frame descriptor, its header
    checksum and a single data block.

    [1] https://github.com/lz4/lz4/blob/dev/doc/lz4_Frame_format.md
"""

LZ4_FRAME_MAGIC = 0x184D2204


class FrameFlag(IntFlag):
    VERSION = 0x40 # Version number "01" in bits 7-6
    BLOCK_INDEPENDENCE = 0x20
    BLOCK_CHECKSUM = 0x10
    CONTENT_SIZE = 0x08
    CONTENT_CHECKSUM = 0x04
    DICTIONARY_ID = 0x01

class BlockMaxSize(IntEnum):
    KB64 = 4
    KB256 = 5
    MB1 = 6
    MB4 = 7


FRAME_FLAGS = int(FrameFlag.VERSION | FrameFlag.BLOCK_INDEPENDENCE)

# The real size of the block is known from the lz4-java header, so
# advertise the largest block size class
BLOCK_DESCRIPTOR = int(BlockMaxSize.MB4) << 4

MAX_FRAME_BLOCK_SIZE = 1 << (8 + 2 * BlockMaxSize.MB4) # 4 MB

UNCOMPRESSED_BLOCK_FLAG = 0x80000000 # Highest bit of the block size field


class LZ4FrameHeader(LittleEndianStructure):

    _pack_ = True
    _fields_ = [
        ('magic', c_uint32),
        ('flags', c_uint8), # FLG byte
        ('block_descriptor', c_uint8), # BD byte
        ('header_checksum', c_uint8), # HC byte
        ('block_size', c_uint32) # Size of the (single) data block that follows
    ]


def hash32(data : bytes, seed : int = 0) -> int:

    return xxhash.xxh32(data, seed = seed).intdigest()


"""
    Compute the frame header checksum: the second byte of the
    XXH32 hash of the frame descriptor.
"""

def header_checksum(descriptor : bytes, seed : int = 0) -> int:

    return (hash32(descriptor, seed) >> 8) & 0xFF


"""
    Build the LZ4 frame for a decoded lz4-java block.

    :param header: The decoded block header.
    :param payload: The compressed payload (defaults to "header.payload").

    :returns The bytes of a standard LZ4 frame holding a single block.
"""

def synthesize_frame(header : LZ4JavaBlockHeader, payload : bytes = None) -> bytes:

    if payload is None:
        payload = header.payload

    frame_header = LZ4FrameHeader()
    frame_header.magic = LZ4_FRAME_MAGIC
    frame_header.flags = FRAME_FLAGS
    frame_header.block_descriptor = BLOCK_DESCRIPTOR
    frame_header.header_checksum = header_checksum(bytes([FRAME_FLAGS, BLOCK_DESCRIPTOR]))
    frame_header.block_size = header.compressed_length

    if header.compression_method == COMPRESSION_METHOD_RAW: # Stored as-is by lz4-java, because incompressible
        frame_header.block_size |= UNCOMPRESSED_BLOCK_FLAG

    return bytes(frame_header) + bytes(payload)

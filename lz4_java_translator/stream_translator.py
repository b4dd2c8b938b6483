#!/usr/bin/env python3
#-*- encoding: Utf-8 -*-
from concurrent.futures import ThreadPoolExecutor
from typing import BinaryIO, Callable, Iterator, List
from functools import partial
import lz4.frame
import lz4.block
import xxhash
import logging

from lz4_java_translator.block_header import LZ4JavaBlockHeader, COMPRESSION_METHOD_RAW, decode_block_header, read_block
from lz4_java_translator.frame_synthesizer import synthesize_frame, MAX_FRAME_BLOCK_SIZE
from lz4_java_translator.errors import TranslationError, DecompressionFailure, ChecksumMismatch

"""
    This file contains a translator turning the stream written by
    the lz4-java library (a succession of "LZ4Block" blocks) into
    its decompressed contents.

    Each block is wrapped into a standard LZ4 frame which is
    decompressed with the "lz4" python package, then the outputs
    of every block are concatenated in their original order.
"""

# Seed of the XXH32 checksums written by lz4-java's LZ4BlockOutputStream
LZ4_JAVA_CHECKSUM_SEED = 0x9747B28C

LZ4_JAVA_CHECKSUM_MASK = 0x0FFFFFFF

LZ4_FRAME_END_MARK = b'\x00\x00\x00\x00'


"""
    Decompress a single standard LZ4 frame. The frames built by
    synthesize_frame() have no end mark, which is appended here so
    that the decoder flushes the whole block.
"""

def decompress_frame(frame : bytes) -> bytes:

    return lz4.frame.decompress(frame + LZ4_FRAME_END_MARK)


"""
    Decompress a block too large for the biggest frame block size
    class (lz4-java levels above 12 allow blocks up to 32 MB), going
    straight through the block API.
"""

def decompress_oversized_block(header : LZ4JavaBlockHeader) -> bytes:

    if header.compression_method == COMPRESSION_METHOD_RAW:
        return bytes(header.payload)

    return lz4.block.decompress(header.payload, uncompressed_size = header.uncompressed_length)


def lz4_java_checksum(data : bytes) -> int:

    return xxhash.xxh32(data, seed = LZ4_JAVA_CHECKSUM_SEED).intdigest() & LZ4_JAVA_CHECKSUM_MASK


def verify_block(header : LZ4JavaBlockHeader, decoded : bytes):

    if len(decoded) != header.uncompressed_length:
        raise ChecksumMismatch('Decompressed %d bytes where %d were expected' % (
            len(decoded), header.uncompressed_length), header.offset)

    checksum = lz4_java_checksum(decoded)

    if checksum != header.checksum & 0xFFFFFFFF:
        raise ChecksumMismatch('Content checksum 0x%08x differs from stored checksum 0x%08x' % (
            checksum, header.checksum & 0xFFFFFFFF), header.offset)


"""
    Scan the block boundaries of an in-memory lz4-java stream.
"""

def iter_blocks(buffer : bytes) -> Iterator[LZ4JavaBlockHeader]:

    offset = 0

    while offset < len(buffer):

        header, offset = decode_block_header(buffer, offset)

        yield header


"""
    Decompress the payload of a single decoded block.

    :param decompressor: A function turning a standard LZ4 frame
        into decompressed bytes.
    :param verify_checksums: Check the decompressed size and the
        XXH32 content checksum against the block header.
"""

def decompress_block(header : LZ4JavaBlockHeader,
    decompressor : Callable[[bytes], bytes] = decompress_frame,
    verify_checksums : bool = False) -> bytes:

    if header.compressed_length == 0: # End of stream marker, nothing to decompress
        return b''

    try:
        if max(header.compressed_length, header.uncompressed_length) > MAX_FRAME_BLOCK_SIZE:
            decoded = decompress_oversized_block(header)
        else:
            decoded = decompressor(synthesize_frame(header))

    except TranslationError:
        raise

    except Exception as error:
        raise DecompressionFailure('Could not decompress block: %s' % error, header.offset) from error

    logging.debug('[+] Block at offset 0x%08x: %d -> %d bytes' % (
        header.offset, header.compressed_length, len(decoded)))

    if verify_checksums:
        verify_block(header, decoded)

    return decoded


"""
    Lazily yield the decompressed contents of each block
    of an in-memory lz4-java stream, in order (empty blocks
    yield nothing).
"""

def iter_decompressed_segments(buffer : bytes,
    decompressor : Callable[[bytes], bytes] = decompress_frame,
    verify_checksums : bool = False) -> Iterator[bytes]:

    for header in iter_blocks(buffer):

        if header.compressed_length > 0:

            yield decompress_block(header, decompressor, verify_checksums)


"""
    Turn a whole in-memory lz4-java stream into its decompressed
    contents.

    :param jobs: When greater than 1, first scan every block
        boundary, then decompress the blocks over this many threads.

    :returns The concatenated contents of every block. Nothing is
        returned if any block is invalid (an exception is raised).
"""

def translate(buffer : bytes,
    decompressor : Callable[[bytes], bytes] = decompress_frame,
    verify_checksums : bool = False, jobs : int = 1) -> bytes:

    if jobs <= 1:

        output = b''.join(iter_decompressed_segments(buffer, decompressor, verify_checksums))

    else:

        headers : List[LZ4JavaBlockHeader] = [
            header for header in iter_blocks(buffer)
            if header.compressed_length > 0
        ]

        logging.debug('[+] Found %d non-empty blocks, decompressing them over %d threads' % (len(headers), jobs))

        with ThreadPoolExecutor(max_workers = jobs) as executor:

            try:
                output = b''.join(executor.map(partial(decompress_block,
                    decompressor = decompressor, verify_checksums = verify_checksums), headers))

            except TranslationError:
                executor.shutdown(cancel_futures = True) # Do not decode the blocks still queued
                raise

    logging.debug('[+] Decompressed %d bytes into %d bytes' % (len(buffer), len(output)))

    return output


"""
    Same as translate(), but reading blocks one after the
    other from a binary file object.
"""

def translate_stream(stream : BinaryIO,
    decompressor : Callable[[bytes], bytes] = decompress_frame,
    verify_checksums : bool = False) -> bytes:

    segments : List[bytes] = []
    position = 0

    while True:

        header = read_block(stream, position)

        if header is None:
            break

        if header.compressed_length > 0:
            segments.append(decompress_block(header, decompressor, verify_checksums))

        position = header.next_offset

    return b''.join(segments)

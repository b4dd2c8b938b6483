#!/usr/bin/env python3
#-*- encoding: Utf-8 -*-

"""
    Exceptions raised while turning a lz4-java "LZ4Block" stream
    into decompressed data.

    Every error is a deterministic consequence of the input bytes
    (or of the destination file system), so none of them is ever
    retried: the first one aborts the whole translation.
"""

class TranslationError(Exception):

    def __init__(self, message : str, offset : int = None):

        if offset is not None:
            message = '%s (block at offset 0x%08x)' % (message, offset)

        super().__init__(message)

        self.offset = offset


class FormatError(TranslationError, ValueError):
    pass

class InvalidMagic(FormatError):

    def __init__(self, found : bytes, mismatch_index : int, offset : int):

        super().__init__('Invalid magic %r, byte %d differs from %r' % (
            found, mismatch_index, b'LZ4Block'), offset)

        self.found = found
        self.mismatch_index = mismatch_index

class InvalidLength(FormatError):
    pass

class TruncatedInput(FormatError):
    pass


class DecompressionFailure(TranslationError):
    pass

class ChecksumMismatch(TranslationError):
    pass


class DestinationExists(TranslationError, FileExistsError):

    def __init__(self, path : str):

        super().__init__('File "%s" already exists, aborting!' % path)

        self.path = path

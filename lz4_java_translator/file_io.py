#!/usr/bin/env python3
#-*- encoding: Utf-8 -*-
from os.path import abspath, basename, dirname, exists
from tempfile import NamedTemporaryFile
from os import link, unlink
import logging

from lz4_java_translator.stream_translator import translate
from lz4_java_translator.errors import DestinationExists

"""
    Reading lz4-java streams from files or buffers, and writing
    their decompressed contents without ever overwriting an
    existing file or leaving a partially written one behind.
"""

LZ4_EXTENSION = '.lz4'


def read_input(data : bytes = None, src : str = None) -> bytes:

    if data is not None:
        return data

    if src is not None:
        with open(src, 'rb') as input_file:
            return input_file.read()

    raise ValueError('You must supply either a buffer "data" or a file name "src".')


"""
    Write "output" to "dst" in a single step: the contents are first
    written to a temporary file of the same directory, which is then
    hard-linked to its final name (this fails if "dst" exists).
    Without hard links, fall back to an exclusive creation of "dst".
"""

def write_output(dst : str, output : bytes):

    if exists(dst):
        raise DestinationExists(dst)

    with NamedTemporaryFile(dir = dirname(abspath(dst)), prefix = '.' + basename(dst) + '.',
        delete = False) as temporary_file:

        try:
            temporary_file.write(output)
            temporary_file.flush()

        except OSError:
            temporary_file.close()
            unlink(temporary_file.name)
            raise

    try:
        link(temporary_file.name, dst)

    except FileExistsError:
        raise DestinationExists(dst)

    except OSError: # No hard links on this file system (vfat, some FUSE mounts...)
        write_exclusive(dst, output)

    finally:
        unlink(temporary_file.name)

    logging.info('[+] Wrote %d bytes to "%s"' % (len(output), dst))


"""
    Create "dst" exclusively and write "output" to it, removing
    it again if the write fails.
"""

def write_exclusive(dst : str, output : bytes):

    try:
        destination = open(dst, 'xb')

    except FileExistsError:
        raise DestinationExists(dst)

    try:
        with destination:
            destination.write(output)

    except OSError:
        unlink(dst)
        raise


def output_path_for(src : str) -> str:

    if not src.endswith(LZ4_EXTENSION):
        raise ValueError('Refusing to decompress "%s" as it doesn\'t end with "%s"' % (src, LZ4_EXTENSION))

    return src[:-len(LZ4_EXTENSION)]


"""
    Decompress a lz4-java stream.

    :param data: The stream contents, or...
    :param src: ...the path of a file containing the stream.
    :param dst: If set, write the decompressed contents to this path,
        which must not exist yet.
    :param options: Keyword arguments for translate() ("decompressor",
        "verify_checksums", "jobs").

    :returns The decompressed contents.
"""

def uncompress(data : bytes = None, src : str = None, dst : str = None, **options) -> bytes:

    if dst is not None and exists(dst):
        raise DestinationExists(dst)

    output = translate(read_input(data, src), **options)

    if dst is not None:
        write_output(dst, output)

    return output

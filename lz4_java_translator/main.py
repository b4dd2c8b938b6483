#!/usr/bin/env python3
#-*- encoding: Utf-8 -*-
from argparse import ArgumentParser
from typing import List
from sys import stdout
import logging

from lz4_java_translator.file_io import uncompress, read_input, output_path_for
from lz4_java_translator.stream_translator import iter_blocks
from lz4_java_translator.errors import TranslationError, DestinationExists
from lz4_java_translator.utils.pretty_print import pretty_print_header, pretty_print_blocks


def parse_args(argv : List[str] = None):

    args = ArgumentParser(description = 'Decompress files written by the ' +
        'LZ4BlockOutputStream class of the Java "lz4-java" library ' +
        '(blocks starting with the "LZ4Block" magic)')

    args.add_argument('input_files', nargs = '+', help = 'Paths to the ' +
        'compressed files. Unless --output is given, each of them must end ' +
        'with ".lz4" and is decompressed next to itself, without this extension')

    args.add_argument('-o', '--output', help = 'Destination file (only ' +
        'valid with a single input file)', metavar = 'DEST')

    args.add_argument('--verify-checksums', action = 'store_true', help = 'Check ' +
        'the size and XXH32 checksum of each decompressed block against ' +
        'its header')

    args.add_argument('--jobs', help = 'Decompress blocks over this number ' +
        'of threads (default: 1)', type = int, default = 1, metavar = 'N')

    args.add_argument('--list', action = 'store_true', help = 'Print the block ' +
        'headers of each input file rather than decompressing it')

    args.add_argument('-v', '--verbose', action = 'store_true', help = 'Log ' +
        'every decompressed block')

    parsed = args.parse_args(argv)

    if parsed.output and len(parsed.input_files) > 1:
        args.error('Only one file can be supplied with "--output".')

    if parsed.jobs < 1:
        args.error('"--jobs" must be at least 1.')

    return parsed


"""
    Decompress (or list) a single input file.

    :returns True on success.
"""

def process_file(file_name : str, output_file : str, args) -> bool:

    if not args.list and output_file is None:

        try:
            output_file = output_path_for(file_name)

        except ValueError as error:
            logging.error('[!] %s' % error)
            return False

    try:

        if args.list:

            pretty_print_header(file_name)
            pretty_print_blocks(list(iter_blocks(read_input(src = file_name))))

            return True

        logging.info('Decompressing "%s"' % file_name)

        uncompress(src = file_name, dst = output_file,
            verify_checksums = args.verify_checksums, jobs = args.jobs)

    except DestinationExists as error:

        logging.error('[!] %s' % error)
        return False

    except (TranslationError, OSError) as error:

        logging.error('[!] Could not decompress "%s": %s' % (file_name, error))
        return False

    return True


def main(argv : List[str] = None) -> int:

    args = parse_args(argv)

    logging.basicConfig(stream=stdout, level=logging.DEBUG if args.verbose else logging.INFO, format='%(message)s')

    success = True

    for file_name in args.input_files:

        if not process_file(file_name, args.output, args):
            success = False

    return 0 if success else 1


if __name__ == '__main__':

    exit(main())

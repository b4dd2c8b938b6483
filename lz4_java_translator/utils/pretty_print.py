#!/usr/bin/env python3
#-*- encoding: Utf-8 -*-
from collections import OrderedDict
from typing import List

from lz4_java_translator.block_header import LZ4JavaBlockHeader, COMPRESSION_METHOD_RAW, COMPRESSION_METHOD_LZ4


"""
    Pretty print a file name in an ASCII rectangle.

    :param header_text: The file name.
"""

def pretty_print_header(header_text):

    max_text_length = max(len(header_text), 72)

    print()

    print('+-%s-+' % ('-' * max_text_length))

    print('| %s |' % header_text.ljust(max_text_length))

    print('+-%s-+' % ('-' * max_text_length))


compression_method_names = {
    COMPRESSION_METHOD_RAW: 'RAW',
    COMPRESSION_METHOD_LZ4: 'LZ4'
}


"""
    Turn a decoded block header into a dict of human-readable
    key-value pairs, for displayal in ASCII tables

    :param header: A LZ4JavaBlockHeader to consume.

    :returns An OrderedDict of strings/strings.
"""

def structure_to_key_values_strings(header : LZ4JavaBlockHeader):

    key_values = OrderedDict()

    key_values['Offset'] = '0x%08x' % header.offset

    for key, ctype in header._fields_:

        value = getattr(header, key)

        # Turn "key_name" into "Key name"

        pretty_key = key[0].upper() + key[1:]
        pretty_key = pretty_key.replace('_', ' ')

        if key == 'token':

            key_values[pretty_key] = '0x%02x' % value

            key_values['Method'] = compression_method_names.get(header.compression_method, '0x%02x ?' % header.compression_method)

        elif key == 'checksum':

            key_values[pretty_key] = '0x%08x' % (value & 0xFFFFFFFF)

        else: # Lengths

            key_values[pretty_key] = str(value)

    return key_values


"""
    Print an ASCII table from a list of block headers, with field names
    as row 1 and values as further rows.
"""

def pretty_print_blocks(headers : List[LZ4JavaBlockHeader]):

    if headers:

        key_values_pairs = [
            structure_to_key_values_strings(header)

            for header in headers
        ]

        pretty_print_table(
            [list(key_values_pairs[0].keys())] + # Row 1: field names

            [list(key_values.values()) for key_values in key_values_pairs] # Rows 2+: field values
        )


"""
    Print an ascii table from a list (rows) of list (columns) of strings (cells)
"""

def pretty_print_table(rows):

    # Calculate columns length

    number_of_columns = len(rows[0])

    column_to_max_length = [

        max(len(row[column]) for row in rows)

        for column in range(number_of_columns)
    ]

    separator = '+-%s-+' % '-+-'.join('-' * max_len for max_len in column_to_max_length)

    print(separator)

    for row in rows:

        print('| %s |' % ' | '.join(

            row[column].rjust(column_to_max_length[column])

            for column in range(number_of_columns))
        )

        print(separator)

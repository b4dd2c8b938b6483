#!/usr/bin/env python3
#-*- encoding: Utf-8 -*-
from lz4_java_translator.errors import TranslationError, FormatError, InvalidMagic, InvalidLength, TruncatedInput, DecompressionFailure, ChecksumMismatch, DestinationExists
from lz4_java_translator.block_header import LZ4JavaBlockHeader, decode_block_header, read_block
from lz4_java_translator.frame_synthesizer import synthesize_frame, header_checksum
from lz4_java_translator.stream_translator import translate, translate_stream, iter_decompressed_segments, iter_blocks
from lz4_java_translator.file_io import uncompress

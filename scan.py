#!/usr/bin/env python3
"""
Barcode / data column scanner
Usage: python3 scan.py <image_path> [--formats=QR_CODE,EAN_13] [--try-harder] [--multi] [--debug] [--verbose]
"""

import os
import sys

import scan_config
from scan_types import DecodeHintType, parse_formats
from binary_bitmap import BinaryBitmap
from multi_reader import MultiFormatReader, only_multi_formats
from reader_errors import ReaderError


def make_hints(formats=None, try_harder=False):
    """Hints mapping from CLI / form values. None when nothing was asked for."""
    hints = {}
    if formats:
        hints[DecodeHintType.POSSIBLE_FORMATS] = parse_formats(formats)
    if try_harder:
        hints[DecodeHintType.TRY_HARDER] = True
    return hints or None


def decode_bitmap(bitmap, hints=None, multi=False, reader=None):
    """Decode a bitmap. Returns a list of Results; raises NotFoundError when nothing decodes."""
    reader = reader or MultiFormatReader()
    if multi:
        reader.configure(hints)
        return reader.decode_multi_with_configuration(bitmap)
    return [reader.decode(bitmap, hints)]


def decode_file(image_path, hints=None, multi=False):
    """Load, binarize and decode an image file."""
    print("Loading image...")
    bitmap = BinaryBitmap.from_file(image_path)
    print(f"Decoding {bitmap.width}x{bitmap.height} bitmap...")
    try:
        results = decode_bitmap(bitmap, hints, multi)
    except ReaderError as e:
        if scan_config.DEBUG_DIR:
            from scan_debug import save_debug_all
            save_debug_all(scan_config.DEBUG_DIR, bitmap, error=e)
        raise
    if scan_config.DEBUG_DIR:
        from scan_debug import save_debug_all
        save_debug_all(scan_config.DEBUG_DIR, bitmap, results=results)
    return results


def main(argv):
    args = [a for a in argv if not a.startswith('--')]
    flags = [a for a in argv if a.startswith('--')]
    if not args:
        print(__doc__.strip())
        return 2
    path = args[0]

    formats = None
    for flag in flags:
        if flag.startswith('--formats='):
            formats = flag.split('=', 1)[1]

    if '--verbose' in flags:
        scan_config.VERBOSE = True
    if '--debug' in flags:
        base = os.path.splitext(os.path.basename(path))[0]
        scan_config.DEBUG_DIR = os.path.join(os.path.dirname(path) or '.', f"{base}_debug")
        os.makedirs(scan_config.DEBUG_DIR, exist_ok=True)
        print(f"Debug output -> {scan_config.DEBUG_DIR}/")

    try:
        hints = make_hints(formats, '--try-harder' in flags)
        multi = '--multi' in flags
        if not multi and only_multi_formats(hints):
            print("Warning: DATA_COLUMN_MULTI is only read with --multi; nothing else to try")
        results = decode_file(path, hints, multi=multi)
    except ValueError as e:
        print(f"Error: {e}")
        return 1
    for r in results:
        print(f"{r.format.name}: {r.text}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))

"""
MultiFormatReader: the main entry point for decoding a BinaryBitmap.

By default it tries every supported format. Hints narrow the formats or ask
it to try harder. For continuous scanning call configure() once and then
decode_with_configuration() per frame, so the reader list is not rebuilt
every time.
"""

import scan_config
from scan_types import (BarcodeFormat, DecodeHintType, LINEAR_FORMATS, MATRIX_FORMATS,
                     freeze_hints, hint)
from reader_errors import NotFoundError, ReaderError
from readers import DEFAULT_FACTORIES, ONE_D


def build_reader_lists(hints, factories=None):
    """
    Ordered single readers and multi readers for a hints snapshot.

    No formats: 1D first (last when trying harder), then every matrix format.
    With formats: only what was asked for, in the same fixed order.
    DATA_COLUMN_MULTI goes to the multi list and replaces the single
    DATA_COLUMN reader.
    """
    factories = factories or DEFAULT_FACTORIES
    try_harder = bool(hint(hints, DecodeHintType.TRY_HARDER, False))
    formats = hint(hints, DecodeHintType.POSSIBLE_FORMATS)
    readers, multi_readers = [], []

    if formats:
        add_one_d = bool(formats & LINEAR_FORMATS)
        # 1D up front in normal mode
        if add_one_d and not try_harder:
            readers.append(factories[ONE_D](hints))
        for fmt in MATRIX_FORMATS:
            if fmt in formats:
                readers.append(factories[fmt](hints))
        if BarcodeFormat.DATA_COLUMN_MULTI in formats:
            multi_readers.append(factories[BarcodeFormat.DATA_COLUMN_MULTI](hints))
        elif BarcodeFormat.DATA_COLUMN in formats:
            readers.append(factories[BarcodeFormat.DATA_COLUMN](hints))
        # at the end in try harder mode
        if add_one_d and try_harder:
            readers.append(factories[ONE_D](hints))
    else:
        if not try_harder:
            readers.append(factories[ONE_D](hints))
        for fmt in MATRIX_FORMATS:
            readers.append(factories[fmt](hints))
        if try_harder:
            readers.append(factories[ONE_D](hints))

    return readers, multi_readers


def only_multi_formats(hints):
    """True when the requested formats leave the single reader list empty."""
    formats = hint(hints, DecodeHintType.POSSIBLE_FORMATS)
    return bool(formats) and set(formats) <= {BarcodeFormat.DATA_COLUMN_MULTI}


class MultiFormatReader:
    """
    Fallback chain over format readers: the first reader that decodes wins.
    Not safe to share between threads; give each thread its own.
    """

    def __init__(self, factories=None):
        self.factories = factories
        self.hints = None
        self.readers = None
        self.multi_readers = None

    def configure(self, hints=None):
        """Snapshot the hints and rebuild the reader lists."""
        self.hints = freeze_hints(hints)
        self.readers, self.multi_readers = build_reader_lists(self.hints, self.factories)
        scan_config.log('READER', f"configured {len(self.readers)} readers, "
                                  f"{len(self.multi_readers)} multi readers")

    def decode(self, image, hints=None):
        """One-off decode: configure with these hints, then decode."""
        self.configure(hints)
        return self._decode_internal(image)

    def decode_with_configuration(self, image):
        """Decode with the readers from the last configure() (default ones if never configured)."""
        if self.readers is None:
            self.configure(None)
        return self._decode_internal(image)

    def decode_multi_with_configuration(self, image):
        """First multi reader that finds anything wins; results are not merged."""
        if self.multi_readers is None:
            self.configure(None)
        for reader in self.multi_readers:
            try:
                results = reader.decode_multiple(image, self.hints)
            except ReaderError as e:
                scan_config.log('READER', f"{reader!r}: {e}")
                continue
            if results:
                return list(results)
        raise NotFoundError("No codes found")

    def reset(self):
        for reader in self.readers or []:
            reader.reset()
        for reader in self.multi_readers or []:
            reader.reset()

    def _decode_internal(self, image):
        for reader in self.readers:
            try:
                return reader.decode(image, self.hints)
            except ReaderError as e:
                scan_config.log('READER', f"{reader!r}: {e}")
        raise NotFoundError("No codes found")

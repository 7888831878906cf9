"""
Format readers the dispatch engine chooses from.

Symbol decoding for the standard formats is done by zxing-cpp; this module
adapts it to the Reader interface (decode / reset, ReaderError on failure).
Data column sheets are located with our own detectors.
"""

import zxingcpp

import scan_config
from scan_types import (BarcodeFormat, DecodeHintType, LINEAR_FORMATS, MATRIX_FORMATS, Result,
                     ResultPoint, freeze_hints, hint)
from finder_detect import FinderPatternDetector
from reader_errors import ChecksumError, FormatError, NotFoundError, ReaderError
from rect_detect import RectangleBoundaryDetector

# Factory slot for the combined 1D reader (it covers every linear format)
ONE_D = 'ONE_D'

_FORMATS_BY_ZXING_NAME = {f.value: f for f in BarcodeFormat}


class Reader:
    """Decodes one code family. Raise a ReaderError subclass when nothing decodes."""

    def decode(self, image, hints=None):
        raise NotImplementedError

    def reset(self):
        pass


class MultipleBarcodeReader:
    """Decodes several codes from one image."""

    def decode_multiple(self, image, hints=None):
        raise NotImplementedError

    def reset(self):
        pass


# ============================================================================
# ZXING-CPP READERS
# ============================================================================

def _zxing_formats(formats):
    flags = None
    for fmt in sorted(formats, key=lambda f: f.name):
        flag = getattr(zxingcpp.BarcodeFormat, fmt.value)
        flags = flag if flags is None else flags | flag
    return flags


def _to_result(r, default_format):
    fmt = _FORMATS_BY_ZXING_NAME.get(r.format.name, default_format)
    pos = r.position
    points = [ResultPoint(p.x, p.y)
              for p in (pos.top_left, pos.top_right, pos.bottom_right, pos.bottom_left)]
    return Result(r.text, fmt, points)


def _raise_for_error(r):
    error = r.error
    if error.type == zxingcpp.ErrorType.Checksum:
        raise ChecksumError(f"{r.format.name}: {error.message}")
    raise FormatError(f"{r.format.name}: {error.message}")


def read_zxing(image, formats, default_format, try_harder=False):
    """Run zxing-cpp on a bitmap and return the first valid Result."""
    results = zxingcpp.read_barcodes(image.to_gray(), formats=_zxing_formats(formats),
                                     try_rotate=try_harder, return_errors=True)
    if not results:
        raise NotFoundError(f"No {default_format.name} found")
    for r in results:
        if r.valid:
            return _to_result(r, default_format)
    # only broken symbols: report why the first one failed
    _raise_for_error(results[0])


class ZXingReader(Reader):
    """One matrix / stacked format (QR, Data Matrix, Aztec, PDF417, MaxiCode)."""

    def __init__(self, format, hints=None):
        self.format = format

    def decode(self, image, hints=None):
        try_harder = bool(hint(hints, DecodeHintType.TRY_HARDER, False))
        return read_zxing(image, [self.format], self.format, try_harder)

    def __repr__(self):
        return f"ZXingReader({self.format.name})"


class MultiFormatOneDReader(Reader):
    """Every requested linear format in a single pass."""

    def __init__(self, hints=None):
        requested = hint(hints, DecodeHintType.POSSIBLE_FORMATS)
        formats = LINEAR_FORMATS & set(requested) if requested else LINEAR_FORMATS
        self.formats = frozenset(formats or LINEAR_FORMATS)
        self.try_harder = bool(hint(hints, DecodeHintType.TRY_HARDER, False))

    def decode(self, image, hints=None):
        try_harder = self.try_harder or bool(hint(hints, DecodeHintType.TRY_HARDER, False))
        return read_zxing(image, self.formats, BarcodeFormat.CODE_128, try_harder)

    def __repr__(self):
        return f"MultiFormatOneDReader({len(self.formats)} formats)"


# ============================================================================
# DATA COLUMN READERS
# ============================================================================

class DataColumnReader(Reader):
    """
    Data column sheet: region corners from the rectangle detector, the three
    marker blocks from the finder detector. The cells themselves are read by
    cell_reader(image, corners, blocks) -> str; without one nothing decodes.
    """

    def __init__(self, cell_reader=None):
        self.cell_reader = cell_reader
        self.last_corners = None
        self.last_blocks = None

    def decode(self, image, hints=None):
        self.last_corners = RectangleBoundaryDetector(image).detect()
        self.last_blocks = FinderPatternDetector(image).detect(hints)
        scan_config.log('READER', f"data column corners {self.last_corners}")
        if self.cell_reader is None:
            raise NotFoundError("No cell reader configured for data column sheets")
        text = self.cell_reader(image, self.last_corners, self.last_blocks)
        if not text:
            raise NotFoundError("Data column sheet has no readable cells")
        return Result(text, BarcodeFormat.DATA_COLUMN, self.last_corners)

    def reset(self):
        self.last_corners = None
        self.last_blocks = None


class DataColumnAndOneDMultiReader(MultipleBarcodeReader):
    """
    A data column sheet together with the barcode printed beside it.
    Runs its own reader list and returns every result that decodes.
    """

    def __init__(self, hints=None, factories=None):
        self.hints = freeze_hints(hints)
        self.factories = factories
        self.readers = []

    def build_readers(self, hints):
        factories = self.factories or DEFAULT_FACTORIES
        formats = hint(hints, DecodeHintType.POSSIBLE_FORMATS)
        readers = []
        if formats:
            if BarcodeFormat.DATA_COLUMN in formats or BarcodeFormat.DATA_COLUMN_MULTI in formats:
                readers.append(factories[BarcodeFormat.DATA_COLUMN](hints))
            if formats & LINEAR_FORMATS:
                readers.append(factories[ONE_D](hints))
            for fmt in MATRIX_FORMATS:
                if fmt in formats:
                    readers.append(factories[fmt](hints))
        else:
            readers.append(factories[BarcodeFormat.DATA_COLUMN](hints))
            readers.append(factories[ONE_D](hints))
        return readers

    def decode_multiple(self, image, hints=None):
        hints = self.hints if hints is None else freeze_hints(hints)
        self.readers = self.build_readers(hints)
        results = []
        for reader in self.readers:
            try:
                results.append(reader.decode(image, hints))
            except ReaderError as e:
                scan_config.log('READER', f"{reader!r}: {e}")
        if not results:
            raise NotFoundError("No code in the data column sheet or beside it")
        return results

    def reset(self):
        for reader in self.readers:
            reader.reset()


# slot -> callable(hints) returning a fresh reader
DEFAULT_FACTORIES = {
    ONE_D: MultiFormatOneDReader,
    BarcodeFormat.DATA_COLUMN: lambda hints: DataColumnReader(),
    BarcodeFormat.DATA_COLUMN_MULTI: DataColumnAndOneDMultiReader,
}
for _fmt in MATRIX_FORMATS:
    DEFAULT_FACTORIES[_fmt] = lambda hints, _fmt=_fmt: ZXingReader(_fmt, hints)

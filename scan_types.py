"""
Barcode formats, decode hints and results shared by every reader.
"""

import math
from enum import Enum
from types import MappingProxyType


class BarcodeFormat(Enum):
    """Code families. Values are the zxing-cpp format names where one exists."""
    AZTEC = 'Aztec'
    CODABAR = 'Codabar'
    CODE_39 = 'Code39'
    CODE_93 = 'Code93'
    CODE_128 = 'Code128'
    DATA_MATRIX = 'DataMatrix'
    EAN_8 = 'EAN8'
    EAN_13 = 'EAN13'
    ITF = 'ITF'
    MAXICODE = 'MaxiCode'
    PDF_417 = 'PDF417'
    QR_CODE = 'QRCode'
    RSS_14 = 'DataBar'
    RSS_EXPANDED = 'DataBarExpanded'
    UPC_A = 'UPCA'
    UPC_E = 'UPCE'
    # tabular sheet bounded by three black blocks and a barcode strip
    DATA_COLUMN = 'DataColumn'
    # the sheet plus the barcode next to it, read in one go
    DATA_COLUMN_MULTI = 'DataColumnMulti'


LINEAR_FORMATS = frozenset([
    BarcodeFormat.UPC_A, BarcodeFormat.UPC_E, BarcodeFormat.EAN_13, BarcodeFormat.EAN_8,
    BarcodeFormat.CODABAR, BarcodeFormat.CODE_39, BarcodeFormat.CODE_93, BarcodeFormat.CODE_128,
    BarcodeFormat.ITF, BarcodeFormat.RSS_14, BarcodeFormat.RSS_EXPANDED,
])

# Fixed relative order of the 2D readers in a reader list
MATRIX_FORMATS = (
    BarcodeFormat.QR_CODE, BarcodeFormat.DATA_MATRIX, BarcodeFormat.AZTEC,
    BarcodeFormat.PDF_417, BarcodeFormat.MAXICODE,
)


class DecodeHintType(Enum):
    POSSIBLE_FORMATS = 'possible_formats'      # collection of BarcodeFormat
    TRY_HARDER = 'try_harder'                  # bool
    NEED_RESULT_POINT_CALLBACK = 'callback'    # callable(FinderPattern)


def parse_formats(names):
    """Turn 'QR_CODE,ean_13' (or an iterable of names / formats) into a set of BarcodeFormat."""
    if isinstance(names, str):
        names = names.split(',')
    formats = set()
    for name in names:
        if isinstance(name, BarcodeFormat):
            formats.add(name)
            continue
        name = name.strip().upper().replace('-', '_')
        if not name:
            continue
        try:
            formats.add(BarcodeFormat[name])
        except KeyError:
            raise ValueError(f"Unknown barcode format: {name}") from None
    return formats


def freeze_hints(hints):
    """
    Snapshot a hints mapping so later changes by the caller cannot leak into
    an already built reader list. None stays None.
    """
    if hints is None:
        return None
    frozen = dict(hints)
    formats = frozen.get(DecodeHintType.POSSIBLE_FORMATS)
    if formats is not None:
        frozen[DecodeHintType.POSSIBLE_FORMATS] = frozenset(parse_formats(formats))
    return MappingProxyType(frozen)


def hint(hints, key, default=None):
    return default if hints is None else hints.get(key, default)


class ResultPoint:
    """A point of interest in the image, e.g. a finder centre or a region corner."""

    def __init__(self, x, y):
        self.x = float(x)
        self.y = float(y)

    def __eq__(self, other):
        if not isinstance(other, ResultPoint):
            return NotImplemented
        return self.x == other.x and self.y == other.y

    def __hash__(self):
        return hash((self.x, self.y))

    def __repr__(self):
        return f"({self.x:.1f},{self.y:.1f})"

    def distance(self, other):
        return math.hypot(self.x - other.x, self.y - other.y)


class Result:
    """Decoded text plus where it came from."""

    def __init__(self, text, format, points=None):
        self.text = text
        self.format = format
        self.points = list(points or [])

    def __eq__(self, other):
        if not isinstance(other, Result):
            return NotImplemented
        return self.text == other.text and self.format == other.format

    def __hash__(self):
        return hash((self.text, self.format))

    def __repr__(self):
        return f"Result({self.format.name}: {self.text!r})"

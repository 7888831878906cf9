"""
Thresholded image view used by the detectors and readers.
"""

import cv2
import numpy as np

import scan_config


class BinaryBitmap:
    """
    Read-only black/white grid. bits[y, x] is True for black (foreground).

    Detectors and readers only read from it, so one bitmap can be shared by
    any number of scans.
    """

    def __init__(self, bits):
        bits = np.asarray(bits, dtype=bool)
        if bits.ndim != 2:
            raise ValueError(f"Bitmap must be 2D, got shape {bits.shape}")
        self._bits = bits.copy()
        self._bits.flags.writeable = False

    @classmethod
    def from_gray(cls, gray, block_size=None, c=None):
        """Binarize a grayscale (or BGR) image with an adaptive Gaussian threshold."""
        block_size = block_size or scan_config.THRESHOLD_BLOCK
        c = scan_config.THRESHOLD_C if c is None else c
        gray = cv2.cvtColor(gray, cv2.COLOR_BGR2GRAY) if len(gray.shape) == 3 else gray
        binary = cv2.adaptiveThreshold(gray, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C,
                                       cv2.THRESH_BINARY, block_size, c)
        return cls(binary == 0)

    @classmethod
    def from_file(cls, path, block_size=None, c=None):
        image = cv2.imread(path)
        if image is None:
            raise ValueError(f"Cannot load {path}")
        return cls.from_gray(image, block_size, c)

    @property
    def width(self):
        return self._bits.shape[1]

    @property
    def height(self):
        return self._bits.shape[0]

    @property
    def bits(self):
        return self._bits

    def get(self, x, y):
        return bool(self._bits[y, x])

    def row(self, y):
        """Row y as a plain list of bools (fast to iterate)."""
        return self._bits[y].tolist()

    def any_in_row(self, y, x0, x1):
        """True if a black pixel lies on row y between x0 and x1 inclusive."""
        return bool(self._bits[y, x0:x1 + 1].any())

    def any_in_column(self, x, y0, y1):
        """True if a black pixel lies on column x between y0 and y1 inclusive."""
        return bool(self._bits[y0:y1 + 1, x].any())

    def to_gray(self):
        """Black=0 / white=255 uint8 image, the layout OpenCV and zxing-cpp expect."""
        return np.where(self._bits, 0, 255).astype(np.uint8)

    def __repr__(self):
        return f"BinaryBitmap({self.width}x{self.height})"

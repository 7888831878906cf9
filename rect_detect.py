"""
Rectangle boundary detection for data column sheets.

A sheet is laid out as:
    top-left     a black block, standing upright
    top-right    a black block, lying flat
    bottom-left  a black block, lying flat
    bottom-right a barcode strip

Start from a seed rectangle around the image centre, push each edge outward
until it runs over white only, then walk diagonals in from each corner of the
stable rectangle to find the first black pixel.
"""

import math

import scan_config
from scan_types import ResultPoint
from reader_errors import NotFoundError, SizeExceededError

INIT_SIZE_H = 230   # default seed width
INIT_SIZE_V = 460   # default seed height


def _round(d):
    return int(math.floor(d + 0.5))


class RectangleBoundaryDetector:

    def __init__(self, image, init_size=None, x=None, y=None):
        """
        Default seed is INIT_SIZE_H x INIT_SIZE_V around the image centre.
        With init_size the seed is a square of that size around (x, y),
        which default to the image centre.

        Raises NotFoundError when the seed does not fit in the image.
        """
        self.image = image
        self.width = image.width
        self.height = image.height
        if init_size is None:
            self.left_init = (self.width - INIT_SIZE_H) >> 1
            self.right_init = (self.width + INIT_SIZE_H) >> 1
            self.up_init = (self.height - INIT_SIZE_V) >> 1
            self.down_init = (self.height + INIT_SIZE_V) >> 1
        else:
            x = self.width >> 1 if x is None else x
            y = self.height >> 1 if y is None else y
            half = init_size >> 1
            self.left_init = x - half
            self.right_init = x + half
            self.up_init = y - half
            self.down_init = y + half
        if (self.up_init < 0 or self.left_init < 0 or
                self.down_init >= self.height or self.right_init >= self.width):
            raise NotFoundError(f"Image {self.width}x{self.height} too small for the seed region")

    def detect(self):
        """
        Corners of the dark region, clockwise: top-left, top-right,
        bottom-right, bottom-left. Every failure is a NotFoundError.
        """
        try:
            left, right, up, down = self._expand()
        except SizeExceededError as e:
            raise NotFoundError(str(e)) from e
        scan_config.log('RECT', f"region x={left}..{right} y={up}..{down}")

        max_size_horizontal = right - left
        max_size = min(max_size_horizontal, down - up)

        # bottom-left, searched over the full width
        bottom_left = self._search_corner(left, down, 1, -1, max_size_horizontal)
        top_left = self._search_corner(left, up, 1, 1, max_size)
        top_right = self._search_corner(right, up, -1, 1, max_size)
        bottom_right = self._search_corner(right, down, -1, -1, max_size)

        # heuristic: a left corner must sit in the left half, a right one in the right half
        mid_x = self.width / 2.0
        if (bottom_right.x < mid_x or bottom_left.x > mid_x or
                top_right.x < mid_x or top_left.x > mid_x):
            raise NotFoundError("Corners fall on the wrong side of the image")
        return [top_left, top_right, bottom_right, bottom_left]

    def _expand(self):
        """Grow the seed until all four borders are white. Returns (left, right, up, down)."""
        image = self.image
        left, right, up, down = self.left_init, self.right_init, self.up_init, self.down_init
        found_on_border = True
        found_at_least_once = False

        while found_on_border:
            found_on_border = False

            # right
            while right < self.width and image.any_in_column(right, up, down):
                right += 1
                found_on_border = True
            if right >= self.width:
                raise SizeExceededError("Right border left the image")

            # bottom
            while down < self.height and image.any_in_row(down, left, right):
                down += 1
                found_on_border = True
            if down >= self.height:
                raise SizeExceededError("Bottom border left the image")

            # left
            while left >= 0 and image.any_in_column(left, up, down):
                left -= 1
                found_on_border = True
            if left < 0:
                raise SizeExceededError("Left border left the image")

            # top
            while up >= 0 and image.any_in_row(up, left, right):
                up -= 1
                found_on_border = True
            if up < 0:
                raise SizeExceededError("Top border left the image")

            if found_on_border:
                found_at_least_once = True

        if not found_at_least_once:
            raise NotFoundError("No black pixel near the seed")
        return left, right, up, down

    def _search_corner(self, corner_x, corner_y, dx, dy, limit):
        """
        Walk segments from (corner_x, corner_y + dy*i) to (corner_x + dx*i, corner_y)
        for growing i and return the first black point.
        """
        for i in range(1, limit):
            point = self._black_point_on_segment(corner_x, corner_y + dy * i,
                                                 corner_x + dx * i, corner_y)
            if point is not None:
                return point
        raise NotFoundError(f"No corner near ({corner_x},{corner_y})")

    def _black_point_on_segment(self, a_x, a_y, b_x, b_y):
        dist = _round(math.hypot(b_x - a_x, b_y - a_y))
        x_step = (b_x - a_x) / dist
        y_step = (b_y - a_y) / dist
        for i in range(dist):
            x = _round(a_x + i * x_step)
            y = _round(a_y + i * y_step)
            # the bottom-left walk can run above a short, wide region
            if not (0 <= x < self.width and 0 <= y < self.height):
                continue
            if self.image.get(x, y):
                return ResultPoint(x, y)
        return None

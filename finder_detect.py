"""
Finder pattern detection on a BinaryBitmap.

Looks for the three solid black blocks that mark the corners of a code:
scan rows for long black runs, cross-check each run vertically and again
horizontally, merge repeated sightings of the same block, then keep the
best three.
"""

import math

import scan_config
from scan_types import DecodeHintType, ResultPoint, hint
from reader_errors import NotFoundError

BLACK_BLOCK_SIZE = 15   # shortest black run that can be a block cross-section
CENTER_QUORUM = 2       # sightings before a candidate counts as confirmed
MIN_SKIP = 3            # rows skipped between scans until something is found
MAX_CROSS_RATIO = 3     # vertical vs horizontal run length must stay within 3x
MAX_DEVIATION = 0.05    # module size spread allowed for early exit


# ============================================================================
# CANDIDATES
# ============================================================================

class FinderPattern(ResultPoint):
    """One candidate block centre with its running statistics."""

    HORIZONTAL = 'horizontal'
    VERTICAL = 'vertical'

    def __init__(self, x, y, estimated_module_size, count=1, orientation=VERTICAL):
        super().__init__(x, y)
        self.estimated_module_size = float(estimated_module_size)
        self.count = count
        self.orientation = orientation

    def about_equals(self, module_size, i, j, orientation):
        """Is (row i, column j) with this module size a new sighting of this candidate?"""
        if orientation != self.orientation:
            return False
        if abs(i - self.y) <= module_size and abs(j - self.x) <= module_size:
            size_diff = abs(module_size - self.estimated_module_size)
            return size_diff <= 1.0 or size_diff <= self.estimated_module_size
        return False

    def combine_estimate(self, i, j, new_module_size):
        """Count-weighted average of this candidate and one new sighting."""
        n = self.count + 1
        return FinderPattern((self.count * self.x + j) / n,
                             (self.count * self.y + i) / n,
                             (self.count * self.estimated_module_size + new_module_size) / n,
                             n, self.orientation)

    def __repr__(self):
        return (f"FinderPattern(({self.x:.1f},{self.y:.1f}) size={self.estimated_module_size:.2f} "
                f"count={self.count} {self.orientation})")


class FinderPatternInfo:
    """The chosen three blocks: top, middle, bottom (rows top down, each row left to right)."""

    def __init__(self, patterns):
        if len(patterns) != 3:
            raise ValueError(f"Need exactly 3 finder patterns, got {len(patterns)}")
        self.patterns = tuple(patterns)

    @property
    def top(self):
        return self.patterns[0]

    @property
    def middle(self):
        return self.patterns[1]

    @property
    def bottom(self):
        return self.patterns[2]

    def __iter__(self):
        return iter(self.patterns)

    def __len__(self):
        return 3

    def __getitem__(self, index):
        return self.patterns[index]

    def __repr__(self):
        return f"FinderPatternInfo{self.patterns}"


def order_best_patterns(patterns):
    """
    Order three patterns by rows, top row first, left to right within a row.
    A pattern joins the current row when it is within a module (the larger
    of the two sizes) of that row's first pattern.
    """
    rows = []
    for p in sorted(patterns, key=lambda p: (p.y, p.x)):
        if rows:
            first = rows[-1][0]
            if abs(p.y - first.y) <= max(p.estimated_module_size, first.estimated_module_size):
                rows[-1].append(p)
                continue
        rows.append([p])
    return [p for row in rows for p in sorted(row, key=lambda p: p.x)]


class FinderPatternStore:
    """
    Candidates collected during one scan. Created per detect() call and
    thrown away with it.
    """

    def __init__(self, callback=None):
        self.candidates = []
        self.has_skipped = False
        self.callback = callback

    def add(self, i, j, module_size, orientation):
        """Merge a sighting into a matching candidate, or start a new one."""
        for index, center in enumerate(self.candidates):
            if center.about_equals(module_size, i, j, orientation):
                self.candidates[index] = center.combine_estimate(i, j, module_size)
                return self.candidates[index]
        point = FinderPattern(j, i, module_size, orientation=orientation)
        self.candidates.append(point)
        scan_config.log('FINDER', f"new candidate {point}")
        if self.callback is not None:
            self.callback(point)
        return point

    def confirmed(self):
        return [p for p in self.candidates if p.count >= CENTER_QUORUM]

    def find_row_skip(self):
        """
        Rows we can safely skip once two confirmed candidates exist: in the
        worst case the third block lies (|dx| - |dy|) / 2 below them.
        """
        confirmed = self.confirmed()
        if len(confirmed) < 2:
            return 0
        first, second = confirmed[0], confirmed[1]
        self.has_skipped = True
        return int((abs(first.x - second.x) - abs(first.y - second.y)) / 2)

    def have_multiply_confirmed_centers(self):
        """At least 3 confirmed candidates whose module sizes agree within 5%."""
        confirmed = self.confirmed()
        if len(confirmed) < 3:
            return False
        total = sum(p.estimated_module_size for p in confirmed)
        average = total / len(confirmed)
        deviation = sum(abs(p.estimated_module_size - average) for p in confirmed)
        return deviation <= MAX_DEVIATION * total

    def select_best_patterns(self):
        """Best 3 candidates: outliers by module size dropped, then most sighted."""
        candidates = list(self.candidates)
        if len(candidates) < 3:
            raise NotFoundError(f"Found {len(candidates)} finder patterns, need at least 3")

        if len(candidates) > 3:
            sizes = [p.estimated_module_size for p in candidates]
            average = sum(sizes) / len(sizes)
            variance = sum(s * s for s in sizes) / len(sizes) - average * average
            std_dev = math.sqrt(max(variance, 0.0))
            limit = max(0.2 * average, std_dev)
            # furthest from the average first
            candidates.sort(key=lambda p: -abs(p.estimated_module_size - average))
            i = 0
            while i < len(candidates) and len(candidates) > 3:
                if abs(candidates[i].estimated_module_size - average) > limit:
                    scan_config.log('FINDER', f"dropping outlier {candidates[i]}")
                    del candidates[i]
                else:
                    i += 1

        if len(candidates) > 3:
            average = sum(p.estimated_module_size for p in candidates) / len(candidates)
            candidates.sort(key=lambda p: (-p.count, abs(p.estimated_module_size - average)))
            candidates = candidates[:3]

        return candidates


# ============================================================================
# DETECTOR
# ============================================================================

def found_pattern_cross(run):
    """Is a black run long enough to be a block cross-section?"""
    return run >= BLACK_BLOCK_SIZE


def center_from_end(run, end):
    """Centre of a run of `run` pixels ending just before `end`."""
    return end - run / 2.0


class FinderPatternDetector:
    """
    Finds the three corner blocks in one bitmap.

    Holds only the bitmap; every detect() call builds its own candidate store,
    so calls are independent. Still, one instance per thread.
    """

    def __init__(self, image):
        self.image = image

    def detect(self, hints=None):
        image = self.image
        max_i, max_j = image.height, image.width
        store = FinderPatternStore(hint(hints, DecodeHintType.NEED_RESULT_POINT_CALLBACK))

        i_skip = MIN_SKIP
        done = False
        i = i_skip - 1
        while i < max_i and not done:
            row = image.row(i)
            run = 0
            j = 0
            while j < max_j:
                if row[j]:
                    run += 1
                else:
                    if found_pattern_cross(run) and self._handle_possible_center(store, run, i, j):
                        # scan every other row from now on
                        i_skip = 2
                        if store.has_skipped:
                            done = store.have_multiply_confirmed_centers()
                        else:
                            row_skip = store.find_row_skip()
                            if row_skip > BLACK_BLOCK_SIZE:
                                scan_config.log('FINDER', f"row {i}: skipping {row_skip} rows")
                                i += row_skip - BLACK_BLOCK_SIZE - i_skip
                                j = max_j - 1
                    run = 0
                j += 1
            # run touching the right edge
            if found_pattern_cross(run) and self._handle_possible_center(store, run, i, max_j):
                i_skip = MIN_SKIP
                if store.has_skipped:
                    done = store.have_multiply_confirmed_centers()
            i += i_skip

        best = store.select_best_patterns()
        info = FinderPatternInfo(order_best_patterns(best))
        scan_config.log('FINDER', f"selected {info}")
        return info

    def _handle_possible_center(self, store, run, i, j):
        """
        Cross-check a horizontal run vertically, then re-check horizontally
        through the vertical centre (this finds the true centre under skew).
        Returns True when the sighting was added to the store.
        """
        center_j = center_from_end(run, j)
        center_i, vertical = self._cross_check_vertical(i, int(center_j), run)
        if center_i is None:
            return False
        center_j, horizontal = self._cross_check_horizontal(int(center_j), int(center_i), run)
        if center_j is None:
            return False

        orientation = FinderPattern.HORIZONTAL if horizontal > vertical else FinderPattern.VERTICAL
        if run >= BLACK_BLOCK_SIZE << 1:
            module_size = run / 4.0
        else:
            module_size = run / 2.0
        store.add(center_i, center_j, module_size, orientation)
        return True

    def _cross_check_vertical(self, start_i, center_j, original_run):
        """Vertical black run through (start_i, center_j). Returns (centre row or None, run)."""
        image = self.image
        max_i = image.height
        max_count = original_run * MAX_CROSS_RATIO

        i = start_i
        while i >= 0 and image.get(center_j, i):
            i -= 1
        if i < 0:
            return None, 0
        i += 1
        count = 0
        while i < max_i and image.get(center_j, i) and count <= max_count:
            count += 1
            i += 1
        if i >= max_i or count > max_count:
            return None, count
        # much taller or much shorter than it is wide: not a block
        if max(count, original_run) > MAX_CROSS_RATIO * min(count, original_run):
            return None, count
        if not found_pattern_cross(count):
            return None, count
        return center_from_end(count, i), count

    def _cross_check_horizontal(self, start_j, center_i, original_run):
        """Horizontal black run through (center_i, start_j). Returns (centre column or None, run)."""
        image = self.image
        max_j = image.width
        row = image.row(center_i)
        max_count = original_run * MAX_CROSS_RATIO

        j = start_j
        while j >= 0 and row[j]:
            j -= 1
        if j < 0:
            return None, 0
        j += 1
        count = 0
        while j < max_j and row[j] and count <= max_count:
            count += 1
            j += 1
        if j >= max_j or count > max_count:
            return None, count
        if abs(count - original_run) > max(BLACK_BLOCK_SIZE >> 1, original_run >> 2):
            return None, count
        if not found_pattern_cross(count):
            return None, count
        return center_from_end(count, j), count

"""Shared fixtures: synthetic bitmaps and scripted fake readers."""

import numpy as np
import pytest

import scan_config
from binary_bitmap import BinaryBitmap
from reader_errors import NotFoundError
from readers import ONE_D
from scan_types import BarcodeFormat, MATRIX_FORMATS, Result


def blank(width, height):
    return np.zeros((height, width), dtype=bool)


def three_squares():
    """200x200 with 20px blocks at the top-left, top-right and bottom-left."""
    arr = blank(200, 200)
    arr[30:50, 30:50] = True
    arr[30:50, 130:150] = True
    arr[130:150, 30:50] = True
    return BinaryBitmap(arr)


def data_column_sheet():
    """
    400x600 sheet: upright block top-left, flat blocks top-right and
    bottom-left, a strip of 4px bars bottom-right.
    """
    arr = blank(400, 600)
    arr[50:140, 60:90] = True
    arr[50:80, 250:340] = True
    arr[500:530, 60:150] = True
    for x in range(336, 250, -8):
        arr[510:545, x:x + 4] = True
    return BinaryBitmap(arr)


@pytest.fixture(autouse=True)
def quiet_config():
    """Every test starts with diagnostics off and no debug dir."""
    verbose, debug_dir = scan_config.VERBOSE, scan_config.DEBUG_DIR
    scan_config.VERBOSE = False
    scan_config.DEBUG_DIR = None
    yield
    scan_config.VERBOSE, scan_config.DEBUG_DIR = verbose, debug_dir


@pytest.fixture
def squares_bitmap():
    return three_squares()


@pytest.fixture
def sheet_bitmap():
    return data_column_sheet()


@pytest.fixture
def blank_bitmap():
    return BinaryBitmap(blank(300, 500))


# ============================================================================
# FAKE READERS
# ============================================================================

class FakeReader:
    """Decodes to a fixed Result, or raises; records every call in a shared log."""

    def __init__(self, name, log, result=None, error=None):
        self.name = name
        self.log = log
        self.result = result
        self.error = error
        self.hints = None
        self.resets = 0

    def decode(self, image, hints=None):
        self.log.append(self.name)
        self.hints = hints
        if self.result is not None:
            return self.result
        raise self.error or NotFoundError(f"{self.name}: nothing")

    def reset(self):
        self.resets += 1

    def __repr__(self):
        return f"FakeReader({self.name})"


class FakeMultiReader:

    def __init__(self, name, log, results=None):
        self.name = name
        self.log = log
        self.results = results
        self.resets = 0

    def decode_multiple(self, image, hints=None):
        self.log.append(self.name)
        if self.results:
            return list(self.results)
        raise NotFoundError(f"{self.name}: nothing")

    def reset(self):
        self.resets += 1


def slot_name(slot):
    return slot if slot == ONE_D else slot.name


class FakeFactories(dict):
    """
    Factory table for every reader slot. `outcomes` maps slot names to a
    Result (success) or an exception (failure); unlisted slots find nothing.
    Built readers are kept in `built` by name.
    """

    def __init__(self, outcomes=None, multi_results=None):
        super().__init__()
        self.outcomes = outcomes or {}
        self.log = []
        self.built = {}
        for slot in [ONE_D, BarcodeFormat.DATA_COLUMN, *MATRIX_FORMATS]:
            self[slot] = self._single(slot_name(slot))
        self[BarcodeFormat.DATA_COLUMN_MULTI] = self._multi(multi_results)

    def _single(self, name):
        def build(hints):
            outcome = self.outcomes.get(name)
            if isinstance(outcome, Result):
                reader = FakeReader(name, self.log, result=outcome)
            else:
                reader = FakeReader(name, self.log, error=outcome)
            self.built[name] = reader
            return reader
        return build

    def _multi(self, results):
        def build(hints):
            reader = FakeMultiReader('DATA_COLUMN_MULTI', self.log, results)
            self.built['DATA_COLUMN_MULTI'] = reader
            return reader
        return build


@pytest.fixture
def fake_factories():
    return FakeFactories

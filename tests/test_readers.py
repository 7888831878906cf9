"""Format readers: zxing-cpp adaptation and the data column readers."""

from types import SimpleNamespace

import pytest
import zxingcpp

import readers
from readers import (DataColumnAndOneDMultiReader, DataColumnReader, MultiFormatOneDReader,
                     ZXingReader, read_zxing)
from reader_errors import ChecksumError, FormatError, NotFoundError
from scan_types import BarcodeFormat, DecodeHintType, LINEAR_FORMATS, Result


def fake_zxing_result(text='hello', format_name='QRCode', valid=True, error_type=None):
    corner = SimpleNamespace
    return SimpleNamespace(
        text=text,
        valid=valid,
        format=SimpleNamespace(name=format_name),
        position=SimpleNamespace(top_left=corner(x=1, y=2), top_right=corner(x=10, y=2),
                                 bottom_right=corner(x=10, y=12), bottom_left=corner(x=1, y=12)),
        error=SimpleNamespace(type=error_type, message='broken'),
    )


@pytest.fixture
def zxing_returns(monkeypatch):
    """Make zxing-cpp return the given results; records the keyword args it got."""
    calls = []

    def install(*results):
        def read_barcodes(image, **kwargs):
            calls.append(kwargs)
            return list(results)
        monkeypatch.setattr(readers.zxingcpp, 'read_barcodes', read_barcodes)
        return calls
    return install


class TestZXingReaders:

    def test_blank_image(self, blank_bitmap):
        with pytest.raises(NotFoundError):
            ZXingReader(BarcodeFormat.QR_CODE).decode(blank_bitmap)

    def test_result_mapping(self, blank_bitmap, zxing_returns):
        zxing_returns(fake_zxing_result())
        result = ZXingReader(BarcodeFormat.QR_CODE).decode(blank_bitmap)
        assert result == Result('hello', BarcodeFormat.QR_CODE)
        assert [(p.x, p.y) for p in result.points] == [(1, 2), (10, 2), (10, 12), (1, 12)]

    def test_first_valid_result_wins(self, blank_bitmap, zxing_returns):
        zxing_returns(fake_zxing_result('bad', valid=False, error_type=zxingcpp.ErrorType.Format),
                      fake_zxing_result('good', 'EAN13'))
        result = MultiFormatOneDReader().decode(blank_bitmap)
        assert result.text == 'good'
        assert result.format == BarcodeFormat.EAN_13

    def test_checksum_error(self, blank_bitmap, zxing_returns):
        zxing_returns(fake_zxing_result(valid=False, error_type=zxingcpp.ErrorType.Checksum))
        with pytest.raises(ChecksumError):
            ZXingReader(BarcodeFormat.QR_CODE).decode(blank_bitmap)

    def test_format_error(self, blank_bitmap, zxing_returns):
        zxing_returns(fake_zxing_result(valid=False, error_type=zxingcpp.ErrorType.Format))
        with pytest.raises(FormatError):
            ZXingReader(BarcodeFormat.QR_CODE).decode(blank_bitmap)

    def test_try_harder_enables_rotation(self, blank_bitmap, zxing_returns):
        calls = zxing_returns(fake_zxing_result())
        reader = ZXingReader(BarcodeFormat.QR_CODE)
        reader.decode(blank_bitmap)
        reader.decode(blank_bitmap, {DecodeHintType.TRY_HARDER: True})
        assert [c['try_rotate'] for c in calls] == [False, True]
        assert all(c['return_errors'] for c in calls)

    def test_unknown_zxing_format_falls_back(self, blank_bitmap, zxing_returns):
        zxing_returns(fake_zxing_result(format_name='SomethingNew'))
        assert read_zxing(blank_bitmap, [BarcodeFormat.ITF], BarcodeFormat.ITF).format == BarcodeFormat.ITF

    def test_one_d_formats(self):
        assert MultiFormatOneDReader().formats == LINEAR_FORMATS
        hints = {DecodeHintType.POSSIBLE_FORMATS: {BarcodeFormat.EAN_13, BarcodeFormat.QR_CODE}}
        assert MultiFormatOneDReader(hints).formats == {BarcodeFormat.EAN_13}
        hints = {DecodeHintType.POSSIBLE_FORMATS: {BarcodeFormat.QR_CODE}}
        assert MultiFormatOneDReader(hints).formats == LINEAR_FORMATS


class TestDataColumnReader:

    def test_no_cell_reader(self, sheet_bitmap):
        reader = DataColumnReader()
        with pytest.raises(NotFoundError):
            reader.decode(sheet_bitmap)
        # geometry was still located
        assert len(reader.last_corners) == 4
        assert len(reader.last_blocks) == 3
        reader.reset()
        assert reader.last_corners is None
        assert reader.last_blocks is None

    def test_cell_reader(self, sheet_bitmap):
        seen = {}

        def cell_reader(image, corners, blocks):
            seen['corners'] = corners
            seen['blocks'] = blocks
            return 'A1;B2'

        result = DataColumnReader(cell_reader).decode(sheet_bitmap)
        assert result == Result('A1;B2', BarcodeFormat.DATA_COLUMN)
        assert result.points == seen['corners']
        assert len(seen['blocks']) == 3

    def test_cell_reader_empty_text(self, sheet_bitmap):
        with pytest.raises(NotFoundError):
            DataColumnReader(lambda image, corners, blocks: '').decode(sheet_bitmap)

    def test_blank(self, blank_bitmap):
        with pytest.raises(NotFoundError):
            DataColumnReader(lambda image, corners, blocks: 'x').decode(blank_bitmap)


class TestDataColumnAndOneDMultiReader:

    def test_collects_every_result(self, fake_factories):
        sheet = Result('sheet', BarcodeFormat.DATA_COLUMN)
        code = Result('4006381333931', BarcodeFormat.EAN_13)
        factories = fake_factories({'DATA_COLUMN': sheet, 'ONE_D': code})
        reader = DataColumnAndOneDMultiReader(factories=factories)
        assert reader.decode_multiple(object()) == [sheet, code]
        assert factories.log == ['DATA_COLUMN', 'ONE_D']

    def test_partial_success(self, fake_factories):
        code = Result('123', BarcodeFormat.CODE_128)
        factories = fake_factories({'ONE_D': code})
        reader = DataColumnAndOneDMultiReader(factories=factories)
        assert reader.decode_multiple(object()) == [code]

    def test_nothing_found(self, fake_factories):
        reader = DataColumnAndOneDMultiReader(factories=fake_factories())
        with pytest.raises(NotFoundError):
            reader.decode_multiple(object())

    def test_requested_formats(self, fake_factories):
        hints = {DecodeHintType.POSSIBLE_FORMATS: {BarcodeFormat.DATA_COLUMN_MULTI,
                                                   BarcodeFormat.QR_CODE}}
        factories = fake_factories()
        reader = DataColumnAndOneDMultiReader(hints, factories)
        assert [r.name for r in reader.build_readers(reader.hints)] == ['DATA_COLUMN', 'QR_CODE']

    def test_reset(self, fake_factories):
        factories = fake_factories({'ONE_D': Result('1', BarcodeFormat.ITF)})
        reader = DataColumnAndOneDMultiReader(factories=factories)
        reader.decode_multiple(object())
        reader.reset()
        assert factories.built['DATA_COLUMN'].resets == 1
        assert factories.built['ONE_D'].resets == 1

"""Tests for loading and validating incoming images."""
import io

import pytest
from PIL import Image
from PySide6.QtGui import QColor, QImage

from acquisition import (
    AcquisitionError, asset_from_bytes, asset_from_qimage, check_dimensions,
    check_file_size, load_file, load_files,
)
from models import MAX_FILE_BYTES, WARN_LOGO_BYTES, WARN_PHOTO_BYTES


def _encoded(size, mode='RGB', color='red', fmt='JPEG'):
    buf = io.BytesIO()
    Image.new(mode, size, color).save(buf, format=fmt)
    return buf.getvalue()


class TestFileSize:

    def test_small_file_is_fine(self):
        assert check_file_size(1024) is None

    def test_over_hard_limit_rejected(self):
        with pytest.raises(AcquisitionError, match="File size too large"):
            check_file_size(MAX_FILE_BYTES + 1)

    def test_photo_warning_threshold(self):
        assert check_file_size(WARN_PHOTO_BYTES) is None
        assert "Large file" in check_file_size(WARN_PHOTO_BYTES + 1)

    def test_logo_warns_earlier(self):
        size = WARN_LOGO_BYTES + 1
        assert check_file_size(size, "photo") is None
        assert check_file_size(size, "logo") is not None


class TestDimensions:

    def test_bounds_inclusive(self):
        check_dimensions(100, 100)
        check_dimensions(10000, 10000)

    @pytest.mark.parametrize("w,h", [(99, 500), (500, 99), (50, 50)])
    def test_too_small(self, w, h):
        with pytest.raises(AcquisitionError, match="too small"):
            check_dimensions(w, h)

    @pytest.mark.parametrize("w,h", [(10001, 500), (500, 10001)])
    def test_too_large(self, w, h):
        with pytest.raises(AcquisitionError, match="too large"):
            check_dimensions(w, h)


class TestDecode:

    def test_jpeg_normalized_to_rgba_png(self):
        asset = asset_from_bytes(_encoded((320, 240)), "photo.jpg")
        assert (asset.pixel_width, asset.pixel_height) == (320, 240)
        assert asset.name == "photo.jpg"
        img = Image.open(io.BytesIO(asset.png_data))
        assert img.format == 'PNG'
        assert img.mode == 'RGBA'

    def test_transparency_kept(self):
        asset = asset_from_bytes(_encoded((200, 200), 'RGBA', (0, 0, 0, 0), 'PNG'))
        img = Image.open(io.BytesIO(asset.png_data))
        assert img.getpixel((10, 10))[3] == 0

    def test_exif_orientation_applied(self):
        img = Image.new('RGB', (300, 200), 'red')
        exif = Image.Exif()
        exif[0x0112] = 6  # rotate 90 CW on display
        buf = io.BytesIO()
        img.save(buf, format='JPEG', exif=exif)
        asset = asset_from_bytes(buf.getvalue())
        assert (asset.pixel_width, asset.pixel_height) == (200, 300)

    def test_unique_ids(self):
        data = _encoded((200, 200))
        assert asset_from_bytes(data).asset_id != asset_from_bytes(data).asset_id

    def test_not_an_image(self):
        with pytest.raises(AcquisitionError, match="valid image file"):
            asset_from_bytes(b"definitely not pixels")

    def test_too_small_image(self):
        with pytest.raises(AcquisitionError, match="too small"):
            asset_from_bytes(_encoded((50, 50)))

    def test_too_wide_image(self):
        with pytest.raises(AcquisitionError, match="too large"):
            asset_from_bytes(_encoded((10001, 100), fmt='PNG'))

    def test_from_qimage(self, qapp):
        qimg = QImage(250, 150, QImage.Format.Format_ARGB32)
        qimg.fill(QColor(0, 255, 0))
        asset = asset_from_qimage(qimg, "dropped")
        assert (asset.pixel_width, asset.pixel_height) == (250, 150)
        img = Image.open(io.BytesIO(asset.png_data)).convert('RGB')
        assert img.getpixel((10, 10)) == (0, 255, 0)

    def test_from_null_qimage(self, qapp):
        with pytest.raises(AcquisitionError):
            asset_from_qimage(QImage())


class TestLoadFiles:

    def test_load_file(self, sample_files):
        asset, warning = load_file(sample_files[1])
        assert warning is None
        assert (asset.pixel_width, asset.pixel_height) == (300, 600)
        assert asset.name == "photo_1.jpg"

    def test_missing_file(self, tmp_path):
        with pytest.raises(AcquisitionError, match="Error reading file"):
            load_file(str(tmp_path / "nope.jpg"))

    def test_batch_collects_rejections(self, tmp_path, sample_files):
        bad = tmp_path / "notes.jpg"
        bad.write_bytes(b"hello")
        tiny = tmp_path / "tiny.png"
        Image.new('RGB', (20, 20)).save(tiny)
        report = load_files([sample_files[0], str(bad), str(tiny), sample_files[2]])
        assert [a.name for a in report.assets] == ["photo_0.jpg", "photo_2.jpg"]
        assert len(report.errors) == 2
        assert report.errors[0].startswith("notes.jpg:")
        assert report.errors[1].startswith("tiny.png:")
        assert report.messages == report.errors

    def test_single_logo(self, sample_files):
        report = load_files(sample_files[:1], kind="logo")
        assert len(report.assets) == 1
        assert not report.errors

    def test_multiple_logos_rejected(self, sample_files):
        report = load_files(sample_files, kind="logo")
        assert report.assets == []
        assert report.errors == ["Please upload only one logo file."]

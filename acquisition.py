"""Asset acquisition: load, validate and normalize incoming images.

Everything handed to the rest of the app is an ImageAsset holding RGBA PNG
bytes with EXIF orientation already applied.
"""

import io
import logging
import os
import uuid
from dataclasses import dataclass, field

from PIL import Image, ImageOps, UnidentifiedImageError
from PySide6.QtCore import QByteArray, QBuffer, QIODevice
from PySide6.QtGui import QImage

from models import (
    ImageAsset, MAX_DIMENSION, MAX_FILE_BYTES, MIN_DIMENSION,
    WARN_LOGO_BYTES, WARN_PHOTO_BYTES,
)

log = logging.getLogger(__name__)

SUPPORTED_FORMATS = "JPEG, PNG, WebP, GIF, BMP"


class AcquisitionError(Exception):
    """An input was rejected. The message is meant for the user."""


@dataclass
class AcquisitionReport:
    """Outcome of loading a batch of files."""
    assets: list[ImageAsset] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def messages(self) -> list[str]:
        return self.errors + self.warnings


def _mb(n: int) -> str:
    return f"{n / (1024 * 1024):.1f}MB"


def check_file_size(size: int, kind: str = "photo") -> str | None:
    """Raise for files over the hard limit; return a warning for large ones."""
    if size > MAX_FILE_BYTES:
        raise AcquisitionError(
            f"File size too large. Maximum: {_mb(MAX_FILE_BYTES)} for images. "
            f"Current: {_mb(size)}")
    warn_at = WARN_LOGO_BYTES if kind == "logo" else WARN_PHOTO_BYTES
    if size > warn_at:
        return f"Large file detected ({_mb(size)}). Processing may take longer."
    return None


def check_dimensions(width: int, height: int):
    if width < MIN_DIMENSION or height < MIN_DIMENSION:
        raise AcquisitionError(
            f"Image too small. Minimum: {MIN_DIMENSION}x{MIN_DIMENSION} pixels. "
            f"Current: {width}x{height}")
    if width > MAX_DIMENSION or height > MAX_DIMENSION:
        raise AcquisitionError(
            f"Image too large. Maximum: {MAX_DIMENSION}x{MAX_DIMENSION} pixels. "
            f"Current: {width}x{height}")


def pil_to_asset(img: Image.Image, name: str = "") -> ImageAsset:
    """Normalize to RGBA PNG (orientation fixed) and wrap as an ImageAsset."""
    img = ImageOps.exif_transpose(img)
    check_dimensions(img.width, img.height)
    img = img.convert("RGBA")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return ImageAsset(png_data=buf.getvalue(),
                      pixel_width=img.width,
                      pixel_height=img.height,
                      asset_id=uuid.uuid4().hex,
                      name=name)


def asset_from_bytes(data: bytes, name: str = "") -> ImageAsset:
    """Decode raw encoded image bytes (any format Pillow reads)."""
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except UnidentifiedImageError:
        raise AcquisitionError(
            f"Please upload a valid image file. Supported formats: {SUPPORTED_FORMATS}")
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise AcquisitionError(f"Invalid or corrupted image file. ({e})")
    return pil_to_asset(img, name)


def asset_from_qimage(qimage: QImage, name: str = "") -> ImageAsset:
    """Convert a QImage (e.g. dropped image data) via Pillow normalization."""
    if qimage.isNull():
        raise AcquisitionError("Invalid or corrupted image file.")
    ba = QByteArray()
    buf = QBuffer(ba)
    buf.open(QIODevice.OpenModeFlag.WriteOnly)
    qimage.save(buf, "PNG")
    buf.close()
    return asset_from_bytes(bytes(ba.data()), name)


def load_file(path: str, kind: str = "photo") -> tuple[ImageAsset, str | None]:
    """Load one image file. Returns (asset, warning-or-None); raises AcquisitionError."""
    try:
        size = os.path.getsize(path)
    except OSError as e:
        raise AcquisitionError(f"Error reading file. ({e.strerror or e})")
    warning = check_file_size(size, kind)
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise AcquisitionError(f"Error reading file. ({e.strerror or e})")
    return asset_from_bytes(data, os.path.basename(path)), warning


def load_files(paths: list[str], kind: str = "photo") -> AcquisitionReport:
    """Load several files, collecting rejections instead of stopping at the first."""
    report = AcquisitionReport()
    if kind == "logo" and len(paths) > 1:
        report.errors.append("Please upload only one logo file.")
        return report
    for path in paths:
        name = os.path.basename(path)
        try:
            asset, warning = load_file(path, kind)
        except AcquisitionError as e:
            log.info("Rejected %s: %s", path, e)
            report.errors.append(f"{name}: {e}")
            continue
        if warning:
            report.warnings.append(f"{name}: {warning}")
        report.assets.append(asset)
    return report

"""Compositor: rasterize a source photo plus logo into one output surface.

Uses QImage only (never QPixmap) so rendering is safe off the GUI thread.
"""

import logging

from PySide6.QtCore import Qt, QRectF, QByteArray, QBuffer, QIODevice
from PySide6.QtGui import QImage, QPainter, QColor

from geometry import fill_scale
from models import ImageAsset, LogoRect, OutputSize, OUTPUT_FORMAT

log = logging.getLogger(__name__)


class DecodeError(Exception):
    """Raised when an asset's bytes cannot be turned into an image."""


def decode(asset: ImageAsset) -> QImage:
    """Decode an asset's PNG bytes into a QImage."""
    qimg = QImage()
    if not asset.png_data or not qimg.loadFromData(asset.png_data) or qimg.isNull():
        raise DecodeError(f"Could not decode image {asset.name or asset.asset_id}")
    return qimg


def _prescaled(img: QImage, width: float, height: float) -> QImage:
    """Area-average *img* toward the target size when shrinking it.

    The painter's smooth transform is bilinear, which aliases on large
    reductions. Upscaling is left to the painter.
    """
    w = max(1, round(width))
    h = max(1, round(height))
    if w >= img.width() and h >= img.height():
        return img
    return img.scaled(w, h, Qt.AspectRatioMode.IgnoreAspectRatio,
                      Qt.TransformationMode.SmoothTransformation)


def _paint(source_img: QImage, logo_img: QImage, geo, rect: LogoRect,
           opacity: float) -> QImage:
    surface = QImage(geo.canvas_width, geo.canvas_height, QImage.Format.Format_RGB32)
    if surface.isNull():
        raise MemoryError(f"Could not allocate {geo.canvas_width}x{geo.canvas_height} surface")
    surface.fill(QColor(255, 255, 255))

    painter = QPainter(surface)
    try:
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)

        target = QRectF(geo.offset_x, geo.offset_y, geo.image_width, geo.image_height)
        painter.drawImage(target, _prescaled(source_img, geo.image_width, geo.image_height))

        painter.setOpacity(opacity / 100)
        logo_target = QRectF(rect.x, rect.y, rect.width, rect.height)
        painter.drawImage(logo_target, _prescaled(logo_img, rect.width, rect.height))
        painter.setOpacity(1.0)
    finally:
        painter.end()
    return surface


def render(source: ImageAsset, logo: ImageAsset, rect: LogoRect | None,
           opacity: float, output_size: OutputSize) -> QImage | None:
    """Render *source* with *logo* drawn at *rect*.

    Returns the full-resolution surface, or None if either asset fails to
    decode or drawing fails. Never raises.
    """
    if rect is None:
        log.warning("No resolved logo rect for %s; skipping render", source.name or source.asset_id)
        return None
    try:
        geo = fill_scale(source.pixel_width, source.pixel_height, output_size)
        source_img = decode(source)
        logo_img = decode(logo)
        return _paint(source_img, logo_img, geo, rect, opacity)
    except DecodeError as e:
        log.warning("%s", e)
        return None
    except Exception:
        log.exception("Render failed for %s", source.name or source.asset_id)
        return None


def encode_png(surface: QImage) -> bytes:
    """Serialize a surface as lossless PNG bytes."""
    ba = QByteArray()
    buf = QBuffer(ba)
    buf.open(QIODevice.OpenModeFlag.WriteOnly)
    ok = surface.save(buf, OUTPUT_FORMAT)
    buf.close()
    if not ok:
        raise OSError("PNG encoding failed")
    return bytes(ba.data())

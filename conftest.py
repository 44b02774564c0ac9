"""Shared pytest fixtures for Logo Overlay Studio tests."""
import os

os.environ['QT_QPA_PLATFORM'] = 'offscreen'  # must be set before QApplication import

import io
import uuid

import pytest
from PIL import Image, ImageDraw

from models import ImageAsset


@pytest.fixture(scope='session')
def qapp():
    """Create a single QApplication for all tests."""
    from controller import OverlayApp
    app = OverlayApp.instance() or OverlayApp([])
    yield app


def _png_bytes(img):
    buf = io.BytesIO()
    img.save(buf, format='PNG')
    return buf.getvalue()


@pytest.fixture
def make_png():
    """Factory fixture: make_png(width, height, color) -> PNG bytes."""
    def _make(width, height, color='red'):
        return _png_bytes(Image.new('RGBA', (width, height), color))
    return _make


@pytest.fixture
def make_asset(make_png):
    """Factory fixture: make_asset(width, height, color) -> ImageAsset."""
    def _make(width, height, color='red', name=''):
        return ImageAsset(png_data=make_png(width, height, color),
                          pixel_width=width, pixel_height=height,
                          asset_id=uuid.uuid4().hex, name=name)
    return _make


@pytest.fixture
def broken_asset():
    """An asset whose bytes are not an image."""
    return ImageAsset(png_data=b'not an image', pixel_width=400, pixel_height=300,
                      asset_id=uuid.uuid4().hex, name='broken')


@pytest.fixture
def logo_asset(make_asset):
    """A 400x200 solid blue logo (2:1)."""
    return make_asset(400, 200, 'blue', name='logo.png')


@pytest.fixture
def sample_files(tmp_path):
    """Write a few photos of varied sizes to disk and return their paths."""
    specs = [
        ('red', (400, 300)),
        ('green', (300, 600)),
        ('orange', (500, 500)),
    ]
    paths = []
    for i, (color, size) in enumerate(specs):
        img = Image.new('RGB', size, color)
        draw = ImageDraw.Draw(img)
        draw.ellipse([20, 20, size[0] - 20, size[1] - 20], outline='black', width=4)
        path = tmp_path / f"photo_{i}.jpg"
        img.save(path, format='JPEG')
        paths.append(str(path))
    return paths

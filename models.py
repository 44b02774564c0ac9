"""Data model classes and constants for Logo Overlay Studio.

All geometry is in output-canvas pixel space. Coordinates are floats; only
the canvas itself has integer dimensions.
"""

from dataclasses import dataclass
from enum import Enum


# === Constants ===

# Placement parameter ranges (inclusive)
SIZE_PERCENT_MIN = 5
SIZE_PERCENT_MAX = 50
OPACITY_MIN = 10
OPACITY_MAX = 100
MARGIN_MAX = 1000

PREVIEW_MAX_DIMENSION = 400  # px, longest preview side

# Acquisition limits
MAX_FILE_BYTES = 25 * 1024 * 1024
WARN_PHOTO_BYTES = 10 * 1024 * 1024
WARN_LOGO_BYTES = 5 * 1024 * 1024
MIN_DIMENSION = 100
MAX_DIMENSION = 10000

OUTPUT_FORMAT = "PNG"
OUTPUT_EXTENSION = ".png"

IMAGE_FILTER = "Images (*.png *.jpg *.jpeg *.webp *.gif *.bmp *.tif *.tiff)"
ZIP_FILTER = "ZIP Archives (*.zip)"
PNG_FILTER = "PNG Images (*.png)"


# === Data Model ===

@dataclass(frozen=True)
class ImageAsset:
    """A decoded image stored as normalized PNG bytes."""
    png_data: bytes
    pixel_width: int
    pixel_height: int
    asset_id: str
    name: str = ""


@dataclass(frozen=True)
class OutputSize:
    """Target canvas size. width == height == 0 means "source's native size"."""
    label: str
    width: int
    height: int

    @property
    def is_native(self) -> bool:
        return self.width == 0 and self.height == 0


NATIVE_SIZE = OutputSize("Original Size", 0, 0)

OUTPUT_SIZES = [
    NATIVE_SIZE,
    OutputSize("1000 × 1000", 1000, 1000),
    OutputSize("2000 × 2000", 2000, 2000),
    OutputSize("3000 × 3000", 3000, 3000),
    OutputSize("4000 × 4000", 4000, 4000),
    OutputSize("5000 × 5000", 5000, 5000),
]


class Anchor(str, Enum):
    """The 9 anchor presets, laid out on a 3x3 grid (row-major)."""
    TL = "TL"
    TC = "TC"
    TR = "TR"
    CL = "CL"
    C = "C"
    CR = "CR"
    BL = "BL"
    BC = "BC"
    BR = "BR"

    @property
    def horizontal(self) -> str:
        """'left', 'center' or 'right'."""
        return _HORIZONTAL[self.value[-1]]

    @property
    def vertical(self) -> str:
        """'top', 'center' or 'bottom'."""
        return _VERTICAL[self.value[0]]

    @property
    def label(self) -> str:
        if self is Anchor.C:
            return "Center"
        v, h = self.vertical.title(), self.horizontal.title()
        return f"{v} {h}"


_HORIZONTAL = {"L": "left", "C": "center", "R": "right"}
_VERTICAL = {"T": "top", "C": "center", "B": "bottom"}


@dataclass(frozen=True)
class Preset:
    """Logo position derived from an anchor preset."""
    anchor: Anchor

    @property
    def label(self) -> str:
        return self.anchor.label


@dataclass(frozen=True)
class Custom:
    """Logo position set directly; not recomputed from anchor math."""
    x: float
    y: float

    @property
    def label(self) -> str:
        return "Custom"


Position = Preset | Custom


@dataclass(frozen=True)
class LogoRect:
    """Resolved logo rectangle in canvas pixel space."""
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class PlacementParameters:
    """Logo placement settings plus the derived rectangle.

    ``rect`` is derived state: it is only ever produced by the geometry
    recompute chain, never edited directly.
    """
    position: Position = Preset(Anchor.TR)
    margin: float = 20
    size_percentage: float = 15
    opacity: float = 100
    rect: LogoRect | None = None


@dataclass(frozen=True)
class CanvasGeometry:
    """How a source image is scaled and positioned inside the output canvas."""
    canvas_width: int
    canvas_height: int
    image_width: float
    image_height: float
    offset_x: float
    offset_y: float
    scale: float = 1.0


def clamp(value, low, high):
    """Clamp *value* into [low, high]."""
    return max(low, min(value, high))

"""Preview synchronizer: keeps a bounded-size mirror of the current render.

The full-resolution surface and its preview are published together as one
``Frame`` value, replaced in a single assignment. Readers always see a
matching pair.
"""

import logging
from dataclasses import dataclass

from PySide6.QtCore import Qt, QObject, QTimer, Signal
from PySide6.QtGui import QImage

from compositor import render
from models import PREVIEW_MAX_DIMENSION

log = logging.getLogger(__name__)


def preview_size(width: int, height: int,
                 max_dimension: int = PREVIEW_MAX_DIMENSION) -> tuple[int, int]:
    """Preview dimensions for a surface: scaled down to fit, floored, never enlarged.

    Equivalent to ``floor(dim * min(max/w, max/h, 1))`` but in integer
    arithmetic, so the long side lands exactly on *max_dimension*.
    """
    longest = max(width, height)
    if longest <= max_dimension:
        return width, height
    return (max(1, width * max_dimension // longest),
            max(1, height * max_dimension // longest))


def make_preview(surface: QImage, max_dimension: int = PREVIEW_MAX_DIMENSION) -> QImage:
    """Downscale *surface* so its longest side is at most *max_dimension*."""
    w, h = preview_size(surface.width(), surface.height(), max_dimension)
    if (w, h) == (surface.width(), surface.height()):
        return surface.copy()
    return surface.scaled(w, h, Qt.AspectRatioMode.IgnoreAspectRatio,
                          Qt.TransformationMode.SmoothTransformation)


@dataclass(frozen=True)
class Frame:
    """One render cycle's output: the full surface and its preview."""
    surface: QImage
    preview: QImage
    generation: int


class PreviewSynchronizer(QObject):
    """Re-renders the session's current composite whenever asked.

    ``request_update()`` coalesces bursts of parameter changes into a single
    render on the next event-loop turn. ``refresh()`` renders immediately.
    """

    preview_updated = Signal()

    def __init__(self, session, max_dimension: int = PREVIEW_MAX_DIMENSION, parent=None):
        super().__init__(parent)
        self.session = session
        self.max_dimension = max_dimension
        self._frame: Frame | None = None
        self._generation = 0
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(0)
        self._timer.timeout.connect(self.refresh)

    @property
    def frame(self) -> Frame | None:
        return self._frame

    @property
    def surface(self) -> QImage | None:
        return self._frame.surface if self._frame else None

    @property
    def preview(self) -> QImage | None:
        return self._frame.preview if self._frame else None

    @property
    def pending(self) -> bool:
        return self._timer.isActive()

    def request_update(self):
        """Schedule a refresh; repeated requests before it runs collapse into one."""
        if not self._timer.isActive():
            self._timer.start()

    def refresh(self):
        """Render the current session state now and publish the new frame."""
        self._timer.stop()
        self._generation += 1
        generation = self._generation  # monotonic per render cycle

        s = self.session
        frame = None
        if s.can_render:
            surface = render(s.current_source, s.logo, s.placement.rect,
                             s.placement.opacity, s.output_size)
            if surface is not None:
                frame = Frame(surface, make_preview(surface, self.max_dimension), generation)
            else:
                log.warning("Preview render failed for item %s", s.current_index)

        self._frame = frame
        self.preview_updated.emit()

    def clear(self):
        self._timer.stop()
        self._frame = None
        self.preview_updated.emit()

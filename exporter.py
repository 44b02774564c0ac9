"""Batch exporter and ZIP bundle writer.

Items are rendered one at a time, in collection order. Each item is named
by its original 1-based position, so skipped items leave a gap.
"""

import logging
import time
import zipfile
from dataclasses import dataclass, field
from typing import Callable

from PySide6.QtCore import QThread, Signal

from compositor import encode_png, render
from geometry import placement_for
from models import ImageAsset, OutputSize, PlacementParameters, OUTPUT_EXTENSION

log = logging.getLogger(__name__)


def output_name(index: int) -> str:
    """File name for the item at 0-based *index*: '01.png', '02.png', ..."""
    return f"{index + 1:02d}{OUTPUT_EXTENSION}"


def bundle_name() -> str:
    return f"branded-images-{int(time.time() * 1000)}.zip"


@dataclass
class ExportResult:
    """Outcome of a batch export."""
    requested: int
    outputs: list[tuple[str, bytes]] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return len(self.outputs)

    @property
    def ok(self) -> bool:
        """At least one item rendered."""
        return self.succeeded > 0

    @property
    def complete(self) -> bool:
        return self.ok and self.succeeded == self.requested


def render_item(source: ImageAsset, logo: ImageAsset, params: PlacementParameters,
                output_size: OutputSize) -> bytes | None:
    """Place, render and encode one source. Returns PNG bytes or None on failure."""
    try:
        placed = placement_for(source, logo, params, output_size)
        surface = render(source, logo, placed.rect, placed.opacity, output_size)
        if surface is None:
            return None
        return encode_png(surface)
    except Exception:
        log.exception("Export failed for %s", source.name or source.asset_id)
        return None


def export_all(sources: list[ImageAsset], logo: ImageAsset, params: PlacementParameters,
               output_size: OutputSize,
               progress: Callable[[int, int, str], None] | None = None) -> ExportResult:
    """Render every source with the same logo settings.

    *progress* is called as ``progress(done, total, name)`` after each item.
    """
    sources = list(sources)
    result = ExportResult(requested=len(sources))
    for i, source in enumerate(sources):
        name = output_name(i)
        data = render_item(source, logo, params, output_size)
        if data is None:
            result.failed.append(name)
        else:
            result.outputs.append((name, data))
        if progress:
            progress(i + 1, result.requested, name)
    log.info("Exported %d of %d images", result.succeeded, result.requested)
    return result


def export_single(sources: list[ImageAsset], index: int, logo: ImageAsset,
                  params: PlacementParameters,
                  output_size: OutputSize) -> tuple[str, bytes] | None:
    """Render the item at *index*. Returns (name, png_bytes) or None on failure."""
    if not 0 <= index < len(sources):
        return None
    data = render_item(sources[index], logo, params, output_size)
    if data is None:
        return None
    return output_name(index), data


def write_zip_bundle(outputs: list[tuple[str, bytes]], destination) -> None:
    """Write (name, bytes) pairs into a ZIP archive at *destination* (path or file object)."""
    with zipfile.ZipFile(destination, mode="w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, data in outputs:
            zf.writestr(name, data)


# === Background worker ===

class ExportWorker(QThread):
    """Runs export_all off the GUI thread.

    Signals:
        progress: (done, total, name) after each item
        finished_signal: the ExportResult
    """
    progress = Signal(int, int, str)
    finished_signal = Signal(object)

    def __init__(self, sources, logo, params, output_size, parent=None):
        super().__init__(parent)
        # Snapshot: the GUI may keep editing the session while this runs.
        self._sources = tuple(sources)
        self._logo = logo
        self._params = params
        self._output_size = output_size
        self.result: ExportResult | None = None

    def run(self):
        self.result = export_all(self._sources, self._logo, self._params,
                                 self._output_size, progress=self.progress.emit)
        self.finished_signal.emit(self.result)

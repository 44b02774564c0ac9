"""Controller layer: MainWindow and OverlayApp.

Orchestrates the session, preview synchronizer, exporter and views.
"""

import logging
import os

from PySide6.QtCore import Qt, QEvent, Signal
from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import (
    QApplication, QMainWindow, QStatusBar, QFileDialog, QMessageBox, QWidget,
    QHBoxLayout, QVBoxLayout, QPushButton, QLabel, QProgressBar, QSplitter,
)

from acquisition import AcquisitionError, asset_from_qimage, load_files
from exporter import ExportWorker, bundle_name, export_single, write_zip_bundle
from geometry import fill_scale
from models import Anchor, IMAGE_FILTER, PNG_FILTER, ZIP_FILTER
from preview import PreviewSynchronizer
from session import Session
from views import ControlPanel, PreviewWidget, SourceList

log = logging.getLogger(__name__)

APP_NAME = "Logo Overlay Studio"
TOAST_MS = 5000


# === MainWindow ===

class MainWindow(QMainWindow):
    """Top-level window: source list, preview, controls, status bar."""

    def __init__(self):
        super().__init__()
        self.session = Session()
        self.preview = PreviewSynchronizer(self.session, parent=self)
        self.preview.preview_updated.connect(self._on_preview_updated)
        self._export_worker: ExportWorker | None = None
        self._export_path: str | None = None

        self.setWindowTitle(APP_NAME)
        self.resize(1200, 760)

        self._build_ui()
        self._build_menus()
        self._status = QStatusBar()
        self.setStatusBar(self._status)
        self._progress = QProgressBar()
        self._progress.setMaximumWidth(200)
        self._progress.hide()
        self._status.addPermanentWidget(self._progress)

        self._refresh()

    def _build_ui(self):
        splitter = QSplitter(Qt.Orientation.Horizontal)

        # --- Left: sources ---
        left = QWidget()
        left_layout = QVBoxLayout(left)
        left_layout.addWidget(QLabel("Product Photos"))
        self.source_list = SourceList()
        self.source_list.currentRowChanged.connect(self._on_row_changed)
        self.source_list.remove_requested.connect(self.remove_source)
        left_layout.addWidget(self.source_list, 1)
        add_btn = QPushButton("Add Images...")
        add_btn.clicked.connect(self._add_images)
        left_layout.addWidget(add_btn)
        self.remove_button = QPushButton("Remove")
        self.remove_button.clicked.connect(self._remove_current)
        left_layout.addWidget(self.remove_button)
        splitter.addWidget(left)

        # --- Center: preview + navigation ---
        center = QWidget()
        center_layout = QVBoxLayout(center)
        self.preview_widget = PreviewWidget()
        self.preview_widget.files_dropped.connect(self.add_source_files)
        self.preview_widget.image_dropped.connect(self._on_image_dropped)
        center_layout.addWidget(self.preview_widget, 1)
        nav = QHBoxLayout()
        self.prev_button = QPushButton("◀ Previous")
        self.prev_button.clicked.connect(self.show_previous)
        self.next_button = QPushButton("Next ▶")
        self.next_button.clicked.connect(self.show_next)
        self.nav_label = QLabel()
        self.nav_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        nav.addWidget(self.prev_button)
        nav.addWidget(self.nav_label, 1)
        nav.addWidget(self.next_button)
        center_layout.addLayout(nav)
        splitter.addWidget(center)

        # --- Right: logo + controls ---
        right = QWidget()
        right_layout = QVBoxLayout(right)
        logo_btn = QPushButton("Set Logo...")
        logo_btn.clicked.connect(self._choose_logo)
        right_layout.addWidget(logo_btn)
        self.logo_label = QLabel("No logo")
        right_layout.addWidget(self.logo_label)
        self.controls = ControlPanel()
        self.controls.anchor_changed.connect(self._on_anchor)
        self.controls.size_changed.connect(self._on_size)
        self.controls.margin_changed.connect(self._on_margin)
        self.controls.opacity_changed.connect(self._on_opacity)
        self.controls.output_size_changed.connect(self._on_output_size)
        self.controls.reset_requested.connect(self.reset_position)
        right_layout.addWidget(self.controls, 1)
        self.export_button = QPushButton("Export Current...")
        self.export_button.clicked.connect(self._export_current)
        right_layout.addWidget(self.export_button)
        self.export_all_button = QPushButton("Export All as ZIP...")
        self.export_all_button.clicked.connect(self._export_all)
        right_layout.addWidget(self.export_all_button)
        splitter.addWidget(right)

        splitter.setStretchFactor(1, 1)
        self.setCentralWidget(splitter)

    def _build_menus(self):
        mb = self.menuBar()

        # --- File menu ---
        file_menu = mb.addMenu("&File")

        act = QAction("&Add Images...", self)
        act.setShortcut(QKeySequence.StandardKey.Open)
        act.triggered.connect(self._add_images)
        file_menu.addAction(act)

        act = QAction("Set &Logo...", self)
        act.setShortcut(QKeySequence("Ctrl+L"))
        act.triggered.connect(self._choose_logo)
        file_menu.addAction(act)

        file_menu.addSeparator()

        self._export_action = QAction("&Export Current...", self)
        self._export_action.setShortcut(QKeySequence.StandardKey.Save)
        self._export_action.triggered.connect(self._export_current)
        file_menu.addAction(self._export_action)

        self._export_all_action = QAction("Export &All as ZIP...", self)
        self._export_all_action.setShortcut(QKeySequence("Ctrl+Shift+E"))
        self._export_all_action.triggered.connect(self._export_all)
        file_menu.addAction(self._export_all_action)

        file_menu.addSeparator()

        act = QAction("&Quit", self)
        act.setShortcut(QKeySequence.StandardKey.Quit)
        act.triggered.connect(self.close)
        file_menu.addAction(act)

        # --- Edit menu ---
        edit_menu = mb.addMenu("&Edit")

        self._remove_action = QAction("&Remove Image", self)
        # On macOS, the key labeled "delete" sends Backspace, not forward-delete.
        self._remove_action.setShortcuts([
            QKeySequence.StandardKey.Delete,
            QKeySequence(Qt.Key.Key_Backspace),
        ])
        self._remove_action.triggered.connect(self._remove_current)
        edit_menu.addAction(self._remove_action)

        act = QAction("Clear &All", self)
        act.triggered.connect(self.clear_sources)
        edit_menu.addAction(act)

        edit_menu.addSeparator()

        act = QAction("Reset &Position", self)
        act.setShortcut(QKeySequence("Ctrl+R"))
        act.triggered.connect(self.reset_position)
        edit_menu.addAction(act)

        # --- View menu ---
        view_menu = mb.addMenu("&View")

        act = QAction("&Previous Image", self)
        act.setShortcut(QKeySequence(Qt.Key.Key_Left))
        act.triggered.connect(self.show_previous)
        view_menu.addAction(act)

        act = QAction("&Next Image", self)
        act.setShortcut(QKeySequence(Qt.Key.Key_Right))
        act.triggered.connect(self.show_next)
        view_menu.addAction(act)

    # --- Notifications ---

    def notify(self, message: str):
        """Transient status-bar message."""
        self._status.showMessage(message, TOAST_MS)

    def _report(self, report, success_text: str):
        if report.errors:
            QMessageBox.warning(self, "Some files were not added", "\n".join(report.errors))
        for w in report.warnings:
            log.info("%s", w)
        if report.assets:
            msg = success_text
            if report.warnings:
                msg += "; " + report.warnings[0]
            self.notify(msg)

    # --- Sources ---

    def _add_images(self):
        paths, _ = QFileDialog.getOpenFileNames(self, "Add Product Photos", "", IMAGE_FILTER)
        if paths:
            self.add_source_files(paths)

    def add_source_files(self, paths: list[str]) -> int:
        """Load photos from *paths* into the session. Returns the number added."""
        report = load_files(paths, kind="photo")
        added = self.session.add_sources(report.assets)
        self._report(report, f"{added} image(s) added")
        if added:
            self._refresh()
        return added

    def add_sources(self, assets) -> int:
        added = self.session.add_sources(assets)
        if added:
            self._refresh()
        return added

    def _on_image_dropped(self, qimg):
        try:
            asset = asset_from_qimage(qimg, "dropped image")
        except AcquisitionError as e:
            self.notify(str(e))
            return
        self.add_sources([asset])
        self.notify("1 image(s) added")

    def remove_source(self, asset_id: str):
        if self.session.remove_source(asset_id):
            if not self.session.sources:
                self.preview.clear()
            self._refresh()
            self.notify("Image removed")

    def _remove_current(self):
        src = self.session.current_source
        if src is not None:
            self.remove_source(src.asset_id)

    def clear_sources(self):
        if not self.session.sources:
            return
        self.session.clear_sources()
        self.preview.clear()
        self._refresh()

    # --- Logo ---

    def _choose_logo(self):
        path, _ = QFileDialog.getOpenFileName(self, "Choose Logo", "", IMAGE_FILTER)
        if path:
            self.set_logo_file(path)

    def set_logo_file(self, path: str) -> bool:
        report = load_files([path], kind="logo")
        if not report.assets:
            self._report(report, "")
            return False
        logo = report.assets[0]
        self.set_logo(logo)
        self._report(report, f"Logo loaded ({logo.pixel_width}×{logo.pixel_height})")
        return True

    def set_logo(self, asset):
        self.session.set_logo(asset)
        self._refresh()

    # --- Navigation ---

    def _on_row_changed(self, row: int):
        if row >= 0 and self.session.select(row):
            self._refresh()

    def show_previous(self):
        if self.session.previous():
            self._refresh()

    def show_next(self):
        if self.session.next():
            self._refresh()

    # --- Placement controls ---

    def _on_anchor(self, anchor: str):
        self.session.set_anchor(Anchor(anchor))
        self._refresh()

    def _on_size(self, value: int):
        self.session.set_size_percentage(value)
        self._refresh()

    def _on_margin(self, value: int):
        self.session.set_margin(value)
        self._refresh()

    def _on_opacity(self, value: int):
        self.session.set_opacity(value)
        self._refresh()

    def _on_output_size(self, size):
        self.session.set_output_size(size)
        self._refresh()

    def reset_position(self):
        self.session.reset_position()
        self._refresh()
        self.notify("Position reset to Top Right")

    # --- Export ---

    def _export_current(self):
        s = self.session
        if s.current_source is None or s.logo is None:
            self.notify("No image or logo to download.")
            return
        default = os.path.join(os.path.expanduser("~"), f"{s.current_index + 1:02d}.png")
        path, _ = QFileDialog.getSaveFileName(self, "Export Image", default, PNG_FILTER)
        if path:
            self.export_current_to(path)

    def export_current_to(self, path: str) -> bool:
        """Render the current item at full resolution and write it to *path*."""
        s = self.session
        if s.current_source is None or s.logo is None:
            return False
        item = export_single(s.sources, s.current_index, s.logo, s.placement, s.output_size)
        if item is None:
            QMessageBox.critical(self, "Export Error", "Error creating download file.")
            return False
        name, data = item
        try:
            with open(path, "wb") as f:
                f.write(data)
        except OSError as e:
            QMessageBox.critical(self, "Export Error", f"Could not save file:\n{e}")
            return False
        log.info("Exported %s to %s", name, path)
        self.notify("Image downloaded successfully!")
        return True

    def _export_all(self):
        if not self.session.can_export:
            self.notify("No images or logo to download.")
            return
        default = os.path.join(os.path.expanduser("~"), bundle_name())
        path, _ = QFileDialog.getSaveFileName(self, "Export All as ZIP", default, ZIP_FILTER)
        if not path:
            return
        if not path.endswith(".zip"):
            path += ".zip"
        self.export_all_to(path)

    def export_all_to(self, path: str) -> ExportWorker | None:
        """Start a background export of every photo into a ZIP at *path*."""
        s = self.session
        if not s.can_export or self._export_worker is not None:
            return None
        self._export_path = path
        worker = ExportWorker(s.sources, s.logo, s.placement, s.output_size, parent=self)
        worker.progress.connect(self._on_export_progress)
        worker.finished_signal.connect(self._on_export_finished)
        self._export_worker = worker
        self._progress.setRange(0, len(s.sources))
        self._progress.setValue(0)
        self._progress.show()
        self._set_export_enabled(False)
        worker.start()
        return worker

    def _on_export_progress(self, done: int, total: int, name: str):
        self._progress.setValue(done)
        self._status.showMessage(f"Processing {done}/{total}: {name}")

    def _on_export_finished(self, result):
        worker, self._export_worker = self._export_worker, None
        if worker is not None:
            worker.wait()
            worker.deleteLater()
        self._progress.hide()
        self._set_export_enabled(True)

        if not result.ok:
            QMessageBox.critical(self, "Export Error", "No images could be processed.")
            return
        try:
            write_zip_bundle(result.outputs, self._export_path)
        except OSError as e:
            QMessageBox.critical(self, "Export Error", f"Error creating ZIP file:\n{e}")
            return
        if result.complete:
            self.notify(f"{result.succeeded} images downloaded as ZIP!")
        else:
            self.notify(f"{result.succeeded} of {result.requested} images exported "
                        f"(failed: {', '.join(result.failed)})")

    def _set_export_enabled(self, enabled: bool):
        for w in (self.export_all_button, self._export_all_action):
            w.setEnabled(enabled and self.session.can_export)

    # --- Refresh & status ---

    def _refresh(self):
        """Sync widgets with the session and schedule a preview re-render."""
        s = self.session
        self.source_list.set_sources(s.sources, s.current_index)

        canvas = None
        if s.current_source is not None:
            geo = fill_scale(s.current_source.pixel_width, s.current_source.pixel_height,
                             s.output_size)
            canvas = (geo.canvas_width, geo.canvas_height)
        self.controls.sync(s.placement, s.output_size, canvas)

        if s.logo is not None:
            self.logo_label.setText(f"Logo: {s.logo.name or 'logo'} "
                                    f"({s.logo.pixel_width}×{s.logo.pixel_height})")
        else:
            self.logo_label.setText("No logo")

        n = len(s.sources)
        idx = s.current_index
        self.nav_label.setText(f"{idx + 1} / {n}" if idx is not None else "No images")
        self.prev_button.setEnabled(idx is not None and idx > 0)
        self.next_button.setEnabled(idx is not None and idx < n - 1)
        has_current = s.current_source is not None
        self.remove_button.setEnabled(has_current)
        self._remove_action.setEnabled(has_current)
        can_single = has_current and s.logo is not None
        self.export_button.setEnabled(can_single)
        self._export_action.setEnabled(can_single)
        self._set_export_enabled(self._export_worker is None)

        if not n:
            hint = "Drop product photos here or use Add Images..."
        elif s.logo is None:
            hint = "Set a logo to see the preview"
        else:
            hint = "Rendering..."
        self.preview_widget.set_hint(hint)
        self.preview.request_update()

    def _on_preview_updated(self):
        self.preview_widget.set_image(self.preview.preview)

    def closeEvent(self, event):
        if self._export_worker is not None:
            self._export_worker.wait()
        event.accept()


# === OverlayApp: custom QApplication for macOS file open events ===

class OverlayApp(QApplication):
    """QApplication subclass that handles macOS QFileOpenEvent."""

    file_open_requested = Signal(str)

    def event(self, event):
        if event.type() == QEvent.Type.FileOpen:
            self.file_open_requested.emit(event.file())
            return True
        return super().event(event)

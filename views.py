"""View layer: Qt widgets for display and interaction.

Contains PreviewWidget (composite preview + photo drop target), AnchorGrid,
ControlPanel and SourceList. Widgets emit signals; they never touch the
session directly.
"""

from PySide6.QtCore import Qt, QRectF, QSize, Signal
from PySide6.QtGui import QImage, QPainter, QPen, QColor, QPixmap, QIcon
from PySide6.QtWidgets import (
    QWidget, QGridLayout, QPushButton, QButtonGroup, QFormLayout, QComboBox,
    QSlider, QSpinBox, QVBoxLayout, QHBoxLayout, QGroupBox, QLabel,
    QListWidget, QListWidgetItem, QAbstractItemView,
)

from models import (
    Anchor, ImageAsset, OutputSize, PlacementParameters, Preset,
    OUTPUT_SIZES, SIZE_PERCENT_MIN, SIZE_PERCENT_MAX, OPACITY_MIN, OPACITY_MAX,
    MARGIN_MAX, PREVIEW_MAX_DIMENSION,
)


# === PreviewWidget ===

class PreviewWidget(QWidget):
    """Shows the current preview image centered, or a hint when there is none."""

    files_dropped = Signal(list)   # list of local file paths
    image_dropped = Signal(object)  # QImage from drag data

    def __init__(self, parent=None):
        super().__init__(parent)
        self._image: QImage | None = None
        self._hint = "Add product photos and a logo to see a preview"
        self.setMinimumSize(PREVIEW_MAX_DIMENSION + 40, PREVIEW_MAX_DIMENSION + 40)
        self.setAcceptDrops(True)

    def set_image(self, image: QImage | None):
        self._image = image
        self.update()

    def set_hint(self, text: str):
        self._hint = text
        self.update()

    def image(self) -> QImage | None:
        return self._image

    @staticmethod
    def _fit_rect(area: QRectF, src_w: float, src_h: float) -> QRectF:
        """Largest rect with src aspect ratio inside *area*, centered, never enlarged."""
        if src_w <= 0 or src_h <= 0:
            return area
        scale = min(area.width() / src_w, area.height() / src_h, 1.0)
        w, h = src_w * scale, src_h * scale
        return QRectF(area.x() + (area.width() - w) / 2,
                      area.y() + (area.height() - h) / 2, w, h)

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.fillRect(self.rect(), QColor(235, 235, 235))

        if self._image is None or self._image.isNull():
            painter.setPen(QColor(120, 120, 120))
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter,
                             self._hint)
            painter.end()
            return

        padding = 20
        area = QRectF(self.rect()).adjusted(padding, padding, -padding, -padding)
        dest = self._fit_rect(area, self._image.width(), self._image.height())
        # Drop shadow
        painter.fillRect(dest.translated(3, 3), QColor(170, 170, 170))
        painter.drawImage(dest, self._image)
        painter.setPen(QPen(QColor(200, 200, 200), 1))
        painter.drawRect(dest)
        painter.end()

    # --- Drag and drop ---

    def dragEnterEvent(self, event):
        mime = event.mimeData()
        if mime.hasUrls() or mime.hasImage():
            event.acceptProposedAction()

    def dragMoveEvent(self, event):
        event.acceptProposedAction()

    def dropEvent(self, event):
        mime = event.mimeData()
        paths = [url.toLocalFile() for url in mime.urls() if url.isLocalFile()]
        if paths:
            self.files_dropped.emit(paths)
        elif mime.hasImage():
            qimg = QImage(mime.imageData())
            if not qimg.isNull():
                self.image_dropped.emit(qimg)
        event.acceptProposedAction()


# === AnchorGrid ===

class AnchorGrid(QWidget):
    """3x3 grid of checkable buttons, one per anchor preset."""

    anchor_selected = Signal(str)

    def __init__(self, parent=None):
        super().__init__(parent)
        grid = QGridLayout(self)
        grid.setSpacing(4)
        grid.setContentsMargins(0, 0, 0, 0)
        self._group = QButtonGroup(self)
        self._group.setExclusive(True)
        self._buttons: dict[Anchor, QPushButton] = {}
        for i, anchor in enumerate(Anchor):
            btn = QPushButton(anchor.value)
            btn.setCheckable(True)
            btn.setToolTip(anchor.label)
            btn.setFixedSize(44, 32)
            btn.clicked.connect(lambda _checked=False, a=anchor: self.anchor_selected.emit(a.value))
            self._group.addButton(btn)
            self._buttons[anchor] = btn
            grid.addWidget(btn, i // 3, i % 3)

    def button(self, anchor: Anchor) -> QPushButton:
        return self._buttons[Anchor(anchor)]

    def set_anchor(self, anchor: Anchor | None):
        """Check the button for *anchor*; None (custom position) unchecks all."""
        if anchor is None:
            self._group.setExclusive(False)
            for btn in self._buttons.values():
                btn.setChecked(False)
            self._group.setExclusive(True)
        else:
            self._buttons[Anchor(anchor)].setChecked(True)


# === ControlPanel ===

class ControlPanel(QWidget):
    """Placement and output controls."""

    anchor_changed = Signal(str)
    size_changed = Signal(int)
    margin_changed = Signal(int)
    opacity_changed = Signal(int)
    output_size_changed = Signal(object)  # OutputSize
    reset_requested = Signal()

    def __init__(self, parent=None):
        super().__init__(parent)
        layout = QVBoxLayout(self)

        # --- Position group ---
        pos_group = QGroupBox("Position")
        pos_layout = QVBoxLayout(pos_group)
        self.anchor_grid = AnchorGrid()
        self.anchor_grid.anchor_selected.connect(self.anchor_changed)
        pos_layout.addWidget(self.anchor_grid, 0, Qt.AlignmentFlag.AlignHCenter)
        self.position_label = QLabel()
        self.position_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        pos_layout.addWidget(self.position_label)
        self.reset_button = QPushButton("Reset to Top Right")
        self.reset_button.clicked.connect(lambda: self.reset_requested.emit())
        pos_layout.addWidget(self.reset_button)
        layout.addWidget(pos_group)

        # --- Logo group ---
        logo_group = QGroupBox("Logo")
        logo_form = QFormLayout(logo_group)

        self.size_slider = QSlider(Qt.Orientation.Horizontal)
        self.size_slider.setRange(SIZE_PERCENT_MIN, SIZE_PERCENT_MAX)
        self.size_label = QLabel()
        self.size_slider.valueChanged.connect(self._on_size)
        logo_form.addRow("Size:", self._with_label(self.size_slider, self.size_label))

        self.margin_spin = QSpinBox()
        self.margin_spin.setRange(0, MARGIN_MAX)
        self.margin_spin.setSuffix(" px")
        self.margin_spin.valueChanged.connect(self.margin_changed)
        logo_form.addRow("Margin:", self.margin_spin)

        self.opacity_slider = QSlider(Qt.Orientation.Horizontal)
        self.opacity_slider.setRange(OPACITY_MIN, OPACITY_MAX)
        self.opacity_label = QLabel()
        self.opacity_slider.valueChanged.connect(self._on_opacity)
        logo_form.addRow("Opacity:", self._with_label(self.opacity_slider, self.opacity_label))

        layout.addWidget(logo_group)

        # --- Output group ---
        out_group = QGroupBox("Output")
        out_form = QFormLayout(out_group)
        self.size_combo = QComboBox()
        for size in OUTPUT_SIZES:
            self.size_combo.addItem(size.label)
        self.size_combo.currentIndexChanged.connect(
            lambda i: self.output_size_changed.emit(OUTPUT_SIZES[i]))
        out_form.addRow("Output size:", self.size_combo)
        self.dimensions_label = QLabel()
        out_form.addRow("Canvas:", self.dimensions_label)
        layout.addWidget(out_group)

        layout.addStretch()

    @staticmethod
    def _with_label(widget: QWidget, label: QLabel) -> QWidget:
        row = QWidget()
        h = QHBoxLayout(row)
        h.setContentsMargins(0, 0, 0, 0)
        h.addWidget(widget, 1)
        label.setMinimumWidth(40)
        h.addWidget(label)
        return row

    def _on_size(self, value: int):
        self.size_label.setText(f"{value}%")
        self.size_changed.emit(value)

    def _on_opacity(self, value: int):
        self.opacity_label.setText(f"{value}%")
        self.opacity_changed.emit(value)

    def sync(self, params: PlacementParameters, output_size: OutputSize,
             canvas: tuple[int, int] | None = None):
        """Show *params* without re-emitting change signals."""
        widgets = (self.size_slider, self.margin_spin, self.opacity_slider, self.size_combo)
        for w in widgets:
            w.blockSignals(True)
        try:
            self.size_slider.setValue(int(round(params.size_percentage)))
            self.margin_spin.setValue(int(round(params.margin)))
            self.opacity_slider.setValue(int(round(params.opacity)))
            if output_size in OUTPUT_SIZES:
                self.size_combo.setCurrentIndex(OUTPUT_SIZES.index(output_size))
        finally:
            for w in widgets:
                w.blockSignals(False)

        self.size_label.setText(f"{self.size_slider.value()}%")
        self.opacity_label.setText(f"{self.opacity_slider.value()}%")
        anchor = params.position.anchor if isinstance(params.position, Preset) else None
        self.anchor_grid.set_anchor(anchor)
        self.position_label.setText(params.position.label)
        self.dimensions_label.setText(f"{canvas[0]} × {canvas[1]} px" if canvas else "-")


# === SourceList ===

_THUMB = 64


class SourceList(QListWidget):
    """Thumbnail list of the session's photos, in collection order."""

    remove_requested = Signal(str)  # asset_id

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setIconSize(QSize(_THUMB, _THUMB))
        self.setSelectionMode(QAbstractItemView.SelectionMode.SingleSelection)
        self.setMinimumWidth(180)
        self._icon_cache: dict[str, QIcon] = {}

    def _icon(self, asset: ImageAsset) -> QIcon:
        if asset.asset_id not in self._icon_cache:
            qimg = QImage()
            qimg.loadFromData(asset.png_data)
            thumb = qimg.scaled(_THUMB, _THUMB, Qt.AspectRatioMode.KeepAspectRatio,
                                Qt.TransformationMode.SmoothTransformation)
            self._icon_cache[asset.asset_id] = QIcon(QPixmap.fromImage(thumb))
        return self._icon_cache[asset.asset_id]

    def set_sources(self, sources: list[ImageAsset], current: int | None):
        self.blockSignals(True)
        try:
            ids = [a.asset_id for a in sources]
            if ids == [self.asset_id_at(r) for r in range(self.count())]:
                # Same items: only the selection moved
                if current is not None and current != self.currentRow():
                    self.setCurrentRow(current)
                return
            self.clear()
            live = {a.asset_id for a in sources}
            self._icon_cache = {k: v for k, v in self._icon_cache.items() if k in live}
            for i, asset in enumerate(sources):
                item = QListWidgetItem(self._icon(asset),
                                       f"{i + 1:02d}  {asset.name or 'image'}\n"
                                       f"{asset.pixel_width} × {asset.pixel_height}")
                item.setData(Qt.ItemDataRole.UserRole, asset.asset_id)
                self.addItem(item)
            if current is not None:
                self.setCurrentRow(current)
        finally:
            self.blockSignals(False)

    def asset_id_at(self, row: int) -> str | None:
        item = self.item(row)
        return item.data(Qt.ItemDataRole.UserRole) if item else None

    def keyPressEvent(self, event):
        if event.key() in (Qt.Key.Key_Delete, Qt.Key.Key_Backspace):
            asset_id = self.asset_id_at(self.currentRow())
            if asset_id:
                self.remove_requested.emit(asset_id)
                event.accept()
                return
        super().keyPressEvent(event)

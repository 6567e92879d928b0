"""
Editor widget for DentalCeph - the annotation surface around the canvas.

This widget composes the editor interface:
- Top toolbar with tool buttons, history commands, rotate and export
- Center canvas for the radiograph and its annotations
- Right properties panel for color, thickness and font
- Bottom status bar with zoom presets and image dimensions
"""

from pathlib import Path
from typing import Dict, Optional

from PySide6.QtCore import QPoint, QPointF, Qt, Signal, Slot
from PySide6.QtGui import QColor, QIcon, QImage, QPainter, QPainterPath, QPen, QPixmap
from PySide6.QtWidgets import (
    QButtonGroup,
    QColorDialog,
    QComboBox,
    QFileDialog,
    QFrame,
    QHBoxLayout,
    QInputDialog,
    QLabel,
    QMessageBox,
    QPushButton,
    QSizePolicy,
    QToolBar,
    QToolButton,
    QVBoxLayout,
    QWidget,
)

from dentalceph.editor.editor_canvas import EditorCanvas
from dentalceph.editor.exporter import ExportFormat, parse_export_format
from dentalceph.editor.tools import RatioResult, ToolBase, ToolContext, ToolType, create_tool
from dentalceph.services.config_service import ConfigService
from dentalceph.services.logging_service import get_logger


class ColorButton(QPushButton):
    """Swatch button that opens a color picker on click."""

    color_changed = Signal(QColor)

    def __init__(self, color: QColor, parent=None):
        super().__init__(parent)
        self._color = QColor(color)
        self.setFixedSize(32, 32)
        self.clicked.connect(self._on_click)
        self._update_style()

    @property
    def color(self) -> QColor:
        return self._color

    def _update_style(self) -> None:
        self.setStyleSheet(
            f"QPushButton {{ background-color: {self._color.name()}; "
            f"border: 2px solid #555; border-radius: 4px; }}"
        )

    def _on_click(self) -> None:
        color = QColorDialog.getColor(self._color, self, "Annotation Color")
        if color.isValid():
            self._color = color
            self._update_style()
            self.color_changed.emit(color)


class PropertiesPanel(QFrame):
    """
    Right panel with the annotation style.

    Changes are written into the shared ToolContext and announced
    through context_changed.
    """

    context_changed = Signal(object)

    def __init__(self, context: ToolContext, config: ConfigService, parent=None):
        super().__init__(parent)
        self._context = context
        self._config = config
        self._setup_ui()

    def _setup_ui(self) -> None:
        self.setFrameStyle(QFrame.Shape.StyledPanel)
        self.setFixedWidth(180)
        self.setStyleSheet("""
            QFrame {
                background-color: #f7f7fb;
                border-left: 1px solid #e0e0ea;
            }
            QLabel {
                color: #333;
                font-size: 11px;
            }
        """)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.setSpacing(10)

        title = QLabel("Annotation")
        title.setStyleSheet("font-weight: bold; font-size: 13px;")
        layout.addWidget(title)

        layout.addWidget(QLabel("Color"))
        self._color = ColorButton(self._context.color)
        self._color.color_changed.connect(self._on_color_changed)
        layout.addWidget(self._color)

        layout.addWidget(QLabel("Thickness"))
        self._thickness = QComboBox()
        for value in self._config.thickness_options:
            self._thickness.addItem(f"{value} px", value)
        self._select_data(self._thickness, self._context.thickness)
        self._thickness.currentIndexChanged.connect(self._on_thickness_changed)
        layout.addWidget(self._thickness)

        layout.addWidget(QLabel("Font Size"))
        self._font_size = QComboBox()
        for value in self._config.font_size_options:
            self._font_size.addItem(f"{value} px", value)
        self._select_data(self._font_size, self._context.font_size)
        self._font_size.currentIndexChanged.connect(self._on_font_size_changed)
        layout.addWidget(self._font_size)

        layout.addWidget(QLabel("Font"))
        self._font_family = QComboBox()
        self._font_family.addItems(self._config.font_families)
        self._font_family.setCurrentText(self._context.font_family)
        self._font_family.currentTextChanged.connect(self._on_font_family_changed)
        layout.addWidget(self._font_family)

        layout.addStretch()

    @staticmethod
    def _select_data(combo: QComboBox, value) -> None:
        index = combo.findData(value)
        if index >= 0:
            combo.setCurrentIndex(index)

    @property
    def context(self) -> ToolContext:
        return self._context

    def _emit_change(self) -> None:
        self.context_changed.emit(self._context)

    def _on_color_changed(self, color: QColor) -> None:
        self._context.color = QColor(color)
        self._emit_change()

    def _on_thickness_changed(self, index: int) -> None:
        self._context.thickness = self._thickness.itemData(index)
        self._emit_change()

    def _on_font_size_changed(self, index: int) -> None:
        self._context.font_size = self._font_size.itemData(index)
        self._emit_change()

    def _on_font_family_changed(self, family: str) -> None:
        self._context.font_family = family
        self._emit_change()


class StatusBar(QFrame):
    """Bottom status bar with zoom presets and the image dimensions."""

    zoom_selected = Signal(float)

    def __init__(self, zoom_levels, parent=None):
        super().__init__(parent)
        self._setup_ui(zoom_levels)

    def _setup_ui(self, zoom_levels) -> None:
        self.setFrameStyle(QFrame.Shape.StyledPanel)
        self.setFixedHeight(32)

        layout = QHBoxLayout(self)
        layout.setContentsMargins(12, 0, 12, 0)
        layout.setSpacing(20)

        layout.addWidget(QLabel("Zoom:"))
        self._zoom_combo = QComboBox()
        self._zoom_combo.addItems([f"{level}%" for level in zoom_levels])
        self._zoom_combo.setCurrentText("100%")
        self._zoom_combo.currentTextChanged.connect(self._on_zoom_selected)
        layout.addWidget(self._zoom_combo)

        self._dimensions = QLabel("No image")
        layout.addWidget(self._dimensions)

        self._rotation = QLabel("0°")
        layout.addWidget(self._rotation)

        layout.addStretch()

    def set_zoom(self, zoom: float) -> None:
        """Show the zoom percentage without re-emitting it."""
        self._zoom_combo.blockSignals(True)
        text = f"{int(round(zoom))}%"
        index = self._zoom_combo.findText(text)
        if index >= 0:
            self._zoom_combo.setCurrentIndex(index)
        self._zoom_combo.blockSignals(False)

    def set_dimensions(self, width: int, height: int) -> None:
        self._dimensions.setText(f"{width} × {height}")

    def set_rotation(self, degrees: float) -> None:
        self._rotation.setText(f"{int(degrees)}°")

    def _on_zoom_selected(self, text: str) -> None:
        try:
            self.zoom_selected.emit(float(text.replace("%", "")))
        except ValueError:
            pass


def _create_tool_icon(shape: str, color: QColor = QColor(60, 60, 80)) -> QIcon:
    """Draw a small toolbar icon."""
    size = 24
    pixmap = QPixmap(size, size)
    pixmap.fill(Qt.GlobalColor.transparent)

    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.RenderHint.Antialiasing)
    pen = QPen(color, 2)
    pen.setCapStyle(Qt.PenCapStyle.RoundCap)
    painter.setPen(pen)

    if shape == "point":
        painter.setBrush(color)
        painter.drawEllipse(QPointF(12, 12), 4, 4)

    elif shape == "line":
        painter.drawLine(5, 19, 19, 5)

    elif shape == "text":
        font = painter.font()
        font.setPixelSize(16)
        font.setBold(True)
        painter.setFont(font)
        painter.drawText(pixmap.rect(), Qt.AlignmentFlag.AlignCenter, "T")

    elif shape == "angle":
        painter.drawLine(4, 20, 20, 20)
        painter.drawLine(4, 20, 16, 6)
        path = QPainterPath()
        path.arcMoveTo(-6, 10, 20, 20, 0)
        path.arcTo(-6, 10, 20, 20, 0, 50)
        painter.drawPath(path)

    elif shape == "ratio":
        painter.drawLine(4, 8, 14, 8)
        painter.drawLine(4, 16, 20, 16)

    elif shape == "undo":
        path = QPainterPath()
        path.moveTo(8, 8)
        path.cubicTo(16, 4, 22, 12, 16, 18)
        painter.drawPath(path)
        painter.drawLine(QPoint(8, 8), QPoint(10, 3))
        painter.drawLine(QPoint(8, 8), QPoint(13, 10))

    elif shape == "redo":
        path = QPainterPath()
        path.moveTo(16, 8)
        path.cubicTo(8, 4, 2, 12, 8, 18)
        painter.drawPath(path)
        painter.drawLine(QPoint(16, 8), QPoint(14, 3))
        painter.drawLine(QPoint(16, 8), QPoint(11, 10))

    elif shape == "rotate":
        painter.drawArc(5, 5, 14, 14, 90 * 16, 270 * 16)
        painter.drawLine(QPoint(12, 5), QPoint(16, 2))
        painter.drawLine(QPoint(12, 5), QPoint(16, 8))

    painter.end()
    return QIcon(pixmap)


class EditorWidget(QWidget):
    """
    Editor widget composing toolbar, canvas, properties and status bar.

    Signals:
        status_message: Short user-facing messages for the main window.
    """

    status_message = Signal(str)

    def __init__(self, config_service: Optional[ConfigService] = None, parent=None):
        super().__init__(parent)
        self._logger = get_logger(__name__)
        self._config = config_service or ConfigService()

        self._tools: Dict[ToolType, ToolBase] = {}
        self._current_tool_type: ToolType = ToolType.POINT
        self._context = ToolContext.from_config(self._config)

        self._setup_ui()
        self._connect_signals()

        self._select_tool(ToolType.POINT)
        self._on_history_changed()

    def _setup_ui(self) -> None:
        """Build the UI layout."""
        main_layout = QVBoxLayout(self)
        main_layout.setContentsMargins(0, 0, 0, 0)
        main_layout.setSpacing(0)

        # ─── Top Toolbar ──────────────────────────────────────────────
        self._toolbar = QToolBar()
        self._toolbar.setMovable(False)
        self._toolbar.setStyleSheet("""
            QToolBar {
                background-color: #ffffff;
                border-bottom: 1px solid #e0e0ea;
                padding: 6px 8px;
                spacing: 4px;
            }
            QToolButton {
                border: none;
                border-radius: 8px;
                padding: 6px 8px;
                min-width: 32px;
                min-height: 32px;
            }
            QToolButton:hover {
                background-color: rgba(79, 70, 229, 0.08);
            }
            QToolButton:checked {
                background-color: rgba(79, 70, 229, 0.2);
            }
        """)

        self._tool_group = QButtonGroup(self)
        self._tool_group.setExclusive(True)

        tool_configs = [
            (ToolType.POINT, "Point", "point", "P"),
            (ToolType.LINE, "Line", "line", "L"),
            (ToolType.TEXT, "Text", "text", "T"),
            (ToolType.ANGLE, "Angle", "angle", "A"),
            (ToolType.RATIO, "Jarabak Ratio", "ratio", "J"),
        ]

        for tool_type, tooltip, icon_shape, shortcut in tool_configs:
            btn = QToolButton()
            btn.setIcon(_create_tool_icon(icon_shape))
            btn.setToolTip(f"{tooltip} ({shortcut})")
            btn.setCheckable(True)
            btn.setProperty("tool_type", tool_type)
            btn.clicked.connect(lambda checked, t=tool_type: self._select_tool(t))
            self._tool_group.addButton(btn)
            self._toolbar.addWidget(btn)

        self._toolbar.addSeparator()

        self._undo_btn = QToolButton()
        self._undo_btn.setIcon(_create_tool_icon("undo"))
        self._undo_btn.setToolTip("Undo (Ctrl+Z)")
        self._undo_btn.clicked.connect(lambda: self._canvas.undo())
        self._toolbar.addWidget(self._undo_btn)

        self._redo_btn = QToolButton()
        self._redo_btn.setIcon(_create_tool_icon("redo"))
        self._redo_btn.setToolTip("Redo (Ctrl+Y)")
        self._redo_btn.clicked.connect(lambda: self._canvas.redo())
        self._toolbar.addWidget(self._redo_btn)

        commit_btn = QToolButton()
        commit_btn.setText("Commit")
        commit_btn.setToolTip("Make current annotations permanent")
        commit_btn.clicked.connect(self._commit)
        self._toolbar.addWidget(commit_btn)

        clear_btn = QToolButton()
        clear_btn.setText("Clear")
        clear_btn.setToolTip("Remove annotations that were not committed")
        clear_btn.clicked.connect(self._clear)
        self._toolbar.addWidget(clear_btn)

        self._toolbar.addSeparator()

        rotate_btn = QToolButton()
        rotate_btn.setIcon(_create_tool_icon("rotate"))
        rotate_btn.setToolTip("Rotate 90°")
        rotate_btn.clicked.connect(lambda: self._canvas.rotate_clockwise())
        self._toolbar.addWidget(rotate_btn)

        spacer = QWidget()
        spacer.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Preferred)
        self._toolbar.addWidget(spacer)

        export_btn = QToolButton()
        export_btn.setText("Export")
        export_btn.setToolTip("Export annotated image (Ctrl+S)")
        export_btn.clicked.connect(self.export_image)
        self._toolbar.addWidget(export_btn)

        main_layout.addWidget(self._toolbar)

        # ─── Center Content ───────────────────────────────────────────
        content = QHBoxLayout()
        content.setContentsMargins(0, 0, 0, 0)
        content.setSpacing(0)

        self._canvas = EditorCanvas(self._context, self._config.default_zoom)
        content.addWidget(self._canvas, 1)

        self._properties = PropertiesPanel(self._context, self._config)
        content.addWidget(self._properties)

        main_layout.addLayout(content, 1)

        # ─── Bottom Status Bar ────────────────────────────────────────
        self._status = StatusBar(self._config.zoom_levels)
        main_layout.addWidget(self._status)

    def _connect_signals(self) -> None:
        """Connect widget signals."""
        self._canvas.zoom_changed.connect(self._status.set_zoom)
        self._canvas.rotation_changed.connect(self._status.set_rotation)
        self._canvas.image_changed.connect(self._on_image_changed)
        self._canvas.ratio_measured.connect(self._on_ratio_measured)
        self._canvas.history_changed.connect(self._on_history_changed)
        self._properties.context_changed.connect(self._canvas.set_tool_context)
        self._status.zoom_selected.connect(self._canvas.set_zoom)

    @property
    def canvas(self) -> EditorCanvas:
        return self._canvas

    # ─── Tool Management ──────────────────────────────────────────────────

    def _select_tool(self, tool_type: ToolType) -> None:
        """Select a tool by type. Reselecting the active tool changes nothing."""
        active = self._tools.get(tool_type)
        if tool_type == self._current_tool_type and active is self._canvas.active_tool:
            return

        self._current_tool_type = tool_type

        if tool_type not in self._tools:
            self._tools[tool_type] = create_tool(tool_type)

        self._canvas.set_tool(self._tools[tool_type])

        for btn in self._tool_group.buttons():
            if btn.property("tool_type") == tool_type:
                btn.setChecked(True)
                break

    # ─── Signal Handlers ──────────────────────────────────────────────────

    @Slot()
    def _on_image_changed(self) -> None:
        w, h = self._canvas.image_size
        self._status.set_dimensions(w, h)

    @Slot()
    def _on_history_changed(self) -> None:
        history = self._canvas.history
        self._undo_btn.setEnabled(history.can_undo)
        self._redo_btn.setEnabled(history.can_redo)

    @Slot(object)
    def _on_ratio_measured(self, result: RatioResult) -> None:
        QMessageBox.information(
            self,
            "Jarabak Ratio",
            f"Jarabak ratio: {result.ratio:.3f}\n\n"
            f"First line: {result.first_length:.1f} px\n"
            f"Second line: {result.second_length:.1f} px",
        )
        self._canvas.dismiss_ratio_result()

    def _commit(self) -> None:
        self._canvas.freeze()
        self.status_message.emit("Annotations committed")

    def _clear(self) -> None:
        self._canvas.clear_all()
        self.status_message.emit("Uncommitted annotations cleared")

    # ─── Image Management ─────────────────────────────────────────────────

    def set_image(self, image: QImage) -> None:
        """Load an image into the editor."""
        self._canvas.set_image(image)

    def export_image(self) -> Optional[Path]:
        """Ask for a format and a destination, then export."""
        if not self._canvas.image:
            self.status_message.emit("Open an image before exporting")
            return None

        format_text, ok = QInputDialog.getText(
            self,
            "Export",
            "Format (png, jpg, jpeg, pdf):",
            text=self._config.default_export_format,
        )
        if not ok:
            return None

        path = self._canvas.export_as(format_text, self._choose_destination)
        if path is not None:
            self.status_message.emit(f"Exported to {path}")
        elif format_text.strip() and parse_export_format(format_text) is None:
            QMessageBox.warning(self, "Export", f"Unsupported format: {format_text.strip()}")
        return path

    def _choose_destination(self, suggested_name: str, export_format: ExportFormat) -> Optional[Path]:
        folder = Path(self._config.export_folder)
        try:
            folder.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self._logger.warning(f"Could not create export folder {folder}: {e}")

        ext = export_format.extension
        filename, _ = QFileDialog.getSaveFileName(
            self,
            "Export Annotated Image",
            str(folder / suggested_name),
            f"{ext.upper()} (*.{ext})",
        )
        if not filename:
            return None
        return Path(filename)

    # ─── Key Events ───────────────────────────────────────────────────────

    def keyPressEvent(self, event) -> None:
        """Handle keyboard shortcuts."""
        key = event.key()
        modifiers = event.modifiers()

        tool_shortcuts = {
            Qt.Key.Key_P: ToolType.POINT,
            Qt.Key.Key_L: ToolType.LINE,
            Qt.Key.Key_T: ToolType.TEXT,
            Qt.Key.Key_A: ToolType.ANGLE,
            Qt.Key.Key_J: ToolType.RATIO,
        }

        if key in tool_shortcuts and not modifiers:
            self._select_tool(tool_shortcuts[key])
            return

        if key == Qt.Key.Key_S and modifiers & Qt.KeyboardModifier.ControlModifier:
            self.export_image()
            return

        super().keyPressEvent(event)

"""
Editor canvas widget for DentalCeph.

The EditorCanvas is the drawing area that displays:
- The radiograph, zoomed and rotated
- All annotations on top
- The provisional line while one is being drawn
- Angle-tool highlights

Supports:
- Zoom (percentage) and rotation about the image center
- Tool-based interaction (delegated to the active tool)
- Undo/Redo, freeze and clear through the HistoryEngine
- Export of the annotated image
"""

from pathlib import Path
from typing import Optional

from PySide6.QtCore import QPointF, QRectF, Qt, QTimer, Signal
from PySide6.QtGui import (
    QColor,
    QFocusEvent,
    QFont,
    QImage,
    QKeyEvent,
    QMouseEvent,
    QPainter,
)
from PySide6.QtWidgets import QLineEdit, QWidget

from dentalceph.editor import exporter
from dentalceph.editor.annotations import (
    AnnotationKind,
    AnnotationStore,
    LineAnnotation,
    TextAnnotation,
)
from dentalceph.editor.coordinates import CoordinateMapper
from dentalceph.editor.exporter import DestinationPicker
from dentalceph.editor.geometry import HIT_TOLERANCE, hits_segment
from dentalceph.editor.history import HistoryEngine
from dentalceph.editor.rendering import DASH_CYCLE, DASH_STEP, paint_screen
from dentalceph.editor.tools import (
    AngleTool,
    RatioResult,
    TextTool,
    ToolBase,
    ToolContext,
    ToolType,
    create_tool,
)
from dentalceph.services.logging_service import get_logger


# Provisional line animation tick, roughly one display frame
DASH_FRAME_MS = 16


class FloatingTextInput(QLineEdit):
    """
    Single-line entry shown where the user clicked with the text tool.

    Enter confirms; Escape or losing focus cancels.
    """

    confirmed = Signal(str)
    cancelled = Signal()

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._finished = False
        self.setPlaceholderText("Type...")

    def finish(self) -> None:
        """Stop emitting; called before the entry is removed."""
        self._finished = True

    def keyPressEvent(self, event: QKeyEvent) -> None:
        key = event.key()
        if key in (Qt.Key.Key_Return, Qt.Key.Key_Enter) and not self._finished:
            self._finished = True
            self.confirmed.emit(self.text())
            return
        if key == Qt.Key.Key_Escape and not self._finished:
            self._finished = True
            self.cancelled.emit()
            return
        super().keyPressEvent(event)

    def focusOutEvent(self, event: QFocusEvent) -> None:
        super().focusOutEvent(event)
        if not self._finished:
            self._finished = True
            self.cancelled.emit()


class EditorCanvas(QWidget):
    """
    Main canvas widget for annotating radiographs.

    Signals:
        zoom_changed: Emitted when the zoom percentage changes.
        rotation_changed: Emitted when the rotation changes.
        image_changed: Emitted when an image is loaded.
        ratio_measured: Emitted once per completed Jarabak pair (RatioResult).
        history_changed: Emitted when undo/redo availability may have changed.
    """

    zoom_changed = Signal(float)
    rotation_changed = Signal(float)
    image_changed = Signal()
    ratio_measured = Signal(object)
    history_changed = Signal()

    # Zoom limits in percent
    MIN_ZOOM = 10.0
    MAX_ZOOM = 500.0
    DEFAULT_ZOOM = 100.0

    def __init__(
        self,
        context: Optional[ToolContext] = None,
        default_zoom: float = DEFAULT_ZOOM,
        parent: Optional[QWidget] = None
    ) -> None:
        super().__init__(parent)
        self._logger = get_logger(__name__)

        self._image: Optional[QImage] = None

        # Annotations and their history
        self._store = AnnotationStore()
        self._history = HistoryEngine(self._store, self)
        self._history.store_changed.connect(self.update)
        self._history.history_changed.connect(self.history_changed)

        # View transform
        self._default_zoom = default_zoom
        self._mapper = CoordinateMapper(zoom=default_zoom)
        self._view_offset = QPointF(0, 0)

        # Tool and its settings
        self._context = context or ToolContext()
        self._active_tool: ToolBase = create_tool(ToolType.POINT)

        # Provisional line and its dash animation
        self._provisional_line: Optional[LineAnnotation] = None
        self._dash_offset: float = 0.0
        self._dash_timer = QTimer(self)
        self._dash_timer.setInterval(DASH_FRAME_MS)
        self._dash_timer.timeout.connect(self._advance_dash)

        self._ratio_result: Optional[RatioResult] = None
        self._text_input: Optional[FloatingTextInput] = None

        self._setup_widget()

    def _setup_widget(self) -> None:
        """Configure widget properties."""
        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setMinimumSize(200, 200)

    # ─── Image Management ─────────────────────────────────────────────────

    def set_image(self, image: QImage) -> None:
        """
        Load a new image into the canvas.

        Erasable annotations are cleared first; frozen ones stay. Any
        unfinished line or text entry is abandoned.
        """
        self._active_tool.on_deactivate(self)
        self.clear_all()
        self._image = image
        self._mapper.image_width = image.width()
        self._mapper.image_height = image.height()
        self.set_zoom(self._default_zoom)

        self.image_changed.emit()
        self.update()

        self._logger.info(f"Image loaded: {image.width()}x{image.height()}")

    @property
    def image(self) -> Optional[QImage]:
        return self._image

    @property
    def image_size(self) -> tuple:
        """Return (width, height) of the image."""
        if self._image:
            return (self._image.width(), self._image.height())
        return (0, 0)

    @property
    def store(self) -> AnnotationStore:
        return self._store

    @property
    def history(self) -> HistoryEngine:
        return self._history

    # ─── Tool Management ──────────────────────────────────────────────────

    def set_tool(self, tool: ToolBase) -> None:
        """Set the active tool. Any unfinished Jarabak measurement is dropped."""
        if tool is self._active_tool:
            return

        if self._active_tool:
            self._active_tool.on_deactivate(self)

        self._ratio_result = None
        self._settle_ratio_working_set()

        self._active_tool = tool
        self.setCursor(tool.cursor)
        self.update()

    @property
    def active_tool(self) -> ToolBase:
        return self._active_tool

    @property
    def tool_context(self) -> ToolContext:
        return self._context

    def set_tool_context(self, context: ToolContext) -> None:
        self._context = context

    # ─── Zoom and Rotation ────────────────────────────────────────────────

    @property
    def zoom(self) -> float:
        return self._mapper.zoom

    @property
    def rotation(self) -> float:
        return self._mapper.rotation

    @property
    def mapper(self) -> CoordinateMapper:
        return self._mapper

    def set_zoom(self, zoom: float) -> None:
        """Set zoom as a percentage, clamped to MIN/MAX."""
        self._mapper.zoom = max(self.MIN_ZOOM, min(self.MAX_ZOOM, float(zoom)))
        self._center_image()
        self.zoom_changed.emit(self._mapper.zoom)
        self.update()

    def set_rotation(self, degrees: float) -> None:
        self._mapper.rotation = float(degrees) % 360.0
        self._center_image()
        self.rotation_changed.emit(self._mapper.rotation)
        self.update()

    def rotate_clockwise(self) -> None:
        """Rotate the view by a quarter turn."""
        self.set_rotation(self._mapper.rotation + 90)

    def _center_image(self) -> None:
        """Center the transformed image in the widget."""
        if not self._image:
            self._view_offset = QPointF(0, 0)
            return

        bounds = self._mapper.display_transform().mapRect(
            QRectF(0, 0, self._image.width(), self._image.height())
        )
        self._view_offset = QPointF(
            (self.width() - bounds.width()) / 2 - bounds.left(),
            (self.height() - bounds.height()) / 2 - bounds.top(),
        )

    # ─── Coordinate Conversion ────────────────────────────────────────────

    def widget_to_image(self, pos: QPointF) -> QPointF:
        """Convert widget coordinates to image coordinates."""
        return self._mapper.to_image(pos - self._view_offset)

    def image_to_widget(self, pos: QPointF) -> QPointF:
        """Convert image coordinates to widget coordinates."""
        return self._mapper.to_screen(pos) + self._view_offset

    # ─── Pointer Input (image coordinates) ───────────────────────────────

    def _accepts_pointer(self) -> bool:
        # No image, or a ratio result waiting to be dismissed
        return self._image is not None and self._ratio_result is None

    def pointer_press(self, pos: QPointF) -> None:
        if self._accepts_pointer():
            self._active_tool.on_mouse_press(pos, self, self._context)

    def pointer_move(self, pos: QPointF) -> None:
        if self._accepts_pointer():
            self._active_tool.on_mouse_move(pos, self, self._context)

    def pointer_release(self, pos: QPointF) -> None:
        if self._accepts_pointer():
            self._active_tool.on_mouse_release(pos, self, self._context)

    # ─── Hit Testing ──────────────────────────────────────────────────────

    def line_at(self, pos: QPointF, tolerance: float = HIT_TOLERANCE) -> Optional[LineAnnotation]:
        """First line whose interior lies within tolerance of pos."""
        for line in self._store.lines:
            if hits_segment(pos, line.start, line.end, tolerance):
                return line
        return None

    def text_at(self, pos: QPointF) -> Optional[TextAnnotation]:
        """First text whose box contains pos."""
        for text in self._store.texts:
            if text.hit_test(pos):
                return text
        return None

    # ─── Provisional Line ─────────────────────────────────────────────────

    @property
    def provisional_line(self) -> Optional[LineAnnotation]:
        return self._provisional_line

    @property
    def dash_offset(self) -> float:
        return self._dash_offset

    def begin_provisional_line(self, pos: QPointF, context: ToolContext) -> None:
        """Start an in-progress line and its dash animation."""
        self._provisional_line = LineAnnotation(pos, pos, context.thickness, context.color)
        self._dash_offset = 0.0
        self._dash_timer.start()
        self.update()

    def update_provisional_line(self, pos: QPointF) -> None:
        if self._provisional_line is not None:
            self._provisional_line.end = QPointF(pos)
            self.update()

    def take_provisional_line(self) -> Optional[LineAnnotation]:
        """Remove the in-progress line, stop the animation and return the line."""
        line = self._provisional_line
        self._provisional_line = None
        self._dash_timer.stop()
        self._dash_offset = 0.0
        if line is not None:
            self.update()
        return line

    def _advance_dash(self) -> None:
        if self._provisional_line is None:
            self._dash_timer.stop()
            return
        self._dash_offset = (self._dash_offset + DASH_STEP) % DASH_CYCLE
        self.update()

    # ─── Text Entry ───────────────────────────────────────────────────────

    @property
    def text_entry(self) -> Optional[FloatingTextInput]:
        return self._text_input

    def open_text_entry(self, pos: QPointF, context: ToolContext) -> None:
        """Show the floating entry with its top-left just above pos."""
        self.close_text_entry()

        entry = FloatingTextInput(self)
        font = QFont(context.font_family)
        font.setPixelSize(context.font_size)
        entry.setFont(font)
        entry.setStyleSheet(
            f"color: {context.color.name()}; border: 1px solid #4f46e5; "
            f"border-radius: 6px; padding: 2px 6px; background: #fff;"
        )
        entry.confirmed.connect(self.confirm_text_entry)
        entry.cancelled.connect(self.cancel_text_entry)

        anchor = self.image_to_widget(pos)
        entry.move(int(anchor.x()), int(anchor.y() - context.font_size))
        entry.setMinimumWidth(40)
        entry.show()
        entry.setFocus()

        self._text_input = entry

    def close_text_entry(self) -> None:
        entry = self._text_input
        self._text_input = None
        if entry is not None:
            entry.finish()
            entry.hide()
            entry.deleteLater()
            self.setFocus()

    def confirm_text_entry(self, text: str) -> None:
        if isinstance(self._active_tool, TextTool):
            self._active_tool.confirm_entry(text, self, self._context)
        else:
            self.close_text_entry()

    def cancel_text_entry(self) -> None:
        if isinstance(self._active_tool, TextTool):
            self._active_tool.cancel_entry(self)
        else:
            self.close_text_entry()

    # ─── Jarabak Ratio ────────────────────────────────────────────────────

    @property
    def ratio_result(self) -> Optional[RatioResult]:
        return self._ratio_result

    def set_ratio_result(self, result: RatioResult) -> None:
        """Hold a ratio result; pointer input is suspended until it is dismissed."""
        self._ratio_result = result
        self.ratio_measured.emit(result)

    def dismiss_ratio_result(self) -> None:
        """Close the pending result and empty the ratio working set."""
        if self._ratio_result is None:
            return
        self._ratio_result = None
        self._settle_ratio_working_set()

    def _settle_ratio_working_set(self) -> None:
        """
        Empty the ratio working set.

        Erasable ratio lines disappear together with their undo entries.
        Frozen ones become ordinary permanent lines. Undone ratio lines are
        settled too, so a later redo cannot bring them back.
        """
        ratio_lines = list(self._store.ratio_lines) + [
            action.element for action in self._history.reverted_actions
            if action.kind == AnnotationKind.RATIO_LINE
        ]
        if not ratio_lines:
            return

        erasable_ids = [line.id for line in ratio_lines if line.erasable]
        self._history.discard(AnnotationKind.RATIO_LINE, erasable_ids)

        for line in ratio_lines:
            if not line.erasable:
                self._history.reclassify(
                    line.id, AnnotationKind.RATIO_LINE, AnnotationKind.LINE, line.as_line()
                )

    # ─── Undo/Redo, Freeze, Clear ─────────────────────────────────────────

    def undo(self) -> None:
        if self._ratio_result is None:
            self._history.undo()

    def redo(self) -> None:
        if self._ratio_result is None:
            self._history.redo()

    def freeze(self) -> None:
        """Make all current annotations permanent."""
        self._history.freeze()

    def clear_all(self) -> None:
        """Remove all erasable annotations and reset in-progress measurements."""
        self._history.purge_volatile()
        if isinstance(self._active_tool, AngleTool):
            self._active_tool.reset()
        self._ratio_result = None
        self._settle_ratio_working_set()
        self.update()

    # ─── Export ───────────────────────────────────────────────────────────

    def export_as(
        self,
        format_text: Optional[str],
        choose_destination: DestinationPicker
    ) -> Optional[Path]:
        """Export the annotated image; see exporter.export_as."""
        return exporter.export_as(self._image, self._store, format_text, choose_destination)

    # ─── Event Handlers ───────────────────────────────────────────────────

    def paintEvent(self, event) -> None:
        """Paint the canvas."""
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)

        painter.fillRect(self.rect(), QColor(255, 255, 255))

        if not self._image:
            painter.setPen(QColor(136, 136, 136))
            painter.drawText(
                self.rect(),
                Qt.AlignmentFlag.AlignCenter,
                "Open a radiograph (PNG or JPG) to start annotating",
            )
            return

        painter.translate(self._view_offset)
        painter.setTransform(self._mapper.display_transform(), True)

        painter.drawImage(0, 0, self._image)

        hovered = None
        selected = ()
        if isinstance(self._active_tool, AngleTool):
            hovered = self._active_tool.hovered_line_id
            selected = self._active_tool.selection

        paint_screen(
            painter,
            self._store,
            self._provisional_line,
            self._dash_offset,
            hovered,
            selected,
        )

        painter.end()

    def mousePressEvent(self, event: QMouseEvent) -> None:
        if event.button() == Qt.MouseButton.LeftButton:
            self.pointer_press(self.widget_to_image(event.position()))

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        self.pointer_move(self.widget_to_image(event.position()))

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        if event.button() == Qt.MouseButton.LeftButton:
            self.pointer_release(self.widget_to_image(event.position()))

    def leaveEvent(self, event) -> None:
        if isinstance(self._active_tool, AngleTool):
            self._active_tool.on_pointer_leave(self)
        super().leaveEvent(event)

    def keyPressEvent(self, event: QKeyEvent) -> None:
        key = event.key()
        modifiers = event.modifiers()

        if modifiers & Qt.KeyboardModifier.ControlModifier:
            if key == Qt.Key.Key_Z:
                if modifiers & Qt.KeyboardModifier.ShiftModifier:
                    self.redo()
                else:
                    self.undo()
                return
            elif key == Qt.Key.Key_Y:
                self.redo()
                return

        if self._active_tool.on_key_press(key, self):
            return

        super().keyPressEvent(event)

    def resizeEvent(self, event) -> None:
        super().resizeEvent(event)
        self._center_image()

    def closeEvent(self, event) -> None:
        self.take_provisional_line()
        super().closeEvent(event)

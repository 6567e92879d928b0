"""
Tool framework and implementations for the DentalCeph editor.

This module provides the tool system for the editor canvas. Each tool
handles pointer and keyboard events in image coordinates and turns them into
HistoryEngine calls. Style settings are not captured by the tools: every
handler receives the current ToolContext explicitly.

Tools:
- PointTool: Place points
- LineTool: Drag to draw lines
- TextTool: Place text, drag existing text to move it
- AngleTool: Pick two lines, then click the side of the angle to measure
- RatioTool: Draw two lines and report the ratio of their lengths (Jarabak)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, List, Optional

from PySide6.QtCore import QPointF, Qt
from PySide6.QtGui import QColor

from dentalceph.editor.annotations import (
    DEFAULT_COLOR,
    AngleAnnotation,
    AnnotationKind,
    LineAnnotation,
    PointAnnotation,
    RatioLineAnnotation,
    TextAnnotation,
)
from dentalceph.editor.geometry import HIT_TOLERANCE, measure_angle
from dentalceph.services.logging_service import get_logger

if TYPE_CHECKING:
    from dentalceph.editor.editor_canvas import EditorCanvas
    from dentalceph.services.config_service import ConfigService


class ToolType(Enum):
    """Enum for tool types."""
    POINT = auto()
    LINE = auto()
    TEXT = auto()
    ANGLE = auto()
    RATIO = auto()


@dataclass
class ToolContext:
    """Style and picking settings handed to every tool call."""
    color: QColor = field(default_factory=lambda: QColor(DEFAULT_COLOR))
    thickness: float = 4
    font_size: int = 18
    font_family: str = "Arial"
    hit_tolerance: float = HIT_TOLERANCE

    @classmethod
    def from_config(cls, config: "ConfigService") -> "ToolContext":
        return cls(
            color=QColor(config.annotation_color),
            thickness=config.thickness,
            font_size=config.font_size,
            font_family=config.font_family,
            hit_tolerance=config.hit_tolerance,
        )


@dataclass(frozen=True)
class RatioResult:
    """Jarabak ratio of the second ratio line's length to the first's."""
    ratio: float
    first_id: int
    second_id: int
    first_length: float
    second_length: float


class ToolBase(ABC):
    """
    Base class for all tools.

    Tools receive positions already mapped to image space.
    """

    def __init__(self) -> None:
        self._logger = get_logger(__name__)

    @property
    @abstractmethod
    def tool_type(self) -> ToolType:
        """Return the type of this tool."""
        pass

    @property
    @abstractmethod
    def cursor(self) -> Qt.CursorShape:
        """Return the cursor to use when this tool is active."""
        pass

    @abstractmethod
    def on_mouse_press(
        self,
        pos: QPointF,
        canvas: "EditorCanvas",
        context: ToolContext
    ) -> None:
        """Handle mouse press event."""
        pass

    def on_mouse_move(
        self,
        pos: QPointF,
        canvas: "EditorCanvas",
        context: ToolContext
    ) -> None:
        """Handle mouse move event."""
        pass

    def on_mouse_release(
        self,
        pos: QPointF,
        canvas: "EditorCanvas",
        context: ToolContext
    ) -> None:
        """Handle mouse release event."""
        pass

    def on_key_press(self, key: int, canvas: "EditorCanvas") -> bool:
        """
        Handle key press event.

        Returns True if the event was handled.
        """
        return False

    def on_deactivate(self, canvas: "EditorCanvas") -> None:
        """Called when tool is deactivated (another tool selected)."""
        pass


class PointTool(ToolBase):
    """Tool that places a point on every press."""

    @property
    def tool_type(self) -> ToolType:
        return ToolType.POINT

    @property
    def cursor(self) -> Qt.CursorShape:
        return Qt.CursorShape.CrossCursor

    def on_mouse_press(
        self,
        pos: QPointF,
        canvas: "EditorCanvas",
        context: ToolContext
    ) -> None:
        point = PointAnnotation(pos, context.thickness, context.color)
        canvas.history.append(AnnotationKind.POINT, point)


class LineTool(ToolBase):
    """
    Tool for drawing lines.

    Press starts a provisional line, move drags its end, release finalizes
    it. The provisional line lives on the canvas, never in the store.
    """

    @property
    def tool_type(self) -> ToolType:
        return ToolType.LINE

    @property
    def cursor(self) -> Qt.CursorShape:
        return Qt.CursorShape.PointingHandCursor

    def on_mouse_press(
        self,
        pos: QPointF,
        canvas: "EditorCanvas",
        context: ToolContext
    ) -> None:
        if canvas.provisional_line is None:
            canvas.begin_provisional_line(pos, context)

    def on_mouse_move(
        self,
        pos: QPointF,
        canvas: "EditorCanvas",
        context: ToolContext
    ) -> None:
        if canvas.provisional_line is not None:
            canvas.update_provisional_line(pos)

    def on_mouse_release(
        self,
        pos: QPointF,
        canvas: "EditorCanvas",
        context: ToolContext
    ) -> None:
        provisional = canvas.take_provisional_line()
        if provisional is None:
            return

        # A click without a drag leaves nothing to measure
        if provisional.start == pos:
            return

        self._finalize(provisional.start, pos, canvas, context)

    def _finalize(
        self,
        start: QPointF,
        end: QPointF,
        canvas: "EditorCanvas",
        context: ToolContext
    ) -> None:
        line = LineAnnotation(start, end, context.thickness, context.color)
        canvas.history.append(AnnotationKind.LINE, line)

    def on_deactivate(self, canvas: "EditorCanvas") -> None:
        canvas.take_provisional_line()


class RatioTool(LineTool):
    """
    Tool for the Jarabak ratio.

    Draws lines like LineTool into the ratio working set. The second line
    produces the ratio length(second) / length(first).
    """

    @property
    def tool_type(self) -> ToolType:
        return ToolType.RATIO

    @property
    def cursor(self) -> Qt.CursorShape:
        return Qt.CursorShape.CrossCursor

    def _finalize(
        self,
        start: QPointF,
        end: QPointF,
        canvas: "EditorCanvas",
        context: ToolContext
    ) -> None:
        working_set = canvas.store.ratio_lines
        if len(working_set) >= 2:
            return

        line = RatioLineAnnotation(start, end, context.thickness, context.color)
        canvas.history.append(AnnotationKind.RATIO_LINE, line)

        if len(working_set) == 2:
            first, second = working_set
            result = RatioResult(
                ratio=second.length / first.length,
                first_id=first.id,
                second_id=second.id,
                first_length=first.length,
                second_length=second.length,
            )
            self._logger.info(f"Jarabak ratio measured: {result.ratio:.3f}")
            canvas.set_ratio_result(result)


class TextTool(ToolBase):
    """
    Tool for placing and moving text.

    Press on an existing text starts dragging it (not undoable). Press on
    empty space opens the floating entry; the text is only added when the
    entry is confirmed with non-blank content.
    """

    def __init__(self) -> None:
        super().__init__()
        self._moving_text: Optional[TextAnnotation] = None
        self._drag_offset = QPointF(0, 0)
        self._pending_position: Optional[QPointF] = None

    @property
    def tool_type(self) -> ToolType:
        return ToolType.TEXT

    @property
    def cursor(self) -> Qt.CursorShape:
        return Qt.CursorShape.IBeamCursor

    @property
    def pending_position(self) -> Optional[QPointF]:
        return self._pending_position

    @property
    def moving_text(self) -> Optional[TextAnnotation]:
        return self._moving_text

    def on_mouse_press(
        self,
        pos: QPointF,
        canvas: "EditorCanvas",
        context: ToolContext
    ) -> None:
        hit = canvas.text_at(pos)
        if hit is not None:
            self._moving_text = hit
            self._drag_offset = pos - hit.position
            return

        self._pending_position = QPointF(pos)
        canvas.open_text_entry(pos, context)

    def on_mouse_move(
        self,
        pos: QPointF,
        canvas: "EditorCanvas",
        context: ToolContext
    ) -> None:
        if self._moving_text is not None:
            canvas.history.reposition_text(
                self._moving_text,
                pos.x() - self._drag_offset.x(),
                pos.y() - self._drag_offset.y(),
            )

    def on_mouse_release(
        self,
        pos: QPointF,
        canvas: "EditorCanvas",
        context: ToolContext
    ) -> None:
        self._moving_text = None

    def confirm_entry(self, text: str, canvas: "EditorCanvas", context: ToolContext) -> None:
        """Add the typed text at the pending position, unless it is blank."""
        position = self._pending_position
        self._pending_position = None
        canvas.close_text_entry()

        if position is None or not text.strip():
            return

        annotation = TextAnnotation(
            position, text, context.font_size, context.font_family, context.color
        )
        canvas.history.append(AnnotationKind.TEXT, annotation)

    def cancel_entry(self, canvas: "EditorCanvas") -> None:
        """Drop the pending entry without adding anything."""
        self._pending_position = None
        canvas.close_text_entry()

    def on_deactivate(self, canvas: "EditorCanvas") -> None:
        self._moving_text = None
        self.cancel_entry(canvas)


class AngleTool(ToolBase):
    """
    Tool for measuring the angle between two existing lines.

    The first two presses pick lines (hovering highlights the candidate).
    The third press marks which side of the vertex to measure.
    """

    def __init__(self) -> None:
        super().__init__()
        self._selection: List[int] = []
        self._hovered_line_id: Optional[int] = None

    @property
    def tool_type(self) -> ToolType:
        return ToolType.ANGLE

    @property
    def cursor(self) -> Qt.CursorShape:
        return Qt.CursorShape.ArrowCursor

    @property
    def selection(self) -> List[int]:
        return list(self._selection)

    @property
    def hovered_line_id(self) -> Optional[int]:
        return self._hovered_line_id

    def reset(self) -> None:
        self._selection = []

    def on_mouse_press(
        self,
        pos: QPointF,
        canvas: "EditorCanvas",
        context: ToolContext
    ) -> None:
        if len(self._selection) < 2:
            line = canvas.line_at(pos, context.hit_tolerance)
            if line is not None and line.id not in self._selection:
                self._selection.append(line.id)
                canvas.update()
            return

        self._measure(pos, canvas, context)
        self.reset()
        canvas.update()

    def _measure(self, pos: QPointF, canvas: "EditorCanvas", context: ToolContext) -> None:
        first_id, second_id = self._selection
        first = canvas.store.line_by_id(first_id)
        second = canvas.store.line_by_id(second_id)
        if first is None or second is None:
            return

        measurement = measure_angle(first.start, first.end, second.start, second.end, pos)
        if measurement is None:
            self._logger.debug(f"Lines #{first_id} and #{second_id} do not intersect")
            return

        angle = AngleAnnotation(
            first_id,
            second_id,
            measurement.vertex,
            measurement.degrees,
            measurement.arc,
            context.color,
        )
        canvas.history.append(AnnotationKind.ANGLE, angle)
        self._logger.info(f"Angle measured: {angle.label}")

    def on_mouse_move(
        self,
        pos: QPointF,
        canvas: "EditorCanvas",
        context: ToolContext
    ) -> None:
        line = canvas.line_at(pos, context.hit_tolerance)
        hovered = line.id if line is not None else None
        if hovered != self._hovered_line_id:
            self._hovered_line_id = hovered
            canvas.update()

    def on_pointer_leave(self, canvas: "EditorCanvas") -> None:
        if self._hovered_line_id is not None:
            self._hovered_line_id = None
            canvas.update()

    def on_key_press(self, key: int, canvas: "EditorCanvas") -> bool:
        if key == Qt.Key.Key_Escape and self._selection:
            self.reset()
            canvas.update()
            return True
        return False

    def on_deactivate(self, canvas: "EditorCanvas") -> None:
        self.reset()
        self._hovered_line_id = None


def create_tool(tool_type: ToolType) -> ToolBase:
    """
    Factory function to create a tool by type.

    Args:
        tool_type: The type of tool to create.

    Returns:
        A new tool instance.
    """
    tools = {
        ToolType.POINT: PointTool,
        ToolType.LINE: LineTool,
        ToolType.TEXT: TextTool,
        ToolType.ANGLE: AngleTool,
        ToolType.RATIO: RatioTool,
    }

    tool_class = tools.get(tool_type, PointTool)
    return tool_class()

"""
Annotation models for the DentalCeph editor.

This module provides the data models for everything that can be placed on a
radiograph. Each annotation knows how to:
- Paint itself on a QPainter (the same call is used on screen and in exports)
- Describe itself as plain values for comparisons

Annotation Types:
- PointAnnotation: Filled disc
- LineAnnotation: Straight segment with its line equation
- TextAnnotation: Single line of text anchored at its bottom-left corner
- AngleAnnotation: Arc and label for the angle between two lines
- RatioLineAnnotation: Segment of the Jarabak ratio working set

AnnotationStore holds the typed collections. It never decides anything on
its own; every change goes through the HistoryEngine.
"""

import math
from abc import ABC, abstractmethod
from enum import Enum, auto
from typing import Dict, Iterator, List, Optional, Tuple

from PySide6.QtCore import QPointF, QRectF, Qt
from PySide6.QtGui import (
    QColor,
    QFont,
    QFontMetricsF,
    QPainter,
    QPainterPath,
    QPen,
)

from dentalceph.editor.geometry import (
    ArcDescriptor,
    LineEquation,
    line_equation,
    segment_length,
)


DEFAULT_COLOR = "#ff9800"

# Points are drawn with a radius proportional to the stroke thickness
POINT_RADIUS_FACTOR = 1.2

ANGLE_STROKE_WIDTH = 2.5
ANGLE_LABEL_OFFSET = 18.0
ANGLE_LABEL_FONT_SIZE = 18


class AnnotationKind(Enum):
    """Enum for annotation kinds, one per store collection."""
    POINT = auto()
    LINE = auto()
    TEXT = auto()
    ANGLE = auto()
    RATIO_LINE = auto()


class AnnotationBase(ABC):
    """
    Base class for all annotations.

    The id is None until the HistoryEngine appends the annotation.
    """

    def __init__(self, color: Optional[QColor] = None, erasable: bool = True) -> None:
        self.id: Optional[int] = None
        self.color: QColor = QColor(color) if color is not None else QColor(DEFAULT_COLOR)
        self.erasable: bool = erasable

    @property
    @abstractmethod
    def kind(self) -> AnnotationKind:
        """Return the kind of this annotation."""
        pass

    @abstractmethod
    def paint(self, painter: QPainter) -> None:
        """
        Paint the annotation.

        Args:
            painter: The QPainter to use, already transformed to image space.
        """
        pass

    @abstractmethod
    def _values(self) -> Tuple:
        pass

    def snapshot(self) -> Tuple:
        """Plain-value description used to compare store states."""
        return (self.kind.name, self.id, self.color.name(QColor.NameFormat.HexArgb),
                self.erasable) + self._values()

    def _copy_common(self, other: "AnnotationBase") -> None:
        other.id = self.id
        other.erasable = self.erasable


class PointAnnotation(AnnotationBase):
    """Filled disc at a position."""

    def __init__(
        self,
        position: QPointF,
        thickness: float = 4,
        color: Optional[QColor] = None,
        erasable: bool = True,
    ) -> None:
        super().__init__(color, erasable)
        self.position = QPointF(position)
        self.thickness = thickness

    @property
    def kind(self) -> AnnotationKind:
        return AnnotationKind.POINT

    @property
    def radius(self) -> float:
        return self.thickness * POINT_RADIUS_FACTOR

    def paint(self, painter: QPainter) -> None:
        painter.save()
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(self.color)
        painter.drawEllipse(self.position, self.radius, self.radius)
        painter.restore()

    def _values(self) -> Tuple:
        return (self.position.x(), self.position.y(), self.thickness)


class LineAnnotation(AnnotationBase):
    """
    Straight segment between two points.

    The equation is computed once when the line is created and stored with
    it; it is not re-derived on every paint.
    """

    def __init__(
        self,
        start: QPointF,
        end: QPointF,
        thickness: float = 4,
        color: Optional[QColor] = None,
        erasable: bool = True,
    ) -> None:
        super().__init__(color, erasable)
        self.start = QPointF(start)
        self.end = QPointF(end)
        self.thickness = thickness
        self.equation: LineEquation = line_equation(self.start, self.end)

    @property
    def kind(self) -> AnnotationKind:
        return AnnotationKind.LINE

    @property
    def length(self) -> float:
        return segment_length(self.start, self.end)

    def pen(self, extra_width: float = 0.0) -> QPen:
        pen = QPen(self.color)
        pen.setWidthF(self.thickness + extra_width)
        pen.setCapStyle(Qt.PenCapStyle.RoundCap)
        return pen

    def paint(self, painter: QPainter) -> None:
        painter.save()
        painter.setPen(self.pen())
        painter.drawLine(self.start, self.end)
        painter.restore()

    def _values(self) -> Tuple:
        eq = self.equation
        return (self.start.x(), self.start.y(), self.end.x(), self.end.y(),
                self.thickness, eq.slope, eq.intercept, eq.a, eq.b, eq.c)


class RatioLineAnnotation(LineAnnotation):
    """Segment of the Jarabak ratio working set."""

    @property
    def kind(self) -> AnnotationKind:
        return AnnotationKind.RATIO_LINE

    def as_line(self) -> LineAnnotation:
        """Ordinary line with the same geometry, id and flag."""
        line = LineAnnotation(
            QPointF(self.start), QPointF(self.end), self.thickness, self.color
        )
        self._copy_common(line)
        return line


class TextAnnotation(AnnotationBase):
    """
    Single line of text.

    The position is the bottom-left corner of the text box; the box is the
    advance width of the text by the font size in height.
    """

    def __init__(
        self,
        position: QPointF,
        text: str,
        font_size: int = 18,
        font_family: str = "Arial",
        color: Optional[QColor] = None,
        erasable: bool = True,
    ) -> None:
        super().__init__(color, erasable)
        self.position = QPointF(position)
        self.text = text
        self.font_size = font_size
        self.font_family = font_family

    @property
    def kind(self) -> AnnotationKind:
        return AnnotationKind.TEXT

    def font(self) -> QFont:
        font = QFont(self.font_family)
        font.setPixelSize(self.font_size)
        return font

    @property
    def bounding_rect(self) -> QRectF:
        width = QFontMetricsF(self.font()).horizontalAdvance(self.text)
        return QRectF(
            self.position.x(),
            self.position.y() - self.font_size,
            width,
            self.font_size,
        )

    def hit_test(self, point: QPointF) -> bool:
        rect = self.bounding_rect
        return (rect.left() <= point.x() <= rect.right()
                and rect.top() <= point.y() <= rect.bottom())

    def paint(self, painter: QPainter) -> None:
        painter.save()
        font = self.font()
        painter.setFont(font)
        painter.setPen(self.color)
        # drawText takes the baseline; lift it so the text bottom sits on y
        descent = QFontMetricsF(font).descent()
        painter.drawText(QPointF(self.position.x(), self.position.y() - descent), self.text)
        painter.restore()

    def _values(self) -> Tuple:
        return (self.position.x(), self.position.y(), self.text,
                self.font_size, self.font_family)


class AngleAnnotation(AnnotationBase):
    """
    Measured angle between two lines.

    Vertex, value and arc are computed once by the angle tool and stored.
    """

    def __init__(
        self,
        first_line_id: int,
        second_line_id: int,
        vertex: QPointF,
        degrees: float,
        arc: ArcDescriptor,
        color: Optional[QColor] = None,
        erasable: bool = True,
    ) -> None:
        super().__init__(color, erasable)
        self.first_line_id = first_line_id
        self.second_line_id = second_line_id
        self.vertex = QPointF(vertex)
        self.degrees = degrees
        self.arc = arc

    @property
    def kind(self) -> AnnotationKind:
        return AnnotationKind.ANGLE

    @property
    def label(self) -> str:
        return f"{self.degrees:.1f}°"

    def arc_path(self) -> QPainterPath:
        arc = self.arc
        r = arc.radius
        rect = QRectF(arc.center.x() - r, arc.center.y() - r, 2 * r, 2 * r)
        # Qt measures angles counter-clockwise on screen, radians here run clockwise
        path = QPainterPath()
        path.arcMoveTo(rect, -math.degrees(arc.start))
        path.arcTo(rect, -math.degrees(arc.start), -math.degrees(arc.sweep))
        return path

    def label_position(self) -> QPointF:
        arc = self.arc
        distance = arc.radius + ANGLE_LABEL_OFFSET
        mid = arc.mid_angle
        return QPointF(
            arc.center.x() + distance * math.cos(mid),
            arc.center.y() + distance * math.sin(mid),
        )

    def paint(self, painter: QPainter) -> None:
        painter.save()
        pen = QPen(self.color)
        pen.setWidthF(ANGLE_STROKE_WIDTH)
        painter.setPen(pen)
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawPath(self.arc_path())

        font = QFont("Arial")
        font.setPixelSize(ANGLE_LABEL_FONT_SIZE)
        font.setBold(True)
        painter.setFont(font)
        painter.drawText(self.label_position(), self.label)
        painter.restore()

    def _values(self) -> Tuple:
        arc = self.arc
        return (self.first_line_id, self.second_line_id, self.vertex.x(),
                self.vertex.y(), self.degrees, arc.center.x(), arc.center.y(),
                arc.radius, arc.start, arc.end)


class AnnotationStore:
    """
    Typed collections of annotations, in creation order.

    Plain storage: the HistoryEngine is the only caller of insert/remove.
    """

    def __init__(self) -> None:
        self.points: List[PointAnnotation] = []
        self.lines: List[LineAnnotation] = []
        self.texts: List[TextAnnotation] = []
        self.angles: List[AngleAnnotation] = []
        self.ratio_lines: List[RatioLineAnnotation] = []

    def _collections(self) -> Dict[AnnotationKind, List]:
        return {
            AnnotationKind.POINT: self.points,
            AnnotationKind.LINE: self.lines,
            AnnotationKind.TEXT: self.texts,
            AnnotationKind.ANGLE: self.angles,
            AnnotationKind.RATIO_LINE: self.ratio_lines,
        }

    def collection(self, kind: AnnotationKind) -> List:
        return self._collections()[kind]

    def insert(self, kind: AnnotationKind, element: AnnotationBase) -> None:
        self.collection(kind).append(element)

    def remove(self, kind: AnnotationKind, element_id: int) -> Optional[AnnotationBase]:
        """Remove the element with the given id; returns it, or None if absent."""
        items = self.collection(kind)
        for index, element in enumerate(items):
            if element.id == element_id:
                return items.pop(index)
        return None

    def find(self, kind: AnnotationKind, element_id: int) -> Optional[AnnotationBase]:
        for element in self.collection(kind):
            if element.id == element_id:
                return element
        return None

    def line_by_id(self, element_id: int) -> Optional[LineAnnotation]:
        return self.find(AnnotationKind.LINE, element_id)

    def all_elements(self) -> Iterator[AnnotationBase]:
        for items in self._collections().values():
            yield from items

    def snapshot(self) -> Dict[str, Tuple]:
        """Value copy of every collection, keyed by kind name."""
        return {
            kind.name: tuple(element.snapshot() for element in items)
            for kind, items in self._collections().items()
        }

    def __len__(self) -> int:
        return sum(len(items) for items in self._collections().values())

"""
Render pipeline for the DentalCeph editor.

Both the live canvas and the export go through the annotations' own paint()
methods, so a line or a text looks the same on screen and in a file.

Screen order (back to front):
    lines → ratio lines → provisional line → points → texts → angles

Export order:
    base image → lines → points → texts
"""

from typing import Iterable, Optional

from PySide6.QtCore import Qt
from PySide6.QtGui import QColor, QImage, QPainter, QPen

from dentalceph.editor.annotations import AnnotationStore, LineAnnotation


# Provisional line dash, in image pixels
DASH_PATTERN = (12.0, 10.0)
DASH_STEP = 6.0
DASH_CYCLE = 60.0

HIGHLIGHT_COLOR = QColor(255, 152, 0, 90)
HIGHLIGHT_GLOW_WIDTH = 8.0
HOVER_WIDTH_BOOST = 3.0


def _paint_highlighted_line(painter: QPainter, line: LineAnnotation, hovered: bool) -> None:
    extra = HOVER_WIDTH_BOOST if hovered else 0.0

    painter.save()
    glow = QPen(HIGHLIGHT_COLOR)
    glow.setWidthF(line.thickness + extra + HIGHLIGHT_GLOW_WIDTH)
    glow.setCapStyle(Qt.PenCapStyle.RoundCap)
    painter.setPen(glow)
    painter.drawLine(line.start, line.end)

    painter.setPen(line.pen(extra))
    painter.drawLine(line.start, line.end)
    painter.restore()


def paint_provisional_line(painter: QPainter, line: LineAnnotation, dash_offset: float) -> None:
    """Draw an in-progress line with the animated dash."""
    # Qt dash lengths are in units of the pen width
    width = max(float(line.thickness), 1.0)
    pen = QPen(line.color)
    pen.setWidthF(width)
    pen.setCapStyle(Qt.PenCapStyle.FlatCap)
    pen.setDashPattern([length / width for length in DASH_PATTERN])
    pen.setDashOffset(-dash_offset / width)

    painter.save()
    painter.setPen(pen)
    painter.drawLine(line.start, line.end)
    painter.restore()


def paint_screen(
    painter: QPainter,
    store: AnnotationStore,
    provisional_line: Optional[LineAnnotation] = None,
    dash_offset: float = 0.0,
    hovered_line_id: Optional[int] = None,
    selected_line_ids: Iterable[int] = (),
) -> None:
    """
    Paint every annotation for the live preview.

    The painter must already map image space to the widget. Highlight
    arguments only change how lines are drawn, never the lines themselves.
    """
    selected = set(selected_line_ids)

    for line in store.lines:
        if line.id == hovered_line_id or line.id in selected:
            _paint_highlighted_line(painter, line, line.id == hovered_line_id)
        else:
            line.paint(painter)

    for ratio_line in store.ratio_lines:
        ratio_line.paint(painter)

    if provisional_line is not None:
        paint_provisional_line(painter, provisional_line, dash_offset)

    for point in store.points:
        point.paint(painter)

    for text in store.texts:
        text.paint(painter)

    line_ids = {line.id for line in store.lines}
    for angle in store.angles:
        # An angle is only shown while both of its lines exist
        if angle.first_line_id in line_ids and angle.second_line_id in line_ids:
            angle.paint(painter)


def paint_export(painter: QPainter, store: AnnotationStore) -> None:
    """Paint the annotations that belong in an exported image."""
    for line in store.lines:
        line.paint(painter)

    for point in store.points:
        point.paint(painter)

    for text in store.texts:
        text.paint(painter)


def render_composite(image: QImage, store: AnnotationStore) -> QImage:
    """
    Render the image and its annotations at the image's natural size.

    Returns a null QImage when there is no image to render.
    """
    if image is None or image.isNull():
        return QImage()

    result = QImage(image.width(), image.height(), QImage.Format.Format_ARGB32_Premultiplied)
    result.fill(Qt.GlobalColor.transparent)

    painter = QPainter(result)
    painter.setRenderHint(QPainter.RenderHint.Antialiasing)
    painter.setRenderHint(QPainter.RenderHint.TextAntialiasing)
    painter.drawImage(0, 0, image)
    paint_export(painter, store)
    painter.end()

    return result

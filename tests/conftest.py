"""Shared fixtures: an offscreen QApplication and a canvas with an image."""

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PySide6.QtCore import QPointF
from PySide6.QtGui import QColor, QImage
from PySide6.QtWidgets import QApplication

from dentalceph.editor.editor_canvas import EditorCanvas
from dentalceph.editor.tools import ToolType, create_tool


@pytest.fixture(scope="session")
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture
def radiograph():
    image = QImage(200, 200, QImage.Format.Format_RGB32)
    image.fill(QColor(30, 30, 30))
    return image


@pytest.fixture
def canvas(qapp, radiograph):
    widget = EditorCanvas()
    widget.resize(400, 400)
    widget.set_image(radiograph)
    yield widget
    widget.take_provisional_line()
    widget.deleteLater()


@pytest.fixture
def use_tool(canvas):
    def activate(tool_type):
        tool = create_tool(tool_type)
        canvas.set_tool(tool)
        return tool
    return activate


@pytest.fixture
def drag(canvas):
    """Press at start, move to end and release there (image coordinates)."""
    def _drag(start, end):
        canvas.pointer_press(QPointF(*start))
        canvas.pointer_move(QPointF(*end))
        canvas.pointer_release(QPointF(*end))
    return _drag


@pytest.fixture
def draw_line(canvas, use_tool, drag):
    def _draw(start, end):
        if canvas.active_tool.tool_type != ToolType.LINE:
            use_tool(ToolType.LINE)
        drag(start, end)
        return canvas.store.lines[-1]
    return _draw

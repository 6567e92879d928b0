import pytest
from PySide6.QtCore import QEvent, QPointF, Qt
from PySide6.QtGui import QKeyEvent

from dentalceph.editor.editor_widget import EditorWidget
from dentalceph.editor.tools import ToolType
from dentalceph.services.config_service import ConfigService


def press_key(widget, key):
    widget.keyPressEvent(QKeyEvent(QEvent.Type.KeyPress, key, Qt.KeyboardModifier.NoModifier))


@pytest.fixture
def editor(qapp, tmp_path, radiograph):
    widget = EditorWidget(ConfigService(tmp_path / "config.json"))
    widget.canvas.set_image(radiograph)
    yield widget
    widget.deleteLater()


def drag(canvas, start, end):
    canvas.pointer_press(QPointF(*start))
    canvas.pointer_move(QPointF(*end))
    canvas.pointer_release(QPointF(*end))


def test_shortcut_selects_tool(editor):
    press_key(editor, Qt.Key.Key_L)
    assert editor.canvas.active_tool.tool_type == ToolType.LINE


def test_reselecting_ratio_tool_keeps_first_line(editor):
    press_key(editor, Qt.Key.Key_J)
    drag(editor.canvas, (0, 0), (100, 0))

    press_key(editor, Qt.Key.Key_J)

    assert len(editor.canvas.store.ratio_lines) == 1
    assert editor.canvas.active_tool.tool_type == ToolType.RATIO


def test_switching_away_from_ratio_tool_drops_first_line(editor):
    press_key(editor, Qt.Key.Key_J)
    drag(editor.canvas, (0, 0), (100, 0))

    press_key(editor, Qt.Key.Key_P)

    assert editor.canvas.store.ratio_lines == []

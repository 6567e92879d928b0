import pytest
from PySide6.QtCore import QPointF, Qt
from PySide6.QtGui import QColor, QImage, QPainter

from dentalceph.editor.annotations import (
    AngleAnnotation,
    AnnotationKind,
    AnnotationStore,
    LineAnnotation,
    PointAnnotation,
    TextAnnotation,
)
from dentalceph.editor.exporter import ExportFormat, export_as, parse_export_format
from dentalceph.editor.geometry import measure_angle
from dentalceph.editor.history import HistoryEngine
from dentalceph.editor.rendering import paint_screen, render_composite
from dentalceph.editor.tools import ToolType


def P(x, y):
    return QPointF(x, y)


@pytest.fixture
def annotated(canvas, draw_line, use_tool):
    draw_line((10, 10), (190, 10))
    draw_line((10, 10), (10, 190))
    use_tool(ToolType.TEXT)
    canvas.pointer_press(P(40, 80))
    canvas.confirm_text_entry("Gonion")
    return canvas


def picker_to(path):
    calls = []

    def choose(suggested_name, export_format):
        calls.append((suggested_name, export_format))
        return path
    choose.calls = calls
    return choose


class TestFormats:
    @pytest.mark.parametrize("text, expected", [
        ("png", ExportFormat.PNG),
        (" JPG ", ExportFormat.JPG),
        ("jpeg", ExportFormat.JPEG),
        ("PDF", ExportFormat.PDF),
    ])
    def test_parse(self, text, expected):
        assert parse_export_format(text) is expected

    @pytest.mark.parametrize("text", [None, "", "   ", "tiff", "gif"])
    def test_unknown_or_blank(self, text):
        assert parse_export_format(text) is None

    def test_suggested_name(self):
        assert ExportFormat.JPEG.suggested_name == "dentalceph.jpeg"
        assert ExportFormat.PDF.mime_type == "application/pdf"


class TestExport:
    def test_png_at_natural_size(self, annotated, tmp_path):
        annotated.set_zoom(200)
        annotated.rotate_clockwise()
        picker = picker_to(tmp_path / "out.png")

        written = annotated.export_as("png", picker)

        assert written == tmp_path / "out.png"
        assert picker.calls == [("dentalceph.png", ExportFormat.PNG)]
        result = QImage(str(written))
        assert (result.width(), result.height()) == (200, 200)

    def test_export_draws_annotations(self, annotated, tmp_path):
        written = annotated.export_as("png", picker_to(tmp_path / "out.png"))
        result = QImage(str(written))

        line_pixel = result.pixelColor(100, 10)
        background = result.pixelColor(150, 150)
        assert line_pixel.name() == "#ff9800"
        assert background.name() == "#1e1e1e"

    def test_jpeg_export(self, annotated, tmp_path):
        written = annotated.export_as("jpg", picker_to(tmp_path / "out.jpg"))
        assert written.read_bytes()[:2] == b"\xff\xd8"

    def test_pdf_export(self, annotated, tmp_path):
        written = annotated.export_as("pdf", picker_to(tmp_path / "out.pdf"))
        assert written.read_bytes().startswith(b"%PDF")

    def test_export_leaves_store_untouched(self, annotated, tmp_path):
        before = annotated.store.snapshot()
        undo_state = annotated.history.can_undo

        annotated.export_as("png", picker_to(tmp_path / "out.png"))
        annotated.export_as("png", picker_to(None))

        assert annotated.store.snapshot() == before
        assert annotated.history.can_undo == undo_state

    def test_cancelled_picker_writes_nothing(self, annotated, tmp_path):
        assert annotated.export_as("png", picker_to(None)) is None
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.parametrize("text", ["", "  ", "bmp", None])
    def test_unknown_format_never_asks(self, annotated, text):
        picker = picker_to(None)
        assert annotated.export_as(text, picker) is None
        assert picker.calls == []

    def test_no_image_never_asks(self, qapp):
        picker = picker_to(None)
        assert export_as(None, AnnotationStore(), "png", picker) is None
        assert picker.calls == []

    def test_write_failure_is_reported_not_raised(self, annotated, tmp_path):
        target = tmp_path / "missing" / "out.png"
        assert annotated.export_as("png", picker_to(target)) is None


class TestRendering:
    def _image(self):
        image = QImage(100, 100, QImage.Format.Format_ARGB32)
        image.fill(QColor(255, 255, 255))
        return image

    def _angle_store(self):
        store = AnnotationStore()
        history = HistoryEngine(store)
        first = history.append(AnnotationKind.LINE, LineAnnotation(P(0, 50), P(100, 50)))
        second = history.append(AnnotationKind.LINE, LineAnnotation(P(50, 0), P(50, 100)))
        m = measure_angle(P(0, 50), P(100, 50), P(50, 0), P(50, 100), P(60, 60))
        history.append(
            AnnotationKind.ANGLE,
            AngleAnnotation(first, second, m.vertex, m.degrees, m.arc),
        )
        return store, history

    def test_angles_are_not_exported(self, qapp):
        store, history = self._angle_store()
        with_angle = render_composite(self._image(), store)

        history.undo()
        without_angle = render_composite(self._image(), store)

        assert with_angle == without_angle

    def test_angle_without_its_lines_is_not_drawn(self, qapp):
        store = AnnotationStore()
        m = measure_angle(P(0, 50), P(100, 50), P(50, 0), P(50, 100), P(60, 60))
        angle = AngleAnnotation(1, 2, m.vertex, m.degrees, m.arc)
        angle.id = 3
        store.insert(AnnotationKind.ANGLE, angle)

        image = self._image()
        blank = image.copy()
        painter = QPainter(image)
        paint_screen(painter, store)
        painter.end()

        assert image == blank

    def test_screen_draws_angle_when_lines_exist(self, qapp):
        store, _ = self._angle_store()
        plain = self._image()
        lines_only = AnnotationStore()
        for line in store.lines:
            lines_only.insert(AnnotationKind.LINE, line)

        with_angle = self._image()
        painter = QPainter(with_angle)
        paint_screen(painter, store)
        painter.end()

        painter = QPainter(plain)
        paint_screen(painter, lines_only)
        painter.end()

        assert with_angle != plain

    def test_screen_and_export_draw_the_same_pixels(self, qapp):
        store = AnnotationStore()
        history = HistoryEngine(store)
        history.append(AnnotationKind.LINE, LineAnnotation(P(5, 5), P(95, 60), 4, QColor("#ff9800")))
        history.append(AnnotationKind.LINE, LineAnnotation(P(20, 90), P(80, 15), 2, QColor("#2196f3")))
        history.append(AnnotationKind.POINT, PointAnnotation(P(30, 30), 6, QColor("#e91e63")))
        history.append(AnnotationKind.TEXT, TextAnnotation(P(10, 80), "Me", 18, "Arial"))
        source = self._image()

        exported = render_composite(source, store)

        screen = QImage(source.width(), source.height(), QImage.Format.Format_ARGB32_Premultiplied)
        screen.fill(Qt.GlobalColor.transparent)
        painter = QPainter(screen)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.setRenderHint(QPainter.RenderHint.TextAntialiasing)
        painter.drawImage(0, 0, source)
        paint_screen(painter, store)
        painter.end()

        assert screen == exported

    def test_empty_image_renders_null(self):
        assert render_composite(None, AnnotationStore()).isNull()

import pytest
from PySide6.QtGui import QColor, QImage

from dentalceph.services.config_service import ConfigService
from dentalceph.ui.main_window import MainWindow, UnsupportedImageError, read_radiograph


@pytest.fixture
def png_file(tmp_path):
    image = QImage(64, 48, QImage.Format.Format_RGB32)
    image.fill(QColor(90, 90, 90))
    path = tmp_path / "ceph.png"
    image.save(str(path), "PNG")
    return path


def test_reads_png(qapp, png_file):
    image = read_radiograph(png_file)
    assert (image.width(), image.height()) == (64, 48)


def test_rejects_pdf(qapp, tmp_path):
    path = tmp_path / "scan.pdf"
    path.write_bytes(b"%PDF-1.4\n")
    with pytest.raises(UnsupportedImageError, match="PDF"):
        read_radiograph(path)


def test_rejects_unknown_extension(qapp, tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("hello")
    with pytest.raises(UnsupportedImageError):
        read_radiograph(path)


def test_rejects_unreadable_image(qapp, tmp_path):
    path = tmp_path / "broken.jpg"
    path.write_bytes(b"not an image")
    with pytest.raises(UnsupportedImageError):
        read_radiograph(path)


def test_open_image_loads_into_canvas(qapp, png_file, tmp_path):
    window = MainWindow(ConfigService(tmp_path / "config.json"))

    assert window.open_image(png_file)

    canvas = window.editor.canvas
    assert canvas.image_size == (64, 48)
    assert canvas.zoom == 100
    window.deleteLater()

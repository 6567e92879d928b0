"""
Main window for the DentalCeph application.

This module contains the main application window with the editor widget,
the menu bar and the open-image glue.
"""

from pathlib import Path
from typing import Optional, Union

from PySide6.QtGui import QAction, QImage, QKeySequence
from PySide6.QtWidgets import (
    QFileDialog,
    QMainWindow,
    QMessageBox,
    QWidget,
)

from dentalceph import __version__
from dentalceph.editor.editor_widget import EditorWidget
from dentalceph.services.config_service import ConfigService
from dentalceph.services.logging_service import get_logger


IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg"}


class UnsupportedImageError(Exception):
    """Raised when a file cannot be opened as a radiograph."""


def read_radiograph(path: Union[str, Path]) -> QImage:
    """
    Decode an image file for annotation.

    Raises:
        UnsupportedImageError: PDFs, unknown extensions and unreadable files.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".pdf":
        raise UnsupportedImageError("PDF files cannot be annotated. Please open a PNG or JPG image.")
    if suffix not in IMAGE_EXTENSIONS:
        raise UnsupportedImageError(f"Unsupported file type '{suffix or path.name}'.")

    image = QImage(str(path))
    if image.isNull():
        raise UnsupportedImageError(f"Could not read image {path.name}.")
    return image


class MainWindow(QMainWindow):
    """
    Main application window for DentalCeph.

    Features:
    - Menu bar with File, Edit, View and Help menus
    - The editor widget as central widget
    - Status bar messages from the editor
    """

    def __init__(
        self,
        config_service: Optional[ConfigService] = None,
        parent: Optional[QWidget] = None
    ) -> None:
        """
        Initialize the MainWindow.

        Args:
            config_service: Optional config service.
            parent: Optional parent widget.
        """
        super().__init__(parent)
        self._logger = get_logger(__name__)
        self._config = config_service or ConfigService()
        self._editor: Optional[EditorWidget] = None

        self._setup_window()
        self._setup_central_widget()
        self._setup_menu_bar()

        self._logger.info("MainWindow initialized")

    def _setup_window(self) -> None:
        """Configure main window properties."""
        self.setWindowTitle("DentalCeph - Radiograph Annotation")
        self.setMinimumSize(800, 600)
        self.resize(1200, 800)

    def _setup_central_widget(self) -> None:
        """Set up the central widget (editor)."""
        self._editor = EditorWidget(self._config, self)
        self._editor.status_message.connect(
            lambda message: self.statusBar().showMessage(message, 4000)
        )
        self.setCentralWidget(self._editor)

    def _setup_menu_bar(self) -> None:
        """Create and configure the menu bar."""
        menu_bar = self.menuBar()
        canvas = self._editor.canvas

        # ─── File Menu ────────────────────────────────────────────────
        file_menu = menu_bar.addMenu("&File")

        open_action = QAction("&Open Image...", self)
        open_action.setShortcut(QKeySequence.StandardKey.Open)
        open_action.triggered.connect(self._on_open)
        file_menu.addAction(open_action)

        export_action = QAction("&Export...", self)
        export_action.setShortcut(QKeySequence.StandardKey.Save)
        export_action.triggered.connect(self._editor.export_image)
        file_menu.addAction(export_action)

        file_menu.addSeparator()

        quit_action = QAction("&Quit", self)
        quit_action.setShortcut(QKeySequence.StandardKey.Quit)
        quit_action.triggered.connect(self.close)
        file_menu.addAction(quit_action)

        # ─── Edit Menu ────────────────────────────────────────────────
        edit_menu = menu_bar.addMenu("&Edit")

        undo_action = QAction("&Undo", self)
        undo_action.triggered.connect(canvas.undo)
        edit_menu.addAction(undo_action)

        redo_action = QAction("&Redo", self)
        redo_action.triggered.connect(canvas.redo)
        edit_menu.addAction(redo_action)

        edit_menu.addSeparator()

        commit_action = QAction("&Commit Annotations", self)
        commit_action.triggered.connect(canvas.freeze)
        edit_menu.addAction(commit_action)

        clear_action = QAction("C&lear Annotations", self)
        clear_action.triggered.connect(canvas.clear_all)
        edit_menu.addAction(clear_action)

        # ─── View Menu ────────────────────────────────────────────────
        view_menu = menu_bar.addMenu("&View")

        rotate_action = QAction("&Rotate 90°", self)
        rotate_action.setShortcut("Ctrl+R")
        rotate_action.triggered.connect(canvas.rotate_clockwise)
        view_menu.addAction(rotate_action)

        zoom_100_action = QAction("Zoom &100%", self)
        zoom_100_action.setShortcut("Ctrl+0")
        zoom_100_action.triggered.connect(lambda: canvas.set_zoom(100))
        view_menu.addAction(zoom_100_action)

        # ─── Help Menu ────────────────────────────────────────────────
        help_menu = menu_bar.addMenu("&Help")

        about_action = QAction("&About", self)
        about_action.triggered.connect(self._show_about_dialog)
        help_menu.addAction(about_action)

    @property
    def editor(self) -> EditorWidget:
        return self._editor

    # ─── Public Methods ───────────────────────────────────────────────────

    def open_image(self, path: Union[str, Path]) -> bool:
        """
        Open a radiograph from disk.

        PDFs and unsupported files are rejected with a message.

        Returns:
            True if the image was loaded.
        """
        try:
            image = read_radiograph(path)
        except UnsupportedImageError as e:
            self._logger.warning(f"Rejected {path}: {e}")
            QMessageBox.warning(self, "Open Image", str(e))
            return False

        self.set_image(image)
        self.setWindowTitle(f"DentalCeph - {Path(path).name}")
        return True

    def set_image(self, image: QImage) -> None:
        """
        Load an image into the editor.

        Args:
            image: The decoded radiograph.
        """
        if self._editor:
            self._editor.set_image(image)
            self._logger.info(
                f"Image loaded in editor: {image.width()}x{image.height()}"
            )

    # ─── Menu Actions ─────────────────────────────────────────────────────

    def _on_open(self) -> None:
        """Handle File > Open Image."""
        filename, _ = QFileDialog.getOpenFileName(
            self,
            "Open Radiograph",
            str(Path.home()),
            "Images (*.png *.jpg *.jpeg);;PDF (*.pdf);;All files (*)",
        )
        if filename:
            self.open_image(filename)

    def _show_about_dialog(self) -> None:
        """Display the About dialog."""
        about_text = (
            "<h2>DentalCeph</h2>"
            "<p>Cephalometric annotation for dental radiographs.</p>"
            f"<p><b>Version:</b> {__version__}</p>"
            "<hr>"
            "<p><b>Tools:</b> Point (P), Line (L), Text (T), "
            "Angle (A), Jarabak ratio (J)</p>"
            "<p><b>Keyboard Shortcuts:</b></p>"
            "<ul>"
            "<li>Ctrl+Z - Undo</li>"
            "<li>Ctrl+Y / Ctrl+Shift+Z - Redo</li>"
            "<li>Esc - Cancel angle selection</li>"
            "<li>Ctrl+S - Export</li>"
            "</ul>"
        )

        QMessageBox.about(self, "About DentalCeph", about_text)

    def closeEvent(self, event) -> None:
        self._logger.info("MainWindow closing")
        super().closeEvent(event)

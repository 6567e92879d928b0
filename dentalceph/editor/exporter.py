"""
Export of annotated radiographs.

The composite is rendered at the image's natural size, encoded as PNG, JPEG
or a one-page PDF, and written to wherever the destination picker points.
A cancelled picker, a missing image or an unknown format all end the export
quietly; nothing here touches the annotation store or the history.
"""

from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from PySide6.QtCore import QBuffer, QByteArray, QIODevice, QMarginsF, QRectF, QSizeF
from PySide6.QtGui import QImage, QPageSize, QPainter, QPdfWriter

from dentalceph.editor.annotations import AnnotationStore
from dentalceph.editor.rendering import render_composite
from dentalceph.services.logging_service import get_logger


logger = get_logger(__name__)

EXPORT_BASENAME = "dentalceph"

# PDF pages use one point per image pixel
PDF_RESOLUTION = 72


class ExportFormat(Enum):
    """Supported export formats: (extension, MIME type)."""
    PNG = ("png", "image/png")
    JPG = ("jpg", "image/jpeg")
    JPEG = ("jpeg", "image/jpeg")
    PDF = ("pdf", "application/pdf")

    @property
    def extension(self) -> str:
        return self.value[0]

    @property
    def mime_type(self) -> str:
        return self.value[1]

    @property
    def is_raster(self) -> bool:
        return self is not ExportFormat.PDF

    @property
    def suggested_name(self) -> str:
        return f"{EXPORT_BASENAME}.{self.extension}"


# Called with the suggested file name and the format; returns None when the
# user cancels.
DestinationPicker = Callable[[str, ExportFormat], Optional[Path]]


def parse_export_format(text: Optional[str]) -> Optional[ExportFormat]:
    """Parse a user-typed format such as 'PNG' or ' jpg '. Unknown or blank gives None."""
    if not text:
        return None
    wanted = text.strip().lower()
    for export_format in ExportFormat:
        if export_format.extension == wanted:
            return export_format
    return None


def _encode_raster(image: QImage, export_format: ExportFormat) -> Optional[bytes]:
    if export_format.mime_type == "image/jpeg":
        image = image.convertToFormat(QImage.Format.Format_RGB32)
        qt_format = "JPEG"
    else:
        qt_format = "PNG"

    byte_array = QByteArray()
    buffer = QBuffer(byte_array)
    buffer.open(QIODevice.OpenModeFlag.WriteOnly)
    ok = image.save(buffer, qt_format)
    buffer.close()

    if not ok:
        logger.error(f"Could not encode image as {qt_format}")
        return None
    return bytes(byte_array.data())


def _encode_pdf(image: QImage) -> bytes:
    width = image.width()
    height = image.height()

    byte_array = QByteArray()
    buffer = QBuffer(byte_array)
    buffer.open(QIODevice.OpenModeFlag.WriteOnly)

    writer = QPdfWriter(buffer)
    writer.setResolution(PDF_RESOLUTION)
    writer.setPageSize(QPageSize(
        QSizeF(width, height),
        QPageSize.Unit.Point,
        "",
        QPageSize.SizeMatchPolicy.ExactMatch,
    ))
    writer.setPageMargins(QMarginsF(0, 0, 0, 0))

    painter = QPainter(writer)
    painter.drawImage(QRectF(0, 0, width, height), image)
    painter.end()
    buffer.close()

    return bytes(byte_array.data())


def encode_composite(image: QImage, export_format: ExportFormat) -> Optional[bytes]:
    """Encode an already rendered composite in the requested format."""
    if export_format.is_raster:
        return _encode_raster(image, export_format)
    return _encode_pdf(image)


def export_as(
    image: Optional[QImage],
    store: AnnotationStore,
    format_text: Optional[str],
    choose_destination: DestinationPicker,
) -> Optional[Path]:
    """
    Render, encode and write the annotated image.

    Args:
        image: The loaded radiograph (fully decoded).
        store: The annotations to draw; only read.
        format_text: Format typed by the user ('png', 'jpg', 'jpeg', 'pdf').
        choose_destination: Asks where to write; None means cancelled.

    Returns:
        The path written, or None when the export did not happen.
    """
    if image is None or image.isNull():
        logger.debug("Export skipped: no image loaded")
        return None

    export_format = parse_export_format(format_text)
    if export_format is None:
        if format_text and format_text.strip():
            logger.warning(f"Export skipped: unsupported format '{format_text}'")
        return None

    destination = choose_destination(export_format.suggested_name, export_format)
    if not destination:
        logger.info("Export cancelled")
        return None

    composite = render_composite(image, store)
    data = encode_composite(composite, export_format)
    if data is None:
        return None

    path = Path(destination)
    try:
        path.write_bytes(data)
    except (OSError, PermissionError) as e:
        logger.error(f"Could not write export to {path}: {e}")
        return None

    logger.info(
        f"Exported {composite.width()}x{composite.height()} "
        f"{export_format.extension.upper()} to {path}"
    )
    return path

"""
Screen/image coordinate conversion for the DentalCeph canvas.

The canvas shows the image scaled by zoom/100 and rotated about the image
center. Pointer positions arrive in the canvas frame and are mapped back to
image pixels by undoing the scale and then the rotation. The same forward
transform is handed to QPainter so hit-testing and drawing agree.
"""

import math
from dataclasses import dataclass

import numpy as np
from PySide6.QtCore import QPointF
from PySide6.QtGui import QTransform


def rotation_matrix(degrees: float) -> np.ndarray:
    """Standard 2D rotation matrix (y axis pointing down on screen)."""
    rad = math.radians(degrees)
    cos_r = math.cos(rad)
    sin_r = math.sin(rad)
    return np.array([[cos_r, -sin_r], [sin_r, cos_r]])


@dataclass
class CoordinateMapper:
    """
    Converts between canvas coordinates and image coordinates.

    Attributes:
        zoom: Zoom as a percentage (100 = natural size).
        rotation: Rotation in degrees, clockwise on screen.
        image_width: Natural width of the image in pixels.
        image_height: Natural height of the image in pixels.
    """
    zoom: float = 100.0
    rotation: float = 0.0
    image_width: float = 0.0
    image_height: float = 0.0

    @property
    def scale(self) -> float:
        return self.zoom / 100.0

    @property
    def center(self) -> np.ndarray:
        return np.array([self.image_width / 2.0, self.image_height / 2.0])

    def to_image(self, point: QPointF) -> QPointF:
        """Map a canvas point to image space (inverse of to_screen)."""
        unscaled = np.array([point.x(), point.y()]) / self.scale
        center = self.center
        x, y = rotation_matrix(-self.rotation) @ (unscaled - center) + center
        return QPointF(float(x), float(y))

    def to_screen(self, point: QPointF) -> QPointF:
        """Map an image point to the canvas: rotate about the center, then scale."""
        center = self.center
        rotated = rotation_matrix(self.rotation) @ (np.array([point.x(), point.y()]) - center) + center
        x, y = rotated * self.scale
        return QPointF(float(x), float(y))

    def display_transform(self) -> QTransform:
        """
        The forward transform as a QTransform for painting.

        QTransform applies the last added operation to the point first, so
        this reads as: move the center to the origin, rotate, move back, scale.
        """
        cx = self.image_width / 2.0
        cy = self.image_height / 2.0
        transform = QTransform()
        transform.scale(self.scale, self.scale)
        transform.translate(cx, cy)
        transform.rotate(self.rotation)
        transform.translate(-cx, -cy)
        return transform

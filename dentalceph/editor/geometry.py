"""
Geometry helpers for DentalCeph annotations.

Pure functions working in image space: segment projection and hit testing,
line intersection, line equations and the angle measurement used by the
angle tool. Nothing here touches the annotation store.
"""

import math
from dataclasses import dataclass
from typing import Optional

from PySide6.QtCore import QPointF


# Default pick tolerance in image pixels
HIT_TOLERANCE = 8.0

# Radius of the arc drawn for a measured angle
ANGLE_ARC_RADIUS = 32.0

# Determinants smaller than this are treated as parallel lines
_PARALLEL_EPSILON = 1e-9

_TWO_PI = 2 * math.pi


@dataclass(frozen=True)
class LineEquation:
    """
    Equation of the infinite line through a segment.

    slope/intercept describe y = m*x + b and are None for vertical lines.
    a, b, c describe the general form a*x + b*y + c = 0.
    """
    slope: Optional[float]
    intercept: Optional[float]
    a: float
    b: float
    c: float

    @property
    def is_vertical(self) -> bool:
        return self.slope is None


@dataclass(frozen=True)
class ArcDescriptor:
    """Arc drawn clockwise (y down) from start to end, angles in radians."""
    center: QPointF
    radius: float
    start: float
    end: float

    @property
    def sweep(self) -> float:
        return (self.end - self.start) % _TWO_PI

    @property
    def mid_angle(self) -> float:
        return self.start + self.sweep / 2


@dataclass(frozen=True)
class AngleMeasurement:
    """Result of measuring the angle between two lines."""
    vertex: QPointF
    degrees: float
    arc: ArcDescriptor
    acute_side: bool


def segment_length(p1: QPointF, p2: QPointF) -> float:
    return math.hypot(p2.x() - p1.x(), p2.y() - p1.y())


def normalize(v: QPointF) -> QPointF:
    """Return v scaled to unit length. The zero vector is returned unchanged."""
    length = math.hypot(v.x(), v.y())
    if length == 0:
        return QPointF(0.0, 0.0)
    return QPointF(v.x() / length, v.y() / length)


def dot(a: QPointF, b: QPointF) -> float:
    return a.x() * b.x() + a.y() * b.y()


def project_onto_segment(q: QPointF, p1: QPointF, p2: QPointF) -> Optional[float]:
    """
    Projection parameter of q onto the segment p1-p2.

    Returns t = dot(q - p1, p2 - p1) / |p2 - p1|^2, or None for a
    zero-length segment.
    """
    dx = p2.x() - p1.x()
    dy = p2.y() - p1.y()
    length_sq = dx * dx + dy * dy
    if length_sq == 0:
        return None
    return ((q.x() - p1.x()) * dx + (q.y() - p1.y()) * dy) / length_sq


def distance_to_segment(q: QPointF, p1: QPointF, p2: QPointF) -> Optional[float]:
    """
    Perpendicular distance from q to the interior of segment p1-p2.

    Only the interior counts: if the projection falls outside [0, 1] (or the
    segment has no length) None is returned instead of an endpoint distance.
    """
    t = project_onto_segment(q, p1, p2)
    if t is None or t < 0 or t > 1:
        return None
    px = p1.x() + t * (p2.x() - p1.x())
    py = p1.y() + t * (p2.y() - p1.y())
    return math.hypot(q.x() - px, q.y() - py)


def hits_segment(
    q: QPointF,
    p1: QPointF,
    p2: QPointF,
    tolerance: float = HIT_TOLERANCE,
) -> bool:
    """Test whether q lies within tolerance of the segment interior."""
    distance = distance_to_segment(q, p1, p2)
    return distance is not None and distance < tolerance


def line_intersection(
    p1: QPointF, p2: QPointF, p3: QPointF, p4: QPointF
) -> Optional[QPointF]:
    """
    Intersection of the infinite lines p1-p2 and p3-p4.

    Returns None for parallel or coincident lines.
    """
    x1, y1, x2, y2 = p1.x(), p1.y(), p2.x(), p2.y()
    x3, y3, x4, y4 = p3.x(), p3.y(), p4.x(), p4.y()

    denom = (x1 - x2) * (y3 - y4) - (y1 - y2) * (x3 - x4)
    if abs(denom) < _PARALLEL_EPSILON:
        return None

    cross_12 = x1 * y2 - y1 * x2
    cross_34 = x3 * y4 - y3 * x4
    px = (cross_12 * (x3 - x4) - (x1 - x2) * cross_34) / denom
    py = (cross_12 * (y3 - y4) - (y1 - y2) * cross_34) / denom
    return QPointF(px, py)


def line_equation(start: QPointF, end: QPointF) -> LineEquation:
    """Compute slope/intercept and general form for the line start-end."""
    x1, y1, x2, y2 = start.x(), start.y(), end.x(), end.y()

    slope = None
    intercept = None
    if x2 != x1:
        slope = (y2 - y1) / (x2 - x1)
        intercept = y1 - slope * x1

    return LineEquation(
        slope=slope,
        intercept=intercept,
        a=y2 - y1,
        b=x1 - x2,
        c=x2 * y1 - x1 * y2,
    )


def farthest_endpoint(start: QPointF, end: QPointF, vertex: QPointF) -> QPointF:
    """Pick the segment endpoint farthest from vertex (ties pick end)."""
    if segment_length(start, vertex) > segment_length(end, vertex):
        return start
    return end


def _minor_arc(center: QPointF, u1: QPointF, u2: QPointF, radius: float) -> ArcDescriptor:
    """Arc spanning the smaller wedge between the unit vectors u1 and u2."""
    a1 = math.atan2(u1.y(), u1.x())
    a2 = math.atan2(u2.y(), u2.x())
    if (a2 - a1) % _TWO_PI <= math.pi:
        return ArcDescriptor(center, radius, a1, a2)
    return ArcDescriptor(center, radius, a2, a1)


def measure_angle(
    line1_start: QPointF,
    line1_end: QPointF,
    line2_start: QPointF,
    line2_end: QPointF,
    click: QPointF,
    radius: float = ANGLE_ARC_RADIUS,
) -> Optional[AngleMeasurement]:
    """
    Measure the angle between two lines on the side indicated by click.

    The rays run from the lines' intersection to each line's farthest
    endpoint. The click picks between the wedge the rays enclose (acute
    side, bisector u1 + u2) and its supplementary wedge (obtuse side,
    bisector u1 - u2); ties go to the acute side. The reported value is
    always in (0, 180].

    Returns None when the lines do not intersect.
    """
    vertex = line_intersection(line1_start, line1_end, line2_start, line2_end)
    if vertex is None:
        return None

    ray1 = farthest_endpoint(line1_start, line1_end, vertex)
    ray2 = farthest_endpoint(line2_start, line2_end, vertex)
    u1 = normalize(ray1 - vertex)
    u2 = normalize(ray2 - vertex)

    acute_bisector = normalize(u1 + u2)
    obtuse_bisector = normalize(u1 - u2)
    towards_click = normalize(click - vertex)

    minor = _minor_arc(vertex, u1, u2, radius)
    minor_degrees = math.degrees(minor.sweep)

    if dot(acute_bisector, towards_click) >= dot(obtuse_bisector, towards_click):
        return AngleMeasurement(vertex, minor_degrees, minor, True)

    # Reflex sweep reduced into (0, 180]
    degrees = (360.0 - minor_degrees) % 360.0
    if degrees > 180.0:
        degrees -= 180.0
    arc = _minor_arc(vertex, u1, QPointF(-u2.x(), -u2.y()), radius)
    return AngleMeasurement(vertex, degrees, arc, False)

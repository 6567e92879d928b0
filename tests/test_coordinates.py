import pytest
from PySide6.QtCore import QPointF

from dentalceph.editor.coordinates import CoordinateMapper


@pytest.mark.parametrize("zoom", [50, 100, 150, 200])
@pytest.mark.parametrize("rotation", [0, 90, 180, 270])
def test_round_trip(zoom, rotation):
    mapper = CoordinateMapper(zoom=zoom, rotation=rotation, image_width=640, image_height=480)
    for point in (QPointF(0, 0), QPointF(123.5, 77.25), QPointF(640, 480)):
        back = mapper.to_image(mapper.to_screen(point))
        assert back.x() == pytest.approx(point.x(), abs=1e-9)
        assert back.y() == pytest.approx(point.y(), abs=1e-9)


def test_identity_at_natural_size():
    mapper = CoordinateMapper(image_width=100, image_height=100)
    point = mapper.to_image(QPointF(12, 34))
    assert (point.x(), point.y()) == pytest.approx((12, 34))


def test_zoom_divides_canvas_coordinates():
    mapper = CoordinateMapper(zoom=200, image_width=100, image_height=100)
    point = mapper.to_image(QPointF(50, 80))
    assert (point.x(), point.y()) == pytest.approx((25, 40))


def test_quarter_turn_is_clockwise_about_center():
    mapper = CoordinateMapper(rotation=90, image_width=100, image_height=100)
    # Top-left corner ends up top-right on screen
    screen = mapper.to_screen(QPointF(0, 0))
    assert (screen.x(), screen.y()) == pytest.approx((100, 0), abs=1e-9)


def test_display_transform_matches_to_screen():
    mapper = CoordinateMapper(zoom=150, rotation=90, image_width=300, image_height=200)
    point = QPointF(40, 170)
    painted = mapper.display_transform().map(point)
    mapped = mapper.to_screen(point)
    assert painted.x() == pytest.approx(mapped.x(), abs=1e-6)
    assert painted.y() == pytest.approx(mapped.y(), abs=1e-6)

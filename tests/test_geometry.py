import math

import pytest
from PySide6.QtCore import QPointF

from dentalceph.editor.geometry import (
    distance_to_segment,
    farthest_endpoint,
    hits_segment,
    line_equation,
    line_intersection,
    measure_angle,
    normalize,
    project_onto_segment,
)


def P(x, y):
    return QPointF(x, y)


class TestHitTesting:
    def test_within_tolerance_hits(self):
        assert hits_segment(P(50, 7.9), P(0, 0), P(100, 0))

    def test_outside_tolerance_misses(self):
        assert not hits_segment(P(50, 8.1), P(0, 0), P(100, 0))

    def test_tolerance_is_strict(self):
        assert not hits_segment(P(50, 8.0), P(0, 0), P(100, 0))

    def test_beyond_endpoint_misses(self):
        # Close to the end point but past it
        assert not hits_segment(P(102, 0), P(0, 0), P(100, 0))

    def test_zero_length_segment_misses(self):
        assert not hits_segment(P(10, 10), P(10, 10), P(10, 10))

    def test_projection_parameter(self):
        assert project_onto_segment(P(25, 40), P(0, 0), P(100, 0)) == pytest.approx(0.25)
        assert project_onto_segment(P(1, 1), P(5, 5), P(5, 5)) is None

    def test_distance_to_interior(self):
        assert distance_to_segment(P(30, -6), P(0, 0), P(100, 0)) == pytest.approx(6)
        assert distance_to_segment(P(-1, 0), P(0, 0), P(100, 0)) is None


class TestLines:
    def test_intersection(self):
        vertex = line_intersection(P(0, 50), P(100, 50), P(50, 0), P(50, 100))
        assert vertex.x() == pytest.approx(50)
        assert vertex.y() == pytest.approx(50)

    def test_intersection_outside_segments(self):
        vertex = line_intersection(P(0, 0), P(10, 0), P(20, 5), P(20, 10))
        assert vertex.x() == pytest.approx(20)
        assert vertex.y() == pytest.approx(0)

    def test_parallel_lines_have_no_intersection(self):
        assert line_intersection(P(0, 0), P(100, 0), P(0, 10), P(100, 10)) is None

    def test_coincident_lines_have_no_intersection(self):
        assert line_intersection(P(0, 0), P(10, 10), P(20, 20), P(30, 30)) is None

    def test_equation_general_form(self):
        eq = line_equation(P(10, 20), P(30, 60))
        assert eq.slope == pytest.approx(2)
        assert eq.intercept == pytest.approx(0)
        assert (eq.a, eq.b, eq.c) == (40, -20, 0)

    def test_vertical_line_has_no_slope(self):
        eq = line_equation(P(5, 0), P(5, 100))
        assert eq.is_vertical
        assert eq.intercept is None
        assert (eq.a, eq.b, eq.c) == (100, 0, -500)

    def test_farthest_endpoint(self):
        assert farthest_endpoint(P(0, 0), P(100, 0), P(10, 0)) == P(100, 0)
        assert farthest_endpoint(P(0, 0), P(100, 0), P(90, 0)) == P(0, 0)

    def test_normalize(self):
        unit = normalize(P(3, 4))
        assert unit.x() == pytest.approx(0.6)
        assert unit.y() == pytest.approx(0.8)
        assert normalize(P(0, 0)) == P(0, 0)


class TestMeasureAngle:
    PERPENDICULAR = (P(0, 50), P(100, 50), P(50, 0), P(50, 100))
    SIXTY = (P(0, 0), P(100, 0), P(0, 0), P(50, 86.6025))

    def test_perpendicular_acute_side(self):
        result = measure_angle(*self.PERPENDICULAR, P(60, 60))
        assert result.degrees == pytest.approx(90)
        assert result.acute_side
        assert result.vertex == P(50, 50)

    def test_perpendicular_obtuse_side(self):
        result = measure_angle(*self.PERPENDICULAR, P(60, 40))
        assert result.degrees == pytest.approx(90)
        assert not result.acute_side

    def test_sixty_degrees_on_acute_side(self):
        result = measure_angle(*self.SIXTY, P(50, 20))
        assert result.degrees == pytest.approx(60, abs=1e-3)
        assert result.acute_side

    def test_supplement_on_obtuse_side(self):
        result = measure_angle(*self.SIXTY, P(50, -50))
        assert result.degrees == pytest.approx(120, abs=1e-3)
        assert not result.acute_side

    def test_click_on_vertex_picks_acute_side(self):
        result = measure_angle(*self.SIXTY, P(0, 0))
        assert result.acute_side
        assert result.degrees == pytest.approx(60, abs=1e-3)

    def test_arc_spans_measured_angle(self):
        result = measure_angle(*self.SIXTY, P(50, 20))
        assert result.arc.radius == 32
        assert math.degrees(result.arc.sweep) == pytest.approx(60, abs=1e-3)

        obtuse = measure_angle(*self.SIXTY, P(50, -50))
        assert math.degrees(obtuse.arc.sweep) == pytest.approx(120, abs=1e-3)

    def test_parallel_lines_give_nothing(self):
        assert measure_angle(P(0, 0), P(100, 0), P(0, 10), P(100, 10), P(50, 5)) is None

    def test_value_never_exceeds_straight_angle(self):
        lines = (P(0, 0), P(100, 10), P(0, 0), P(-100, 15))
        for click in (P(0, 50), P(0, -50), P(50, 0), P(-50, 0)):
            result = measure_angle(*lines, click)
            assert 0 < result.degrees <= 180

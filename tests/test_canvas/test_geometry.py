from __future__ import annotations

import pytest

from storyboard.canvas.geometry import (
    Compass,
    FixedCanvas,
    Intensity,
    IntensityLevel,
    area_percent,
    clamp_percent,
    compass_direction,
    intensity_bucket,
    intensity_level,
    normalize_rotation,
    pixels_to_percent,
    position_zone,
)
from storyboard.exceptions import InvalidCanvas


class TestNormalizeRotation:
    @pytest.mark.parametrize(
        ("degrees", "expected"),
        [(0, 0), (90, 90), (360, 0), (725, 5), (-90, 270), (-720, 0)],
    )
    def test_values(self, degrees, expected):
        assert normalize_rotation(degrees) == pytest.approx(expected)

    def test_always_in_range(self):
        for degrees in [-1e-15, -359.999, 359.9999, 1e6, -1e6 + 0.5]:
            result = normalize_rotation(degrees)
            assert 0 <= result < 360


class TestCompassDirection:
    @pytest.mark.parametrize(
        ("degrees", "expected"),
        [
            (0, Compass.N),
            (45, Compass.NE),
            (90, Compass.E),
            (135, Compass.SE),
            (180, Compass.S),
            (225, Compass.SW),
            (270, Compass.W),
            (315, Compass.NW),
            (350, Compass.N),
            (22.6, Compass.NE),
        ],
    )
    def test_buckets(self, degrees, expected):
        assert compass_direction(degrees) == expected

    def test_ties_go_to_earlier_bucket(self):
        assert compass_direction(22.5) == Compass.N
        assert compass_direction(67.5) == Compass.NE
        assert compass_direction(337.5) == Compass.N

    def test_periodic(self):
        for degrees in [0, 10, 44.9, 91, 200, 301, 359]:
            for k in range(-3, 4):
                assert compass_direction(degrees + 360 * k) == compass_direction(degrees)


class TestIntensity:
    def test_area_percent(self):
        assert area_percent(40, 40) == pytest.approx(16)
        assert area_percent(100, 100) == pytest.approx(100)

    @pytest.mark.parametrize(
        ("area", "expected"),
        [
            (0, Intensity.SLIGHT),
            (9.99, Intensity.SLIGHT),
            (10, Intensity.SLOW),
            (24.99, Intensity.SLOW),
            (25, Intensity.MODERATE),
            (50, Intensity.FAST),
            (75, Intensity.EXTREMELY_FAST),
            (400, Intensity.EXTREMELY_FAST),
        ],
    )
    def test_buckets(self, area, expected):
        assert intensity_bucket(area) == expected

    def test_monotonic(self):
        order = list(Intensity)
        previous = 0
        for step in range(0, 1200):
            rank = order.index(intensity_bucket(step / 10))
            assert rank >= previous
            previous = rank

    def test_levels(self):
        assert intensity_level(Intensity.SLIGHT) == IntensityLevel.LOW
        assert intensity_level(Intensity.SLOW) == IntensityLevel.LOW
        assert intensity_level(Intensity.MODERATE) == IntensityLevel.MID
        assert intensity_level(Intensity.FAST) == IntensityLevel.HIGH
        assert intensity_level(Intensity.EXTREMELY_FAST) == IntensityLevel.HIGH


class TestPositionZone:
    @pytest.mark.parametrize(
        ("x", "y", "expected"),
        [
            (50, 50, "Center"),
            (10, 10, "Top-Left"),
            (50, 10, "Top-Center"),
            (90, 10, "Top-Right"),
            (10, 50, "Center-Left"),
            (80, 50, "Center-Right"),
            (10, 90, "Bottom-Left"),
            (50, 71, "Bottom-Center"),
            (71, 71, "Bottom-Right"),
            (30, 70, "Center"),
        ],
    )
    def test_zones(self, x, y, expected):
        assert position_zone(x, y) == expected


class TestConversions:
    def test_clamp_percent(self):
        assert clamp_percent(-5) == 0
        assert clamp_percent(42.5) == 42.5
        assert clamp_percent(120) == 100

    def test_pixels_to_percent(self):
        dx, dy = pixels_to_percent(50, -25, 500, 250)
        assert dx == pytest.approx(10)
        assert dy == pytest.approx(-10)

    @pytest.mark.parametrize(("width", "height"), [(0, 100), (100, 0), (-1, 10)])
    def test_zero_canvas_raises(self, width, height):
        with pytest.raises(InvalidCanvas):
            pixels_to_percent(1, 1, width, height)

    def test_fixed_canvas_size(self):
        assert FixedCanvas(800, 450).size() == (800, 450)

"""
Placement Mapper Tests
======================

Editor preview -> export canvas and editor preview -> print area.
"""

import pytest

from design_export.geometry import PlacementMapper
from design_export.models.image import OutputSpec
from design_export.models.placement import UiPlacement


POSTER = OutputSpec(width_px=4500, height_px=5400)


@pytest.fixture
def mapper():
    return PlacementMapper()


class TestToCanvas:
    """Tests for the export canvas adapter."""

    def test_centered_square(self, mapper):
        placement = mapper.to_canvas(UiPlacement(), POSTER, (1000, 1000))
        assert placement.to_dict() == {"left": 990, "top": 1440, "width": 2520, "height": 2520}
        assert placement.center == (2250, 2700)

    def test_export_scale_uses_shorter_side(self, mapper):
        assert mapper.export_scale(POSTER) == pytest.approx(9.0)
        assert mapper.export_scale(OutputSpec(6000, 3000)) == pytest.approx(6.0)

    def test_landscape_width_drives(self, mapper):
        placement = mapper.to_canvas(UiPlacement(), POSTER, (2000, 1000))
        assert (placement.width, placement.height) == (2520, 1260)

    def test_portrait_height_drives(self, mapper):
        placement = mapper.to_canvas(UiPlacement(), POSTER, (1000, 2000))
        assert (placement.width, placement.height) == (1260, 2520)

    def test_scale_percent(self, mapper):
        placement = mapper.to_canvas(UiPlacement(scale_percent=50), POSTER, (1000, 1000))
        assert placement.width == 1260

    def test_offset_scaled_to_canvas(self, mapper):
        placement = mapper.to_canvas(UiPlacement(offset_x=50), POSTER, (1000, 1000))
        assert placement.left == 1440
        assert placement.top == 1440

    def test_clamped_right_and_left(self, mapper):
        right = mapper.to_canvas(UiPlacement(offset_x=250), POSTER, (1000, 1000))
        left = mapper.to_canvas(UiPlacement(offset_x=-250), POSTER, (1000, 1000))
        assert right.left == 4500 - 2520
        assert left.left == 0

    def test_clamped_vertically(self, mapper):
        placement = mapper.to_canvas(UiPlacement(offset_y=1000), POSTER, (1000, 1000))
        assert placement.top == 5400 - 2520

    def test_oversized_footprint_shrinks_to_fit(self, mapper):
        placement = mapper.to_canvas(UiPlacement(scale_percent=500), POSTER, (1000, 1000))
        assert placement.width == 4500
        assert placement.height == 4500
        assert placement.contained_in(4500, 5400)

    @pytest.mark.parametrize("offset", [(-400, -400), (0, 0), (123.4, -56.7), (600, 600)])
    @pytest.mark.parametrize("scale", [1, 60, 100, 180, 1000])
    @pytest.mark.parametrize("size", [(1000, 1000), (3000, 40), (7, 900)])
    def test_always_contained(self, mapper, offset, scale, size):
        ui = UiPlacement(offset_x=offset[0], offset_y=offset[1], scale_percent=scale)
        for output in (POSTER, OutputSpec(800, 600), OutputSpec(50, 50)):
            placement = mapper.to_canvas(ui, output, size)
            assert placement.width >= 1 and placement.height >= 1
            assert placement.contained_in(output.width_px, output.height_px)

    def test_invalid_image_size(self, mapper):
        with pytest.raises(ValueError):
            mapper.to_canvas(UiPlacement(), POSTER, (0, 10))


class TestToPrintArea:
    """Tests for the marketplace print-area adapter."""

    def test_default(self, mapper):
        placement = mapper.to_print_area(None)
        assert placement.x == 0.5
        assert placement.y == 0.5
        assert placement.scale == pytest.approx(0.63)

    def test_editor_units(self, mapper):
        ui = mapper.from_print_area_ui(25, -25, 1.0)
        assert ui.offset_x == pytest.approx(125)
        assert ui.scale_percent == pytest.approx(125)

        placement = mapper.to_print_area(ui)
        assert placement.x == pytest.approx(0.75)
        assert placement.y == pytest.approx(0.25)
        assert placement.scale == pytest.approx(0.7)

    def test_clamped(self, mapper):
        placement = mapper.to_print_area(mapper.from_print_area_ui(80, -90, 1.0))
        assert placement.x == 1.0
        assert placement.y == 0.0

    def test_round_trip_units(self, mapper):
        ui = mapper.from_print_area_ui(12.5, -7.0, 0.8)
        assert mapper.print_area_ui(ui) == pytest.approx((12.5, -7.0, 0.8))


class TestWysiwyg:
    """Both adapters read the same UiPlacement and agree on where the design lands."""

    def test_poster_horizontal_axis(self, mapper):
        ui = mapper.from_print_area_ui(10, 0, 1.0)
        canvas = mapper.to_canvas(ui, POSTER, (1000, 1000))
        area = mapper.to_print_area(ui)

        assert canvas.center[0] / POSTER.width_px == pytest.approx(area.x, abs=1 / POSTER.width_px)
        assert canvas.width / POSTER.width_px == pytest.approx(area.scale, abs=1 / POSTER.width_px)

    def test_square_canvas_both_axes(self, mapper):
        output = OutputSpec(3000, 3000)
        ui = mapper.from_print_area_ui(-20, 15, 0.8)
        canvas = mapper.to_canvas(ui, output, (1000, 1000))
        area = mapper.to_print_area(ui)

        center_x, center_y = canvas.center
        assert center_x / 3000 == pytest.approx(area.x, abs=1 / 3000)
        assert center_y / 3000 == pytest.approx(area.y, abs=1 / 3000)
        assert canvas.width / 3000 == pytest.approx(area.scale, abs=1 / 3000)


class TestUiPlacement:

    @pytest.mark.parametrize("kwargs", [
        {"scale_percent": 0},
        {"scale_percent": -10},
        {"offset_x": float("nan")},
        {"offset_y": float("inf")},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            UiPlacement(**kwargs)

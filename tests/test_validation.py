"""Tests for the validation gate."""
import pytest

from panel_cutting.contracts import (
    CircularCut,
    PanelDimensions,
    PanelShape,
    PlacedCutInstance,
    RectangularCut,
)
from panel_cutting.errors import CutConfigurationError
from panel_cutting.grid import expand
from panel_cutting.validation import (
    footprint_polygon,
    panel_outline,
    require_valid,
    validate_cut,
    validate_cuts,
    validate_panel_dimensions,
)


def _repeated_rect(**kwargs):
    defaults = dict(
        id="slot",
        position_x=100.0,
        position_y=100.0,
        length=50.0,
        width=30.0,
        depth=18.0,
        repetition_x=2,
    )
    defaults.update(kwargs)
    return RectangularCut(**defaults)


class TestValidateCut:

    def test_spacing_below_clearance_rejected(self, panel_dims):
        result = validate_cut(_repeated_rect(spacing_x=40.0), panel_dims)
        assert not result.is_valid
        assert len(result.errors) == 1
        assert "spacingX must be at least 51.00mm" in result.errors[0]
        assert result.errors[0].startswith("Cut slot:")

    def test_spacing_at_clearance_accepted(self, panel_dims):
        result = validate_cut(_repeated_rect(spacing_x=51.0), panel_dims)
        assert result.is_valid
        assert result.min_spacing_x == pytest.approx(51.0)
        assert result.min_spacing_y == pytest.approx(31.0)

    def test_spacing_within_tolerance_accepted(self, panel_dims):
        result = validate_cut(_repeated_rect(spacing_x=50.995), panel_dims)
        assert result.is_valid

    def test_spacing_ignored_without_repetition(self, panel_dims):
        cut = _repeated_rect(repetition_x=0, spacing_x=0.0)
        assert validate_cut(cut, panel_dims).is_valid

    def test_both_axes_reported(self, panel_dims):
        cut = _repeated_rect(repetition_y=1, spacing_x=10.0, spacing_y=10.0)
        result = validate_cut(cut, panel_dims)
        assert len(result.errors) == 2
        assert "spacingX must be at least 51.00mm" in result.errors[0]
        assert "spacingY must be at least 31.00mm" in result.errors[1]

    def test_rotated_rectangle_uses_rotated_clearance(self, panel_dims):
        cut = _repeated_rect(rotation=90.0, spacing_x=35.0)
        assert validate_cut(cut, panel_dims).is_valid

    def test_circle_clearance(self, panel_dims):
        cut = CircularCut(id="hole", radius=10.0, repetition_x=1, spacing_x=20.0)
        result = validate_cut(cut, panel_dims)
        assert not result.is_valid
        assert "spacingX must be at least 21.00mm" in result.errors[0]

    def test_non_positive_footprint(self, panel_dims):
        result = validate_cut(RectangularCut(id="r", length=0.0, width=30.0), panel_dims)
        assert not result.is_valid
        assert "rectangle dimensions must be positive" in result.errors[0]

        result = validate_cut(CircularCut(id="c", radius=-1.0), panel_dims)
        assert not result.is_valid
        assert "radius must be positive" in result.errors[0]

    def test_negative_repetition(self, panel_dims):
        result = validate_cut(RectangularCut(id="r", repetition_x=-1), panel_dims)
        assert not result.is_valid
        assert "repetitionX must be a non-negative integer" in result.errors[0]

    def test_whole_float_repetition_coerced(self, panel_dims):
        cut = _repeated_rect(repetition_x=2.0, repetition_y=0.0, spacing_x=60.0)
        assert cut.repetition_x == 2
        assert isinstance(cut.repetition_x, int)
        assert isinstance(cut.repetition_y, int)
        result = validate_cuts(panel_dims, [cut])
        assert result.is_valid
        assert len(expand(cut)) == 3

    def test_fractional_repetition_rejected(self, panel_dims):
        cut = _repeated_rect(repetition_x=2.5, spacing_x=60.0)
        result = validate_cuts(panel_dims, [cut])
        assert not result.is_valid
        assert "repetitionX must be a non-negative integer (got 2.5)" in result.errors[0]

    def test_depth_exceeds_thickness(self, panel_dims):
        result = validate_cut(RectangularCut(id="r", depth=25.0), panel_dims)
        assert not result.is_valid
        assert "exceeds panel thickness" in result.errors[0]

    def test_negative_depth(self, panel_dims):
        result = validate_cut(RectangularCut(id="r", depth=-2.0), panel_dims)
        assert not result.is_valid
        assert "depth must be positive" in result.errors[0]

    @pytest.mark.parametrize("depth", [None, 0.0, 5.0, 18.0])
    def test_acceptable_depths(self, panel_dims, depth):
        assert validate_cut(RectangularCut(id="r", depth=depth), panel_dims).is_valid


class TestValidatePanel:

    def test_positive_dimensions(self, panel_dims):
        assert validate_panel_dimensions(panel_dims) == []

    def test_non_positive_dimensions(self):
        errors = validate_panel_dimensions(PanelDimensions(0.0, 200.0, -1.0))
        assert len(errors) == 2
        assert "Panel length must be positive" in errors[0]
        assert "Panel thickness must be positive" in errors[1]

    def test_circle_diameter(self, panel_dims):
        errors = validate_panel_dimensions(panel_dims, PanelShape.CIRCLE, 0.0)
        assert errors == ["Panel diameter must be positive (got 0.0)"]


class TestValidateCuts:

    def test_every_violation_listed(self, panel_dims):
        cuts = [
            _repeated_rect(id="a", repetition_y=1, spacing_x=10.0, spacing_y=10.0),
            CircularCut(id="b", radius=10.0, repetition_y=3, spacing_y=5.0),
        ]
        result = validate_cuts(panel_dims, cuts)
        assert not result.is_valid
        assert len(result.errors) == 3
        assert result.warnings == []

    def test_instance_outside_panel_is_warning(self, panel_dims):
        # the fourth copy spans x = 255..305 on a 300mm panel
        cut = _repeated_rect(repetition_x=3, spacing_x=60.0)
        result = validate_cuts(panel_dims, [cut])
        assert result.is_valid
        assert result.warnings == ["Cut slot: 1 of 4 instance(s) extend outside the panel"]

    def test_overlapping_cuts_is_warning(self, panel_dims):
        a = RectangularCut(id="a", position_x=100.0, position_y=100.0, length=50.0, width=30.0)
        b = RectangularCut(id="b", position_x=125.0, position_y=100.0, length=50.0, width=30.0)
        result = validate_cuts(panel_dims, [a, b])
        assert result.is_valid
        assert result.warnings == ["Cuts a and b overlap (750.00 mm2)"]

    def test_disjoint_cuts_no_warning(self, panel_dims, rect_cut, circle_cut):
        result = validate_cuts(panel_dims, [rect_cut, circle_cut])
        assert result.is_valid
        assert result.warnings == []

    def test_circle_panel_outline(self, panel_dims):
        # disc of diameter 200 centred at (100, 100); its bounding corner is outside
        corner = CircularCut(id="corner", position_x=10.0, position_y=10.0, radius=5.0)
        result = validate_cuts(panel_dims, [corner], PanelShape.CIRCLE)
        assert result.is_valid
        assert len(result.warnings) == 1
        assert "extend outside the panel" in result.warnings[0]

    def test_require_valid_raises(self, panel_dims):
        with pytest.raises(CutConfigurationError) as excinfo:
            require_valid(panel_dims, [_repeated_rect(spacing_x=40.0)])
        assert len(excinfo.value.errors) == 1
        assert "spacingX must be at least 51.00mm" in str(excinfo.value)


class TestFootprints:

    def test_rotated_rectangle_area_preserved(self):
        cut = RectangularCut(position_x=100.0, position_y=100.0, rotation=30.0)
        poly = footprint_polygon(PlacedCutInstance(cut))
        assert poly.area == pytest.approx(1500.0)
        assert poly.centroid.x == pytest.approx(100.0)
        assert poly.centroid.y == pytest.approx(100.0)

    def test_instance_offset(self):
        cut = _repeated_rect(spacing_x=60.0)
        poly = footprint_polygon(PlacedCutInstance(cut, i=2))
        minx, miny, maxx, maxy = poly.bounds
        assert minx == pytest.approx(195.0)
        assert maxx == pytest.approx(245.0)
        assert miny == pytest.approx(85.0)
        assert maxy == pytest.approx(115.0)

    def test_rectangle_outline(self, panel_dims):
        assert panel_outline(panel_dims).bounds == pytest.approx((0.0, 0.0, 300.0, 200.0))

"""Tests for contracts module."""
import math

import numpy as np
import pytest

from panel_cutting.contracts import (
    CircularCut,
    CuttingInfo,
    CutType,
    GeometryDTO,
    PanelDimensions,
    RectangularCut,
    cut_from_dict,
    cut_to_dict,
)


class TestCutSpecs:

    def test_defaults(self):
        cut = RectangularCut()
        assert cut.length == 50.0
        assert cut.width == 30.0
        assert cut.position_x == 100.0
        assert cut.depth is None
        assert cut.id.startswith("cut_")
        assert cut.cut_type is CutType.RECTANGLE

    def test_generated_ids_unique(self):
        assert RectangularCut().id != RectangularCut().id

    def test_effective_depth(self):
        assert RectangularCut(depth=None).effective_depth(18.0) == 18.0
        assert RectangularCut(depth=0.0).effective_depth(18.0) == 18.0
        assert RectangularCut(depth=5.0).effective_depth(18.0) == 5.0
        assert RectangularCut(depth=18.0).is_through(18.0)
        assert not RectangularCut(depth=5.0).is_through(18.0)

    def test_circle_area_and_diameter(self):
        cut = CircularCut(radius=10.0)
        assert cut.diameter == 20.0
        assert cut.footprint_area == pytest.approx(math.pi * 100.0)
        assert cut.cut_type is CutType.CIRCLE

    def test_instance_count(self):
        assert RectangularCut(repetition_x=2, repetition_y=3).instance_count == 12
        assert not RectangularCut().has_repetition


class TestCutFromDict:

    def test_camel_case_rectangle(self):
        cut = cut_from_dict({
            "type": "rectangle",
            "id": "a",
            "positionX": 40,
            "positionY": 50,
            "length": 20,
            "width": 10,
            "rotation": 15,
            "repetitionX": 2,
            "spacingX": 25,
        })
        assert isinstance(cut, RectangularCut)
        assert cut.position_x == 40
        assert cut.rotation == 15.0
        assert cut.repetition_x == 2
        assert cut.spacing_x == 25

    def test_snake_case_circle(self):
        cut = cut_from_dict({"type": "circle", "id": "c", "position_x": 5, "radius": 3, "depth": 4})
        assert isinstance(cut, CircularCut)
        assert cut.radius == 3.0
        assert cut.depth == 4

    def test_unknown_type(self):
        with pytest.raises(ValueError, match="Unsupported cut type"):
            cut_from_dict({"type": "hexagon"})

    def test_to_dict_round_trip(self):
        cut = RectangularCut(id="r", length=20.0, rotation=45.0)
        again = cut_from_dict(cut_to_dict(cut))
        assert again == cut


class TestPanelDimensions:

    def test_disc_radius_defaults_to_short_side(self):
        assert PanelDimensions(300.0, 200.0, 18.0).disc_radius() == 100.0

    def test_disc_radius_explicit_and_floor(self):
        dims = PanelDimensions(300.0, 200.0, 18.0)
        assert dims.disc_radius(120.0) == 60.0
        assert dims.disc_radius(0.05) == pytest.approx(0.1)


class TestPayloads:

    def test_cutting_info_payload_keys(self):
        payload = CuttingInfo(total_cuts=2, failed_cuts=["x"]).to_payload()
        assert payload["totalCuts"] == 2
        assert payload["failedCuts"] == ["x"]
        assert set(payload) == {
            "totalCuts", "rectangularCuts", "circularCuts", "totalCutArea",
            "totalCutVolume", "failedCuts", "totalInstances",
        }

    def test_geometry_counts(self):
        dto = GeometryDTO(
            positions=np.zeros(9, dtype=np.float32),
            indices=np.array([0, 1, 2], dtype=np.uint16),
        )
        assert dto.vertex_count == 3
        assert dto.triangle_count == 1
        assert dto.to_payload()["indicesDtype"] == "uint16"

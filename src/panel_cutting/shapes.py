"""
Solid construction for the base panel and its cut volumes.

Cut solids are padded by epsilon on both ends and anchored so their nominal
top sits on the panel's top face: a cut shallower than the panel is a blind
pocket from the top, a full-depth cut is a through-hole.
"""

from typing import List, Optional

import numpy as np
from trimesh import transformations

from panel_cutting.config import EngineConfig
from panel_cutting.contracts import (
    CircularCut,
    Cut,
    PanelDimensions,
    PanelShape,
    PlacedCutInstance,
    RectangularCut,
)
from panel_cutting.grid import expand
from panel_cutting.kernel import GeometryKernel, Solid


def translation(x: float, y: float, z: float) -> np.ndarray:
    return transformations.translation_matrix([x, y, z])


def rotation_z(degrees: float) -> np.ndarray:
    return transformations.rotation_matrix(np.radians(degrees), [0.0, 0.0, 1.0])


def cut_z_position(depth: float, panel_thickness: float, epsilon: float) -> float:
    """Z of the bottom of a padded cut solid whose top is thickness + epsilon."""
    return panel_thickness + epsilon - (depth + 2.0 * epsilon)


class CutShapeBuilder:
    """Builds kernel solids for panels and cuts.

    Inputs are assumed to have passed the validation gate.
    """

    def __init__(self, kernel: GeometryKernel, config: Optional[EngineConfig] = None):
        self.kernel = kernel
        self.config = config or EngineConfig()

    def build_panel(
        self,
        dimensions: PanelDimensions,
        shape: PanelShape = PanelShape.RECTANGLE,
        circle_diameter: Optional[float] = None,
    ) -> Solid:
        """Base panel: a box from the origin, or a disc touching the origin corner."""
        if shape is PanelShape.CIRCLE:
            radius = dimensions.disc_radius(circle_diameter)
            disc = self.kernel.make_cylinder(
                radius, dimensions.thickness, self.config.linear_deflection_mm
            )
            return self.kernel.transform(disc, translation(radius, radius, 0.0))
        return self.kernel.make_box(dimensions.length, dimensions.width, dimensions.thickness)

    def build_instance(self, instance: PlacedCutInstance, panel_thickness: float) -> Solid:
        """Solid for one grid instance."""
        cut = instance.cut
        eps = self.config.cut_epsilon_mm
        depth = cut.effective_depth(panel_thickness)
        height = depth + 2.0 * eps

        if isinstance(cut, RectangularCut):
            raw = self.kernel.make_box(cut.length, cut.width, height)
            local = rotation_z(cut.rotation) @ translation(-cut.length / 2.0, -cut.width / 2.0, 0.0)
        elif isinstance(cut, CircularCut):
            raw = self.kernel.make_cylinder(cut.radius, height, self.config.linear_deflection_mm)
            local = np.eye(4)
        else:
            raise TypeError(f"Unsupported cut type: {type(cut).__name__}")

        placement = translation(
            instance.center_x,
            instance.center_y,
            cut_z_position(depth, panel_thickness, eps),
        )
        return self.kernel.transform(raw, placement @ local)

    def build(self, cut: Cut, panel_thickness: float) -> Solid:
        """Solid for a cut spec; repeated cuts become a single compound."""
        solids: List[Solid] = [
            self.build_instance(instance, panel_thickness) for instance in expand(cut)
        ]
        return self.kernel.make_compound(solids)

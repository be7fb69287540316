"""
Sequential boolean subtraction of cut solids from the panel.

Each subtraction consumes the solid produced by the previous one, so the
loop is strictly sequential. A cut whose shape cannot be built or whose
subtraction fails is recorded and skipped; the panel keeps its previous
state and the remaining cuts still run.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

from panel_cutting.config import EngineConfig
from panel_cutting.contracts import (
    Cut,
    CuttingInfo,
    CutType,
    PanelDimensions,
    PanelShape,
)
from panel_cutting.errors import CutConfigurationError
from panel_cutting.kernel import GeometryKernel, Solid
from panel_cutting.shapes import CutShapeBuilder
from panel_cutting.validation import require_valid

logger = logging.getLogger(__name__)


class PipelineStage(Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    BUILDING_SHAPES = "building_shapes"
    SUBTRACTING = "subtracting"
    AGGREGATING = "aggregating"
    DONE = "done"
    FAILED = "failed"


@dataclass
class CSGResult:
    result_solid: Solid
    cutting_info: CuttingInfo
    warnings: List[str] = field(default_factory=list)


def aggregate_cutting_info(
    cuts: Sequence[Cut],
    panel_thickness: float,
    failed_cuts: Sequence[str] = (),
) -> CuttingInfo:
    """Nominal statistics over every attempted cut.

    Failed cuts are counted too: the totals describe what was asked for.
    Area and volume are per cut spec, not multiplied by grid instances.
    """
    info = CuttingInfo(total_cuts=len(cuts), failed_cuts=list(failed_cuts))
    for cut in cuts:
        if cut.cut_type is CutType.RECTANGLE:
            info.rectangular_cuts += 1
        else:
            info.circular_cuts += 1
        area = cut.footprint_area
        info.total_cut_area += area
        info.total_cut_volume += area * cut.effective_depth(panel_thickness)
        info.total_instances += cut.instance_count
    return info


class CSGPipeline:
    """validate -> build shapes -> subtract one by one -> aggregate."""

    def __init__(self, kernel: GeometryKernel, config: Optional[EngineConfig] = None):
        self.kernel = kernel
        self.config = config or EngineConfig()
        self.builder = CutShapeBuilder(kernel, self.config)
        self.stage = PipelineStage.IDLE
        self.subtraction_index = 0

    def _enter(self, stage: PipelineStage) -> None:
        logger.debug("CSG pipeline: %s -> %s", self.stage.value, stage.value)
        self.stage = stage

    def run(
        self,
        dimensions: PanelDimensions,
        cuts: Sequence[Cut],
        shape: PanelShape = PanelShape.RECTANGLE,
        circle_diameter: Optional[float] = None,
        panel: Optional[Solid] = None,
    ) -> CSGResult:
        """Apply ``cuts`` in input order to ``panel`` (built from
        ``dimensions`` when not given).

        Raises:
            CutConfigurationError: the request failed validation; no kernel
                call was made.
        """
        self.stage = PipelineStage.IDLE
        self._enter(PipelineStage.VALIDATING)
        try:
            validation = require_valid(dimensions, cuts, shape, circle_diameter, self.config)
        except CutConfigurationError:
            self._enter(PipelineStage.FAILED)
            raise

        if panel is None:
            panel = self.builder.build_panel(dimensions, shape, circle_diameter)
        thickness = dimensions.thickness
        failed = [False] * len(cuts)

        self._enter(PipelineStage.BUILDING_SHAPES)
        tools: List[Optional[Solid]] = []
        for idx, cut in enumerate(cuts):
            try:
                tools.append(self.builder.build(cut, thickness))
            except Exception as exc:
                logger.warning("Could not build shape for cut %s: %s", cut.id, exc)
                tools.append(None)
                failed[idx] = True

        self._enter(PipelineStage.SUBTRACTING)
        result = panel
        for idx, (cut, tool) in enumerate(zip(cuts, tools)):
            self.subtraction_index = idx
            if tool is None:
                continue
            try:
                result = self.kernel.boolean_subtract(result, tool)
            except Exception as exc:
                logger.warning("Boolean subtraction failed for cut %s: %s", cut.id, exc)
                failed[idx] = True

        self._enter(PipelineStage.AGGREGATING)
        failed_ids = [cut.id for cut, bad in zip(cuts, failed) if bad]
        info = aggregate_cutting_info(cuts, thickness, failed_ids)
        self._enter(PipelineStage.DONE)

        logger.info(
            "Applied %d/%d cuts (%d instances), %d failed",
            info.total_cuts - len(failed_ids), info.total_cuts,
            info.total_instances, len(failed_ids),
        )
        return CSGResult(result_solid=result, cutting_info=info, warnings=validation.warnings)

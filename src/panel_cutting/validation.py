"""
Validation gate run before any kernel call.

Errors block the whole request (every violation is reported, not just the
first). Warnings are informational: a footprint leaving the panel outline or
two different cuts overlapping still produce a valid, if odd, solid.
"""

import logging
from typing import List, Optional, Sequence

import shapely
from shapely import affinity
from shapely.geometry import Point, Polygon, box
from shapely.ops import unary_union

from panel_cutting.clearance import cut_min_spacing
from panel_cutting.config import EngineConfig
from panel_cutting.contracts import (
    CircularCut,
    Cut,
    PanelDimensions,
    PanelShape,
    PlacedCutInstance,
    RectangularCut,
    ValidationResult,
)
from panel_cutting.errors import CutConfigurationError
from panel_cutting.grid import iter_instances

logger = logging.getLogger(__name__)

_CIRCLE_QUAD_SEGS = 16
_AREA_TOL_MM2 = 1e-6


def panel_outline(
    dimensions: PanelDimensions,
    shape: PanelShape = PanelShape.RECTANGLE,
    circle_diameter: Optional[float] = None,
) -> Polygon:
    """2D outline of the top face of the panel."""
    if shape is PanelShape.CIRCLE:
        r = dimensions.disc_radius(circle_diameter)
        return Point(r, r).buffer(r, quad_segs=_CIRCLE_QUAD_SEGS)
    return box(0.0, 0.0, dimensions.length, dimensions.width)


def footprint_polygon(instance: PlacedCutInstance) -> Polygon:
    """2D footprint of one placed instance."""
    cut = instance.cut
    if isinstance(cut, RectangularCut):
        poly = box(-cut.length / 2.0, -cut.width / 2.0, cut.length / 2.0, cut.width / 2.0)
        poly = affinity.rotate(poly, cut.rotation, origin=(0.0, 0.0))
        return affinity.translate(poly, instance.center_x, instance.center_y)
    if isinstance(cut, CircularCut):
        return Point(instance.center_x, instance.center_y).buffer(
            cut.radius, quad_segs=_CIRCLE_QUAD_SEGS
        )
    raise TypeError(f"Unsupported cut type: {type(cut).__name__}")


def validate_panel_dimensions(
    dimensions: PanelDimensions,
    shape: PanelShape = PanelShape.RECTANGLE,
    circle_diameter: Optional[float] = None,
) -> List[str]:
    errors = []
    for name in ("length", "width", "thickness"):
        value = getattr(dimensions, name)
        if not value > 0:
            errors.append(f"Panel {name} must be positive (got {value})")
    if shape is PanelShape.CIRCLE and circle_diameter is not None and not circle_diameter > 0:
        errors.append(f"Panel diameter must be positive (got {circle_diameter})")
    return errors


def _footprint_errors(cut: Cut) -> List[str]:
    errors = []
    if isinstance(cut, RectangularCut):
        if not cut.length > 0 or not cut.width > 0:
            errors.append(
                f"Cut {cut.id}: rectangle dimensions must be positive "
                f"(got {cut.length} x {cut.width})"
            )
    elif isinstance(cut, CircularCut):
        if not cut.radius > 0:
            errors.append(f"Cut {cut.id}: radius must be positive (got {cut.radius})")
    else:
        errors.append(f"Cut {getattr(cut, 'id', '?')}: unsupported cut type")
    return errors


def _repetition_errors(cut: Cut) -> List[str]:
    errors = []
    for axis, count in (("X", cut.repetition_x), ("Y", cut.repetition_y)):
        if int(count) != count or count < 0:
            errors.append(
                f"Cut {cut.id}: repetition{axis} must be a non-negative integer (got {count})"
            )
    return errors


def validate_cut(
    cut: Cut,
    dimensions: Optional[PanelDimensions] = None,
    config: Optional[EngineConfig] = None,
) -> ValidationResult:
    """Check one cut; clearance is only enforced on axes with repetition."""
    if config is None:
        config = EngineConfig()

    errors = _footprint_errors(cut)
    errors.extend(_repetition_errors(cut))

    if cut.depth is not None and cut.depth < 0:
        errors.append(f"Cut {cut.id}: depth must be positive (got {cut.depth})")
    elif dimensions is not None and cut.depth and cut.depth > dimensions.thickness:
        errors.append(
            f"Cut {cut.id}: depth {cut.depth}mm exceeds panel thickness "
            f"{dimensions.thickness}mm"
        )

    if errors:
        return ValidationResult(is_valid=False, errors=errors)

    margin = config.safety_margin_mm
    spacing = cut_min_spacing(cut, margin)
    tol = config.spacing_tolerance_mm
    if cut.repetition_x > 0 and cut.spacing_x < spacing.min_spacing_x - tol:
        errors.append(
            f"Cut {cut.id}: spacingX must be at least {spacing.min_spacing_x:.2f}mm "
            f"(clearance {margin:.1f}mm)"
        )
    if cut.repetition_y > 0 and cut.spacing_y < spacing.min_spacing_y - tol:
        errors.append(
            f"Cut {cut.id}: spacingY must be at least {spacing.min_spacing_y:.2f}mm "
            f"(clearance {margin:.1f}mm)"
        )

    return ValidationResult(
        is_valid=not errors,
        errors=errors,
        min_spacing_x=spacing.min_spacing_x,
        min_spacing_y=spacing.min_spacing_y,
    )


def _placement_warnings(
    cuts: Sequence[Cut],
    outline: Polygon,
) -> List[str]:
    warnings = []
    tolerant = outline.buffer(1e-6)
    footprints: List[shapely.Geometry] = []
    for cut in cuts:
        polys = [footprint_polygon(inst) for inst in iter_instances(cut)]
        outside = sum(1 for p in polys if not tolerant.contains(p))
        if outside:
            warnings.append(
                f"Cut {cut.id}: {outside} of {len(polys)} instance(s) extend outside the panel"
            )
        footprints.append(unary_union(polys))

    for a in range(len(cuts)):
        for b in range(a + 1, len(cuts)):
            overlap = footprints[a].intersection(footprints[b]).area
            if overlap > _AREA_TOL_MM2:
                warnings.append(
                    f"Cuts {cuts[a].id} and {cuts[b].id} overlap ({overlap:.2f} mm2)"
                )
    return warnings


def validate_cuts(
    dimensions: PanelDimensions,
    cuts: Sequence[Cut],
    shape: PanelShape = PanelShape.RECTANGLE,
    circle_diameter: Optional[float] = None,
    config: Optional[EngineConfig] = None,
) -> ValidationResult:
    """Validate a whole request, collecting every violation."""
    errors = validate_panel_dimensions(dimensions, shape, circle_diameter)
    for cut in cuts:
        errors.extend(validate_cut(cut, dimensions, config).errors)

    warnings: List[str] = []
    if not errors:
        warnings = _placement_warnings(
            cuts, panel_outline(dimensions, shape, circle_diameter)
        )
        for message in warnings:
            logger.info("Placement warning: %s", message)

    return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)


def require_valid(
    dimensions: PanelDimensions,
    cuts: Sequence[Cut],
    shape: PanelShape = PanelShape.RECTANGLE,
    circle_diameter: Optional[float] = None,
    config: Optional[EngineConfig] = None,
) -> ValidationResult:
    """Like validate_cuts but raises CutConfigurationError on any error."""
    result = validate_cuts(dimensions, cuts, shape, circle_diameter, config)
    if not result.is_valid:
        raise CutConfigurationError(result.errors)
    return result

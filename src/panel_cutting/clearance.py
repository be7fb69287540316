"""
Minimum center-to-center spacing for grid-repeated cut footprints.

Two identical footprints repeated along a panel axis must keep their
boundaries at least a safety margin apart. For a rotated rectangle the
closest pair of parallel faces along the repetition axis governs the pitch;
that pair switches between the length faces and the width faces at the
45 / 135 degree bands. A circle's silhouette does not depend on rotation.
"""

import math
from typing import Tuple

from panel_cutting.config import NEAR_ZERO, SAFETY_MARGIN_MM
from panel_cutting.contracts import CircularCut, CutSpec, GridMinSpacing, RectangularCut

_ANGLE_TOL_DEG = 1e-6


def normalize_rotation(rotation_deg: float) -> float:
    """Fold any angle into [0, 180); a rectangle repeats every half turn."""
    theta = ((rotation_deg % 180.0) + 180.0) % 180.0
    # float modulo can land exactly on the upper bound
    return 0.0 if theta >= 180.0 else theta


def _length_limited(theta: float) -> bool:
    return (0.0 < theta < 45.0) or (135.0 < theta < 180.0)


def _axis_min_spacing(
    theta: float,
    along: float,
    across: float,
    margin_mm: float,
    near_zero: float,
) -> float:
    """Pitch along one axis.

    ``along`` is the footprint side aligned with that axis at theta = 0,
    ``across`` the one aligned with it at theta = 90.
    """
    rad = math.radians(theta)
    abs_cos = max(abs(math.cos(rad)), near_zero)
    abs_sin = max(abs(math.sin(rad)), near_zero)

    if abs(theta) < _ANGLE_TOL_DEG or abs(theta - 180.0) < _ANGLE_TOL_DEG:
        return along + margin_mm
    if abs(theta - 90.0) < _ANGLE_TOL_DEG:
        return across + margin_mm
    if _length_limited(theta):
        return (along + margin_mm) / abs_cos
    return (across + margin_mm) / abs_sin


def rectangular_min_spacing(
    length: float,
    width: float,
    rotation_deg: float = 0.0,
    margin_mm: float = SAFETY_MARGIN_MM,
    near_zero: float = NEAR_ZERO,
) -> GridMinSpacing:
    """Minimum pitch for a ``length`` x ``width`` rectangle rotated about Z.

    Results are rounded to 2 decimals so comparisons against user input are
    stable.
    """
    theta = normalize_rotation(rotation_deg)
    min_x = _axis_min_spacing(theta, length, width, margin_mm, near_zero)
    min_y = _axis_min_spacing(theta, width, length, margin_mm, near_zero)
    return GridMinSpacing(round(min_x, 2), round(min_y, 2))


def circular_min_spacing(
    diameter: float,
    margin_mm: float = SAFETY_MARGIN_MM,
) -> GridMinSpacing:
    spacing = round(diameter + margin_mm, 2)
    return GridMinSpacing(spacing, spacing)


def cut_min_spacing(cut: CutSpec, margin_mm: float = SAFETY_MARGIN_MM) -> GridMinSpacing:
    """Clearance for a cut spec of any type."""
    if isinstance(cut, RectangularCut):
        return rectangular_min_spacing(cut.length, cut.width, cut.rotation, margin_mm)
    if isinstance(cut, CircularCut):
        return circular_min_spacing(cut.diameter, margin_mm)
    raise TypeError(f"Unsupported cut type: {type(cut).__name__}")


def projected_dimensions(length: float, width: float, rotation_deg: float) -> Tuple[float, float]:
    """Axis-aligned (x, y) extent of a rotated rectangle."""
    rad = math.radians(rotation_deg)
    abs_cos = abs(math.cos(rad))
    abs_sin = abs(math.sin(rad))
    return (length * abs_cos + width * abs_sin, length * abs_sin + width * abs_cos)

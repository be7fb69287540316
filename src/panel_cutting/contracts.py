"""Data records exchanged with the panel cutting engine."""

from __future__ import annotations

import math
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

import numpy as np

# Form defaults (mm).
DEFAULT_POSITION_MM = 100.0
DEFAULT_RECT_LENGTH_MM = 50.0
DEFAULT_RECT_WIDTH_MM = 30.0
DEFAULT_CIRCLE_RADIUS_MM = 25.0
MIN_CIRCLE_PANEL_RADIUS_MM = 0.1


class PanelShape(Enum):
    """Outline of the base panel."""
    RECTANGLE = "rectangle"
    CIRCLE = "circle"


class CutType(Enum):
    RECTANGLE = "rectangle"
    CIRCLE = "circle"


@dataclass(frozen=True)
class PanelDimensions:
    """Base panel size in mm; owned by the caller and never mutated."""

    length: float
    width: float
    thickness: float

    def disc_radius(self, circle_diameter: Optional[float] = None) -> float:
        """Radius used when the panel is built as a disc."""
        diameter = circle_diameter
        if diameter is None:
            diameter = min(self.length, self.width)
        return max(MIN_CIRCLE_PANEL_RADIUS_MM, diameter / 2.0)


def generate_cut_id() -> str:
    return f"cut_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


@dataclass(frozen=True)
class CutSpec:
    """Fields shared by every cut type.

    Positions are the footprint center in panel coordinates (origin at the
    panel's bottom-left corner). ``depth`` of ``None`` means a through-cut.
    Repetition counts are *additional* instances along each axis.
    """

    id: str = field(default_factory=generate_cut_id)
    name: str = ""
    position_x: float = DEFAULT_POSITION_MM
    position_y: float = DEFAULT_POSITION_MM
    depth: Optional[float] = None
    repetition_x: int = 0
    repetition_y: int = 0
    spacing_x: float = 0.0
    spacing_y: float = 0.0

    def __post_init__(self):
        # whole-number floats from JSON forms become plain ints
        for name in ("repetition_x", "repetition_y"):
            value = getattr(self, name)
            if isinstance(value, float) and value.is_integer():
                object.__setattr__(self, name, int(value))

    @property
    def cut_type(self) -> CutType:
        raise NotImplementedError

    @property
    def footprint_area(self) -> float:
        raise NotImplementedError

    @property
    def has_repetition(self) -> bool:
        return self.repetition_x > 0 or self.repetition_y > 0

    @property
    def instance_count(self) -> int:
        return (self.repetition_x + 1) * (self.repetition_y + 1)

    def effective_depth(self, panel_thickness: float) -> float:
        # A zero depth coming from a form means "through" too.
        if not self.depth:
            return panel_thickness
        return self.depth

    def is_through(self, panel_thickness: float) -> bool:
        return self.effective_depth(panel_thickness) >= panel_thickness


@dataclass(frozen=True)
class RectangularCut(CutSpec):
    """Rectangular pocket or hole, rotated about its center."""

    length: float = DEFAULT_RECT_LENGTH_MM
    width: float = DEFAULT_RECT_WIDTH_MM
    rotation: float = 0.0  # degrees, any real

    @property
    def cut_type(self) -> CutType:
        return CutType.RECTANGLE

    @property
    def footprint_area(self) -> float:
        return self.length * self.width


@dataclass(frozen=True)
class CircularCut(CutSpec):
    """Round pocket or hole."""

    radius: float = DEFAULT_CIRCLE_RADIUS_MM

    @property
    def cut_type(self) -> CutType:
        return CutType.CIRCLE

    @property
    def footprint_area(self) -> float:
        return math.pi * self.radius * self.radius

    @property
    def diameter(self) -> float:
        return 2.0 * self.radius


Cut = Union[RectangularCut, CircularCut]


_CAMEL_ALIASES = {
    "positionX": "position_x",
    "positionY": "position_y",
    "repetitionX": "repetition_x",
    "repetitionY": "repetition_y",
    "spacingX": "spacing_x",
    "spacingY": "spacing_y",
}

_COMMON_KEYS = (
    "id", "name", "position_x", "position_y", "depth",
    "repetition_x", "repetition_y", "spacing_x", "spacing_y",
)


def cut_from_dict(payload: Mapping[str, Any]) -> Cut:
    """Build a cut from a mapping with snake_case or camelCase keys."""
    data = {_CAMEL_ALIASES.get(k, k): v for k, v in payload.items()}
    kind = str(data.pop("type", "rectangle")).lower()
    kwargs: Dict[str, Any] = {k: data[k] for k in _COMMON_KEYS if k in data}
    for key in ("repetition_x", "repetition_y"):
        if key in kwargs:
            kwargs[key] = int(kwargs[key])
    if kind in ("rectangle", "rect"):
        for key in ("length", "width", "rotation"):
            if key in data:
                kwargs[key] = float(data[key])
        return RectangularCut(**kwargs)
    if kind in ("circle", "circular"):
        if "radius" in data:
            kwargs["radius"] = float(data["radius"])
        return CircularCut(**kwargs)
    raise ValueError(f"Unsupported cut type: {kind}")


def cut_to_dict(cut: CutSpec) -> Dict[str, Any]:
    """Plain mapping of a cut, stable across calls (used for signatures)."""
    payload: Dict[str, Any] = {"type": cut.cut_type.value}
    for key in _COMMON_KEYS:
        payload[key] = getattr(cut, key)
    if isinstance(cut, RectangularCut):
        payload.update(length=cut.length, width=cut.width, rotation=cut.rotation)
    elif isinstance(cut, CircularCut):
        payload["radius"] = cut.radius
    return payload


@dataclass(frozen=True)
class GridMinSpacing:
    """Minimum center-to-center pitch along the panel axes."""

    min_spacing_x: float
    min_spacing_y: float


@dataclass
class ValidationResult:
    """Outcome of the validation gate for one cut (or a whole request)."""

    is_valid: bool
    errors: List[str] = field(default_factory=list)
    min_spacing_x: float = 0.0
    min_spacing_y: float = 0.0
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class PlacedCutInstance:
    """One grid copy of a cut at grid offset (i, j)."""

    cut: Cut
    i: int = 0
    j: int = 0

    @property
    def offset_x(self) -> float:
        return self.i * self.cut.spacing_x

    @property
    def offset_y(self) -> float:
        return self.j * self.cut.spacing_y

    @property
    def center_x(self) -> float:
        return self.cut.position_x + self.offset_x

    @property
    def center_y(self) -> float:
        return self.cut.position_y + self.offset_y


@dataclass
class CuttingInfo:
    """Aggregate statistics of one pipeline run.

    Area and volume are nominal: failed cuts still count, once per cut spec.
    """

    total_cuts: int = 0
    rectangular_cuts: int = 0
    circular_cuts: int = 0
    total_cut_area: float = 0.0
    total_cut_volume: float = 0.0
    failed_cuts: List[str] = field(default_factory=list)
    total_instances: int = 0

    def to_payload(self) -> Dict[str, Any]:
        return {
            "totalCuts": self.total_cuts,
            "rectangularCuts": self.rectangular_cuts,
            "circularCuts": self.circular_cuts,
            "totalCutArea": self.total_cut_area,
            "totalCutVolume": self.total_cut_volume,
            "failedCuts": list(self.failed_cuts),
            "totalInstances": self.total_instances,
        }


@dataclass(frozen=True, eq=False)
class GeometryDTO:
    """Flat triangle buffers ready for a renderer."""

    positions: np.ndarray  # float32, 3 per vertex
    indices: np.ndarray    # uint16 or uint32, 3 per triangle

    @property
    def vertex_count(self) -> int:
        return int(len(self.positions) // 3)

    @property
    def triangle_count(self) -> int:
        return int(len(self.indices) // 3)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "positions": self.positions.tobytes(),
            "positionsDtype": self.positions.dtype.name,
            "indices": self.indices.tobytes(),
            "indicesDtype": self.indices.dtype.name,
        }


@dataclass(frozen=True, eq=False)
class EdgeDTO:
    """One discretized topological edge."""

    id: int
    points: np.ndarray  # float32, 3 per point

    @property
    def point_count(self) -> int:
        return int(len(self.points) // 3)

    def to_payload(self) -> Dict[str, Any]:
        return {"id": self.id, "points": self.points.tobytes()}


@dataclass(frozen=True, eq=False)
class PanelBuildResult:
    geometry: GeometryDTO
    edges: List[EdgeDTO]


@dataclass(frozen=True, eq=False)
class PanelWithCutsResult:
    geometry: GeometryDTO
    edges: List[EdgeDTO]
    cutting_info: CuttingInfo
    validation_warnings: List[str] = field(default_factory=list)

"""Public API for the panel cutting geometry engine."""

from panel_cutting.clearance import (
    circular_min_spacing,
    cut_min_spacing,
    rectangular_min_spacing,
)
from panel_cutting.config import EngineConfig
from panel_cutting.contracts import (
    CircularCut,
    CuttingInfo,
    EdgeDTO,
    GeometryDTO,
    PanelDimensions,
    PanelShape,
    PanelWithCutsResult,
    RectangularCut,
    ValidationResult,
    cut_from_dict,
)
from panel_cutting.engine import EngineContext, PanelEngine
from panel_cutting.errors import (
    CutConfigurationError,
    KernelNotReadyError,
    PanelCuttingError,
)
from panel_cutting.grid import expand
from panel_cutting.recompute import RecomputeScheduler
from panel_cutting.validation import validate_cut, validate_cuts

__all__ = [
    "CircularCut",
    "CutConfigurationError",
    "CuttingInfo",
    "EdgeDTO",
    "EngineConfig",
    "EngineContext",
    "GeometryDTO",
    "KernelNotReadyError",
    "PanelCuttingError",
    "PanelDimensions",
    "PanelEngine",
    "PanelShape",
    "PanelWithCutsResult",
    "RecomputeScheduler",
    "RectangularCut",
    "ValidationResult",
    "circular_min_spacing",
    "cut_from_dict",
    "cut_min_spacing",
    "expand",
    "rectangular_min_spacing",
    "validate_cut",
    "validate_cuts",
]

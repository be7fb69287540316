"""
Named tolerances and thresholds for the panel cutting engine.

Shared by the validation gate, the builders and the extractors.
"""

from dataclasses import dataclass

# Gap kept between the boundaries of two repeated footprints.
SAFETY_MARGIN_MM = 1.0

# Added on both ends of a cut solid so it strictly crosses the panel faces
# and the boolean never sees coplanar faces.
CUT_EPSILON_MM = 0.01

# Max distance between a curved surface and its triangles.
LINEAR_DEFLECTION_MM = 0.5

# Max distance between a curved edge and its polyline.
EDGE_DEFLECTION_MM = 0.5

# Largest vertex count addressable with 16-bit indices.
UINT16_INDEX_LIMIT = 65535

# Requested spacing may undershoot the rounded clearance by this much.
SPACING_TOLERANCE_MM = 0.01

# Floor for |cos|/|sin| divisors in the clearance formula.
NEAR_ZERO = 1e-6

MIN_CIRCLE_SEGMENTS = 24

# Mesh edges whose adjacent faces bend more than this are topological edges.
# Must stay above 360 / MIN_CIRCLE_SEGMENTS so cylinder facets stay smooth.
EDGE_FEATURE_ANGLE_DEG = 20.0

BOOLEAN_ENGINE = "manifold"

RECOMPUTE_DEBOUNCE_S = 0.12


@dataclass(frozen=True)
class EngineConfig:
    """Geometry tolerances for one engine instance."""

    safety_margin_mm: float = SAFETY_MARGIN_MM
    cut_epsilon_mm: float = CUT_EPSILON_MM
    linear_deflection_mm: float = LINEAR_DEFLECTION_MM
    edge_deflection_mm: float = EDGE_DEFLECTION_MM
    uint16_index_limit: int = UINT16_INDEX_LIMIT
    spacing_tolerance_mm: float = SPACING_TOLERANCE_MM
    near_zero: float = NEAR_ZERO
    min_circle_segments: int = MIN_CIRCLE_SEGMENTS
    edge_feature_angle_deg: float = EDGE_FEATURE_ANGLE_DEG
    boolean_engine: str = BOOLEAN_ENGINE
    recompute_debounce_s: float = RECOMPUTE_DEBOUNCE_S

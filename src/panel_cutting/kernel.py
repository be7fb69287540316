"""
Narrow solid-modeling interface used by the cutting engine.

The engine only needs a handful of primitives (boxes, cylinders, rigid
transforms, compounds, boolean subtraction, triangulation and edge
exploration). ``GeometryKernel`` names exactly those; ``TrimeshKernel``
implements them on top of trimesh with the manifold3d boolean backend.

A kernel instance is not reentrant: call it from one thread only.
"""

import logging
import math
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

import numpy as np
import trimesh

from panel_cutting.config import EngineConfig
from panel_cutting.errors import BooleanOperationError, GeometryExtractionError

logger = logging.getLogger(__name__)

Solid = trimesh.Trimesh


@dataclass
class FacePatch:
    """Triangulated surface patch in its local frame."""
    nodes: np.ndarray       # (n, 3) float
    triangles: np.ndarray   # (m, 3) int, 0-based into nodes
    transform: np.ndarray = field(default_factory=lambda: np.eye(4))


@dataclass
class EdgeCurve:
    """Raw polyline of one topological edge, before discretization."""
    points: np.ndarray      # (k, 3) float
    closed: bool = False


class GeometryKernel(ABC):
    """Primitives the panel cutting engine relies on."""

    @property
    @abstractmethod
    def ready(self) -> bool:
        ...

    @abstractmethod
    def init(self) -> bool:
        """Bring the kernel up; idempotent."""
        ...

    @abstractmethod
    def make_box(self, dx: float, dy: float, dz: float) -> Solid:
        """Axis-aligned box with its min corner at the origin."""
        ...

    @abstractmethod
    def make_cylinder(self, radius: float, height: float, deflection: float) -> Solid:
        """Cylinder on the Z axis, base at z = 0."""
        ...

    @abstractmethod
    def transform(self, solid: Solid, matrix: np.ndarray) -> Solid:
        """Copy of ``solid`` moved by a 4x4 homogeneous matrix."""
        ...

    @abstractmethod
    def make_compound(self, solids: Sequence[Solid]) -> Solid:
        ...

    @abstractmethod
    def boolean_subtract(self, base: Solid, tool: Solid) -> Solid:
        """``base`` minus ``tool``.

        Raises:
            BooleanOperationError: the operation did not yield a valid solid.
        """
        ...

    @abstractmethod
    def triangulate(self, solid: Solid, deflection: float) -> List[FacePatch]:
        ...

    @abstractmethod
    def explore_edges(self, solid: Solid) -> List[EdgeCurve]:
        ...

    @abstractmethod
    def discretize_edge(self, curve: EdgeCurve, deflection: float) -> np.ndarray:
        """Sample ``curve`` into an (m, 3) point array.

        Raises:
            GeometryExtractionError: the curve cannot be sampled.
        """
        ...


class TrimeshKernel(GeometryKernel):
    """trimesh-backed kernel; solids are watertight triangle meshes.

    Curved surfaces are tessellated when the primitive is created, so the
    deflection passed to ``make_cylinder`` is what bounds the final mesh
    error. Topological edges are recovered from the mesh as sharp creases.
    """

    def __init__(self, config: EngineConfig = None):
        self.config = config or EngineConfig()
        self._ready = False

    @property
    def ready(self) -> bool:
        return self._ready

    def init(self) -> bool:
        if self._ready:
            return True
        try:
            import manifold3d  # noqa: F401  (boolean backend for trimesh)
        except ImportError as exc:
            logger.error("Boolean backend %s unavailable: %s", self.config.boolean_engine, exc)
            return False
        self._ready = True
        logger.info("Geometry kernel ready (trimesh %s, engine=%s)",
                    trimesh.__version__, self.config.boolean_engine)
        return True

    # ─── Primitives ──────────────────────────────────────────────────────────

    def make_box(self, dx: float, dy: float, dz: float) -> Solid:
        mesh = trimesh.creation.box(extents=[dx, dy, dz])
        mesh.apply_translation([dx / 2.0, dy / 2.0, dz / 2.0])
        return mesh

    def make_cylinder(self, radius: float, height: float, deflection: float) -> Solid:
        sections = circle_sections(radius, deflection, self.config.min_circle_segments)
        mesh = trimesh.creation.cylinder(radius=radius, height=height, sections=sections)
        mesh.apply_translation([0.0, 0.0, height / 2.0])
        return mesh

    def transform(self, solid: Solid, matrix: np.ndarray) -> Solid:
        moved = solid.copy()
        moved.apply_transform(matrix)
        return moved

    def make_compound(self, solids: Sequence[Solid]) -> Solid:
        if len(solids) == 1:
            return solids[0]
        return trimesh.util.concatenate(list(solids))

    # ─── Booleans ────────────────────────────────────────────────────────────

    def boolean_subtract(self, base: Solid, tool: Solid) -> Solid:
        if not tool.is_volume:
            raise BooleanOperationError("Cut tool is not a closed volume")
        try:
            result = trimesh.boolean.difference(
                [base, tool], engine=self.config.boolean_engine
            )
        except Exception as exc:
            raise BooleanOperationError(f"Boolean difference failed: {exc}") from exc
        if result is None or len(result.faces) == 0:
            raise BooleanOperationError("Boolean difference produced an empty solid")
        if not result.is_watertight:
            raise BooleanOperationError("Boolean difference produced an open surface")
        return result

    # ─── Discretization ──────────────────────────────────────────────────────

    def triangulate(self, solid: Solid, deflection: float) -> List[FacePatch]:
        """One patch per planar facet; lone triangles share a final patch."""
        if len(solid.faces) == 0:
            return []
        faces = np.asarray(solid.faces, dtype=np.int64)
        vertices = np.asarray(solid.vertices, dtype=np.float64)

        groups = [np.asarray(facet, dtype=np.int64) for facet in solid.facets]
        grouped = np.zeros(len(faces), dtype=bool)
        for group in groups:
            grouped[group] = True
        if not grouped.all():
            groups.append(np.flatnonzero(~grouped))

        patches = []
        for group in groups:
            used, local = np.unique(faces[group], return_inverse=True)
            patches.append(FacePatch(nodes=vertices[used], triangles=local.reshape(-1, 3)))
        return patches

    def explore_edges(self, solid: Solid) -> List[EdgeCurve]:
        if len(solid.faces) == 0:
            return []
        threshold = math.radians(self.config.edge_feature_angle_deg)
        creases = solid.face_adjacency_edges[solid.face_adjacency_angles > threshold]
        edges_sorted = solid.edges_sorted
        open_rows = trimesh.grouping.group_rows(edges_sorted, require_count=1)
        edges = np.vstack([creases.reshape(-1, 2), edges_sorted[open_rows].reshape(-1, 2)])
        if len(edges) == 0:
            return []
        edges = np.unique(np.sort(edges, axis=1), axis=0)

        vertices = np.asarray(solid.vertices, dtype=np.float64)
        curves = []
        for chain in chain_edges(edges):
            curves.append(EdgeCurve(points=vertices[chain], closed=chain[0] == chain[-1]))
        return curves

    def discretize_edge(self, curve: EdgeCurve, deflection: float) -> np.ndarray:
        points = np.asarray(curve.points, dtype=np.float64)
        if points.ndim != 2 or points.shape[1] != 3:
            raise GeometryExtractionError(f"Malformed edge polyline shape {points.shape}")
        if not np.all(np.isfinite(points)):
            raise GeometryExtractionError("Edge polyline has non-finite coordinates")
        return drop_collinear(points)


# ─── Helpers ─────────────────────────────────────────────────────────────────

def circle_sections(radius: float, deflection: float, min_sections: int) -> int:
    """Facet count keeping the chord sagitta of a circle under ``deflection``."""
    if radius <= 0 or deflection <= 0 or deflection >= radius:
        return int(min_sections)
    half_angle = math.acos(1.0 - deflection / radius)
    return max(int(min_sections), int(math.ceil(math.pi / half_angle)))


def chain_edges(edges: np.ndarray) -> List[List[int]]:
    """Group edges into vertex chains.

    Chains break at vertices that do not have exactly two incident edges, so
    a box yields its 12 straight edges and a circular rim yields one closed
    loop (first vertex repeated at the end).
    """
    pairs = [(int(a), int(b)) for a, b in edges]
    incident: Dict[int, List[int]] = defaultdict(list)
    for idx, (a, b) in enumerate(pairs):
        incident[a].append(idx)
        incident[b].append(idx)
    used = [False] * len(pairs)

    def walk(start: int, first_edge: int) -> List[int]:
        chain = [start]
        current, edge = start, first_edge
        while True:
            used[edge] = True
            a, b = pairs[edge]
            nxt = b if a == current else a
            chain.append(nxt)
            if nxt == start or len(incident[nxt]) != 2:
                return chain
            following = [k for k in incident[nxt] if not used[k]]
            if not following:
                return chain
            current, edge = nxt, following[0]

    chains = []
    for vertex in sorted(incident):
        if len(incident[vertex]) == 2:
            continue
        for edge in incident[vertex]:
            if not used[edge]:
                chains.append(walk(vertex, edge))
    # whatever is left is made of closed loops
    for edge, (a, _) in enumerate(pairs):
        if not used[edge]:
            chains.append(walk(a, edge))
    return chains


def drop_collinear(points: np.ndarray, tol: float = 1e-9) -> np.ndarray:
    """Remove interior samples lying on the segment between their neighbours."""
    if len(points) <= 2:
        return points
    kept = [points[0]]
    for i in range(1, len(points) - 1):
        d1 = points[i] - kept[-1]
        d2 = points[i + 1] - points[i]
        n1 = np.linalg.norm(d1)
        n2 = np.linalg.norm(d2)
        if n1 == 0.0:
            continue
        if n2 > 0.0:
            cross = np.linalg.norm(np.cross(d1, d2))
            if cross <= tol * n1 * n2 and float(np.dot(d1, d2)) > 0.0:
                continue
        kept.append(points[i])
    kept.append(points[-1])
    return np.asarray(kept)

"""
Render buffers from a solid: triangle mesh and wireframe polylines.

A face or edge that cannot be processed is skipped and logged so one bad
patch never blanks the whole render.
"""

import logging
from typing import List, Optional, Sequence

import numpy as np

from panel_cutting.config import UINT16_INDEX_LIMIT, EngineConfig
from panel_cutting.contracts import EdgeDTO, GeometryDTO
from panel_cutting.errors import GeometryExtractionError
from panel_cutting.kernel import FacePatch, GeometryKernel, Solid

logger = logging.getLogger(__name__)


def index_dtype_for(vertex_count: int, limit: int = UINT16_INDEX_LIMIT) -> np.dtype:
    """uint16 up to ``limit`` vertices inclusive, uint32 beyond."""
    return np.dtype(np.uint16) if vertex_count <= limit else np.dtype(np.uint32)


def _world_nodes(patch: FacePatch) -> np.ndarray:
    nodes = np.asarray(patch.nodes, dtype=np.float64).reshape(-1, 3)
    transform = np.asarray(patch.transform, dtype=np.float64)
    if not np.allclose(transform, np.eye(4)):
        homogeneous = np.hstack([nodes, np.ones((len(nodes), 1))])
        nodes = (homogeneous @ transform.T)[:, :3]
    return nodes


def _check_patch(nodes: np.ndarray, triangles: np.ndarray) -> None:
    if not np.all(np.isfinite(nodes)):
        raise GeometryExtractionError("Face has non-finite nodes")
    if len(triangles) and (triangles.min() < 0 or triangles.max() >= len(nodes)):
        raise GeometryExtractionError("Face triangle references a missing node")


def assemble_geometry(
    patches: Sequence[FacePatch],
    index_limit: int = UINT16_INDEX_LIMIT,
) -> GeometryDTO:
    """Concatenate patches into flat buffers with a running vertex offset."""
    positions: List[np.ndarray] = []
    indices: List[np.ndarray] = []
    vertex_offset = 0
    for n, patch in enumerate(patches):
        try:
            nodes = _world_nodes(patch)
            triangles = np.asarray(patch.triangles, dtype=np.int64).reshape(-1, 3)
            _check_patch(nodes, triangles)
        except Exception as exc:
            logger.warning("Skipping face %d: %s", n, exc)
            continue
        positions.append(nodes)
        indices.append(triangles + vertex_offset)
        vertex_offset += len(nodes)

    if positions:
        flat_positions = np.vstack(positions).astype(np.float32).ravel()
        flat_indices = np.vstack(indices).ravel()
    else:
        flat_positions = np.zeros(0, dtype=np.float32)
        flat_indices = np.zeros(0, dtype=np.int64)

    dtype = index_dtype_for(vertex_offset, index_limit)
    return GeometryDTO(positions=flat_positions, indices=flat_indices.astype(dtype))


def extract_geometry(
    solid: Solid,
    kernel: GeometryKernel,
    config: Optional[EngineConfig] = None,
) -> GeometryDTO:
    if config is None:
        config = EngineConfig()
    try:
        patches = kernel.triangulate(solid, config.linear_deflection_mm)
    except Exception as exc:
        logger.warning("Triangulation failed, returning empty mesh: %s", exc)
        patches = []
    return assemble_geometry(patches, config.uint16_index_limit)


def extract_edges(
    solid: Solid,
    kernel: GeometryKernel,
    config: Optional[EngineConfig] = None,
) -> List[EdgeDTO]:
    """One polyline per topological edge, ids increasing from 0.

    Edges that fail to sample or yield no points are left out.
    """
    if config is None:
        config = EngineConfig()
    try:
        curves = kernel.explore_edges(solid)
    except Exception as exc:
        logger.warning("Edge exploration failed, returning no edges: %s", exc)
        return []

    result: List[EdgeDTO] = []
    for n, curve in enumerate(curves):
        try:
            points = kernel.discretize_edge(curve, config.edge_deflection_mm)
        except Exception as exc:
            logger.warning("Skipping edge %d: %s", n, exc)
            continue
        if len(points) == 0:
            continue
        result.append(
            EdgeDTO(id=len(result), points=np.asarray(points, dtype=np.float32).ravel())
        )
    return result

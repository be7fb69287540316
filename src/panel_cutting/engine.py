"""
Engine entry points: synchronous ``PanelEngine`` and its async context.

The geometry kernel is not reentrant, so ``EngineContext`` runs every call
on one dedicated worker thread and callers only ever await results. There
is no module-level engine: the application creates a context, owns its
lifetime and passes it to whoever needs it.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Optional, Sequence

from panel_cutting.config import EngineConfig
from panel_cutting.contracts import (
    Cut,
    PanelBuildResult,
    PanelDimensions,
    PanelShape,
    PanelWithCutsResult,
)
from panel_cutting.csg import CSGPipeline
from panel_cutting.errors import CutConfigurationError, KernelNotReadyError
from panel_cutting.extraction import extract_edges, extract_geometry
from panel_cutting.kernel import GeometryKernel, TrimeshKernel
from panel_cutting.shapes import CutShapeBuilder
from panel_cutting.validation import validate_panel_dimensions

logger = logging.getLogger(__name__)


class PanelEngine:
    """Panel + cuts -> render buffers, on the calling thread."""

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        kernel: Optional[GeometryKernel] = None,
    ):
        self.config = config or EngineConfig()
        self.kernel = kernel or TrimeshKernel(self.config)
        self.builder = CutShapeBuilder(self.kernel, self.config)

    @property
    def ready(self) -> bool:
        return self.kernel.ready

    def init(self) -> bool:
        """Bring up the kernel. Safe to call repeatedly."""
        return self.kernel.init()

    def _require_ready(self) -> None:
        if not self.kernel.ready:
            raise KernelNotReadyError("Geometry kernel not ready; call init() first")

    def create_box(self, dimensions: PanelDimensions) -> PanelBuildResult:
        """Plain panel without cuts."""
        self._require_ready()
        errors = validate_panel_dimensions(dimensions)
        if errors:
            raise CutConfigurationError(errors)
        panel = self.builder.build_panel(dimensions)
        return PanelBuildResult(
            geometry=extract_geometry(panel, self.kernel, self.config),
            edges=extract_edges(panel, self.kernel, self.config),
        )

    def create_panel_with_cuts(
        self,
        dimensions: PanelDimensions,
        cuts: Sequence[Cut],
        shape: PanelShape = PanelShape.RECTANGLE,
        circle_diameter: Optional[float] = None,
    ) -> PanelWithCutsResult:
        """Full pipeline.

        Raises:
            KernelNotReadyError: init() has not succeeded.
            CutConfigurationError: the request failed validation.
        """
        self._require_ready()
        pipeline = CSGPipeline(self.kernel, self.config)
        csg = pipeline.run(dimensions, cuts, shape, circle_diameter)
        return PanelWithCutsResult(
            geometry=extract_geometry(csg.result_solid, self.kernel, self.config),
            edges=extract_edges(csg.result_solid, self.kernel, self.config),
            cutting_info=csg.cutting_info,
            validation_warnings=list(csg.warnings),
        )


class EngineContext:
    """Runs a ``PanelEngine`` on a single dedicated thread.

    ``init()`` is one shared task: concurrent callers await the same
    bring-up, and a failed bring-up is forgotten so a later call can retry.
    Requests made before readiness are refused, not queued.
    """

    def __init__(self, engine: Optional[PanelEngine] = None):
        self.engine = engine or PanelEngine()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="panel-engine")
        self._init_task: Optional[asyncio.Task] = None

    @property
    def ready(self) -> bool:
        return self.engine.ready

    async def _run(self, fn, *args, **kwargs):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, partial(fn, *args, **kwargs))

    async def _bring_up(self) -> bool:
        ok = await self._run(self.engine.init)
        if not ok:
            self._init_task = None
        return ok

    async def init(self) -> bool:
        if self.engine.ready:
            return True
        if self._init_task is None:
            self._init_task = asyncio.ensure_future(self._bring_up())
        task = self._init_task
        try:
            return await asyncio.shield(task)
        except Exception:
            if self._init_task is task:
                self._init_task = None
            raise

    def _require_ready(self) -> None:
        if not self.engine.ready:
            raise KernelNotReadyError("Engine context not initialized")

    async def create_box(self, dimensions: PanelDimensions) -> PanelBuildResult:
        self._require_ready()
        return await self._run(self.engine.create_box, dimensions)

    async def create_panel_with_cuts(
        self,
        dimensions: PanelDimensions,
        cuts: Sequence[Cut],
        shape: PanelShape = PanelShape.RECTANGLE,
        circle_diameter: Optional[float] = None,
    ) -> PanelWithCutsResult:
        self._require_ready()
        return await self._run(
            self.engine.create_panel_with_cuts,
            dimensions, list(cuts), shape, circle_diameter,
        )

    def close(self) -> None:
        """Stop the worker thread, waiting for queued work to finish."""
        self._executor.shutdown(wait=True)

    async def aclose(self) -> None:
        """``close()`` without blocking the event loop."""
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self.close)

    async def __aenter__(self) -> "EngineContext":
        await self.init()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

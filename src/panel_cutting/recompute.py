"""
Caller-side scheduling of recompute requests.

Dragging a slider fires many requests. ``RecomputeScheduler`` collapses
bursts (debounce), skips requests whose inputs match the last applied
result, and applies only the newest dispatched request's result: an older
result that arrives late is dropped. In-flight work is never interrupted.
"""

import asyncio
import hashlib
import json
import logging
from dataclasses import asdict
from typing import Any, Callable, Dict, Optional, Sequence

from panel_cutting.config import RECOMPUTE_DEBOUNCE_S
from panel_cutting.contracts import (
    Cut,
    PanelDimensions,
    PanelShape,
    PanelWithCutsResult,
    cut_to_dict,
)
from panel_cutting.engine import EngineContext

logger = logging.getLogger(__name__)


def _canonical_json(payload: Dict[str, Any]) -> str:
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=True)


def request_signature(
    dimensions: PanelDimensions,
    cuts: Sequence[Cut],
    shape: PanelShape = PanelShape.RECTANGLE,
    circle_diameter: Optional[float] = None,
) -> str:
    """Stable hash of everything that determines a result."""
    payload = {
        "dimensions": asdict(dimensions),
        "cuts": [cut_to_dict(cut) for cut in cuts],
        "shape": shape.value,
        "circle_diameter": circle_diameter,
    }
    return hashlib.sha256(_canonical_json(payload).encode("utf-8")).hexdigest()


class RecomputeScheduler:
    """Debounced, last-request-wins front end to an ``EngineContext``."""

    def __init__(
        self,
        context: EngineContext,
        on_result: Optional[Callable[[PanelWithCutsResult], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
        debounce_s: float = RECOMPUTE_DEBOUNCE_S,
    ):
        self.context = context
        self.on_result = on_result
        self.on_error = on_error
        self.debounce_s = debounce_s
        self.result: Optional[PanelWithCutsResult] = None
        self.applied_signature: Optional[str] = None
        self.dispatched_signature: Optional[str] = None
        self.last_error: Optional[Exception] = None
        self._epoch = 0
        self._pending: Optional[asyncio.Task] = None
        self._scheduled: set = set()
        self._in_flight: set = set()

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def calculating(self) -> bool:
        return bool(self._in_flight)

    def request(
        self,
        dimensions: PanelDimensions,
        cuts: Sequence[Cut],
        shape: PanelShape = PanelShape.RECTANGLE,
        circle_diameter: Optional[float] = None,
        reason: str = "",
    ) -> None:
        """Schedule a recompute; a newer request inside the window replaces it."""
        logger.debug("Recompute requested (%s)", reason or "unspecified")
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        task = asyncio.ensure_future(
            self._debounced(dimensions, list(cuts), shape, circle_diameter)
        )
        self._scheduled.add(task)
        task.add_done_callback(self._debounced_done)
        self._pending = task

    async def _debounced(self, dimensions, cuts, shape, circle_diameter) -> None:
        await asyncio.sleep(self.debounce_s)
        # past this point the request is dispatched and must not be cancelled
        if self._pending is asyncio.current_task():
            self._pending = None
        await self.recompute(dimensions, cuts, shape, circle_diameter)

    def _debounced_done(self, task: asyncio.Task) -> None:
        self._scheduled.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.last_error = exc
            logger.error("Debounced recompute failed: %s", exc)

    async def recompute(
        self,
        dimensions: PanelDimensions,
        cuts: Sequence[Cut],
        shape: PanelShape = PanelShape.RECTANGLE,
        circle_diameter: Optional[float] = None,
        force: bool = False,
    ) -> bool:
        """Dispatch now. Returns True when this call's result was applied."""
        signature = request_signature(dimensions, cuts, shape, circle_diameter)
        unchanged = signature == self.dispatched_signature
        if not force and unchanged and (self.result is not None or self.calculating):
            logger.debug("Skipping recompute, inputs unchanged")
            return False

        self._epoch += 1
        epoch = self._epoch
        self.dispatched_signature = signature
        task = asyncio.ensure_future(
            self.context.create_panel_with_cuts(dimensions, cuts, shape, circle_diameter)
        )
        self._in_flight.add(task)
        try:
            result = await task
        except Exception as exc:
            if epoch != self._epoch:
                logger.debug("Ignoring error from superseded request %d: %s", epoch, exc)
                return False
            logger.warning("Recompute %d failed: %s", epoch, exc)
            self.dispatched_signature = self.applied_signature
            self.last_error = exc
            if self.on_error is None:
                raise
            self.on_error(exc)
            return False
        finally:
            self._in_flight.discard(task)

        if epoch != self._epoch:
            logger.debug("Ignoring result of superseded request %d", epoch)
            return False

        self.result = result
        self.applied_signature = signature
        logger.debug(
            "Applied recompute %d: %d vertices, %d edges",
            epoch, result.geometry.vertex_count, len(result.edges),
        )
        if self.on_result is not None:
            self.on_result(result)
        return True

    async def wait_idle(self) -> None:
        """Wait until no debounced or in-flight request remains."""
        while True:
            waiting = [t for t in self._scheduled if not t.done()]
            waiting.extend(t for t in self._in_flight if not t.done())
            if not waiting:
                return
            await asyncio.gather(*waiting, return_exceptions=True)

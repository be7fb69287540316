"""Exception hierarchy for the panel cutting engine."""

from typing import Iterable, Optional


class PanelCuttingError(Exception):
    """Base exception for engine errors."""
    pass


class CutConfigurationError(PanelCuttingError):
    """The panel or cut list violates a constraint; nothing was computed."""

    def __init__(self, errors: Iterable[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid cut configuration")


class KernelNotReadyError(PanelCuttingError):
    """A request arrived before the geometry kernel finished init()."""
    pass


class BooleanOperationError(PanelCuttingError):
    """A boolean subtraction did not produce a valid solid."""

    def __init__(self, message: str, cut_id: Optional[str] = None):
        self.cut_id = cut_id
        super().__init__(message)


class GeometryExtractionError(PanelCuttingError):
    """A single face or edge could not be discretized."""
    pass

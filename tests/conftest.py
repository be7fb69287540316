"""
Shared test fixtures for the panel cutting engine tests.
"""
import sys
from pathlib import Path

import pytest

# Add src/ to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from panel_cutting.config import EngineConfig
from panel_cutting.contracts import CircularCut, PanelDimensions, RectangularCut
from panel_cutting.engine import PanelEngine
from panel_cutting.kernel import TrimeshKernel


@pytest.fixture
def panel_dims():
    """A 300x200x18mm shelf panel."""
    return PanelDimensions(length=300.0, width=200.0, thickness=18.0)


@pytest.fixture
def config():
    return EngineConfig()


@pytest.fixture
def kernel(config):
    k = TrimeshKernel(config)
    assert k.init()
    return k


@pytest.fixture
def engine(config):
    e = PanelEngine(config)
    assert e.init()
    return e


@pytest.fixture
def rect_cut():
    """50x30 through-cut centred at (100, 100)."""
    return RectangularCut(
        id="rect",
        position_x=100.0,
        position_y=100.0,
        length=50.0,
        width=30.0,
    )


@pytest.fixture
def circle_cut():
    """r=10 through-hole centred at (220, 60)."""
    return CircularCut(id="circle", position_x=220.0, position_y=60.0, radius=10.0)

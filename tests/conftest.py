"""Shared fixtures for the ColorRangeSync tests."""

import os
import sys
from pathlib import Path

# Qt widgets are created without a display
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

# Add parent directory to path to import ColorRangeSync module
sys.path.insert(0, str(Path(__file__).parent.parent))

import numpy as np
import pytest

from ColorRangeSync.core.engine import TransitionEngine
from ColorRangeSync.core.model import RangeModel, SchemeRef
from ColorRangeSync.core.palette import PaletteDef
from ColorRangeSync.core.preferences import RangePreferences
from ColorRangeSync.core.providers import PaletteRegistry, SchemeRegistry, Statistics, opencv_palette


class RecordingObserver:
    """Engine observer that records every call."""

    def __init__(self):
        self.published = []
        self.restored = []
        self.reports = []
        self.on_publish = None

    def publish(self, model, previous, scheme_cleared):
        self.published.append((model, previous, scheme_cleared))
        if self.on_publish is not None:
            self.on_publish(model)

    def restore_fields(self, model, fields):
        self.restored.append((model, frozenset(fields)))

    def report(self, error):
        self.reports.append(error)

    @property
    def restored_fields(self):
        fields = set()
        for _, f in self.restored:
            fields |= f
        return fields


class FixedStatistics:
    """Statistics provider returning fixed values (or None)."""

    def __init__(self, min_value=None, max_value=None, fail=False):
        self.stats = None if min_value is None else Statistics(min_value, max_value)
        self.fail = fail
        self.calls = 0

    def get_statistics(self, raster):
        self.calls += 1
        if self.fail:
            raise RuntimeError("raster not readable")
        return self.stats


class RecordingSink:
    """FieldSink that records what was written."""

    def __init__(self):
        self.writes = []
        self.indicator = None

    def write_min(self, value):
        self.writes.append(("min", value))

    def write_max(self, value):
        self.writes.append(("max", value))

    def write_log(self, log_scaled):
        self.writes.append(("log", log_scaled))

    def write_palette(self, palette, log_scaled):
        self.writes.append(("palette", palette))

    def write_scheme(self, scheme):
        self.writes.append(("scheme", scheme))

    def set_scheme_indicator_visible(self, visible):
        self.indicator = visible

    def fields(self):
        return [name for name, _ in self.writes]


def three_stop_palette(min_value=0.0, max_value=100.0, name="rgb", log_scaled=False):
    return PaletteDef.from_colors(
        [(255, 0, 0), (0, 255, 0), (0, 0, 255)], min_value, max_value, name=name, log_scaled=log_scaled
    )


@pytest.fixture
def palette():
    return three_stop_palette()


@pytest.fixture
def observer():
    return RecordingObserver()


@pytest.fixture
def palettes():
    registry = PaletteRegistry()
    registry.register(opencv_palette("gray"))
    registry.register(three_stop_palette())
    registry.register(PaletteDef.from_colors([(0, 0, 0), (255, 255, 255)], name="bw"))
    return registry


@pytest.fixture
def make_engine(observer, palettes):
    """Factory for an engine over {min, max, log} with the 'rgb' palette."""

    def factory(min_value=0.0, max_value=100.0, log_scaled=False, palette=None, stats=None, preferences=None):
        model = RangeModel.create(min_value, max_value, palette or palettes.get_palette("rgb"), log_scaled=log_scaled)
        return TransitionEngine(
            model,
            observer,
            statistics_provider=stats,
            raster=np.zeros((2, 2)),
            palette_provider=palettes,
            preferences=preferences or RangePreferences(),
        )

    return factory


@pytest.fixture
def schemes(palettes):
    registry = SchemeRegistry(palettes)
    registry.add(SchemeRef("Fixed", "bw", 10.0, 20.0))
    registry.add(SchemeRef("Log", "rgb", 1.0, 1000.0, log_scaled=True))
    registry.add_divider("More")
    registry.add(SchemeRef("FromData", "rgb"))
    registry.add(SchemeRef("Off", "rgb", 0.0, 1.0, enabled=False))
    registry.add(SchemeRef("Missing", "no-such-palette", 0.0, 1.0))
    return registry


@pytest.fixture(scope="session")
def qapp():
    from PySide6.QtWidgets import QApplication

    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app


@pytest.fixture
def controller(qapp, palettes, schemes):
    """Controller bound to {0, 100} with the test registries."""
    from ColorRangeSync.controller import RangeController

    ctrl = RangeController(palette_registry=palettes, scheme_registry=schemes)
    ctrl.bind(palette=palettes.get_palette("rgb"), min_value=0.0, max_value=100.0)
    return ctrl

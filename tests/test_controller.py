"""Tests for the RangeController facade."""

import numpy as np
import pytest

from ColorRangeSync.controller import RangeController
from ColorRangeSync.core.errors import ErrorKind

from conftest import RecordingSink


@pytest.fixture
def bare(qapp, palettes, schemes):
    return RangeController(palettes, schemes)


def test_default_state(bare):
    model = bare.model
    assert (model.min, model.max, model.log_scaled) == (0.0, 1.0, False)
    assert model.palette.name == "gray"
    assert model.scheme is None


def test_bind_uses_data_statistics(bare):
    data = np.array([[2.0, np.nan], [5.0, 11.0]])
    model = bare.bind(data)
    assert (model.min, model.max) == (2.0, 11.0)
    assert bare.raster is data


def test_bind_prefers_given_bounds(bare):
    model = bare.bind(np.arange(5.0), min_value=-1, max_value=1)
    assert (model.min, model.max) == (-1.0, 1.0)


def test_bind_constant_data_falls_back_to_palette_bounds(bare, palettes):
    model = bare.bind(np.full((3, 3), 7.0), palette=palettes.get_palette("rgb"))
    assert (model.min, model.max) == (0.0, 100.0)


def test_bind_drops_impossible_log(bare):
    model = bare.bind(min_value=-5, max_value=5, log_scaled=True)
    assert model.log_scaled is False
    model = bare.bind(min_value=1, max_value=5, log_scaled=True)
    assert model.log_scaled is True


def test_bind_writes_fields_without_commit(bare):
    sink = RecordingSink()
    bare.notifier.add_sink(sink)
    bare.bind(min_value=3, max_value=4)
    assert ("min", 3.0) in sink.writes
    assert ("max", 4.0) in sink.writes
    assert bare.engine.commit_count == 0


def test_unbind_returns_to_defaults(bare):
    bare.bind(np.arange(10.0))
    model = bare.unbind()
    assert (model.min, model.max) == (0.0, 1.0)
    assert bare.raster is None


def test_convenience_triggers(bare):
    bare.bind(np.array([1.0, 50.0]))
    assert bare.edit_max("100").committed
    assert bare.toggle_log(True).committed
    assert bare.edit_min("0").error.kind is ErrorKind.NON_POSITIVE_BOUND
    assert bare.select_palette("bw").committed
    assert bare.toggle_discrete(True).committed
    assert bare.model.palette.discrete is True
    assert bare.invert_palette().committed
    assert bare.load_from_data().committed
    assert (bare.model.min, bare.model.max) == (1.0, 50.0)
    assert bare.load_from_palette_file().error.kind is ErrorKind.NON_POSITIVE_BOUND


def test_apply_scheme_by_name(bare, schemes):
    assert bare.apply_scheme("Fixed").committed
    assert bare.model.scheme is schemes.get("Fixed")
    assert bare.apply_scheme(schemes.get("Log")).committed


def test_unknown_names_raise(bare):
    with pytest.raises(KeyError):
        bare.apply_scheme("Nope")
    with pytest.raises(KeyError):
        bare.select_palette("nope")


def test_demo_raster_supports_log_display(bare):
    from ColorRangeSync.app import demo_raster

    model = bare.bind(demo_raster(32, 16))
    assert model.min > 0
    assert bare.toggle_log(True).committed

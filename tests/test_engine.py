"""Tests for the transition engine.

Covers the user-visible scenarios (edit, toggle, reload, chooser), rollback
of rejected triggers, commit idempotence, scheme clearing and the trigger
queue.
"""

import numpy as np
import pytest

from ColorRangeSync.core.constants import MSG_LOG_TOGGLE_INVALID, MSG_MIN_FIELD_INVALID, MSG_STATISTICS_UNAVAILABLE
from ColorRangeSync.core.engine import EngineState
from ColorRangeSync.core.errors import FIELD_LOG, FIELD_MAX, FIELD_MIN, FIELD_PALETTE, ErrorKind
from ColorRangeSync.core.events import (
    Accepted,
    EditMax,
    EditMin,
    InvertPalette,
    LoadFromDataStatistics,
    LoadFromPaletteFile,
    Rejected,
    SelectFromChooser,
    ToggleDiscrete,
    ToggleLog,
)
from ColorRangeSync.core.model import RangeModel
from ColorRangeSync.core.palette import PaletteDef

from conftest import FixedStatistics, three_stop_palette


def assert_invariants(model: RangeModel):
    assert model.min < model.max
    if model.log_scaled:
        assert model.min > 0 and model.max > 0


# ------------------------ Scenarios ------------------------
def test_edit_min_then_reject_out_of_order(make_engine, observer):
    """{0,100}: min=50 commits; min=150 is rejected and the field shows 50 again."""
    engine = make_engine(0, 100)

    outcome = engine.submit(EditMin("50"))
    assert isinstance(outcome, Accepted) and outcome.committed
    assert (engine.current.min, engine.current.max) == (50.0, 100.0)
    assert len(observer.published) == 1

    outcome = engine.submit(EditMin("150"))
    assert isinstance(outcome, Rejected)
    assert outcome.error.kind is ErrorKind.BOUNDS_NOT_ORDERED
    assert outcome.reason == "Min field must be less than Max field"
    assert engine.current.min == 50.0
    restored_model, fields = observer.restored[-1]
    assert fields == {FIELD_MIN}
    assert restored_model.min == 50.0
    assert observer.reports[-1].message_code == MSG_MIN_FIELD_INVALID
    assert len(observer.published) == 1


def test_log_toggle_rejected_with_zero_min(make_engine, observer):
    engine = make_engine(0, 100)
    outcome = engine.submit(ToggleLog(True))
    assert not outcome.accepted
    assert outcome.error.kind is ErrorKind.NON_POSITIVE_BOUND
    assert engine.current.log_scaled is False
    assert observer.restored[-1][1] == {FIELD_LOG}
    assert observer.reports[-1].message_code == MSG_LOG_TOGGLE_INVALID


def test_log_toggle_accepted_with_positive_bounds(make_engine, observer):
    engine = make_engine(1, 100)
    outcome = engine.submit(ToggleLog(True))
    assert outcome.committed
    assert engine.current.log_scaled is True
    assert (engine.current.min, engine.current.max) == (1.0, 100.0)
    # Middle stop sits in the middle of the log axis
    np.testing.assert_allclose(engine.current.palette.samples, [1.0, 10.0, 100.0])


def test_reload_from_palette_with_same_bounds_is_silent(make_engine, observer):
    engine = make_engine(5, 95, palette=three_stop_palette(5, 95))
    outcome = engine.submit(LoadFromPaletteFile())
    assert outcome.accepted and not outcome.committed
    assert observer.published == []
    assert observer.restored == []
    assert engine.commit_count == 0


def test_chooser_exact_values(make_engine, observer):
    engine = make_engine(0, 100)
    candidate = three_stop_palette(-1, 10, name="exact")
    outcome = engine.submit(SelectFromChooser(candidate, load_exact_values=True))
    assert outcome.committed
    model = engine.current
    assert (model.min, model.max, model.log_scaled) == (-1.0, 10.0, False)
    assert model.auto_distribute is False
    np.testing.assert_allclose(model.palette.samples, [-1.0, 4.5, 10.0])


def test_chooser_exact_values_rejects_log_palette_with_negative_bounds(make_engine, observer):
    engine = make_engine(0, 100)
    candidate = PaletteDef(
        stops=three_stop_palette(-1, 10).stops, log_scaled=True, source_file_min=-1.0, source_file_max=10.0, name="bad"
    )
    outcome = engine.submit(SelectFromChooser(candidate, load_exact_values=True))
    assert not outcome.accepted
    assert engine.current.min == 0.0
    assert FIELD_PALETTE in observer.restored[-1][1]


# ------------------------ Idempotence & rollback ------------------------
def test_same_trigger_twice_commits_once(make_engine, observer):
    engine = make_engine(0, 100)
    engine.submit(EditMin("50"))
    outcome = engine.submit(EditMin("50.0"))
    assert outcome.accepted and not outcome.committed
    assert len(observer.published) == 1
    # The field is rewritten with the committed formatting
    assert observer.restored[-1][1] == {FIELD_MIN}


def test_same_palette_from_chooser_is_noop(make_engine, observer, palettes):
    engine = make_engine(0, 100)
    outcome = engine.submit(SelectFromChooser(palettes.get_palette("rgb")))
    assert not outcome.committed
    assert observer.published == []


@pytest.mark.parametrize(
    "event, field",
    [
        (EditMin("abc"), FIELD_MIN),
        (EditMin(""), FIELD_MIN),
        (EditMax("-5"), FIELD_MAX),
        (EditMax("1e400"), FIELD_MAX),
        (ToggleLog(True), FIELD_LOG),
    ],
)
def test_rejected_trigger_restores_field(make_engine, observer, event, field):
    engine = make_engine(0, 100)
    before = engine.current
    outcome = engine.submit(event)
    assert isinstance(outcome, Rejected)
    assert outcome.fallback is before
    assert engine.current is before
    assert field in observer.restored[-1][1]
    assert observer.restored[-1][0] is before
    assert engine.state is EngineState.IDLE


def test_invariants_hold_after_every_commit(make_engine, observer, palettes):
    engine = make_engine(1, 100, stats=FixedStatistics(2, 50))
    events = [
        ToggleLog(True),
        EditMin("-3"),
        EditMin("0.5"),
        EditMax("0.1"),
        LoadFromDataStatistics(),
        ToggleLog(False),
        EditMin("-20"),
        ToggleLog(True),
        InvertPalette(min_text="-1", max_text="30"),
        SelectFromChooser(palettes.get_palette("bw"), min_text="3", max_text="2"),
        LoadFromPaletteFile(),
    ]
    for event in events:
        engine.submit(event)
        assert_invariants(engine.current)
    for model, _, _ in observer.published:
        assert_invariants(model)


# ------------------------ Statistics ------------------------
def test_load_from_data(make_engine, observer):
    engine = make_engine(0, 100, stats=FixedStatistics(2.0, 8.0))
    assert engine.submit(LoadFromDataStatistics()).committed
    assert (engine.current.min, engine.current.max) == (2.0, 8.0)


@pytest.mark.parametrize(
    "stats",
    [None, FixedStatistics(), FixedStatistics(fail=True), FixedStatistics(4.0, 4.0)],
    ids=["no-provider", "unavailable", "provider-error", "constant-data"],
)
def test_load_from_data_rejected(make_engine, observer, stats):
    engine = make_engine(0, 100, stats=stats)
    outcome = engine.submit(LoadFromDataStatistics())
    assert not outcome.accepted
    assert (engine.current.min, engine.current.max) == (0.0, 100.0)
    assert observer.restored[-1][1] == {FIELD_MIN, FIELD_MAX}


def test_statistics_unavailable_message_code(make_engine, observer):
    engine = make_engine(0, 100, stats=FixedStatistics(fail=True))
    outcome = engine.submit(LoadFromDataStatistics())
    assert outcome.error.kind is ErrorKind.STATISTICS_UNAVAILABLE
    assert "raster not readable" in outcome.reason
    assert observer.reports[-1].message_code == MSG_STATISTICS_UNAVAILABLE


def test_load_from_palette_file_rejected_for_log_display(make_engine, observer):
    engine = make_engine(1, 100, log_scaled=True)
    outcome = engine.submit(LoadFromPaletteFile())
    assert outcome.error.kind is ErrorKind.NON_POSITIVE_BOUND
    assert engine.current.min == 1.0


# ------------------------ Invert & chooser with pending edits ------------------------
def test_invert_applies_pending_min(make_engine, observer):
    engine = make_engine(0, 100)
    outcome = engine.submit(InvertPalette(min_text="10"))
    assert outcome.committed
    model = engine.current
    assert model.min == 10.0
    assert [s.color for s in model.palette.stops] == [(0, 0, 255), (0, 255, 0), (255, 0, 0)]
    np.testing.assert_allclose(model.palette.samples, [10.0, 55.0, 100.0])


def test_invert_recovers_from_invalid_pending_text(make_engine, observer):
    engine = make_engine(0, 100)
    outcome = engine.submit(InvertPalette(min_text="abc"))
    assert outcome.committed
    assert engine.current.min == 0.0
    assert [e.field for e in observer.reports] == [FIELD_MIN]
    assert observer.reports[0].kind is ErrorKind.NOT_A_NUMBER


def test_pending_bounds_out_of_order_together(make_engine, observer):
    """Each pending edit is valid alone but min >= max together."""
    engine = make_engine(0, 100)
    engine.submit(InvertPalette(min_text="60", max_text="50"))
    assert (engine.current.min, engine.current.max) == (0.0, 100.0)
    assert {e.field for e in observer.reports} == {FIELD_MIN, FIELD_MAX}


def test_chooser_spreads_over_pending_range(make_engine, observer, palettes):
    engine = make_engine(0, 100)
    engine.submit(SelectFromChooser(palettes.get_palette("bw"), min_text="20", max_text="40"))
    model = engine.current
    assert (model.min, model.max) == (20.0, 40.0)
    assert model.auto_distribute is True
    assert [s.color for s in model.palette.stops] == [(0, 0, 0), (255, 255, 255)]
    np.testing.assert_allclose(model.palette.samples, [20.0, 40.0])


def test_chooser_keeps_discrete_display(make_engine, observer, palettes):
    engine = make_engine(0, 100, palette=three_stop_palette(0, 100).with_discrete(True))
    engine.submit(SelectFromChooser(palettes.get_palette("bw")))
    assert engine.current.palette.discrete is True


# ------------------------ Discrete display ------------------------
def test_discrete_toggle_commits_stepped_palette(make_engine, observer):
    engine = make_engine(0, 100)
    outcome = engine.submit(ToggleDiscrete(True))
    assert outcome.committed
    model = engine.current
    assert model.palette.discrete is True
    assert (model.min, model.max, model.log_scaled) == (0.0, 100.0, False)
    np.testing.assert_allclose(model.palette.samples, [0.0, 50.0, 100.0])
    # Stepped ramp holds the first colour up to the middle stop
    ramp = model.palette.sample_colors(4)
    assert tuple(ramp[1]) == (255, 0, 0)
    assert len(observer.published) == 1


def test_discrete_toggle_to_current_mode_is_noop(make_engine, observer):
    engine = make_engine(0, 100)
    outcome = engine.submit(ToggleDiscrete(False))
    assert outcome.accepted and not outcome.committed
    assert observer.published == []
    assert observer.restored[-1][1] == {FIELD_PALETTE}


# ------------------------ Queueing & errors ------------------------
def test_trigger_from_observer_is_queued(make_engine, observer):
    engine = make_engine(0, 100)
    queued = []

    def on_publish(model):
        assert engine.state is EngineState.COMMITTING
        if not queued:
            queued.append(engine.submit(EditMax("200")))
            assert engine.pending == 1

    observer.on_publish = on_publish
    outcome = engine.submit(EditMin("10"))

    assert queued == [None]
    assert outcome.state.max == 100.0
    assert (engine.current.min, engine.current.max) == (10.0, 200.0)
    assert len(observer.published) == 2
    assert engine.pending == 0
    assert not engine.guard.in_flight


def test_observer_exception_propagates_and_clears_queue(make_engine, observer):
    engine = make_engine(0, 100)

    def on_publish(model):
        engine.submit(EditMax("200"))
        raise RuntimeError("listener failed")

    observer.on_publish = on_publish
    with pytest.raises(RuntimeError):
        engine.submit(EditMin("10"))
    assert engine.pending == 0
    assert not engine.guard.in_flight
    assert engine.state is EngineState.IDLE


def test_unknown_trigger_raises_type_error(make_engine):
    engine = make_engine(0, 100)
    with pytest.raises(TypeError):
        engine.submit("EditMin")


def test_reset_replaces_state_without_commit(make_engine, observer, palette):
    engine = make_engine(0, 100)
    model = RangeModel.create(3, 4, palette)
    engine.reset(model)
    assert engine.current is model
    assert engine.commit_count == 0
    assert observer.published == []
    assert observer.restored[-1][0] is model

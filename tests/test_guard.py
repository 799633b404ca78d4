"""Tests for the re-entrancy guard."""

import pytest

from ColorRangeSync.core.guard import ALL_FIELDS, GuardedField, ReentrancyGuard


def test_suppress_is_scoped():
    guard = ReentrancyGuard()
    with guard.suppress(GuardedField.MIN_EDIT):
        assert guard.min_edit_suppressed
        assert not guard.max_edit_suppressed
    assert not guard.min_edit_suppressed
    assert guard.suppressed == frozenset()


def test_nested_scopes_release_only_their_fields():
    guard = ReentrancyGuard()
    with guard.suppress(GuardedField.MIN_EDIT):
        with guard.suppress(GuardedField.MIN_EDIT, GuardedField.LOG_TOGGLE):
            assert guard.log_toggle_suppressed
        assert guard.min_edit_suppressed
        assert not guard.log_toggle_suppressed


def test_suppress_without_fields_covers_all():
    guard = ReentrancyGuard()
    with guard.suppress():
        assert guard.suppressed == ALL_FIELDS
        assert guard.chooser_event_suppressed


def test_suppression_released_on_exception():
    guard = ReentrancyGuard()
    with pytest.raises(RuntimeError):
        with guard.suppress(GuardedField.MAX_EDIT):
            raise RuntimeError("boom")
    assert not guard.max_edit_suppressed


def test_flight_is_exclusive():
    guard = ReentrancyGuard()
    with guard.flight():
        assert guard.in_flight
        with pytest.raises(RuntimeError):
            with guard.flight():
                pass
        assert guard.in_flight
    assert not guard.in_flight

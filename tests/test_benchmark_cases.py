"""Tests for case selection in the overhead benchmark."""

import pytest

from benchmarks.interpose_overhead_benchmark import _CASE_DEFAULT_ITERATIONS
from benchmarks.interpose_overhead_benchmark import _CASE_ORDER
from benchmarks.interpose_overhead_benchmark import _plan_iterations


def test_every_case_runs_by_default() -> None:
    """Verify no selection plans every case at its base iteration count."""
    plan: dict[str, int] = _plan_iterations(None, _CASE_DEFAULT_ITERATIONS, 1.0)

    assert list(plan) == _CASE_ORDER
    assert plan == _CASE_DEFAULT_ITERATIONS


def test_selected_cases_keep_canonical_order_and_scale() -> None:
    """Verify requested cases run in canonical order, deduplicated, with at least one iteration."""
    plan: dict[str, int] = _plan_iterations(
        " generic_call,scalar_call,,generic_call", _CASE_DEFAULT_ITERATIONS, 0.000001
    )

    assert list(plan) == ["scalar_call", "generic_call"]
    assert plan == {"scalar_call": 1, "generic_call": 1}


def test_unknown_or_empty_selection_fails() -> None:
    """Verify unknown names are all reported and an empty selection is rejected."""
    with pytest.raises(ValueError, match="bogus, missing"):
        _plan_iterations("scalar_call,missing,bogus", _CASE_DEFAULT_ITERATIONS, 1.0)
    with pytest.raises(ValueError, match="No benchmark cases selected"):
        _plan_iterations(" , ", _CASE_DEFAULT_ITERATIONS, 1.0)

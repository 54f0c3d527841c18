"""Tests for the mixed-radix Odometer: ordering, carry and validation."""

from __future__ import annotations

import itertools

import numpy as np
import pytest

from evalmatrix.exceptions import InvalidConfiguration, PrecompletionError, PreconditionError
from evalmatrix.odometer import Odometer


def _drain(odo: Odometer) -> list[tuple[tuple[int, ...], int]]:
    seen = []
    while odo.has_next():
        changed = odo.advance()
        if changed is None:
            break
        seen.append((odo.current_indices(), changed))
    return seen


@pytest.mark.parametrize("sizes", [[1], [4], [2, 3], [3, 1, 2], [2, 2, 2, 2]])
def test_visits_every_combination_in_lexicographic_order(sizes) -> None:
    visited = [idx for idx, _ in _drain(Odometer(sizes))]
    expected = list(itertools.product(*(range(s) for s in sizes)))
    assert visited == expected
    assert len(visited) == Odometer(sizes).total


def test_consecutive_vectors_strictly_increase() -> None:
    visited = [idx for idx, _ in _drain(Odometer([3, 2, 4]))]
    for prev, cur in zip(visited, visited[1:]):
        assert prev < cur


def test_last_changed_reports_carry_depth() -> None:
    changes = [changed for _, changed in _drain(Odometer([2, 3]))]
    # first combination reports axis 0, then carries into axis 0 at (1, 0)
    assert changes == [0, 1, 1, 0, 1, 1]


def test_last_changed_is_leftmost_axis_touched() -> None:
    odo = Odometer([2, 2, 2])
    odo.advance()  # (0, 0, 0)
    assert odo.advance() == 2  # (0, 0, 1)
    assert odo.advance() == 1  # (0, 1, 0)
    assert odo.advance() == 2  # (0, 1, 1)
    assert odo.advance() == 0  # (1, 0, 0)
    assert odo.current_indices() == (1, 0, 0)
    assert odo.last_changed == 0


def test_exhaustion_after_last_combination() -> None:
    odo = Odometer([2, 3])
    for _ in range(6):
        assert odo.advance() is not None
    assert odo.current_indices() == (1, 2)
    assert odo.has_next()
    assert odo.advance() is None
    assert not odo.has_next()
    assert odo.last_changed is None
    with pytest.raises(PrecompletionError):
        odo.advance()


def test_single_combination() -> None:
    odo = Odometer([1, 1])
    assert odo.advance() == 0
    assert odo.current_indices() == (0, 0)
    assert odo.advance() is None
    assert not odo.has_next()


def test_current_indices_before_start() -> None:
    odo = Odometer([2])
    assert odo.has_next()
    assert odo.position == 0
    with pytest.raises(PreconditionError):
        odo.current_indices()


def test_lockstep_instances_are_identical() -> None:
    a = Odometer([3, 2, 2])
    b = Odometer([3, 2, 2])
    assert _drain(a) == _drain(b)


@pytest.mark.parametrize("sizes", [[], [0, 5], [3, -1], [2, 1.5], [True, 2]])
def test_invalid_sizes(sizes) -> None:
    with pytest.raises(InvalidConfiguration):
        Odometer(sizes)


def test_invalid_configuration_is_value_error() -> None:
    with pytest.raises(ValueError):
        Odometer([])


def test_numpy_integer_sizes_are_accepted() -> None:
    sizes = np.array([2, 3], dtype=np.int64)
    odometer = Odometer(sizes)
    assert odometer.sizes() == (2, 3)
    assert all(type(s) is int for s in odometer.sizes())
    assert odometer.total == 6
    assert len(_drain(odometer)) == 6


def test_accessors_and_progress_text() -> None:
    odo = Odometer([2, 3])
    assert odo.sizes() == (2, 3)
    assert odo.total == 6
    odo.advance()
    assert odo.position == 1
    assert odo.format_progress() == "(1/6) [1/2, 1/3]"
    for _ in range(3):
        odo.advance()
    assert odo.format_progress() == "(4/6) [2/2, 1/3]"
    assert odo.format_status().endswith("66.7%")

"""Unit tests for mandelgrid.grid."""

from __future__ import annotations

from collections import Counter

import numpy as np
import pytest

from mandelgrid.errors import ConfigurationError, PartitionError
from mandelgrid.grid import GridSpec, RunParameters, generate_grid, grid_positions, partition


class TestGridSpec:
    """Tests for grid validation and axis counting."""

    def test_default_shape(self) -> None:
        """Default bounds do not lose the last column to rounding."""
        assert GridSpec().shape() == (3801, 3601)
        assert GridSpec().sample_count() == 3801 * 3601

    def test_rounding_prone_extent(self) -> None:
        """(0.45 - -1.45) / 0.0005 counts 3800 steps."""
        assert GridSpec(-1.45, 0.45, 0.0, 0.0, 0.0005).shape() == (3801, 1)

    def test_degenerate_axis(self) -> None:
        """A zero extent still yields one sample."""
        assert GridSpec(0.0, 0.0, 0.0, 0.0, 0.1).shape() == (1, 1)

    def test_delta_equal_to_extent(self) -> None:
        """A step as large as the rectangle yields two samples on that axis."""
        assert GridSpec(0.0, 1.0, 0.0, 0.5, 1.0).shape() == (2, 1)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"delta": 0.0},
            {"delta": -0.1},
            {"re_min": 1.0, "re_max": 0.0},
            {"im_min": 1.0, "im_max": 0.0},
            {"re_min": float("nan")},
            {"im_max": float("inf")},
            {"delta": True},
        ],
    )
    def test_invalid_bounds_rejected(self, kwargs: dict) -> None:
        """Malformed rectangles fail at construction."""
        with pytest.raises(ConfigurationError):
            GridSpec(**kwargs)


class TestGenerateGrid:
    """Tests for grid generation."""

    def test_shifted_rule_is_the_default(self) -> None:
        """Coordinates start one delta past each minimum."""
        positions = grid_positions(GridSpec(0.0, 1.0, 0.0, 1.0, 0.5))
        assert sorted({p.real for p in positions}) == [0.5, 1.0, 1.5]
        assert sorted({p.imag for p in positions}) == [0.5, 1.0, 1.5]

    def test_anchored_rule(self) -> None:
        """Anchored coordinates start at the minima and end at the maxima."""
        positions = grid_positions(GridSpec(0.0, 1.0, 0.0, 1.0, 0.5), anchored=True)
        assert sorted({p.real for p in positions}) == [0.0, 0.5, 1.0]
        assert sorted({p.imag for p in positions}) == [0.0, 0.5, 1.0]

    def test_real_axis_is_outermost(self) -> None:
        """Consecutive samples walk the imaginary axis first."""
        samples = generate_grid(GridSpec(0.0, 1.0, 0.0, 1.0, 0.5), anchored=True)
        assert [s.position for s in samples[:4]] == [0j, 0.5j, 1j, 0.5 + 0j]

    def test_delta_equal_to_extent_boundary(self) -> None:
        """Both rules give two samples along an axis stepped by its full extent."""
        spec = GridSpec(0.0, 1.0, 0.0, 0.0, 1.0)
        assert [s.position for s in generate_grid(spec)] == [1 + 1j, 2 + 1j]
        assert [s.position for s in generate_grid(spec, anchored=True)] == [0j, 1 + 0j]

    def test_coordinates_do_not_drift(self) -> None:
        """Coordinates are index * delta, so the last one lands on the bound."""
        positions = grid_positions(GridSpec(0.0, 1.0, 0.0, 0.0, 0.1), anchored=True)
        assert len(positions) == 11
        assert positions[-1].real == pytest.approx(1.0, abs=1e-15)
        np.testing.assert_allclose(positions.real, np.arange(11) * 0.1)

    def test_length_matches_shape(self) -> None:
        """The sequence length is the product of both axis counts."""
        spec = GridSpec(-2.0, 0.5, -1.0, 1.0, 0.25)
        assert len(generate_grid(spec)) == spec.sample_count() == 11 * 9

    def test_deterministic(self) -> None:
        """Identical input gives an identical sequence."""
        spec = GridSpec(-1.0, 1.0, -1.0, 1.0, 0.3)
        assert generate_grid(spec) == generate_grid(spec)

    def test_samples_are_empty(self) -> None:
        """Generated samples have no outcome yet."""
        assert all(s.outcome is None for s in generate_grid(GridSpec(0.0, 1.0, 0.0, 1.0, 0.5)))


class TestPartition:
    """Tests for splitting work into chunks."""

    def test_single_worker_gets_everything(self) -> None:
        """One worker owns the whole sequence."""
        items = list(range(10))
        assert partition(items, 1) == [items]

    def test_sizes_differ_by_at_most_one(self) -> None:
        """Uneven totals spread the remainder over the first chunks."""
        chunks = partition(list(range(10)), 3)
        assert [len(c) for c in chunks] == [4, 3, 3]

    @pytest.mark.parametrize("workers", [1, 2, 3, 4, 7, 13])
    def test_exact_cover(self, workers: int) -> None:
        """Chunks are contiguous and reproduce the input exactly."""
        items = list(range(13))
        chunks = partition(items, workers)
        assert len(chunks) == workers
        assert [x for chunk in chunks for x in chunk] == items
        sizes = [len(c) for c in chunks]
        assert max(sizes) - min(sizes) <= 1

    def test_one_sample_per_worker(self) -> None:
        """Worker count equal to the total gives singleton chunks."""
        assert partition(["a", "b", "c"], 3) == [["a"], ["b"], ["c"]]

    @pytest.mark.parametrize("workers", [0, -1, 4])
    def test_invalid_worker_count(self, workers: int) -> None:
        """Counts below one or above the total are rejected."""
        with pytest.raises(PartitionError):
            partition([1, 2, 3], workers)

    def test_samples_keep_multiset(self) -> None:
        """Partitioning generated samples neither drops nor duplicates any."""
        samples = generate_grid(GridSpec(-1.0, 1.0, -1.0, 1.0, 0.25))
        chunks = partition(samples, 5)
        assert Counter(s.position for c in chunks for s in c) == Counter(s.position for s in samples)


class TestRunParameters:
    """Tests for run parameter validation."""

    def test_defaults(self) -> None:
        """Defaults mirror the stock configuration."""
        params = RunParameters()
        assert params.grid == GridSpec(-1.45, 0.45, -0.9, 0.9, 0.0005)
        assert (params.max_iterations, params.escape_radius, params.worker_count) == (200, 2.0, 1)
        assert (params.backend, params.executor) == ("scalar", "thread")

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"worker_count": 0},
            {"worker_count": -2},
            {"worker_count": 10},
            {"worker_count": 1.5},
            {"max_iterations": 0},
            {"max_iterations": True},
            {"escape_radius": 0.0},
            {"escape_radius": float("inf")},
            {"backend": "gpu"},
            {"executor": "fiber"},
            {"backend": "tensor", "executor": "process"},
        ],
    )
    def test_rejected(self, kwargs: dict) -> None:
        """Invalid parameters fail before any work starts."""
        grid = GridSpec(0.0, 1.0, 0.0, 1.0, 0.5)
        with pytest.raises(ConfigurationError):
            RunParameters(grid=grid, **kwargs)

    def test_worker_count_up_to_sample_count(self) -> None:
        """As many workers as samples is allowed."""
        grid = GridSpec(0.0, 1.0, 0.0, 1.0, 0.5)
        assert RunParameters(grid=grid, worker_count=9).worker_count == 9

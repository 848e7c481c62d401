"""Sampling grids over the complex plane and their division into work chunks."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Sequence, TypeVar

import numpy as np

from .errors import ConfigurationError, PartitionError
from .escape import Sample

BACKENDS = ("scalar", "tensor")
EXECUTORS = ("thread", "process")

T = TypeVar("T")


@dataclass(frozen=True)
class GridSpec:
    """Rectangle ``[re_min, re_max] x [im_min, im_max]`` sampled every ``delta``."""

    re_min: float = -1.45
    re_max: float = 0.45
    im_min: float = -0.9
    im_max: float = 0.9
    delta: float = 0.0005

    def __post_init__(self) -> None:
        for name in ("re_min", "re_max", "im_min", "im_max", "delta"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigurationError(f"grid.{name} must be a number, got {value!r}")
            if not math.isfinite(value):
                raise ConfigurationError(f"grid.{name} must be finite, got {value!r}")
        if self.re_min > self.re_max:
            raise ConfigurationError(f"grid.re_min ({self.re_min}) exceeds grid.re_max ({self.re_max})")
        if self.im_min > self.im_max:
            raise ConfigurationError(f"grid.im_min ({self.im_min}) exceeds grid.im_max ({self.im_max})")
        if self.delta <= 0:
            raise ConfigurationError(f"grid.delta must be positive, got {self.delta}")

    def shape(self) -> tuple[int, int]:
        """Number of samples along the real and imaginary axes."""

        return _axis_count(self.re_min, self.re_max, self.delta), _axis_count(self.im_min, self.im_max, self.delta)

    def sample_count(self) -> int:
        re_count, im_count = self.shape()
        return re_count * im_count


@dataclass(frozen=True)
class RunParameters:
    """Everything a run needs; validated once, immutable afterwards."""

    grid: GridSpec = field(default_factory=GridSpec)
    max_iterations: int = 200
    escape_radius: float = 2.0
    worker_count: int = 1
    backend: str = "scalar"
    executor: str = "thread"

    def __post_init__(self) -> None:
        if not isinstance(self.grid, GridSpec):
            raise ConfigurationError(f"grid must be a GridSpec, got {type(self.grid).__name__}")
        if not _is_int(self.max_iterations) or self.max_iterations < 1:
            raise ConfigurationError(f"iterations must be a positive integer, got {self.max_iterations!r}")
        if isinstance(self.escape_radius, bool) or not isinstance(self.escape_radius, (int, float)):
            raise ConfigurationError(f"bound must be a number, got {self.escape_radius!r}")
        if not math.isfinite(self.escape_radius) or self.escape_radius <= 0:
            raise ConfigurationError(f"bound must be positive and finite, got {self.escape_radius!r}")
        if not _is_int(self.worker_count) or self.worker_count < 1:
            raise ConfigurationError(f"threads must be an integer >= 1, got {self.worker_count!r}")
        total = self.grid.sample_count()
        if self.worker_count > total:
            raise ConfigurationError(f"threads ({self.worker_count}) exceeds the number of samples ({total})")
        if self.backend not in BACKENDS:
            raise ConfigurationError(f"backend must be one of {', '.join(BACKENDS)}, got {self.backend!r}")
        if self.executor not in EXECUTORS:
            raise ConfigurationError(f"executor must be one of {', '.join(EXECUTORS)}, got {self.executor!r}")
        if self.backend == "tensor" and self.executor != "thread":
            raise ConfigurationError("the tensor backend requires the thread executor")


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _axis_count(low: float, high: float, delta: float) -> int:
    steps = (np.float64(high) - np.float64(low)) / np.float64(delta)
    nearest = round(float(steps))
    # (0.45 - -1.45) / 0.0005 evaluates to 3799.9999999999995
    if math.isclose(steps, nearest, rel_tol=1e-9, abs_tol=1e-9):
        steps = nearest
    return int(math.floor(steps)) + 1


def grid_positions(spec: GridSpec, *, anchored: bool = False) -> np.ndarray:
    """Return the sample positions as a flat complex array, real axis outermost.

    By default the coordinates start one ``delta`` past each minimum, so the
    sampled rectangle is shifted by one step from the stated bounds. Pass
    ``anchored=True`` to start exactly at ``re_min``/``im_min``.
    """

    re_count, im_count = spec.shape()
    offset = np.float64(0.0 if anchored else 1.0)
    re = np.float64(spec.re_min) + (np.arange(re_count, dtype=np.float64) + offset) * np.float64(spec.delta)
    im = np.float64(spec.im_min) + (np.arange(im_count, dtype=np.float64) + offset) * np.float64(spec.delta)

    positions = np.empty((re_count, im_count), dtype=np.complex128)
    positions.real = re[:, np.newaxis]
    positions.imag = im[np.newaxis, :]
    return positions.ravel()


def generate_grid(spec: GridSpec, *, anchored: bool = False) -> list[Sample]:
    """Generate the empty samples of ``spec`` in deterministic order."""

    return [Sample(complex(position)) for position in grid_positions(spec, anchored=anchored)]


def partition(items: Sequence[T], worker_count: int) -> list[list[T]]:
    """Split ``items`` into ``worker_count`` contiguous chunks differing in size by at most one."""

    total = len(items)
    if isinstance(worker_count, bool) or not isinstance(worker_count, int):
        raise PartitionError(f"worker count must be an integer, got {worker_count!r}")
    if worker_count < 1:
        raise PartitionError(f"worker count must be at least 1, got {worker_count}")
    if worker_count > total:
        raise PartitionError(f"cannot split {total} samples across {worker_count} workers")

    base, extra = divmod(total, worker_count)
    chunks: list[list[T]] = []
    start = 0
    for index in range(worker_count):
        end = start + base + (1 if index < extra else 0)
        chunks.append(list(items[start:end]))
        start = end
    return chunks

"""Escape-time evaluation of single points of the complex plane."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Optional, Union

from .errors import SampleStateError

if TYPE_CHECKING:
    from .grid import RunParameters


@dataclass(frozen=True, slots=True)
class Converged:
    """The orbit stayed inside the escape radius; ``magnitude`` is the final ``|z|``."""

    magnitude: float


@dataclass(frozen=True, slots=True)
class Diverged:
    """The orbit left the escape radius before the iteration limit."""


DIVERGED = Diverged()

Outcome = Union[Converged, Diverged]


@dataclass(frozen=True, slots=True)
class Sample:
    """A grid position and, once evaluated, its outcome."""

    position: complex
    outcome: Optional[Outcome] = None

    @property
    def finished(self) -> bool:
        return self.outcome is not None

    def finalize(self, outcome: Outcome) -> Sample:
        if self.outcome is not None:
            raise SampleStateError(f"sample at {self.position!r} already finalized")
        return replace(self, outcome=outcome)


def evaluate(position: complex, max_iterations: int, escape_radius: float) -> Outcome:
    """Iterate ``z <- z*z + position`` from zero and classify the orbit."""

    z = 0j
    for _ in range(max_iterations):
        z = z * z + position
        if abs(z) > escape_radius:
            return DIVERGED
    return Converged(abs(z))


def evaluate_sample(sample: Sample, params: RunParameters) -> Sample:
    return sample.finalize(evaluate(sample.position, params.max_iterations, params.escape_radius))


def outcome_value(outcome: Optional[Outcome]) -> float:
    """Map an outcome to the exported scalar; diverged points become ``nan``."""

    if isinstance(outcome, Converged):
        return outcome.magnitude
    if isinstance(outcome, Diverged):
        return math.nan
    raise SampleStateError("sample has not been evaluated")


def outcome_from_value(value: float) -> Outcome:
    if math.isnan(value):
        return DIVERGED
    return Converged(float(value))

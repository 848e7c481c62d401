"""Row-oriented CSV export of finished samples."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Union

import numpy as np

from .escape import Sample, outcome_value

OUTPUT_FILE_PATH = Path("mandelbrot.csv")
HEADER = "re,im,value"


def samples_to_array(samples: Iterable[Sample]) -> np.ndarray:
    """Stack samples into an ``(n, 3)`` float64 array of ``re, im, value`` rows.

    Diverged samples carry ``nan`` in the value column.
    """

    rows = [(sample.position.real, sample.position.imag, outcome_value(sample.outcome)) for sample in samples]
    if not rows:
        return np.empty((0, 3), dtype=np.float64)
    return np.array(rows, dtype=np.float64)


def write_csv(samples: Iterable[Sample], path: Union[str, Path] = OUTPUT_FILE_PATH) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    np.savetxt(path, samples_to_array(samples), fmt="%.17g", delimiter=",", header=HEADER, comments="")
    return path

"""Public API for escape-time grid sampling."""

from .config import ConfigLoad, load_config, load_or_create, save_config
from .engine import collect_results, compute, run_worker
from .errors import (
    ChannelClosedError,
    ConfigurationError,
    MandelgridError,
    PartitionError,
    ProgressMismatchError,
    ResultMismatchError,
    SampleStateError,
    WorkerFailedError,
)
from .escape import DIVERGED, Converged, Diverged, Outcome, Sample, evaluate, outcome_value
from .export import samples_to_array, write_csv
from .grid import GridSpec, RunParameters, generate_grid, grid_positions, partition
from .progress import ProgressAggregator, ProgressChannel, ProgressSender, format_percentage

__all__ = [
    "DIVERGED",
    "ChannelClosedError",
    "ConfigLoad",
    "ConfigurationError",
    "Converged",
    "Diverged",
    "GridSpec",
    "MandelgridError",
    "Outcome",
    "PartitionError",
    "ProgressAggregator",
    "ProgressChannel",
    "ProgressMismatchError",
    "ProgressSender",
    "ResultMismatchError",
    "RunParameters",
    "Sample",
    "SampleStateError",
    "WorkerFailedError",
    "collect_results",
    "compute",
    "evaluate",
    "format_percentage",
    "generate_grid",
    "grid_positions",
    "load_config",
    "load_or_create",
    "outcome_value",
    "partition",
    "run_worker",
    "samples_to_array",
    "save_config",
    "write_csv",
]

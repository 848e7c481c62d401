"""Exceptions raised while configuring or running a sampling job."""

from __future__ import annotations


class MandelgridError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(MandelgridError, ValueError):
    """Run parameters are out of range or inconsistent."""


class PartitionError(MandelgridError, ValueError):
    """A sample sequence cannot be split into the requested number of chunks."""


class SampleStateError(MandelgridError):
    """A sample was finalized twice."""


class ChannelClosedError(MandelgridError):
    """A progress signal was sent after the receiving side went away."""


class WorkerFailedError(MandelgridError):
    """A worker terminated abnormally; the whole run is aborted."""


class ProgressMismatchError(MandelgridError):
    """The aggregated progress does not match the number of samples."""


class ResultMismatchError(MandelgridError):
    """The collected samples do not cover the generated grid."""

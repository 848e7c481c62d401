"""Parallel evaluation of a sampling grid.

The grid is generated once, cut into one contiguous chunk per worker and
handed to an executor. Workers report progress through a
:class:`~mandelgrid.progress.ProgressChannel` and return their finished
samples; the orchestrator drains the channel first and joins the workers
afterwards.
"""

from __future__ import annotations

from concurrent.futures import Executor, Future, ProcessPoolExecutor, ThreadPoolExecutor
from functools import partial
from typing import Iterator, Optional, Sequence, TextIO

from .errors import ResultMismatchError, WorkerFailedError
from .escape import Sample, evaluate_sample, outcome_from_value
from .grid import RunParameters, generate_grid, partition
from .progress import ProgressAggregator, ProgressChannel, ProgressSender
from .verbosity import log

BATCH_SIZE = 1000


def run_worker(chunk: Sequence[Sample], params: RunParameters, sender: ProgressSender, *, batch_size: int = BATCH_SIZE) -> list[Sample]:
    """Evaluate ``chunk`` in order, signalling every ``batch_size`` finished samples.

    The sender is released when the worker returns or fails.
    """

    with sender:
        if params.backend == "tensor":
            return _run_tensor(chunk, params, sender, batch_size)
        return _run_scalar(chunk, params, sender, batch_size)


def _run_scalar(chunk: Sequence[Sample], params: RunParameters, sender: ProgressSender, batch_size: int) -> list[Sample]:
    finished: list[Sample] = []
    for sample in chunk:
        finished.append(evaluate_sample(sample, params))
        if len(finished) % batch_size == 0:
            sender.send(batch_size)
    remainder = len(finished) % batch_size
    if remainder:
        sender.send(remainder)
    return finished


def _run_tensor(chunk: Sequence[Sample], params: RunParameters, sender: ProgressSender, batch_size: int) -> list[Sample]:
    from .kernel import evaluate_batch

    finished: list[Sample] = []
    for start in range(0, len(chunk), batch_size):
        batch = chunk[start:start + batch_size]
        values = evaluate_batch([sample.position for sample in batch], params.max_iterations, params.escape_radius)
        finished.extend(sample.finalize(outcome_from_value(value)) for sample, value in zip(batch, values))
        sender.send(len(batch))
    return finished


def collect_results(futures: Sequence[Future], *, expected: Optional[int] = None) -> list[Sample]:
    """Join every worker and concatenate their outputs in submission order."""

    results: list[Sample] = []
    for index, future in enumerate(futures):
        try:
            finished = future.result()
        except Exception as exc:
            raise WorkerFailedError(f"worker {index} terminated abnormally: {exc!r}") from exc
        log(f"worker {index} returned {len(finished)} samples")
        results.extend(finished)

    if expected is not None and len(results) != expected:
        raise ResultMismatchError(f"collected {len(results)} samples, expected {expected}")
    return results


def _make_executor(params: RunParameters) -> Executor:
    if params.executor == "process":
        return ProcessPoolExecutor(max_workers=params.worker_count)
    return ThreadPoolExecutor(max_workers=params.worker_count, thread_name_prefix="mandelgrid-worker")


def _abort_on_failure(channel: ProgressChannel, index: int, future: Future) -> None:
    if future.cancelled():
        channel.abort(f"worker {index} was cancelled")
        return
    exc = future.exception()
    if exc is not None:
        channel.abort(f"worker {index} terminated abnormally: {exc!r}")


def _hand_off(chunks: list[list[Sample]]) -> Iterator[tuple[int, list[Sample]]]:
    """Yield ``(index, chunk)`` in order, dropping the list's reference to each chunk."""

    chunks.reverse()
    index = 0
    while chunks:
        yield index, chunks.pop()
        index += 1


def compute(
    params: RunParameters,
    *,
    anchored: bool = False,
    stream: Optional[TextIO] = None,
    quiet: bool = False,
) -> list[Sample]:
    """Evaluate every sample of ``params.grid`` across ``params.worker_count`` workers.

    Progress is rewritten in place on ``stream`` (stdout by default) unless
    ``quiet`` is set. Any worker failure aborts the run with
    :class:`~mandelgrid.errors.WorkerFailedError`; no partial results are
    returned.
    """

    total = params.grid.sample_count()
    chunks = partition(generate_grid(params.grid, anchored=anchored), params.worker_count)
    aggregator = ProgressAggregator(total, stream=stream, quiet=quiet)

    with ProgressChannel.open(params.executor) as channel:
        dispatcher = channel.sender()
        with _make_executor(params) as pool:
            futures: list[Future] = []
            for index, chunk in _hand_off(chunks):
                log(f"worker {index} started, work: {len(chunk)}")
                future = pool.submit(run_worker, chunk, params, channel.sender())
                future.add_done_callback(partial(_abort_on_failure, channel, index))
                futures.append(future)
            del chunk
            dispatcher.release()

            aggregator.drain(channel.receive())
            log("collecting results")
            results = collect_results(futures, expected=total)

    aggregator.reconcile()
    return results

"""Cross-worker progress reporting.

Workers push integer counts of freshly finished samples into a shared
channel; a single aggregator drains it and keeps a running percentage on
screen. The channel is closed once every sender handle handed out by
:meth:`ProgressChannel.sender` has been released, including the one kept by
the orchestrator while it dispatches work.
"""

from __future__ import annotations

import multiprocessing
import queue
import sys
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Optional, TextIO

from .errors import ChannelClosedError, ProgressMismatchError, WorkerFailedError

_RELEASED = None


@dataclass(frozen=True)
class _Abort:
    message: str


class ProgressSender:
    """One producer handle. Picklable, so it can travel to a worker process."""

    def __init__(self, signals: Any, alive: Any) -> None:
        self._signals = signals
        self._alive = alive
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def send(self, count: int) -> None:
        if count < 0:
            raise ValueError(f"progress signals cannot be negative, got {count}")
        if self._released:
            raise ChannelClosedError("progress sender used after release")
        try:
            receiving = self._alive.is_set()
            if receiving:
                self._signals.put(count)
        except (OSError, EOFError) as exc:
            raise ChannelClosedError("progress receiver is gone") from exc
        if not receiving:
            raise ChannelClosedError("progress receiver is gone")

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        try:
            self._signals.put(_RELEASED)
        except (OSError, EOFError):
            # the receiving side is already torn down; nobody waits for this handle
            pass

    def __enter__(self) -> ProgressSender:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()


class ProgressChannel:
    """Many-producer, single-consumer channel of progress signals."""

    def __init__(self, signals: Any, alive: Any) -> None:
        self._signals = signals
        self._alive = alive
        self._open_senders = 0
        self._alive.set()

    @classmethod
    @contextmanager
    def open(cls, executor: str = "thread") -> Iterator[ProgressChannel]:
        """Create a channel usable from threads or, with ``executor="process"``, from worker processes."""

        if executor == "process":
            with multiprocessing.Manager() as manager:
                channel = cls(manager.Queue(), manager.Event())
                try:
                    yield channel
                finally:
                    channel.close()
        else:
            channel = cls(queue.Queue(), threading.Event())
            try:
                yield channel
            finally:
                channel.close()

    @property
    def open_senders(self) -> int:
        return self._open_senders

    @property
    def receiving(self) -> bool:
        return self._alive.is_set()

    def sender(self) -> ProgressSender:
        if not self._alive.is_set():
            raise ChannelClosedError("cannot add a sender to a closed channel")
        self._open_senders += 1
        return ProgressSender(self._signals, self._alive)

    def abort(self, message: str) -> None:
        """Make the receiving side fail with ``message``."""

        if self._alive.is_set():
            self._signals.put(_Abort(message))

    def receive(self) -> Iterator[int]:
        """Yield signals until every registered sender has been released."""

        while self._open_senders > 0:
            item = self._signals.get()
            if item is _RELEASED:
                self._open_senders -= 1
            elif isinstance(item, _Abort):
                self.close()
                raise WorkerFailedError(item.message)
            else:
                yield item

    def close(self) -> None:
        self._alive.clear()


def format_percentage(done: int, total: int) -> str:
    percentage = 100.0 * done / total if total else 100.0
    return f"{percentage:.2f}%"


class ProgressAggregator:
    """Accumulate progress signals and rewrite the percentage in place."""

    def __init__(self, total: int, *, stream: Optional[TextIO] = None, quiet: bool = False) -> None:
        self.total = total
        self.done = 0
        self._stream = stream
        self._quiet = quiet

    @property
    def percentage(self) -> float:
        return 100.0 * self.done / self.total if self.total else 100.0

    def update(self, count: int) -> None:
        if count < 0:
            raise ValueError(f"progress signals cannot be negative, got {count}")
        self.done += count
        if not self._quiet:
            stream = self._stream if self._stream is not None else sys.stdout
            print("\r" + format_percentage(self.done, self.total), end="", file=stream, flush=True)

    def drain(self, signals: Iterable[int]) -> int:
        """Consume ``signals`` until the channel closes and return the running total."""

        for count in signals:
            self.update(count)
        if not self._quiet:
            stream = self._stream if self._stream is not None else sys.stdout
            print(file=stream, flush=True)
        return self.done

    def reconcile(self) -> None:
        if self.done != self.total:
            raise ProgressMismatchError(f"progress accounted for {self.done} of {self.total} samples")

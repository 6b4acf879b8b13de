"""Progress streams and a background worker to drain them.

Every long-running operation is a generator of ``Progress`` snapshots. The
generator finishing is the completion signal, an exception raised out of it
is the error signal, and closing it is the only way to cancel.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Generic, Iterator, Optional, TypeVar

from PySide6.QtCore import QThread, Signal

T = TypeVar("T")


@dataclass
class Progress(Generic[T]):
    """Progress of a pipeline run.

    Attributes:
        total: Number of units of work known upfront
        current: Units processed so far
        data: Result of the last processed unit, if any
        items: Complete result set, filled on the final snapshot
    """

    total: int = 0
    current: int = 0
    data: Optional[T] = None
    items: list[T] = field(default_factory=list)

    def snapshot(self) -> "Progress[T]":
        """Copy the mutable state so consumers can keep it."""
        return replace(self, items=list(self.items))

    @property
    def done(self) -> bool:
        return self.total > 0 and self.current >= self.total


@dataclass
class DeletionProgress(Progress[T]):
    """Deletion progress, also counting folders actually removed."""

    deleted: int = 0


ProgressStream = Iterator[Progress]


def run_sync(
    stream: ProgressStream,
    progress_callback: Callable[[Progress], Any] | None = None,
) -> Progress | None:
    """Drain a progress stream on the calling thread.

    Args:
        stream: Progress generator
        progress_callback: Optional callback(progress) for every snapshot

    Returns:
        The last snapshot, or None if the stream produced nothing
    """
    last = None
    for progress in stream:
        last = progress
        if progress_callback:
            progress_callback(progress)
    return last


class TaskWorker(QThread):
    """Background thread draining a progress stream.

    Signals:
        progress: Emits each Progress snapshot
        finished_task: Emits the last snapshot (or None) on completion
        error: Emits the exception that ended the stream
    """

    progress = Signal(object)
    finished_task = Signal(object)
    error = Signal(object)

    def __init__(self, stream: ProgressStream, parent=None):
        super().__init__(parent)
        self._stream = stream
        self._cancelled = False

    def cancel(self) -> None:
        """Stop consuming; the stream is closed before its next snapshot."""
        self._cancelled = True

    def run(self) -> None:
        """Execute the stream in background thread."""
        last = None
        try:
            for snapshot in self._stream:
                if self._cancelled:
                    break
                last = snapshot
                self.progress.emit(snapshot)
        except Exception as e:
            self.error.emit(e)
            return
        finally:
            close = getattr(self._stream, "close", None)
            if close is not None:
                close()

        if not self._cancelled:
            self.finished_task.emit(last)

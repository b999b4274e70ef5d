"""Buffered asynchronous writer for the currently executing run.

``MlflowRunWriter`` queues metrics in memory and hands them to a short-lived
background worker thread, so logging calls never wait on the network. Only
one worker sends for a writer at a time: it drains everything queued, applies the
terminal status once the writer is finalized, then clears its own handle and
exits. The next logging call starts a fresh worker if more work arrives.

A failed send does not stop the worker: it keeps draining and remembers only
its first error. Stored errors (first error wins) are raised from the next
writer call, or from ``finish``.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any, Literal

from mlflow_client.exceptions import WorkerJoinError
from mlflow_client.logger import logger
from mlflow_client.models import Metric, RunStatus, UpdateRunOptions
from mlflow_client.utils import now_ms, validate_metric, validate_step

if TYPE_CHECKING:
    from mlflow_client.run import MlflowRun


class _WriterState:
    """State shared between a writer and its worker.

    Every field is guarded by ``lock``. The lock is only held while fields
    are read or swapped, never across a request to the tracking server.

    A worker clears ``worker`` just before its thread returns, so a new
    worker may start while the old thread is still exiting. The old one
    sends nothing after that point; only one worker ever talks to the server.
    """

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.pending_metrics: list[Metric] = []
        self.error: Exception | None = None
        self.status = RunStatus.RUNNING
        self.end_time: int | None = None
        self.worker: _WorkerThread | None = None

    def reap_worker(self) -> WorkerJoinError | None:
        """Clear the handle of an exited worker.

        Must be called with lock held.

        Returns:
            WorkerJoinError if that worker terminated abnormally, None otherwise
        """
        worker = self.worker
        if worker is None or worker.is_alive():
            return None
        self.worker = None
        if worker.failure is not None:
            error = WorkerJoinError(f"Run writer worker terminated abnormally: {worker.failure!r}")
            error.__cause__ = worker.failure
            return error
        return None

    def take_error(self) -> Exception | None:
        """Reap an exited worker and return the pending error, clearing it.

        Must be called with lock held. Each error is returned at most once.
        """
        join_error = self.reap_worker()
        if join_error is not None:
            return join_error
        error, self.error = self.error, None
        return error

    def push_error(self, error: Exception | None) -> None:
        """Store ``error`` unless an earlier one is still unobserved.

        Must be called with lock held.
        """
        if self.error is None:
            self.error = error

    def release_worker(self, worker: _WorkerThread, error: Exception | None) -> None:
        """Record a worker's outcome and drop its handle.

        Must be called with lock held.
        """
        self.push_error(error)
        if self.worker is worker:
            self.worker = None


class _WorkerThread(threading.Thread):
    """Background thread sending a writer's queued metrics and terminal status."""

    def __init__(self, run: MlflowRun, state: _WriterState) -> None:
        super().__init__(name=f"mlflow-run-writer-{run.id}")
        self.mlflow_run = run
        self.state = state
        self.failure: Exception | None = None

    def run(self) -> None:
        try:
            _drain(self, self.mlflow_run, self.state)
        except Exception as e:
            # Handle stays in the state; the next take_error reports it
            self.failure = e


def _drain(worker: _WorkerThread, run: MlflowRun, state: _WriterState) -> None:
    error: Exception | None = None

    while True:
        with state.lock:
            if state.pending_metrics:
                metrics, state.pending_metrics = state.pending_metrics, []
            elif state.status is RunStatus.RUNNING:
                state.release_worker(worker, error)
                return
            else:
                options = UpdateRunOptions(status=state.status, end_time=state.end_time)
                break

        logger.debug(f"Sending {len(metrics)} metrics for run {run.id}")
        try:
            run.log_batch(metrics=metrics)
        except Exception as e:
            logger.debug(f"Failed to send metrics for run {run.id}: {e}")
            if error is None:
                error = e

    logger.debug(f"Updating run {run.id} to {options.status.value}")
    try:
        run.update(options)
    except Exception as e:
        logger.debug(f"Failed to update status of run {run.id}: {e}")
        if error is None:
            error = e

    with state.lock:
        state.release_worker(worker, error)


class MlflowRunWriter:
    """Writer for logging the currently executing run.

    This differs from :class:`MlflowRun` in the following ways:

    - ``log_metric`` and ``log_metrics`` return without waiting for the
      tracking server. An error from sending them is raised by a later
      writer call or by ``finish``.
    - If the writer is discarded without calling ``finish``, the run's
      status is set to FAILED.
    - Metric timestamps are the time of the logging call.

    Obtain a writer with ``MlflowExperiment.start_run``.

    Examples:
        >>> with experiment.start_run("run_name") as run:
        ...     run.log_params("", {"lr": 0.01})
        ...     for epoch in range(100):
        ...         run.log_metric("loss", 0.5, step=epoch)
    """

    def __init__(self, run: MlflowRun) -> None:
        self._run = run
        self._finished = False
        self._state = _WriterState()

    def __repr__(self) -> str:
        return f"MlflowRunWriter(run={self._run!r})"

    @property
    def run(self) -> MlflowRun:
        return self._run

    # ---- Synchronous pass-throughs -----------------------------------

    def log_param(self, key: str, value: str) -> None:
        """Log a single parameter."""
        self._run.log_param(key, value)

    def log_params(self, key: str, values: Any) -> None:
        """Log structured hyperparameters as flattened params.

        Examples:
            >>> run.log_params("", {"param_a": 1.0, "param_b": 2.0})
        """
        self._run.log_params(key, values)

    def set_tag(self, key: str, value: str) -> None:
        """Set a tag on the run."""
        self._run.set_tag(key, value)

    # ---- Buffered metrics --------------------------------------------

    def log_metric(self, key: str, value: float, step: int | None = None) -> None:
        """Queue a single metric.

        Args:
            key: Metric name
            value: Metric value
            step: Optional step number

        Raises:
            ValueError: If the name or value is invalid
            RuntimeError: If the writer has already been finished
            Exception: An error from an earlier background send
        """
        metric = Metric(key=key, value=validate_metric(key, value), timestamp=now_ms(), step=validate_step(step))
        self._enqueue([metric])

    def log_metrics(self, metrics: Mapping[str, float] | Iterable[tuple[str, float]], step: int | None = None) -> None:
        """Queue several metrics sharing one timestamp and ``step``.

        Args:
            metrics: Mapping or pairs of metric names to values
            step: Optional step number

        Raises:
            ValueError: If a name or value is invalid
            RuntimeError: If the writer has already been finished
            Exception: An error from an earlier background send
        """
        timestamp = now_ms()
        step = validate_step(step)
        pairs = metrics.items() if isinstance(metrics, Mapping) else metrics
        batch = [Metric(key=key, value=validate_metric(key, value), timestamp=timestamp, step=step) for key, value in pairs]
        self._enqueue(batch)

    def _enqueue(self, metrics: list[Metric]) -> None:
        state = self._state
        with state.lock:
            if self._finished:
                raise RuntimeError("Cannot log to a finished run")
            state.pending_metrics.extend(metrics)
            error = state.take_error()
            self._ensure_worker()
        if error is not None:
            raise error

    def _ensure_worker(self) -> _WorkerThread:
        """Start a worker unless one is alive. Must be called with lock held."""
        state = self._state
        if state.worker is None:
            state.worker = _WorkerThread(self._run, state)
            state.worker.start()
            logger.debug(f"Started writer worker for run {self._run.id}")
        return state.worker

    # ---- Finalization ------------------------------------------------

    def finish(self, status: RunStatus = RunStatus.FINISHED) -> None:
        """Flush queued metrics and set the run's terminal status.

        Blocks until the background worker is done. If the writer is
        discarded without calling this, the status will be FAILED.
        Calling it again after the first call is a no-op.

        Args:
            status: Terminal status to record (default: FINISHED)

        Raises:
            ValueError: If ``status`` is not a terminal status
            Exception: The first error from sending metrics or the status update
        """
        if not status.is_terminal:
            raise ValueError(f"Cannot finish a run with non-terminal status {status.value}")
        if self._end(status):
            logger.info(f"Run {self._run.name} finished with status {status.value}")

    def _end(self, status: RunStatus) -> bool:
        """Run the finalize protocol once. Returns False if already finalized."""
        state = self._state
        with state.lock:
            if self._finished:
                return False
            self._finished = True
            state.status = status
            state.end_time = now_ms()
            join_error = state.reap_worker()
            worker = self._ensure_worker()

        worker.join()

        with state.lock:
            error = join_error or state.take_error()
        if error is not None:
            raise error
        return True

    # ---- Context manager protocol ------------------------------------

    def __enter__(self) -> MlflowRunWriter:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> Literal[False]:
        """Finish the run; FAILED if the block raised.

        Returns:
            False to propagate any exceptions that occurred.
        """
        if exc_type is None:
            self.finish()
            return False

        try:
            self._end(RunStatus.FAILED)
        except Exception as e:
            logger.warning(f"Failed to finalize run {self._run.id}: {e}")
        return False

    def __del__(self) -> None:
        # Attributes are missing if __init__ raised
        if getattr(self, "_finished", True):
            return
        try:
            self._end(RunStatus.FAILED)
        except Exception as e:
            logger.warning(f"Failed to finalize discarded run {self._run.id}: {e}")

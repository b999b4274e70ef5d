"""Synchronous handle on a single run."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any

from mlflow_client.client import MlflowClient
from mlflow_client.models import DatasetInput, Metric, Param, Run, RunTag, UpdateRunOptions
from mlflow_client.utils import build_params, now_ms, parse_to_ms, validate_metric, validate_step

if TYPE_CHECKING:
    from datetime import datetime

    from mlflow_client.writer import MlflowRunWriter


def _chunks(items: Sequence[Any], size: int) -> Iterable[Sequence[Any]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


class MlflowRun:
    """A run on the tracking server.

    Every method performs its request synchronously and raises on failure.
    For logging the currently executing run, prefer :class:`MlflowRunWriter`
    obtained from ``MlflowExperiment.start_run``.
    """

    def __init__(self, client: MlflowClient, data: Run) -> None:
        self.client = client
        self._data = data

    def __repr__(self) -> str:
        return f"MlflowRun(id={self.id!r}, name={self.name!r})"

    @property
    def id(self) -> str:
        return self._data.info.run_id

    @property
    def name(self) -> str:
        return self._data.info.run_name

    @property
    def data(self) -> Run:
        """Snapshot of the run as of creation or the last ``reload``."""
        return self._data

    def reload(self) -> MlflowRun:
        """Fetch the current state of this run."""
        return MlflowRun(self.client, self.client.get_run(self.id).run)

    def update(self, options: UpdateRunOptions) -> None:
        self.client.update_run(self.id, options)

    def delete(self) -> None:
        self.client.delete_run(self.id)

    def restore(self) -> None:
        self.client.restore_run(self.id)

    def set_tag(self, key: str, value: str) -> None:
        self.client.set_tag(self.id, key, value)

    def delete_tag(self, key: str) -> None:
        self.client.delete_tag(self.id, key)

    def log_param(self, key: str, value: str) -> None:
        self.client.log_param(self.id, key, value)

    def log_params(self, key: str, values: Any) -> None:
        """Log structured hyperparameters as flattened params.

        Args:
            key: Prefix for the param names ("" for none)
            values: Mapping, pydantic model or dataclass

        Raises:
            ValueError: If values contain lists or unsupported types

        Examples:
            >>> run.log_params("", {"param_a": 1.0, "opt": {"lr": 0.01}})
            # logs "param_a" = "1.0" and "opt.lr" = "0.01"
        """
        self.log_batch(params=build_params(key, values))

    def log_metric(self, key: str, value: float, timestamp: int | datetime | str, step: int | None = None) -> None:
        value = validate_metric(key, value)
        self.client.log_metric(self.id, key, value, parse_to_ms(timestamp), validate_step(step))

    def log_metrics(self, metrics: Iterable[tuple[str, float]], step: int | None = None) -> None:
        """Log several metrics sharing the current timestamp and ``step``."""
        timestamp = now_ms()
        step = validate_step(step)
        batch = [Metric(key=key, value=validate_metric(key, value), timestamp=timestamp, step=step) for key, value in metrics]
        self.log_batch(metrics=batch)

    def log_batch(
        self,
        metrics: Sequence[Metric] = (),
        params: Sequence[Param] = (),
        tags: Sequence[RunTag] = (),
    ) -> None:
        """Log metrics, params and tags, splitting batches over the server limits.

        A batch within every limit is sent as one request. Otherwise metrics,
        params and tags are sent as separate chunks in that order; the first
        failing chunk raises and the rest are not sent.
        """
        total = len(metrics) + len(params) + len(tags)
        if total == 0:
            return

        if (
            total <= MlflowClient.LOG_BATCH_MAX_TOTAL
            and len(metrics) <= MlflowClient.LOG_BATCH_MAX_METRICS
            and len(params) <= MlflowClient.LOG_BATCH_MAX_PARAMS
            and len(tags) <= MlflowClient.LOG_BATCH_MAX_TAGS
        ):
            self.client.log_batch(self.id, metrics, params, tags)
            return

        for chunk in _chunks(metrics, MlflowClient.LOG_BATCH_MAX_METRICS):
            self.client.log_batch(self.id, metrics=chunk)
        for chunk in _chunks(params, MlflowClient.LOG_BATCH_MAX_PARAMS):
            self.client.log_batch(self.id, params=chunk)
        for chunk in _chunks(tags, MlflowClient.LOG_BATCH_MAX_TAGS):
            self.client.log_batch(self.id, tags=chunk)

    def log_inputs(self, datasets: Sequence[DatasetInput]) -> None:
        self.client.log_inputs(self.id, datasets)

    def metric_history(self, key: str) -> list[Metric]:
        """Return every logged value of metric ``key``, following pagination."""
        results: list[Metric] = []
        page_token: str | None = None
        while True:
            response = self.client.get_metric_history(self.id, key, page_token=page_token)
            results.extend(response.metrics)
            page_token = response.next_page_token
            if page_token is None:
                break
        return results

    def writer(self) -> MlflowRunWriter:
        """Wrap this run in a buffered asynchronous writer."""
        from mlflow_client.writer import MlflowRunWriter

        return MlflowRunWriter(self)

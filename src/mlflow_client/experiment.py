"""Handle on a single experiment and the runs inside it."""

from __future__ import annotations

from typing import TYPE_CHECKING

from mlflow_client.client import MlflowClient
from mlflow_client.exceptions import ApiError
from mlflow_client.logger import logger
from mlflow_client.models import CreateRunOptions, Experiment, SearchRunsOptions
from mlflow_client.run import MlflowRun
from mlflow_client.utils import now_ms

if TYPE_CHECKING:
    from mlflow_client.writer import MlflowRunWriter


class MlflowExperiment:
    """An experiment on the tracking server."""

    def __init__(self, client: MlflowClient, data: Experiment) -> None:
        self.client = client
        self._data = data

    def __repr__(self) -> str:
        return f"MlflowExperiment(id={self.id!r}, name={self.name!r})"

    @property
    def id(self) -> str:
        return self._data.experiment_id

    @property
    def name(self) -> str:
        return self._data.name

    @property
    def data(self) -> Experiment:
        return self._data

    def reload(self) -> MlflowExperiment:
        return MlflowExperiment(self.client, self.client.get_experiment(self.id).experiment)

    def delete(self) -> None:
        self.client.delete_experiment(self.id)

    def restore(self) -> None:
        self.client.restore_experiment(self.id)

    def update(self, new_name: str) -> None:
        self.client.update_experiment(self.id, new_name)

    def set_tag(self, key: str, value: str) -> None:
        self.client.set_experiment_tag(self.id, key, value)

    def runs(self) -> list[MlflowRun]:
        """Get all active runs in this experiment."""
        return self.runs_with(SearchRunsOptions())

    def runs_with(self, options: SearchRunsOptions) -> list[MlflowRun]:
        """Get all runs in this experiment that match ``options``."""
        results: list[MlflowRun] = []
        page_token: str | None = None
        while True:
            response = self.client.search_runs([self.id], options, page_token=page_token)
            results.extend(MlflowRun(self.client, run) for run in response.runs)
            page_token = response.next_page_token
            if page_token is None:
                break
        return results

    def run(self, run_id: str) -> MlflowRun | None:
        """Get a run by its ID, or None if it does not exist."""
        try:
            response = self.client.get_run(run_id)
        except ApiError as e:
            if e.is_resource_does_not_exist():
                return None
            raise
        return MlflowRun(self.client, response.run)

    def create_run(self, name: str, options: CreateRunOptions | None = None) -> MlflowRun:
        """Create a new run.

        Use ``start_run`` instead to log the currently executing run; the
        returned writer buffers metrics and finalizes the run status.
        """
        response = self.client.create_run(self.id, name, options)
        return MlflowRun(self.client, response.run)

    def start_run(self, name: str) -> MlflowRunWriter:
        """Create a run with default settings and return its writer."""
        return self.start_run_with(name, CreateRunOptions())

    def start_run_with(self, name: str, options: CreateRunOptions) -> MlflowRunWriter:
        """Create a run with ``options`` and return its writer.

        ``options.start_time`` defaults to the current time.
        """
        if options.start_time is None:
            options = options.model_copy(update={"start_time": now_ms()})
        run = self.create_run(name, options)
        logger.info(f"Run {run.name} ({run.id}) started in experiment {self.name}")
        return run.writer()

"""Entry point: experiments on a tracking server."""

from __future__ import annotations

from collections.abc import Callable

from mlflow_client.client import MlflowClient
from mlflow_client.exceptions import ApiError
from mlflow_client.experiment import MlflowExperiment
from mlflow_client.models import CreateExperimentOptions, SearchExperimentsOptions
from mlflow_client.models.responses import GetExperimentResponse


class Mlflow:
    """Connection to an MLflow tracking server.

    Examples:
        >>> from mlflow_client import Mlflow
        >>> mlflow = Mlflow("http://localhost:5000")
        >>> experiment = mlflow.create_experiment_if_not_exists("experiment_name")
        >>> run = experiment.start_run("run_name")
        >>> run.log_metric("loss", 0.5, step=0)
        >>> run.finish()
    """

    def __init__(self, uri: str | None = None) -> None:
        """Create a connection.

        Args:
            uri: Tracking server URI. Defaults to MLFLOW_TRACKING_URI or
                http://localhost:5000.
        """
        self.client = MlflowClient(uri)

    def __repr__(self) -> str:
        return f"Mlflow(uri={self.client.uri!r})"

    def experiments(self) -> list[MlflowExperiment]:
        """Get all active experiments."""
        return self.experiments_with(SearchExperimentsOptions())

    def experiments_with(self, options: SearchExperimentsOptions) -> list[MlflowExperiment]:
        """Get all experiments that match ``options``."""
        results: list[MlflowExperiment] = []
        page_token: str | None = None
        while True:
            response = self.client.search_experiments(options, page_token=page_token)
            results.extend(MlflowExperiment(self.client, e) for e in response.experiments)
            page_token = response.next_page_token
            if page_token is None:
                break
        return results

    def _experiment_or_none(self, fetch: Callable[[str], GetExperimentResponse], key: str) -> MlflowExperiment | None:
        try:
            response = fetch(key)
        except ApiError as e:
            if e.is_resource_does_not_exist():
                return None
            raise
        return MlflowExperiment(self.client, response.experiment)

    def experiment(self, experiment_id: str) -> MlflowExperiment | None:
        """Get an experiment by ID, or None if it does not exist."""
        return self._experiment_or_none(self.client.get_experiment, experiment_id)

    def experiment_by_name(self, name: str) -> MlflowExperiment | None:
        """Get an experiment by name, or None if it does not exist."""
        return self._experiment_or_none(self.client.get_experiment_by_name, name)

    def create_experiment(self, name: str, options: CreateExperimentOptions | None = None) -> MlflowExperiment:
        """Create an experiment and return it as stored by the server."""
        created = self.client.create_experiment(name, options)
        response = self.client.get_experiment(created.experiment_id)
        return MlflowExperiment(self.client, response.experiment)

    def create_experiment_if_not_exists(self, name: str, options: CreateExperimentOptions | None = None) -> MlflowExperiment:
        """Return the experiment called ``name``, creating it if needed."""
        experiment = self.experiment_by_name(name)
        if experiment is not None:
            return experiment
        return self.create_experiment(name, options)

"""
mlflow_client - Typed client for the MLflow tracking REST API.

Metrics logged through a run writer are sent by a background thread, so the
training loop never waits on the tracking server.

Examples:
    >>> from mlflow_client import Mlflow
    >>> mlflow = Mlflow("http://localhost:5000")
    >>> experiment = mlflow.create_experiment_if_not_exists("experiment_name")
    >>> run = experiment.start_run("run_name")
    >>> run.log_params("", {"param_a": 1.0, "param_b": 2.0})
    >>> for epoch in range(100):
    ...     run.log_metric("loss", 0.5, step=epoch)
    >>> run.finish()
"""

from mlflow_client.client import MlflowClient
from mlflow_client.exceptions import ApiError, MlflowError, WorkerJoinError
from mlflow_client.experiment import MlflowExperiment
from mlflow_client.mlflow import Mlflow
from mlflow_client.models import RunStatus, ViewType
from mlflow_client.run import MlflowRun
from mlflow_client.writer import MlflowRunWriter

__version__ = "0.1.0"
__all__ = [
    "ApiError",
    "Mlflow",
    "MlflowClient",
    "MlflowError",
    "MlflowExperiment",
    "MlflowRun",
    "MlflowRunWriter",
    "RunStatus",
    "ViewType",
    "WorkerJoinError",
]

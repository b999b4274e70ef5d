"""
mlflow_client data models package.

This package contains the REST entities, enumerations, request options and
response bodies shared by the client, the façades and the run writer.
"""

from mlflow_client.models.entities import (
    Dataset,
    DatasetInput,
    Experiment,
    Run,
    RunData,
    RunInfo,
    RunInputs,
)
from mlflow_client.models.options import (
    CreateExperimentOptions,
    CreateRunOptions,
    SearchExperimentsOptions,
    SearchRunsOptions,
    UpdateRunOptions,
)
from mlflow_client.models.record import ExperimentTag, InputTag, Metric, Param, RunTag
from mlflow_client.models.status import RunStatus, ViewType

__all__ = [
    "CreateExperimentOptions",
    "CreateRunOptions",
    "Dataset",
    "DatasetInput",
    "Experiment",
    "ExperimentTag",
    "InputTag",
    "Metric",
    "Param",
    "Run",
    "RunData",
    "RunInfo",
    "RunInputs",
    "RunStatus",
    "RunTag",
    "SearchExperimentsOptions",
    "SearchRunsOptions",
    "UpdateRunOptions",
    "ViewType",
]

"""Run and experiment entities as returned by the tracking server."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from mlflow_client.models.record import ExperimentTag, InputTag, Metric, Param, RunTag
from mlflow_client.models.status import RunStatus


class RunInfo(BaseModel):
    """Metadata of a run."""

    run_id: str
    run_name: str = ""
    experiment_id: str
    status: RunStatus
    start_time: int
    end_time: int | None = None
    artifact_uri: str = ""
    lifecycle_stage: str


class RunData(BaseModel):
    """Metrics, params and tags logged against a run.

    ``metrics`` only holds the latest value of each key; use the metric
    history endpoint for every observation.
    """

    metrics: list[Metric] = Field(default_factory=list)
    params: list[Param] = Field(default_factory=list)
    tags: list[RunTag] = Field(default_factory=list)


class Dataset(BaseModel):
    """A dataset used as run input."""

    name: str
    digest: str
    source_type: str
    source: str
    schema_: str | None = Field(default=None, alias="schema")
    profile: str | None = None

    model_config = ConfigDict(populate_by_name=True)


class DatasetInput(BaseModel):
    """A dataset together with the tags describing how a run used it."""

    tags: list[InputTag] = Field(default_factory=list)
    dataset: Dataset


class RunInputs(BaseModel):
    """Inputs of a run."""

    dataset_inputs: list[DatasetInput] = Field(default_factory=list)


class Run(BaseModel):
    """A single tracked execution."""

    info: RunInfo
    data: RunData = Field(default_factory=RunData)
    inputs: RunInputs = Field(default_factory=RunInputs)


class Experiment(BaseModel):
    """A named grouping of runs."""

    experiment_id: str
    name: str
    artifact_location: str = ""
    lifecycle_stage: str
    last_update_time: int | None = None
    creation_time: int | None = None
    tags: list[ExperimentTag] = Field(default_factory=list)

"""Response bodies of the REST endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from mlflow_client.models.entities import Experiment, Run, RunInfo
from mlflow_client.models.record import Metric


class _PagedResponse(BaseModel):
    next_page_token: str | None = None

    @field_validator("next_page_token")
    @classmethod
    def _empty_token_is_none(cls, value: str | None) -> str | None:
        return value or None


class CreateExperimentResponse(BaseModel):
    experiment_id: str


class SearchExperimentsResponse(_PagedResponse):
    experiments: list[Experiment] = Field(default_factory=list)


class GetExperimentResponse(BaseModel):
    experiment: Experiment


class GetRunResponse(BaseModel):
    run: Run


class GetMetricHistoryResponse(_PagedResponse):
    metrics: list[Metric] = Field(default_factory=list)


class SearchRunsResponse(_PagedResponse):
    runs: list[Run] = Field(default_factory=list)


class UpdateRunResponse(BaseModel):
    run_info: RunInfo


class ErrorResponse(BaseModel):
    error_code: str
    message: str = ""

"""Optional request fields of the REST endpoints.

Each options model renders into the JSON body via ``to_body``; fields left
as ``None`` are omitted so the server applies its own defaults.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from mlflow_client.models.record import ExperimentTag, RunTag
from mlflow_client.models.status import RunStatus, ViewType


class _RequestOptions(BaseModel):
    def to_body(self) -> dict[str, Any]:
        """Render the options as request body fields."""
        return self.model_dump(mode="json", exclude_none=True)


class CreateExperimentOptions(_RequestOptions):
    artifact_location: str | None = None
    tags: list[ExperimentTag] = Field(default_factory=list)


class SearchExperimentsOptions(_RequestOptions):
    filter: str = ""
    order_by: list[str] = Field(default_factory=list)
    view_type: ViewType = ViewType.ACTIVE_ONLY


class CreateRunOptions(_RequestOptions):
    start_time: int | None = Field(default=None, description="Unix timestamp in milliseconds")
    tags: list[RunTag] = Field(default_factory=list)


class SearchRunsOptions(_RequestOptions):
    filter: str = ""
    run_view_type: ViewType = ViewType.ACTIVE_ONLY
    order_by: list[str] = Field(default_factory=list)


class UpdateRunOptions(_RequestOptions):
    status: RunStatus | None = None
    end_time: int | None = Field(default=None, description="Unix timestamp in milliseconds")
    run_name: str | None = None

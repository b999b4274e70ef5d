"""HTTP client for the MLflow tracking REST API.

Each method maps onto one endpoint of ``/api/2.0/mlflow/`` and returns the
decoded response model. See https://mlflow.org/docs/latest/rest-api.html.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any
from urllib.parse import urljoin

import requests
from pydantic import ValidationError

from mlflow_client.config import get_settings
from mlflow_client.exceptions import ApiError
from mlflow_client.logger import logger
from mlflow_client.models import (
    CreateExperimentOptions,
    CreateRunOptions,
    DatasetInput,
    Metric,
    Param,
    RunTag,
    SearchExperimentsOptions,
    SearchRunsOptions,
    UpdateRunOptions,
)
from mlflow_client.models.responses import (
    CreateExperimentResponse,
    ErrorResponse,
    GetExperimentResponse,
    GetMetricHistoryResponse,
    GetRunResponse,
    SearchExperimentsResponse,
    SearchRunsResponse,
    UpdateRunResponse,
)

_API_PREFIX = "/api/2.0/mlflow/"


def _encode_float(value: float) -> float | str:
    # JSON has no NaN or Infinity literals; the server expects the protobuf spelling
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    return value


def _metric_body(metric: Metric) -> dict[str, Any]:
    body = metric.model_dump(exclude_none=True)
    body["value"] = _encode_float(metric.value)
    return body


class MlflowClient:
    """Thin typed wrapper over the tracking server's REST endpoints."""

    SEARCH_EXPERIMENTS_MAX_RESULTS_SUPPORTED = 1000
    SEARCH_RUNS_MAX_RESULTS_SUPPORTED = 50000
    GET_METRIC_HISTORY_MAX_RESULTS = 1000

    LOG_BATCH_MAX_TOTAL = 1000
    LOG_BATCH_MAX_METRICS = 1000
    LOG_BATCH_MAX_PARAMS = 100
    LOG_BATCH_MAX_TAGS = 100

    def __init__(self, uri: str | None = None, timeout: float | None = None) -> None:
        """Initialize the client.

        Args:
            uri: Base URI of the tracking server (e.g., "http://localhost:5000").
                Defaults to MLFLOW_TRACKING_URI.
            timeout: Request timeout in seconds. Defaults to MLFLOW_HTTP_REQUEST_TIMEOUT.

        Raises:
            ValueError: If the URI is not an http(s) URL
        """
        settings = get_settings()
        uri = uri or settings.tracking_uri
        if not uri.startswith(("http://", "https://")):
            raise ValueError(f"Tracking URI must be an http(s) URL: {uri}")

        self.uri = uri.rstrip("/")
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.session = requests.Session()

    def __repr__(self) -> str:
        return f"MlflowClient(uri={self.uri!r})"

    # ---- Transport ---------------------------------------------------

    def url(self, path: str) -> str:
        """Build the endpoint URL for ``path`` (e.g., "runs/get")."""
        return urljoin(urljoin(self.uri + "/", _API_PREFIX), path)

    def request(
        self,
        method: str,
        path: str,
        query: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Any:
        """Send one request and decode its JSON response.

        Args:
            method: HTTP method ("GET" or "POST")
            path: Endpoint path relative to the API prefix
            query: Optional query string parameters
            body: Optional JSON body

        Returns:
            Decoded JSON body of a successful response.

        Raises:
            ApiError: If the server answers with an MLflow error body
            requests.HTTPError: If the server answers with any other error
            requests.RequestException: If the request could not be sent
        """
        response = self.session.request(
            method,
            self.url(path),
            params=query,
            json=body,
            timeout=self.timeout,
        )
        if response.ok:
            return response.json() if response.content else {}

        try:
            error = ErrorResponse.model_validate(response.json())
        except (ValueError, ValidationError):
            # Not an MLflow error body (e.g., a proxy error page)
            logger.debug(f"{method} {path} failed with status {response.status_code}")
            response.raise_for_status()
        raise ApiError(error.error_code, error.message)

    def _post(self, path: str, body: dict[str, Any]) -> Any:
        return self.request("POST", path, body=body)

    def _get(self, path: str, query: dict[str, Any]) -> Any:
        return self.request("GET", path, query=query)

    # ---- Experiments -------------------------------------------------

    def create_experiment(self, name: str, options: CreateExperimentOptions | None = None) -> CreateExperimentResponse:
        """https://mlflow.org/docs/latest/rest-api.html#create-experiment"""
        body = {"name": name, **(options or CreateExperimentOptions()).to_body()}
        return CreateExperimentResponse.model_validate(self._post("experiments/create", body))

    def search_experiments(
        self,
        options: SearchExperimentsOptions | None = None,
        max_results: int = SEARCH_EXPERIMENTS_MAX_RESULTS_SUPPORTED,
        page_token: str | None = None,
    ) -> SearchExperimentsResponse:
        """https://mlflow.org/docs/latest/rest-api.html#search-experiments"""
        body = {
            "max_results": max_results,
            "page_token": page_token,
            **(options or SearchExperimentsOptions()).to_body(),
        }
        return SearchExperimentsResponse.model_validate(self._post("experiments/search", body))

    def get_experiment(self, experiment_id: str) -> GetExperimentResponse:
        """https://mlflow.org/docs/latest/rest-api.html#get-experiment"""
        return GetExperimentResponse.model_validate(self._get("experiments/get", {"experiment_id": experiment_id}))

    def get_experiment_by_name(self, experiment_name: str) -> GetExperimentResponse:
        """https://mlflow.org/docs/latest/rest-api.html#get-experiment-by-name"""
        return GetExperimentResponse.model_validate(self._get("experiments/get-by-name", {"experiment_name": experiment_name}))

    def delete_experiment(self, experiment_id: str) -> None:
        """https://mlflow.org/docs/latest/rest-api.html#delete-experiment"""
        self._post("experiments/delete", {"experiment_id": experiment_id})

    def restore_experiment(self, experiment_id: str) -> None:
        """https://mlflow.org/docs/latest/rest-api.html#restore-experiment"""
        self._post("experiments/restore", {"experiment_id": experiment_id})

    def update_experiment(self, experiment_id: str, new_name: str) -> None:
        """https://mlflow.org/docs/latest/rest-api.html#update-experiment"""
        self._post("experiments/update", {"experiment_id": experiment_id, "new_name": new_name})

    def set_experiment_tag(self, experiment_id: str, key: str, value: str) -> None:
        """https://mlflow.org/docs/latest/rest-api.html#set-experiment-tag"""
        self._post("experiments/set-experiment-tag", {"experiment_id": experiment_id, "key": key, "value": value})

    # ---- Runs --------------------------------------------------------

    def create_run(self, experiment_id: str, run_name: str, options: CreateRunOptions | None = None) -> GetRunResponse:
        """https://mlflow.org/docs/latest/rest-api.html#create-run"""
        body = {
            "experiment_id": experiment_id,
            "run_name": run_name,
            **(options or CreateRunOptions()).to_body(),
        }
        return GetRunResponse.model_validate(self._post("runs/create", body))

    def delete_run(self, run_id: str) -> None:
        """https://mlflow.org/docs/latest/rest-api.html#delete-run"""
        self._post("runs/delete", {"run_id": run_id})

    def restore_run(self, run_id: str) -> None:
        """https://mlflow.org/docs/latest/rest-api.html#restore-run"""
        self._post("runs/restore", {"run_id": run_id})

    def get_run(self, run_id: str) -> GetRunResponse:
        """https://mlflow.org/docs/latest/rest-api.html#get-run"""
        return GetRunResponse.model_validate(self._get("runs/get", {"run_id": run_id}))

    def update_run(self, run_id: str, options: UpdateRunOptions) -> UpdateRunResponse:
        """https://mlflow.org/docs/latest/rest-api.html#update-run"""
        body = {"run_id": run_id, **options.to_body()}
        return UpdateRunResponse.model_validate(self._post("runs/update", body))

    def search_runs(
        self,
        experiment_ids: Sequence[str],
        options: SearchRunsOptions | None = None,
        max_results: int = SEARCH_RUNS_MAX_RESULTS_SUPPORTED,
        page_token: str | None = None,
    ) -> SearchRunsResponse:
        """https://mlflow.org/docs/latest/rest-api.html#search-runs"""
        body = {
            "experiment_ids": list(experiment_ids),
            "max_results": max_results,
            "page_token": page_token,
            **(options or SearchRunsOptions()).to_body(),
        }
        return SearchRunsResponse.model_validate(self._post("runs/search", body))

    # ---- Logging -----------------------------------------------------

    def log_metric(self, run_id: str, key: str, value: float, timestamp: int, step: int | None = None) -> None:
        """https://mlflow.org/docs/latest/rest-api.html#log-metric"""
        body: dict[str, Any] = {"run_id": run_id, "key": key, "value": _encode_float(value), "timestamp": timestamp}
        if step is not None:
            body["step"] = step
        self._post("runs/log-metric", body)

    def log_batch(
        self,
        run_id: str,
        metrics: Sequence[Metric] = (),
        params: Sequence[Param] = (),
        tags: Sequence[RunTag] = (),
    ) -> None:
        """https://mlflow.org/docs/latest/rest-api.html#log-batch

        Size limits are not checked here; ``MlflowRun.log_batch`` splits
        oversized batches before calling this.
        """
        self._post(
            "runs/log-batch",
            {
                "run_id": run_id,
                "metrics": [_metric_body(m) for m in metrics],
                "params": [p.model_dump() for p in params],
                "tags": [t.model_dump() for t in tags],
            },
        )

    def log_inputs(self, run_id: str, datasets: Sequence[DatasetInput]) -> None:
        """https://mlflow.org/docs/latest/rest-api.html#log-inputs"""
        self._post(
            "runs/log-inputs",
            {
                "run_id": run_id,
                "datasets": [d.model_dump(mode="json", by_alias=True, exclude_none=True) for d in datasets],
            },
        )

    def set_tag(self, run_id: str, key: str, value: str) -> None:
        """https://mlflow.org/docs/latest/rest-api.html#set-tag"""
        self._post("runs/set-tag", {"run_id": run_id, "key": key, "value": value})

    def delete_tag(self, run_id: str, key: str) -> None:
        """https://mlflow.org/docs/latest/rest-api.html#delete-tag"""
        self._post("runs/delete-tag", {"run_id": run_id, "key": key})

    def log_param(self, run_id: str, key: str, value: str) -> None:
        """https://mlflow.org/docs/latest/rest-api.html#log-param"""
        self._post("runs/log-parameter", {"run_id": run_id, "key": key, "value": value})

    def get_metric_history(
        self,
        run_id: str,
        metric_key: str,
        max_results: int = GET_METRIC_HISTORY_MAX_RESULTS,
        page_token: str | None = None,
    ) -> GetMetricHistoryResponse:
        """https://mlflow.org/docs/latest/rest-api.html#get-metric-history"""
        query: dict[str, Any] = {
            "run_id": run_id,
            "metric_key": metric_key,
            "max_results": max_results,
        }
        if page_token:
            query["page_token"] = page_token
        return GetMetricHistoryResponse.model_validate(self._get("metrics/get-history", query))

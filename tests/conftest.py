"""
Pytest configuration and shared fixtures.

``FakeTrackingServer`` is an in-memory stand-in for an MLflow tracking
server. It replaces ``requests.Session`` inside ``mlflow_client.client`` so
every request made by the library is answered without network access.
"""

from __future__ import annotations

import threading
import time
import uuid
from typing import Any

import pytest
import requests

from mlflow_client.config import reset_settings

_API_PREFIX = "/api/2.0/mlflow/"


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class FakeApiError(Exception):
    def __init__(self, status_code: int, error_code: str, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.message = message


def _not_found(message: str) -> FakeApiError:
    return FakeApiError(404, "RESOURCE_DOES_NOT_EXIST", message)


class FakeResponse:
    """Subset of ``requests.Response`` used by the client."""

    def __init__(self, status_code: int, body: Any, url: str) -> None:
        self.status_code = status_code
        self._body = body
        self.url = url
        self.content = b"" if body is None else b"{...}"

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self) -> Any:
        return self._body

    def raise_for_status(self) -> None:
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} Error for url: {self.url}", response=self)


class FakeSession:
    """Subset of ``requests.Session`` routed to a FakeTrackingServer."""

    def __init__(self, server: FakeTrackingServer) -> None:
        self.server = server
        self.headers: dict[str, str] = {}

    def request(self, method: str, url: str, params: dict | None = None, json: dict | None = None, timeout: float | None = None) -> FakeResponse:
        path = url.split(_API_PREFIX, 1)[1]
        return self.server.handle(method, path, params or {}, json or {}, url)


class FakeTrackingServer:
    """In-memory tracking server implementing the endpoints used by mlflow_client."""

    LOG_BATCH_MAX_TOTAL = 1000
    LOG_BATCH_MAX_METRICS = 1000
    LOG_BATCH_MAX_PARAMS = 100
    LOG_BATCH_MAX_TAGS = 100

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.experiments: dict[str, dict[str, Any]] = {}
        self.runs: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self._failures: dict[str, list[FakeApiError]] = {}
        self._next_experiment_id = 0
        self._inflight_batches: dict[str, int] = {}
        self.max_inflight_batches = 0
        self.batch_delay = 0.0
        self.batch_gate: threading.Event | None = None
        self._create_experiment("Default", None, [])

    # ---- Test controls -----------------------------------------------

    def session(self) -> FakeSession:
        return FakeSession(self)

    def fail(self, path: str, error_code: str = "INTERNAL_ERROR", message: str = "injected failure", times: int = 1, status_code: int = 500) -> None:
        """Make the next ``times`` requests to ``path`` fail with an MLflow error body."""
        with self._lock:
            self._failures.setdefault(path, []).extend(FakeApiError(status_code, error_code, message) for _ in range(times))

    def calls_to(self, path: str) -> list[dict[str, Any]]:
        with self._lock:
            return [payload for _, p, payload in self.calls if p == path]

    def history(self, run_id: str, key: str) -> list[dict[str, Any]]:
        with self._lock:
            return list(self.runs[run_id]["history"].get(key, []))

    def run_info(self, run_id: str) -> dict[str, Any]:
        with self._lock:
            return dict(self.runs[run_id]["info"])

    # ---- Dispatch ----------------------------------------------------

    def handle(self, method: str, path: str, query: dict[str, Any], body: dict[str, Any], url: str) -> FakeResponse:
        payload = query if method == "GET" else body
        with self._lock:
            self.calls.append((method, path, dict(payload)))
            pending = self._failures.get(path)
            injected = pending.pop(0) if pending else None

        if injected is not None:
            if path == "runs/log-batch" and self.batch_gate is not None:
                self.batch_gate.wait(timeout=10)
            return FakeResponse(injected.status_code, {"error_code": injected.error_code, "message": injected.message}, url)

        handler = self._routes().get((method, path))
        if handler is None:
            return FakeResponse(404, {"error_code": "ENDPOINT_NOT_FOUND", "message": f"No handler for {method} {path}"}, url)
        try:
            return FakeResponse(200, handler(payload), url)
        except FakeApiError as e:
            return FakeResponse(e.status_code, {"error_code": e.error_code, "message": e.message}, url)

    def _routes(self) -> dict[tuple[str, str], Any]:
        return {
            ("POST", "experiments/create"): self._h_create_experiment,
            ("POST", "experiments/search"): self._h_search_experiments,
            ("GET", "experiments/get"): self._h_get_experiment,
            ("GET", "experiments/get-by-name"): self._h_get_experiment_by_name,
            ("POST", "experiments/delete"): self._h_set_experiment_stage("deleted"),
            ("POST", "experiments/restore"): self._h_set_experiment_stage("active"),
            ("POST", "experiments/update"): self._h_update_experiment,
            ("POST", "experiments/set-experiment-tag"): self._h_set_experiment_tag,
            ("POST", "runs/create"): self._h_create_run,
            ("GET", "runs/get"): self._h_get_run,
            ("POST", "runs/delete"): self._h_set_run_stage("deleted"),
            ("POST", "runs/restore"): self._h_set_run_stage("active"),
            ("POST", "runs/update"): self._h_update_run,
            ("POST", "runs/search"): self._h_search_runs,
            ("POST", "runs/log-metric"): self._h_log_metric,
            ("POST", "runs/log-batch"): self._h_log_batch,
            ("POST", "runs/log-parameter"): self._h_log_param,
            ("POST", "runs/set-tag"): self._h_set_tag,
            ("POST", "runs/delete-tag"): self._h_delete_tag,
            ("POST", "runs/log-inputs"): self._h_log_inputs,
            ("GET", "metrics/get-history"): self._h_get_metric_history,
        }

    # ---- Helpers -----------------------------------------------------

    @staticmethod
    def _page(items: list[Any], max_results: Any, page_token: str | None) -> tuple[list[Any], str | None]:
        start = int(page_token) if page_token else 0
        end = start + int(max_results)
        next_token = str(end) if end < len(items) else None
        return items[start:end], next_token

    @staticmethod
    def _matches_view(lifecycle_stage: str, view_type: str) -> bool:
        if view_type == "ALL":
            return True
        if view_type == "DELETED_ONLY":
            return lifecycle_stage == "deleted"
        return lifecycle_stage == "active"

    def _create_experiment(self, name: str, artifact_location: str | None, tags: list[dict[str, str]]) -> str:
        experiment_id = str(self._next_experiment_id)
        self._next_experiment_id += 1
        now = _now_ms()
        self.experiments[experiment_id] = {
            "experiment_id": experiment_id,
            "name": name,
            "artifact_location": artifact_location or f"mlflow-artifacts:/{experiment_id}",
            "lifecycle_stage": "active",
            "last_update_time": now,
            "creation_time": now,
            "tags": list(tags),
        }
        return experiment_id

    def _experiment(self, experiment_id: str) -> dict[str, Any]:
        experiment = self.experiments.get(experiment_id)
        if experiment is None:
            raise _not_found(f"No Experiment with id={experiment_id} exists")
        return experiment

    def _run(self, run_id: str) -> dict[str, Any]:
        run = self.runs.get(run_id)
        if run is None:
            raise _not_found(f"Run '{run_id}' not found")
        return run

    @staticmethod
    def _run_view(run: dict[str, Any]) -> dict[str, Any]:
        return {
            "info": dict(run["info"]),
            "data": {
                "metrics": [history[-1] for history in run["history"].values() if history],
                "params": [{"key": k, "value": v} for k, v in run["params"].items()],
                "tags": [{"key": k, "value": v} for k, v in run["tags"].items()],
            },
            "inputs": {"dataset_inputs": list(run["inputs"])},
        }

    @staticmethod
    def _upsert_tag(tags: list[dict[str, str]], key: str, value: str) -> None:
        for tag in tags:
            if tag["key"] == key:
                tag["value"] = value
                return
        tags.append({"key": key, "value": value})

    # ---- Experiment handlers -----------------------------------------

    def _h_create_experiment(self, body: dict[str, Any]) -> dict[str, Any]:
        with self._lock:
            if any(e["name"] == body["name"] for e in self.experiments.values()):
                raise FakeApiError(400, "RESOURCE_ALREADY_EXISTS", f"Experiment '{body['name']}' already exists.")
            experiment_id = self._create_experiment(body["name"], body.get("artifact_location"), body.get("tags", []))
        return {"experiment_id": experiment_id}

    def _h_search_experiments(self, body: dict[str, Any]) -> dict[str, Any]:
        view_type = body.get("view_type", "ACTIVE_ONLY")
        with self._lock:
            matching = [dict(e) for e in self.experiments.values() if self._matches_view(e["lifecycle_stage"], view_type)]
        page, next_token = self._page(matching, body["max_results"], body.get("page_token"))
        response: dict[str, Any] = {"experiments": page}
        if next_token:
            response["next_page_token"] = next_token
        return response

    def _h_get_experiment(self, query: dict[str, Any]) -> dict[str, Any]:
        with self._lock:
            return {"experiment": dict(self._experiment(query["experiment_id"]))}

    def _h_get_experiment_by_name(self, query: dict[str, Any]) -> dict[str, Any]:
        name = query["experiment_name"]
        with self._lock:
            for experiment in self.experiments.values():
                if experiment["name"] == name:
                    return {"experiment": dict(experiment)}
        raise _not_found(f"Could not find experiment with name '{name}'")

    def _h_set_experiment_stage(self, stage: str):
        def handler(body: dict[str, Any]) -> dict[str, Any]:
            with self._lock:
                self._experiment(body["experiment_id"])["lifecycle_stage"] = stage
            return {}

        return handler

    def _h_update_experiment(self, body: dict[str, Any]) -> dict[str, Any]:
        with self._lock:
            self._experiment(body["experiment_id"])["name"] = body["new_name"]
        return {}

    def _h_set_experiment_tag(self, body: dict[str, Any]) -> dict[str, Any]:
        with self._lock:
            self._upsert_tag(self._experiment(body["experiment_id"])["tags"], body["key"], body["value"])
        return {}

    # ---- Run handlers ------------------------------------------------

    def _h_create_run(self, body: dict[str, Any]) -> dict[str, Any]:
        with self._lock:
            experiment = self._experiment(body["experiment_id"])
            run_id = uuid.uuid4().hex
            run = {
                "info": {
                    "run_id": run_id,
                    "run_name": body.get("run_name", ""),
                    "experiment_id": experiment["experiment_id"],
                    "status": "RUNNING",
                    "start_time": body.get("start_time", _now_ms()),
                    "artifact_uri": f"mlflow-artifacts:/{experiment['experiment_id']}/{run_id}/artifacts",
                    "lifecycle_stage": "active",
                },
                "history": {},
                "params": {},
                "tags": {t["key"]: t["value"] for t in body.get("tags", [])},
                "inputs": [],
            }
            self.runs[run_id] = run
            return {"run": self._run_view(run)}

    def _h_get_run(self, query: dict[str, Any]) -> dict[str, Any]:
        with self._lock:
            return {"run": self._run_view(self._run(query["run_id"]))}

    def _h_set_run_stage(self, stage: str):
        def handler(body: dict[str, Any]) -> dict[str, Any]:
            with self._lock:
                self._run(body["run_id"])["info"]["lifecycle_stage"] = stage
            return {}

        return handler

    def _h_update_run(self, body: dict[str, Any]) -> dict[str, Any]:
        with self._lock:
            info = self._run(body["run_id"])["info"]
            for field in ("status", "end_time", "run_name"):
                if field in body:
                    info[field] = body[field]
            return {"run_info": dict(info)}

    def _h_search_runs(self, body: dict[str, Any]) -> dict[str, Any]:
        view_type = body.get("run_view_type", "ACTIVE_ONLY")
        experiment_ids = set(body["experiment_ids"])
        with self._lock:
            matching = [
                self._run_view(run)
                for run in self.runs.values()
                if run["info"]["experiment_id"] in experiment_ids and self._matches_view(run["info"]["lifecycle_stage"], view_type)
            ]
        page, next_token = self._page(matching, body["max_results"], body.get("page_token"))
        response: dict[str, Any] = {"runs": page}
        if next_token:
            response["next_page_token"] = next_token
        return response

    def _append_metric(self, run: dict[str, Any], metric: dict[str, Any]) -> None:
        record = {"key": metric["key"], "value": metric["value"], "timestamp": metric["timestamp"], "step": metric.get("step", 0)}
        run["history"].setdefault(metric["key"], []).append(record)

    def _h_log_metric(self, body: dict[str, Any]) -> dict[str, Any]:
        with self._lock:
            self._append_metric(self._run(body["run_id"]), body)
        return {}

    def _h_log_batch(self, body: dict[str, Any]) -> dict[str, Any]:
        run_id = body["run_id"]
        metrics, params, tags = body.get("metrics", []), body.get("params", []), body.get("tags", [])
        if (
            len(metrics) > self.LOG_BATCH_MAX_METRICS
            or len(params) > self.LOG_BATCH_MAX_PARAMS
            or len(tags) > self.LOG_BATCH_MAX_TAGS
            or len(metrics) + len(params) + len(tags) > self.LOG_BATCH_MAX_TOTAL
        ):
            raise FakeApiError(400, "INVALID_PARAMETER_VALUE", "A batch logging request can contain at most 1000 metrics")

        with self._lock:
            self._run(run_id)
            inflight = self._inflight_batches.get(run_id, 0) + 1
            self._inflight_batches[run_id] = inflight
            self.max_inflight_batches = max(self.max_inflight_batches, inflight)
        try:
            if self.batch_gate is not None:
                self.batch_gate.wait(timeout=10)
            if self.batch_delay:
                time.sleep(self.batch_delay)
            with self._lock:
                run = self._run(run_id)
                for metric in metrics:
                    self._append_metric(run, metric)
                for param in params:
                    run["params"][param["key"]] = param["value"]
                for tag in tags:
                    run["tags"][tag["key"]] = tag["value"]
        finally:
            with self._lock:
                self._inflight_batches[run_id] -= 1
        return {}

    def _h_log_param(self, body: dict[str, Any]) -> dict[str, Any]:
        with self._lock:
            self._run(body["run_id"])["params"][body["key"]] = body["value"]
        return {}

    def _h_set_tag(self, body: dict[str, Any]) -> dict[str, Any]:
        with self._lock:
            self._run(body["run_id"])["tags"][body["key"]] = body["value"]
        return {}

    def _h_delete_tag(self, body: dict[str, Any]) -> dict[str, Any]:
        with self._lock:
            self._run(body["run_id"])["tags"].pop(body["key"], None)
        return {}

    def _h_log_inputs(self, body: dict[str, Any]) -> dict[str, Any]:
        with self._lock:
            self._run(body["run_id"])["inputs"].extend(body.get("datasets", []))
        return {}

    def _h_get_metric_history(self, query: dict[str, Any]) -> dict[str, Any]:
        with self._lock:
            history = list(self._run(query["run_id"])["history"].get(query["metric_key"], []))
        page, next_token = self._page(history, query.get("max_results", 1000), query.get("page_token"))
        response: dict[str, Any] = {"metrics": page}
        if next_token:
            response["next_page_token"] = next_token
        return response


@pytest.fixture(autouse=True)
def clean_env_for_tests(monkeypatch):
    """Clean environment variables for test isolation.

    Ensures settings are re-read from a known environment in every test.
    """
    monkeypatch.delenv("MLFLOW_TRACKING_URI", raising=False)
    monkeypatch.delenv("MLFLOW_HTTP_REQUEST_TIMEOUT", raising=False)
    monkeypatch.delenv("MLFLOW_CLIENT_LOG_LEVEL", raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def fake_server(monkeypatch):
    """Route every client session to a fresh in-memory tracking server."""
    server = FakeTrackingServer()
    monkeypatch.setattr("mlflow_client.client.requests.Session", server.session)
    return server


@pytest.fixture
def mlflow(fake_server):
    from mlflow_client import Mlflow

    return Mlflow("http://127.0.0.1:5000")


@pytest.fixture
def experiment(mlflow):
    return mlflow.create_experiment("abc")

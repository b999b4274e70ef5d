"""Utility modules for mlflow_client."""

from mlflow_client.utils.params import build_params
from mlflow_client.utils.timestamp import now_ms, parse_to_ms
from mlflow_client.utils.validators import validate_metric, validate_step

__all__ = [
    "build_params",
    "now_ms",
    "parse_to_ms",
    "validate_metric",
    "validate_step",
]

"""Flattening of structured hyperparameters into run params."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from mlflow_client.models import Param


def _to_mapping(values: Any) -> Any:
    if isinstance(values, BaseModel):
        return values.model_dump(mode="json")
    if dataclasses.is_dataclass(values) and not isinstance(values, type):
        return dataclasses.asdict(values)
    return values


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_params(key: str, values: Any, params: list[Param] | None = None) -> list[Param]:
    """Flatten ``values`` into params with dotted keys.

    Nested mappings extend the key with ``.`` (no leading dot when ``key`` is
    empty). ``None`` values are skipped.

    Args:
        key: Prefix for every generated key
        values: Mapping, pydantic model, dataclass or scalar
        params: Optional list to append to

    Returns:
        The list of generated params.

    Raises:
        ValueError: If a value is a list or tuple, or of an unsupported type.

    Examples:
        >>> build_params("opt", {"lr": 0.1, "betas": {"b1": 0.9}})
        [Param(key='opt.lr', value='0.1'), Param(key='opt.betas.b1', value='0.9')]
    """
    if params is None:
        params = []

    values = _to_mapping(values)
    if values is None:
        return params
    if isinstance(values, Mapping):
        sep = "." if key else ""
        for k, v in values.items():
            build_params(f"{key}{sep}{k}", v, params)
        return params
    if isinstance(values, (list, tuple)):
        raise ValueError(f"Array not supported: '{key}'")
    if not isinstance(values, (bool, int, float, str)):
        raise ValueError(f"Unsupported param type for '{key}': {type(values)}")
    if not key:
        raise ValueError("Param name cannot be empty")

    params.append(Param(key=key, value=_format_value(values)))
    return params

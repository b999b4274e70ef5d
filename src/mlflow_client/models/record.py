"""
Core records logged against runs and experiments.

``Metric`` is the unit the run writer buffers and flushes; the key/value
records cover params and tags.
"""

from __future__ import annotations

import functools
import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def _float_key(value: float) -> tuple[bool, float]:
    # NaN equals NaN and sorts above every other float
    if math.isnan(value):
        return (True, 0.0)
    return (False, value)


@functools.total_ordering
class Metric(BaseModel):
    """A single metric observation.

    Immutable once created. Equality and ordering compare every field, with
    the value compared as a total order so that NaN values are comparable.
    """

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description="Metric name")
    value: float = Field(..., description="Metric value")
    timestamp: int = Field(..., description="Unix timestamp in milliseconds")
    step: int | None = Field(default=None, description="Step number (optional)")

    def _sort_key(self) -> tuple[Any, ...]:
        return (
            self.key,
            _float_key(self.value),
            self.timestamp,
            (self.step is not None, self.step or 0),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Metric):
            return NotImplemented
        return self._sort_key() == other._sort_key()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Metric):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def __hash__(self) -> int:
        return hash(self._sort_key())


class Param(BaseModel):
    """A run parameter. Values are always strings."""

    key: str
    value: str


class RunTag(BaseModel):
    """A tag attached to a run."""

    key: str
    value: str


class ExperimentTag(BaseModel):
    """A tag attached to an experiment."""

    key: str
    value: str


class InputTag(BaseModel):
    """A tag attached to a dataset input."""

    key: str
    value: str

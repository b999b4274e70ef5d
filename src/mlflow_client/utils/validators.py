"""Validators for values logged by the run writer.

Invalid input is reported synchronously as ValueError, before anything
is queued for the background worker.
"""

from typing import Any

__all__ = ["validate_metric", "validate_step"]


def validate_metric(key: str, value: Any) -> float:
    """Validate a metric name and value.

    Args:
        key: Metric name
        value: Metric value

    Returns:
        The value as float.

    Raises:
        ValueError: If the name is empty or the value is not a number.

    Examples:
        >>> validate_metric("loss", 1)
        1.0
        >>> validate_metric("", 0.5)  # Raises ValueError
    """
    if not key or not isinstance(key, str):
        raise ValueError("Metric name cannot be empty")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Unsupported value type for '{key}': {type(value)}. Currently only int and float are supported.")
    return float(value)


def validate_step(step: Any) -> int | None:
    """Validate an optional step number.

    Raises:
        ValueError: If step is given and is not an int.
    """
    if step is None:
        return None
    if isinstance(step, bool) or not isinstance(step, int):
        raise ValueError(f"Step must be an int, got {type(step)}")
    return step

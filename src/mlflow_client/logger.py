"""Logging configuration for mlflow_client."""

import logging
import sys

from mlflow_client.config import get_settings

# Create logger for mlflow_client
logger = logging.getLogger("mlflow_client")


def setup_logger(level: int | str | None = None) -> None:
    """Setup the mlflow_client logger with default configuration.

    Args:
        level: Logging level. Defaults to MLFLOW_CLIENT_LOG_LEVEL or INFO.
    """
    if logger.handlers:
        # Already configured
        return

    if level is None:
        level = get_settings().log_level

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    formatter = logging.Formatter("mlflow_client: %(message)s")
    handler.setFormatter(formatter)

    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False


# Initialize logger on import
setup_logger()

"""
mlflow_client exceptions module.

Contains exception classes shared by the REST client, the façades and the run writer.
"""

RESOURCE_DOES_NOT_EXIST = "RESOURCE_DOES_NOT_EXIST"


class MlflowError(Exception):
    """Base class for errors raised by mlflow_client."""

    pass


class ApiError(MlflowError):
    """Error response returned by the tracking server."""

    def __init__(self, error_code: str, message: str) -> None:
        super().__init__(f"{error_code} : {message}")
        self.error_code = error_code
        self.message = message

    def is_resource_does_not_exist(self) -> bool:
        """Return True if the server reported a missing experiment or run."""
        return self.error_code == RESOURCE_DOES_NOT_EXIST


class WorkerJoinError(MlflowError):
    """Exception raised when a run writer's background worker terminated abnormally."""

    def __init__(self, message: str = "Task join failed") -> None:
        super().__init__(message)

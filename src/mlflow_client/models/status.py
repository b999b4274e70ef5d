"""
Run status and view type enumerations.

This module provides the lifecycle status of a run and the view type
used to filter searches by lifecycle stage.
"""

from enum import Enum


class RunStatus(str, Enum):
    """Run status enumeration.

    Represents the lifecycle state of a run:
    - RUNNING: Run is in progress
    - SCHEDULED: Run is scheduled to start
    - FINISHED: Run completed successfully
    - FAILED: Run failed
    - KILLED: Run was killed
    """

    RUNNING = "RUNNING"
    SCHEDULED = "SCHEDULED"
    FINISHED = "FINISHED"
    FAILED = "FAILED"
    KILLED = "KILLED"

    @classmethod
    def from_exit_code(cls, exit_code: int) -> "RunStatus":
        """Create a terminal status from a process exit code.

        Args:
            exit_code: Exit code (0 = success, non-zero = error)

        Returns:
            RunStatus: FINISHED for 0, FAILED otherwise
        """
        return cls.FINISHED if exit_code == 0 else cls.FAILED

    @property
    def is_terminal(self) -> bool:
        """Whether the run can no longer change state."""
        return self in (RunStatus.FINISHED, RunStatus.FAILED, RunStatus.KILLED)


class ViewType(str, Enum):
    """Which lifecycle stages a search returns."""

    ACTIVE_ONLY = "ACTIVE_ONLY"
    DELETED_ONLY = "DELETED_ONLY"
    ALL = "ALL"

"""Run status and run records for the execution engine.

A run walks one graph snapshot and produces a fresh execution log. Only the
most recent run is tracked; earlier records are replaced.
"""

from enum import Enum

from pydantic import BaseModel

from autoflow.errors import AlreadyRunning, EmptyGraph


class RunStatus(str, Enum):
    """Engine status. `idle` only before the first run."""

    idle = "idle"
    starting = "starting"
    running = "running"
    completed = "completed"
    failed = "failed"
    cancelled = "cancelled"  # superseded by a newer run

    @property
    def is_active(self) -> bool:
        return self in (RunStatus.starting, RunStatus.running)


class RejectReason(str, Enum):
    """Why a run request was not started."""

    empty_graph = "empty_graph"
    already_running = "already_running"


class RunRecord(BaseModel):
    """State of the latest run, as observers see it."""

    run_id: str
    status: RunStatus
    started_at: str
    finished_at: str | None = None
    step_count: int = 0
    steps_completed: int = 0
    current_node_id: str | None = None
    error: str | None = None


class RunResult(BaseModel):
    """Answer to a run request: either accepted with a record, or rejected."""

    accepted: bool
    reason: RejectReason | None = None
    record: RunRecord | None = None

    def raise_if_rejected(self) -> None:
        """Raise EmptyGraph or AlreadyRunning for a rejected request."""
        if self.accepted:
            return
        if self.reason == RejectReason.empty_graph:
            raise EmptyGraph("the graph has no nodes")
        raise AlreadyRunning("a run is already in progress")


class StepPolicy(BaseModel):
    """Failure handling for one step.

    Built-in templates never fail; the policy matters for behaviors that
    perform real work.
    """

    timeout: float | None = None  # seconds per attempt
    retries: int = 0
    abort_on_failure: bool = True

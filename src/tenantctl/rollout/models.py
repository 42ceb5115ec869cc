"""Rollout data models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from tenantctl.core.exceptions import BudgetExhaustedError


class ExecutionStatus(str, Enum):
    """Pipeline execution status as reported by CodePipeline."""

    IN_PROGRESS = "InProgress"
    SUCCEEDED = "Succeeded"
    CANCELLED = "Cancelled"
    SUPERSEDED = "Superseded"
    STOPPED = "Stopped"
    STOPPING = "Stopping"
    FAILED = "Failed"
    UNDEFINED = "Undefined"

    @classmethod
    def parse(cls, value: str | None) -> "ExecutionStatus":
        """Map a remote status string, unknown values become UNDEFINED."""
        try:
            return cls(value)
        except ValueError:
            return cls.UNDEFINED

    @property
    def is_replaced(self) -> bool:
        """The execution was replaced by a newer one of the same pipeline."""
        return self in (ExecutionStatus.CANCELLED, ExecutionStatus.SUPERSEDED)


class ExecutionOutcome(str, Enum):
    """Final outcome of waiting for one pipeline execution."""

    SUCCEEDED = "succeeded"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


@dataclass
class ExecutionResult:
    """Result of starting and awaiting a pipeline execution."""

    pipeline_name: str
    outcome: ExecutionOutcome
    execution_id: str | None = None
    status: ExecutionStatus | None = None
    message: str = ""
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return self.outcome == ExecutionOutcome.SUCCEEDED

    def to_dict(self) -> dict[str, Any]:
        return {
            "pipeline_name": self.pipeline_name,
            "outcome": self.outcome.value,
            "execution_id": self.execution_id,
            "status": self.status.value if self.status else None,
            "message": self.message,
            "elapsed": round(self.elapsed, 1),
        }


class TenantOutcome(str, Enum):
    """What happened to one deployment during a rollout."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class TenantResult:
    """Per-deployment rollout result."""

    deployment_id: str
    pipeline_name: str
    outcome: TenantOutcome
    execution_id: str | None = None
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "deployment_id": self.deployment_id,
            "pipeline_name": self.pipeline_name,
            "outcome": self.outcome.value,
            "execution_id": self.execution_id,
            "message": self.message,
        }


@dataclass
class RolloutState:
    """Error accounting for a single rollout run."""

    error_budget: int = 1
    errors: int = 0

    @property
    def exhausted(self) -> bool:
        return self.errors >= self.error_budget

    def record_error(self) -> None:
        """Count one failed deployment.

        Raises:
            BudgetExhaustedError: Once the error count reaches the budget
        """
        self.errors += 1
        if self.exhausted:
            raise BudgetExhaustedError(self.errors, self.error_budget)


@dataclass
class RolloutSummary:
    """Summary of a rollout run."""

    error_budget: int
    error_count: int = 0
    results: list[TenantResult] = field(default_factory=list)
    aborted: bool = False
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: datetime | None = None

    @property
    def finished(self) -> bool:
        return self.completed_at is not None and not self.aborted

    @property
    def succeeded_count(self) -> int:
        return sum(1 for r in self.results if r.outcome == TenantOutcome.SUCCEEDED)

    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.results if r.outcome == TenantOutcome.FAILED)

    @property
    def skipped_count(self) -> int:
        return sum(1 for r in self.results if r.outcome == TenantOutcome.SKIPPED)

    @property
    def duration_seconds(self) -> float | None:
        if self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_count": self.error_count,
            "error_budget": self.error_budget,
            "aborted": self.aborted,
            "succeeded": self.succeeded_count,
            "failed": self.failed_count,
            "skipped": self.skipped_count,
            "duration_seconds": self.duration_seconds,
            "results": [r.to_dict() for r in self.results],
        }

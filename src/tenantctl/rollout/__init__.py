"""Rollout coordination module."""

from tenantctl.rollout.coordinator import RolloutCoordinator
from tenantctl.rollout.models import (
    ExecutionOutcome,
    ExecutionResult,
    ExecutionStatus,
    RolloutState,
    RolloutSummary,
    TenantOutcome,
    TenantResult,
)
from tenantctl.rollout.tracker import PipelineExecutionTracker

__all__ = [
    "ExecutionOutcome",
    "ExecutionResult",
    "ExecutionStatus",
    "PipelineExecutionTracker",
    "RolloutCoordinator",
    "RolloutState",
    "RolloutSummary",
    "TenantOutcome",
    "TenantResult",
]

"""Sequential rollout of pipeline self-updates across tenant deployments.

Deployments are processed one at a time, in snapshot order. Each provisioned
deployment's pipeline is triggered and awaited; since pipelines self-mutate,
triggering is enough for them to update themselves. Failures count against
an error budget and the rollout aborts as soon as the budget is exhausted.
"""

from collections.abc import Iterable
from datetime import datetime, timezone

from tenantctl.core.exceptions import BudgetExhaustedError
from tenantctl.core.logging import StructuredLogger
from tenantctl.registry.models import Deployment
from tenantctl.rollout.models import (
    RolloutState,
    RolloutSummary,
    TenantOutcome,
    TenantResult,
)
from tenantctl.rollout.tracker import DEFAULT_MAX_WAIT_SECONDS, PipelineExecutionTracker

logger = StructuredLogger(__name__)


class RolloutCoordinator:
    """Drive the pipeline execution tracker over a deployment snapshot."""

    def __init__(
        self,
        tracker: PipelineExecutionTracker,
        error_budget: int = 1,
        max_wait_seconds: float = DEFAULT_MAX_WAIT_SECONDS,
        dry_run: bool = False,
    ):
        if error_budget < 1:
            raise ValueError("error_budget must be at least 1")
        self._tracker = tracker
        self._error_budget = error_budget
        self._max_wait_seconds = max_wait_seconds
        self._dry_run = dry_run

    def run(self, deployments: Iterable[Deployment]) -> RolloutSummary:
        """Roll out to every provisioned deployment in order.

        Args:
            deployments: Snapshot of deployments

        Returns:
            Summary of the completed run

        Raises:
            BudgetExhaustedError: When the error count reaches the budget; the
                partial summary is attached as ``summary``
        """
        state = RolloutState(error_budget=self._error_budget)
        summary = RolloutSummary(error_budget=self._error_budget)

        logger.info("Triggering each configured deployment to self-update.")
        try:
            for deployment in deployments:
                result = self._process(deployment)
                summary.results.append(result)
                if result.outcome == TenantOutcome.FAILED:
                    state.record_error()
                summary.error_count = state.errors
        except BudgetExhaustedError as e:
            summary.error_count = state.errors
            summary.aborted = True
            summary.completed_at = datetime.now(timezone.utc)
            e.summary = summary
            logger.error(str(e))
            raise

        summary.completed_at = datetime.now(timezone.utc)
        logger.info(f"Finished with {state.errors} error(s).")
        return summary

    def _process(self, deployment: Deployment) -> TenantResult:
        """Roll out a single deployment. Never raises for tenant failures."""
        pipeline_name = deployment.pipeline_name
        log = logger.bind(deployment=deployment.id)

        if not deployment.provisioned:
            log.info(f"Ignoring unprovisioned deployment {deployment.id}")
            return TenantResult(
                deployment.id,
                pipeline_name,
                TenantOutcome.SKIPPED,
                message="not provisioned",
            )

        if self._dry_run:
            log.info(f"[dry-run] Would start {deployment.type.value} deployment pipeline {pipeline_name}")
            return TenantResult(
                deployment.id,
                pipeline_name,
                TenantOutcome.SKIPPED,
                message="dry run",
            )

        log.info(f"Starting execution of {deployment.type.value} deployment pipeline {deployment.id}")

        try:
            execution_id = self._tracker.start(pipeline_name)
        except Exception as e:
            log.error(f"Failed to start {pipeline_name}: {e}")
            return TenantResult(deployment.id, pipeline_name, TenantOutcome.FAILED, message=str(e))

        try:
            result = self._tracker.wait(pipeline_name, execution_id, self._max_wait_seconds)
        except Exception as e:
            log.error(f"Rollout of {pipeline_name} failed: {e}")
            return TenantResult(
                deployment.id,
                pipeline_name,
                TenantOutcome.FAILED,
                execution_id=getattr(e, "execution_id", None) or execution_id,
                message=str(e),
            )

        return TenantResult(
            deployment.id,
            pipeline_name,
            TenantOutcome.SUCCEEDED,
            execution_id=result.execution_id,
        )

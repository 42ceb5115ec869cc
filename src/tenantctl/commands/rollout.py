"""Rollout command group."""

import click

from tenantctl.core.context import pass_context, TenantCtlContext
from tenantctl.core.exceptions import (
    BudgetExhaustedError,
    SnapshotError,
    TenantCtlError,
)
from tenantctl.core.output import format_duration
from tenantctl.rollout import PipelineExecutionTracker, RolloutCoordinator, RolloutSummary


@click.group()
@pass_context
def rollout(ctx: TenantCtlContext) -> None:
    """Rollout - trigger tenant pipelines to self-update.

    \b
    Examples:
        tenantctl rollout run
        tenantctl rollout run --error-budget 2
        tenantctl rollout watch silo-t1-pipeline 1a2b3c4d-...
    """
    pass


def _tracker(ctx: TenantCtlContext) -> PipelineExecutionTracker:
    return PipelineExecutionTracker(
        ctx.pipelines,
        poll_interval=ctx.profile.rollout.poll_interval,
    )


def _print_summary(ctx: TenantCtlContext, summary: RolloutSummary | None) -> None:
    if summary is None:
        return
    if ctx.output_format.structured:
        ctx.output.print_data(summary.to_dict())
        return
    if summary.results:
        ctx.output.print_data(
            [r.to_dict() for r in summary.results],
            headers=["deployment_id", "pipeline_name", "outcome", "execution_id", "message"],
            title="Rollout Results",
        )
    duration = summary.duration_seconds
    ctx.output.print(
        f"succeeded={summary.succeeded_count} failed={summary.failed_count} "
        f"skipped={summary.skipped_count} errors={summary.error_count}/{summary.error_budget}"
        + (f" duration={format_duration(duration)}" if duration is not None else "")
    )


@rollout.command("run")
@click.option("--error-budget", type=click.IntRange(min=1), default=None, help="Failures tolerated before aborting")
@click.option("--max-wait", type=click.IntRange(min=1), default=None, help="Maximum seconds to wait per pipeline")
@click.option("--snapshot", "snapshot_name", default=None, help="Snapshot artifact name (default from config)")
@pass_context
def run(
    ctx: TenantCtlContext,
    error_budget: int | None,
    max_wait: int | None,
    snapshot_name: str | None,
) -> None:
    """Roll out updates to every provisioned deployment, one at a time.

    Deployments are taken from the snapshot written by
    'tenantctl deployments snapshot', in order. Unprovisioned deployments are
    skipped. The command exits non-zero once the error budget is exhausted.

    \b
    Examples:
        tenantctl rollout run
        tenantctl --dry-run rollout run
        tenantctl rollout run --error-budget 3 --max-wait 3600
    """
    settings = ctx.profile.rollout
    name = snapshot_name or ctx.profile.snapshot.name

    try:
        items = ctx.snapshot_store().load(name)
    except SnapshotError as e:
        ctx.output.print_error(str(e))
        raise click.Abort()

    coordinator = RolloutCoordinator(
        _tracker(ctx),
        error_budget=error_budget or settings.error_budget,
        max_wait_seconds=max_wait or settings.max_wait_seconds,
        dry_run=ctx.dry_run,
    )

    try:
        summary = coordinator.run(items)
    except BudgetExhaustedError as e:
        _print_summary(ctx, e.summary)
        ctx.output.print_error(str(e))
        raise click.Abort()

    _print_summary(ctx, summary)
    ctx.output.print_success(f"Finished with {summary.error_count} error(s).")


@rollout.command("watch")
@click.argument("pipeline_name")
@click.argument("execution_id", required=False)
@click.option("--max-wait", type=click.IntRange(min=1), default=None, help="Maximum seconds to wait")
@pass_context
def watch(
    ctx: TenantCtlContext,
    pipeline_name: str,
    execution_id: str | None,
    max_wait: int | None,
) -> None:
    """Wait for a pipeline execution to finish.

    Without EXECUTION_ID, the latest execution of the pipeline is watched.

    \b
    Examples:
        tenantctl rollout watch pool-shared1-pipeline
        tenantctl rollout watch silo-t1-pipeline 1a2b3c4d-5678-90ab-cdef-1234567890ab
    """
    tracker = _tracker(ctx)
    max_wait = max_wait or ctx.profile.rollout.max_wait_seconds

    try:
        if execution_id is None:
            execution_id = ctx.pipelines.get_latest_execution_id(pipeline_name)
            if not execution_id:
                ctx.output.print_error(f"No executions found for {pipeline_name}")
                raise click.Abort()

        result = tracker.wait(pipeline_name, execution_id, max_wait)
    except TenantCtlError as e:
        ctx.output.print_error(str(e))
        raise click.Abort()

    ctx.output.print_success(
        f"Execution {result.execution_id} of {pipeline_name} succeeded after {format_duration(result.elapsed)}"
    )

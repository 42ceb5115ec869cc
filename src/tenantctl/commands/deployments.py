"""Deployment registry commands."""

import click

from tenantctl.core.context import pass_context, TenantCtlContext
from tenantctl.core.exceptions import RecordValidationError, SnapshotError, TenantCtlError
from tenantctl.registry import DeploymentRecord, build_snapshot, validate_record


@click.group()
@pass_context
def deployments(ctx: TenantCtlContext) -> None:
    """Deployment registry - snapshot, list, validate.

    \b
    Examples:
        tenantctl deployments snapshot
        tenantctl deployments list
        tenantctl deployments validate --id t1 --type silo --account 123456789012 --region eu-west-1
    """
    pass


def _deployment_rows(items: list) -> list[dict]:
    return [
        {
            "id": d.id,
            "type": d.type.value,
            "account": d.account,
            "region": d.region,
            "provisioned": d.provisioned,
            "pipeline": d.pipeline_name,
        }
        for d in items
    ]


@deployments.command("snapshot")
@click.option("--name", default=None, help="Snapshot artifact name (default from config)")
@pass_context
def snapshot(ctx: TenantCtlContext, name: str | None) -> None:
    """Validate the registry and save a point-in-time deployment snapshot.

    Every registry record is checked; invalid records are logged and left
    out. Each valid record is tagged with whether its pipeline already
    exists. The snapshot is read later by 'tenantctl rollout run'.

    \b
    Examples:
        tenantctl deployments snapshot
        tenantctl -o json deployments snapshot --name deployments.json
    """
    name = name or ctx.profile.snapshot.name

    try:
        stacks = ctx.registry.list_stack_names()
        regions = ctx.registry.list_regions()
        records = ctx.registry.scan_records()
    except TenantCtlError as e:
        ctx.output.print_error(f"Failed to read deployment registry: {e}")
        raise click.Abort()

    ctx.logger.info("Records from deployment database", records=[r.to_dict() for r in records])
    validated = build_snapshot(records, regions, stacks)
    ctx.logger.info("Validated records", deployments=[d.to_dict() for d in validated])

    if ctx.dry_run:
        ctx.log_dry_run("save snapshot", {"name": name, "deployments": len(validated)})
    else:
        try:
            path = ctx.snapshot_store().save(validated, name)
        except SnapshotError as e:
            ctx.output.print_error(str(e))
            raise click.Abort()
        ctx.output.print_success(
            f"Saved {len(validated)} of {len(records)} deployment(s) to {path}"
        )

    ctx.output.print_data(_deployment_rows(validated), title="Validated Deployments")


@deployments.command("list")
@click.option("--name", default=None, help="Snapshot artifact name (default from config)")
@click.option("--provisioned/--all", "only_provisioned", default=False, help="Show only provisioned deployments")
@pass_context
def list_deployments(ctx: TenantCtlContext, name: str | None, only_provisioned: bool) -> None:
    """List deployments from the saved snapshot.

    \b
    Examples:
        tenantctl deployments list
        tenantctl deployments list --provisioned
    """
    name = name or ctx.profile.snapshot.name

    try:
        items = ctx.snapshot_store().load(name)
    except SnapshotError as e:
        ctx.output.print_error(str(e))
        raise click.Abort()

    if only_provisioned:
        items = [d for d in items if d.provisioned]

    if not items and not ctx.output_format.structured:
        ctx.output.print_info("No deployments found")
        return

    ctx.output.print_data(_deployment_rows(items), title=f"Deployments ({len(items)})")


@deployments.command("validate")
@click.option("--id", "deployment_id", default=None, help="Deployment id")
@click.option("--type", "deployment_type", default=None, help="Deployment type (silo or pool)")
@click.option("--account", default=None, help="Component AWS account id")
@click.option("--region", default=None, help="Component AWS region")
@pass_context
def validate(
    ctx: TenantCtlContext,
    deployment_id: str | None,
    deployment_type: str | None,
    account: str | None,
    region: str | None,
) -> None:
    """Check a deployment record against the admission rules.

    \b
    Examples:
        tenantctl deployments validate --id t1 --type pool --account 123456789012 --region us-east-1
    """
    record = DeploymentRecord(id=deployment_id, type=deployment_type, account=account, region=region)

    try:
        regions = ctx.registry.list_regions()
    except TenantCtlError as e:
        ctx.output.print_error(f"Failed to list regions: {e}")
        raise click.Abort()

    try:
        validated = validate_record(record, regions)
    except RecordValidationError as e:
        ctx.output.print_error(f"Record failed validation: {e} (value: {e.value!r})")
        raise click.Abort()

    ctx.output.print_success(f"Record is valid, pipeline name: {validated.pipeline_name}")

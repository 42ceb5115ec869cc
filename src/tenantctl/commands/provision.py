"""Provision command."""

import click

from tenantctl.config import load_provisioning_environment
from tenantctl.core.context import pass_context, TenantCtlContext
from tenantctl.core.exceptions import (
    ConfigError,
    ProvisioningError,
    RecordValidationError,
    TenantCtlError,
)
from tenantctl.provisioning import Provisioner
from tenantctl.registry import DeploymentRecord


@click.command()
@pass_context
def provision(ctx: TenantCtlContext) -> None:
    """Provision the pipeline of a new deployment record.

    Intended to run in the provisioning build started by the registry's
    stream trigger. The record is read from the environment:

    \b
        DEPLOYMENT_ID       ID of the deployment
        DEPLOYMENT_TYPE     Type of deployment (silo or pool)
        COMPONENT_ACCOUNT   AWS account for the deployment's component resources
        COMPONENT_REGION    AWS region, as above

    \b
    Examples:
        DEPLOYMENT_ID=t1 DEPLOYMENT_TYPE=silo COMPONENT_ACCOUNT=123456789012 \\
            COMPONENT_REGION=eu-west-1 tenantctl provision
    """
    try:
        env = load_provisioning_environment()
    except ConfigError as e:
        ctx.output.print_error(str(e))
        raise click.Abort()

    record = DeploymentRecord(
        id=env.deployment_id,
        type=env.deployment_type,
        account=env.component_account,
        region=env.component_region,
    )
    ctx.logger.info("New deployment record", **record.to_dict())

    try:
        regions = ctx.registry.list_regions()
    except TenantCtlError as e:
        ctx.output.print_error(f"Failed to list regions: {e}")
        raise click.Abort()

    provisioner = Provisioner(
        deploy_command=ctx.profile.provisioning.deploy_command,
        dry_run=ctx.dry_run,
    )

    try:
        command = provisioner.provision(record, regions)
    except RecordValidationError as e:
        ctx.output.print_error(f"Deployment record {record.id} failed validation: {e}")
        raise click.Abort()
    except ProvisioningError as e:
        ctx.output.print_error(f"Provisioning failed: {e}")
        raise click.Abort()

    if ctx.dry_run:
        ctx.log_dry_run("provision deployment", {"id": record.id, "command": " ".join(command)})
    else:
        ctx.output.print_success(f"Provisioned deployment {record.id}")

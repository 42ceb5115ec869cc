"""Main CLI entry point for tenantctl."""

import sys

import click

from tenantctl import __version__
from tenantctl.commands.deployments import deployments
from tenantctl.commands.provision import provision
from tenantctl.commands.rollout import rollout
from tenantctl.config import load_config
from tenantctl.core.context import TenantCtlContext, pass_context
from tenantctl.core.exceptions import ConfigError, TenantCtlError
from tenantctl.core.output import OutputFormat, OutputFormatter


CONTEXT_SETTINGS = {
    "help_option_names": ["-h", "--help"],
    "max_content_width": 120,
}

# Never shown by the config command.
SECRET_AWS_FIELDS = {"access_key_id", "secret_access_key", "session_token"}


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option(
    "-p",
    "--profile",
    metavar="NAME",
    envvar="TENANTCTL_PROFILE",
    help="Configuration profile to use",
)
@click.option(
    "-o",
    "--output",
    "output_format",
    type=click.Choice([f.value for f in OutputFormat], case_sensitive=False),
    help="Output format",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Increase verbosity (-v for info, -vv for debug)",
)
@click.option(
    "-q",
    "--quiet",
    is_flag=True,
    help="Suppress non-essential output",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Show what would happen without making changes",
)
@click.option(
    "--no-color",
    is_flag=True,
    help="Disable colored output",
)
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    metavar="FILE",
    envvar="TENANTCTL_CONFIG",
    help="Path to config file",
)
@click.version_option(__version__, "--version", prog_name="tenantctl", message="%(prog)s version %(version)s")
@click.pass_context
def cli(
    ctx: click.Context,
    profile: str | None,
    output_format: str | None,
    verbose: int,
    quiet: bool,
    dry_run: bool,
    no_color: bool,
    config_file: str | None,
) -> None:
    """TenantCtl - multi-tenant pipeline provisioning and rollout.

    Validates the tenant deployment registry, provisions per-tenant delivery
    pipelines, and rolls out updates by triggering each tenant pipeline in
    turn under an error budget.

    \b
    Examples:
        tenantctl deployments snapshot
        tenantctl rollout run
        tenantctl -o json rollout run
        tenantctl provision

    \b
    Configuration:
        ~/.tenantctl/config.yaml    User configuration
        ./tenantctl.yaml            Project configuration
        TENANTCTL_*                 Environment overrides
    """
    try:
        config = load_config(config_file, profile)
    except ConfigError as e:
        OutputFormatter(color=not no_color).print_error(f"Configuration error: {e}")
        ctx.exit(1)

    ctx.obj = TenantCtlContext(
        config=config,
        profile=profile,
        output_format=OutputFormat(output_format.lower()) if output_format else None,
        verbose=verbose,
        quiet=quiet,
        dry_run=dry_run,
        color=not no_color,
    )

    if ctx.obj.dry_run:
        ctx.obj.output.print_warning("Dry-run mode enabled - no changes will be made")


cli.add_command(deployments)
cli.add_command(rollout)
cli.add_command(provision)


@cli.command()
@pass_context
def config(ctx: TenantCtlContext) -> None:
    """Show the effective configuration of the selected profile.

    Environment overrides are already applied. AWS credentials are never
    printed.
    """
    profile = ctx.profile
    settings = profile.model_dump(mode="json", exclude={"aws": SECRET_AWS_FIELDS})
    settings["aws"].update(profile=profile.aws.get_profile(), region=profile.aws.get_region())
    settings["provisioning"]["project_name"] = profile.provisioning.get_project_name()

    ctx.output.print_data(
        {
            "profile": ctx.profile_name,
            "output_format": ctx.output_format.value,
            "dry_run": ctx.dry_run,
            **settings,
        },
        title="Current Configuration",
    )


def main() -> None:
    """Console script entry point."""
    try:
        cli(prog_name="tenantctl")
    except TenantCtlError as e:
        OutputFormatter().print_error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()

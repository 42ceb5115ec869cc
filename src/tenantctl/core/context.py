"""Click context object for sharing state across commands."""

from __future__ import annotations

from functools import cached_property
from typing import TYPE_CHECKING, Any

import click

from tenantctl.config import TenantCtlConfig, ProfileConfig
from tenantctl.core.output import OutputFormat, OutputFormatter
from tenantctl.core.logging import resolve_level, setup_logging, StructuredLogger

if TYPE_CHECKING:
    from tenantctl.clients.aws import AWSClientFactory
    from tenantctl.clients.codepipeline import PipelineClient
    from tenantctl.clients.registry import DeploymentRegistryClient
    from tenantctl.registry.snapshot import SnapshotStore


class TenantCtlContext:
    """State shared by every tenantctl command.

    Command-line flags win over the ``global`` section of the config. The
    AWS collaborators are built on first use, so commands that never reach
    AWS (``config``, ``provision --dry-run``) need no credentials.
    """

    def __init__(
        self,
        config: TenantCtlConfig | None = None,
        profile: str | None = None,
        output_format: OutputFormat | None = None,
        verbose: int = 0,
        quiet: bool = False,
        dry_run: bool = False,
        color: bool = True,
    ):
        self.config = config or TenantCtlConfig()
        self.profile_name = profile or "default"
        settings = self.config.global_settings

        self.output_format = output_format or settings.output_format
        self.dry_run = dry_run or settings.dry_run

        setup_logging(resolve_level(verbose, quiet, settings.verbosity), rich_output=color)
        self.logger = StructuredLogger("cli").bind(profile=self.profile_name)
        self.output = OutputFormatter(format=self.output_format, color=color, quiet=quiet)

    @property
    def profile(self) -> ProfileConfig:
        """Settings of the selected profile."""
        return self.config.get_profile(self.profile_name)

    @cached_property
    def aws(self) -> AWSClientFactory:
        from tenantctl.clients.aws import AWSClientFactory

        return AWSClientFactory(self.profile.aws)

    @cached_property
    def registry(self) -> DeploymentRegistryClient:
        from tenantctl.clients.registry import DeploymentRegistryClient

        return DeploymentRegistryClient(self.aws, self.profile.registry)

    @cached_property
    def pipelines(self) -> PipelineClient:
        from tenantctl.clients.codepipeline import PipelineClient

        return PipelineClient(self.aws, source_stage=self.profile.rollout.source_stage)

    def snapshot_store(self) -> SnapshotStore:
        """Snapshot store for the profile's snapshot directory."""
        from tenantctl.registry.snapshot import SnapshotStore

        return SnapshotStore(self.profile.snapshot.directory)

    def log_dry_run(self, action: str, details: dict[str, Any] | None = None) -> None:
        """Report an action skipped because of --dry-run."""
        if not self.dry_run:
            return
        message = f"[dry-run] {action}"
        if details:
            message += " (" + ", ".join(f"{k}={v}" for k, v in details.items()) + ")"
        self.output.print(message, style="dim")


pass_context = click.make_pass_decorator(TenantCtlContext, ensure=True)

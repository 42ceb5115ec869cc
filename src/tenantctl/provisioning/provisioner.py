"""Provision the delivery pipeline of a newly registered tenant.

Runs in the provisioning CodeBuild project. The new registry record arrives
through environment variables; after validation the pipeline stack is
deployed by shelling out to the CDK CLI with the record attributes as
context values.
"""

import shlex
import subprocess
from collections.abc import Collection

from tenantctl.core.exceptions import ProvisioningError
from tenantctl.core.logging import StructuredLogger
from tenantctl.registry.models import DeploymentRecord, ValidatedRecord
from tenantctl.registry.validation import validate_record

logger = StructuredLogger(__name__)


def build_deploy_command(record: ValidatedRecord, deploy_command: str = "npx cdk deploy") -> list[str]:
    """Build the CDK deploy command line for a tenant pipeline stack."""
    return [
        *shlex.split(deploy_command),
        record.pipeline_name,
        "--require-approval",
        "never",
        "-c",
        f"deployment_type={record.type.value}",
        "-c",
        f"deployment_id={record.id}",
        "-c",
        f"component_account={record.account}",
        "-c",
        f"component_region={record.region}",
    ]


class Provisioner:
    """Validates a new deployment record and deploys its pipeline stack."""

    def __init__(
        self,
        deploy_command: str = "npx cdk deploy",
        dry_run: bool = False,
    ):
        self._deploy_command = deploy_command
        self._dry_run = dry_run

    def provision(
        self,
        record: DeploymentRecord,
        valid_regions: Collection[str],
    ) -> list[str]:
        """Provision a pipeline for ``record``.

        Returns:
            The command that was (or, in dry-run mode, would be) executed

        Raises:
            RecordValidationError: If the record is not admissible
            ProvisioningError: If the deploy command fails
        """
        validated = validate_record(record, valid_regions)
        logger.info(f"Provisioning new deployment {validated.id}")

        command = build_deploy_command(validated, self._deploy_command)
        printable = shlex.join(command)

        if self._dry_run:
            logger.info(f"[dry-run] Would execute: {printable}")
            return command

        logger.info(f"Executing: {printable}")
        try:
            subprocess.run(command, check=True)
        except subprocess.CalledProcessError as e:
            raise ProvisioningError(
                f"Deploy command exited with status {e.returncode}",
                deployment_id=validated.id,
                details={"command": printable},
            )
        except OSError as e:
            raise ProvisioningError(
                f"Failed to run deploy command: {e}",
                deployment_id=validated.id,
                details={"command": printable},
            )
        return command

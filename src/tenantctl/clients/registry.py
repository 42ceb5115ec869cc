"""Deployment registry, region catalog and stack listing collaborators."""

from typing import Any

from boto3.dynamodb.types import TypeDeserializer

from tenantctl.clients.aws import AWSClientFactory, handle_aws_error, paginate
from tenantctl.config import RegistryConfig
from tenantctl.core.exceptions import AWSError
from tenantctl.core.logging import StructuredLogger
from tenantctl.registry.models import DeploymentRecord

logger = StructuredLogger(__name__)

_deserializer = TypeDeserializer()


def deserialize_item(item: dict[str, Any]) -> dict[str, Any]:
    """Convert a DynamoDB attribute-value map into plain Python values."""
    return {key: _deserializer.deserialize(value) for key, value in item.items()}


class DeploymentRegistryClient:
    """Reads the inputs of a snapshot from AWS.

    - deployment records from the DynamoDB registry table
    - valid regions from EC2
    - existing pipeline stacks from CloudFormation
    """

    def __init__(self, aws: AWSClientFactory, config: RegistryConfig | None = None):
        self._aws = aws
        self._config = config or RegistryConfig()

    @property
    def table_name(self) -> str:
        return self._config.table_name

    @handle_aws_error
    def scan_records(self) -> list[DeploymentRecord]:
        """Scan every record in the deployment table.

        No schema is enforced here; missing attributes come back as None.
        """
        items = paginate(self._aws.dynamodb, "scan", "Items", TableName=self.table_name)
        records = [DeploymentRecord.from_dict(deserialize_item(item)) for item in items]
        logger.debug("Scanned deployment table", table=self.table_name, records=len(records))
        return records

    @handle_aws_error
    def list_regions(self) -> list[str]:
        """List the region names currently available to the account."""
        response = self._aws.ec2.describe_regions()
        regions = [r["RegionName"] for r in response.get("Regions", []) if r.get("RegionName")]
        if not regions:
            raise AWSError("No regions returned by query", service="ec2", operation="DescribeRegions")
        return regions

    @handle_aws_error
    def list_stack_names(self) -> list[str]:
        """List names of stacks in a settled, existing state.

        Tenant pipelines are deployed as stacks named after the pipeline, so
        this doubles as the set of provisioned pipeline names.
        """
        summaries = paginate(
            self._aws.cloudformation,
            "list_stacks",
            "StackSummaries",
            StackStatusFilter=self._config.stack_status_filter,
        )
        return [s.get("StackName", "") for s in summaries]

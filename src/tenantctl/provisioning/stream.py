"""DynamoDB Streams trigger for the provisioning build.

Deployed as a Lambda handler on the registry table's stream. Every INSERT
starts the provisioning CodeBuild project with the new record's attributes
passed as environment variable overrides. MODIFY and REMOVE events are not
handled.
"""

from typing import Any

from tenantctl.clients.aws import AWSClientFactory
from tenantctl.clients.registry import deserialize_item
from tenantctl.config import AWSConfig, ProvisioningConfig
from tenantctl.core.logging import StructuredLogger

logger = StructuredLogger(__name__)

# Record attribute -> environment variable read by `tenantctl provision`
ATTRIBUTE_ENVIRONMENT = {
    "id": "DEPLOYMENT_ID",
    "type": "DEPLOYMENT_TYPE",
    "account": "COMPONENT_ACCOUNT",
    "region": "COMPONENT_REGION",
}


def build_environment_overrides(new_image: dict[str, Any]) -> list[dict[str, str]]:
    """Map a stream NewImage to CodeBuild environment variable overrides.

    Attributes missing from the image are left out; the provisioning step
    rejects the record in that case.
    """
    item = deserialize_item(new_image)
    overrides = []
    for attribute, env_name in ATTRIBUTE_ENVIRONMENT.items():
        if attribute in item:
            overrides.append({"name": env_name, "value": str(item[attribute]), "type": "PLAINTEXT"})
    return overrides


class ProvisioningTrigger:
    """Starts the provisioning build for inserted registry records."""

    def __init__(self, codebuild: Any, project_name: str):
        self._codebuild = codebuild
        self._project_name = project_name

    def handle(self, event: dict[str, Any]) -> list[str]:
        """Process a DynamoDB Streams event.

        Returns:
            Ids of the builds that were started
        """
        builds: list[str] = []

        for record in event.get("Records", []):
            if record.get("eventName") != "INSERT":
                continue

            logger.info("New item added to deployment database")
            new_image = record.get("dynamodb", {}).get("NewImage", {})
            build_id = self._start_build(new_image)
            if build_id:
                builds.append(build_id)

        return builds

    def _start_build(self, new_image: dict[str, Any]) -> str | None:
        logger.info(f"Calling startBuild() on CodeBuild project {self._project_name}")
        try:
            response = self._codebuild.start_build(
                projectName=self._project_name,
                environmentVariablesOverride=build_environment_overrides(new_image),
            )
        except Exception as e:
            # A failed build start must not block the rest of the batch
            logger.exception(f"Failed to start provisioning build: {e}")
            return None

        build_id = response.get("build", {}).get("id")
        logger.info("Started provisioning build", build=build_id)
        return build_id


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Lambda entry point.

    The project name comes from PROJECT_NAME and the region from the Lambda
    runtime's AWS_REGION.
    """
    codebuild = AWSClientFactory(AWSConfig()).codebuild
    project_name = ProvisioningConfig().get_project_name()
    builds = ProvisioningTrigger(codebuild, project_name).handle(event)
    return {"builds": builds}

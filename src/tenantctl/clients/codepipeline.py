"""CodePipeline control client."""

from tenantctl.clients.aws import AWSClientFactory, handle_aws_error
from tenantctl.core.logging import StructuredLogger
from tenantctl.rollout.models import ExecutionStatus

logger = StructuredLogger(__name__)


class PipelineClient:
    """Start pipeline executions and read their status."""

    def __init__(self, aws: AWSClientFactory, source_stage: str = "Source"):
        self._aws = aws
        self._source_stage = source_stage

    @handle_aws_error
    def start(self, pipeline_name: str) -> str | None:
        """Start a new execution.

        Returns:
            The execution id, or None if the response carried none
        """
        response = self._aws.codepipeline.start_pipeline_execution(name=pipeline_name)
        return response.get("pipelineExecutionId") or None

    @handle_aws_error
    def get_execution_status(self, pipeline_name: str, execution_id: str) -> ExecutionStatus:
        """Get the status of one execution."""
        response = self._aws.codepipeline.get_pipeline_execution(
            pipelineName=pipeline_name,
            pipelineExecutionId=execution_id,
        )
        raw_status = response.get("pipelineExecution", {}).get("status")
        status = ExecutionStatus.parse(raw_status)
        if status == ExecutionStatus.UNDEFINED:
            logger.debug("Unrecognized execution status", pipeline=pipeline_name, status=raw_status)
        return status

    @handle_aws_error
    def get_latest_execution_id(self, pipeline_name: str) -> str | None:
        """Get the id of the latest execution seen by the source stage.

        A self-mutating pipeline restarts itself with a new execution id; the
        source stage always reports the newest one.
        """
        response = self._aws.codepipeline.get_pipeline_state(name=pipeline_name)

        for stage in response.get("stageStates", []):
            if stage.get("stageName") == self._source_stage:
                return stage.get("latestExecution", {}).get("pipelineExecutionId")
        return None

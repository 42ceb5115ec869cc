"""Pipeline execution tracking.

Tenant pipelines are self-mutating: when a pipeline updates its own
definition it cancels the running execution and starts a new one. The tracker
treats a Cancelled or Superseded execution as replaced, looks up the newest
execution id from the source stage, and keeps waiting on that one. The wait
deadline is measured from the original start and is not reset on switching.
"""

from dataclasses import dataclass
from typing import Protocol

from tenantctl.core.exceptions import ExecutionFailedError, ExecutionStartError, PollTimeoutError
from tenantctl.core.logging import StructuredLogger
from tenantctl.core.polling import Clock, Deadline, SystemClock, poll_until
from tenantctl.rollout.models import ExecutionOutcome, ExecutionResult, ExecutionStatus

logger = StructuredLogger(__name__)

DEFAULT_POLL_INTERVAL = 20
DEFAULT_MAX_WAIT_SECONDS = 30 * 60


class PipelineControl(Protocol):
    """Pipeline operations the tracker depends on."""

    def start(self, pipeline_name: str) -> str | None: ...

    def get_execution_status(self, pipeline_name: str, execution_id: str) -> ExecutionStatus: ...

    def get_latest_execution_id(self, pipeline_name: str) -> str | None: ...


@dataclass
class _TrackedExecution:
    pipeline_name: str
    execution_id: str


class PipelineExecutionTracker:
    """Start pipeline executions and poll them to a terminal outcome."""

    def __init__(
        self,
        pipelines: PipelineControl,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        clock: Clock | None = None,
    ):
        """Initialize tracker.

        Args:
            pipelines: Pipeline control client
            poll_interval: Seconds between status queries
            clock: Clock used for sleeping and elapsed time
        """
        self._pipelines = pipelines
        self._poll_interval = poll_interval
        self._clock = clock or SystemClock()

    def start(self, pipeline_name: str) -> str:
        """Start a new execution of a pipeline.

        Returns:
            The new execution id

        Raises:
            ExecutionStartError: If no execution id was returned
        """
        execution_id = self._pipelines.start(pipeline_name)
        if not execution_id:
            raise ExecutionStartError(
                "No executionId in startPipelineExecution response.",
                pipeline_name=pipeline_name,
            )
        logger.info(f"Pipeline execution started with executionId {execution_id}")
        return execution_id

    def wait(
        self,
        pipeline_name: str,
        execution_id: str,
        max_wait_seconds: float = DEFAULT_MAX_WAIT_SECONDS,
    ) -> ExecutionResult:
        """Wait for an execution, following replacements, until it succeeds.

        Args:
            pipeline_name: Pipeline to watch
            execution_id: Execution to watch first
            max_wait_seconds: Total time to wait before giving up

        Returns:
            Result with outcome SUCCEEDED and the final execution id

        Raises:
            PollTimeoutError: If the wait exceeded max_wait_seconds
            ExecutionFailedError: On a terminal non-success status, or when a
                replaced execution has no successor
        """
        tracked = _TrackedExecution(pipeline_name, execution_id)
        deadline = Deadline(max_wait_seconds, self._clock)

        logger.info("Waiting for pipeline execution to complete.", pipeline=pipeline_name)
        try:
            status = poll_until(
                lambda: self._check(tracked),
                interval=self._poll_interval,
                timeout=max_wait_seconds,
                clock=self._clock,
            )
        except PollTimeoutError:
            logger.error(f"Maximum wait time of {max_wait_seconds:g}s exceeded. Aborting.")
            raise PollTimeoutError(
                f"Maximum wait time of {max_wait_seconds:g}s exceeded for {pipeline_name}",
                pipeline_name=pipeline_name,
                execution_id=tracked.execution_id,
                timeout_seconds=max_wait_seconds,
            )

        return ExecutionResult(
            pipeline_name=pipeline_name,
            outcome=ExecutionOutcome.SUCCEEDED,
            execution_id=tracked.execution_id,
            status=status,
            elapsed=deadline.elapsed,
        )

    def start_and_await(
        self,
        pipeline_name: str,
        max_wait_seconds: float = DEFAULT_MAX_WAIT_SECONDS,
    ) -> ExecutionResult:
        """Start a pipeline and wait for it, reporting failures as a result.

        Client errors while starting or polling still propagate.
        """
        try:
            execution_id = self.start(pipeline_name)
        except ExecutionStartError as e:
            return ExecutionResult(pipeline_name, ExecutionOutcome.FAILED, message=str(e))

        deadline = Deadline(max_wait_seconds, self._clock)
        try:
            return self.wait(pipeline_name, execution_id, max_wait_seconds)
        except PollTimeoutError as e:
            return ExecutionResult(
                pipeline_name,
                ExecutionOutcome.TIMED_OUT,
                execution_id=e.execution_id,
                message=str(e),
                elapsed=deadline.elapsed,
            )
        except ExecutionFailedError as e:
            return ExecutionResult(
                pipeline_name,
                ExecutionOutcome.FAILED,
                execution_id=e.execution_id,
                status=e.status,
                message=str(e),
                elapsed=deadline.elapsed,
            )

    def _check(self, tracked: _TrackedExecution) -> ExecutionStatus | None:
        """Query the tracked execution once.

        Returns SUCCEEDED when done, None to keep polling.
        """
        status = self._pipelines.get_execution_status(tracked.pipeline_name, tracked.execution_id)

        if status == ExecutionStatus.SUCCEEDED:
            logger.info("Pipeline execution has finished.", pipeline=tracked.pipeline_name)
            return status

        if status == ExecutionStatus.IN_PROGRESS:
            logger.info("Execution in progress, waiting..", pipeline=tracked.pipeline_name)
            return None

        if status.is_replaced:
            logger.info(f"Execution was {status.value}, looking up new latest executionId")
            latest = self._pipelines.get_latest_execution_id(tracked.pipeline_name)
            if not latest:
                logger.error("Could not determine latest pipeline executionId")
                raise ExecutionFailedError(
                    f"Execution {tracked.execution_id} was {status.value} and no newer execution was found",
                    pipeline_name=tracked.pipeline_name,
                    execution_id=tracked.execution_id,
                    status=status,
                )
            logger.info(f"Latest executionId is {latest}")
            tracked.execution_id = latest
            return None

        # Stopped, Stopping, Failed and anything unrecognized
        logger.error(f"Pipeline status is {status.value}, aborting.", pipeline=tracked.pipeline_name)
        raise ExecutionFailedError(
            f"Pipeline {tracked.pipeline_name} execution {tracked.execution_id} ended with status {status.value}",
            pipeline_name=tracked.pipeline_name,
            execution_id=tracked.execution_id,
            status=status,
        )

"""Custom exceptions for tenantctl."""

from typing import Any


class TenantCtlError(Exception):
    """Base exception for all tenantctl errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class ConfigError(TenantCtlError):
    """Configuration-related errors."""

    pass


class AWSError(TenantCtlError):
    """AWS API errors."""

    def __init__(
        self,
        message: str,
        service: str | None = None,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.service = service
        self.operation = operation


class AuthenticationError(TenantCtlError):
    """Authentication/authorization errors."""

    pass


# Deployment record validation


class RecordValidationError(TenantCtlError):
    """A deployment record violates one of the admission rules."""

    def __init__(self, message: str, field: str, value: Any = None):
        super().__init__(message)
        self.field = field
        self.value = value


class MissingAttributeError(RecordValidationError):
    """A required record attribute is absent or empty."""

    def __init__(self, field: str, value: Any = None):
        super().__init__(f"Missing required attribute {field}", field, value)


class InvalidIdError(RecordValidationError):
    """Deployment id contains whitespace characters."""

    def __init__(self, value: Any):
        super().__init__("Attribute id contains whitespace characters", "id", value)


class InvalidTypeError(RecordValidationError):
    """Deployment type is neither silo nor pool."""

    def __init__(self, value: Any):
        super().__init__("Attribute type is not either of pool or silo", "type", value)


class InvalidAccountError(RecordValidationError):
    """Account is not a 12 digit AWS account id."""

    def __init__(self, value: Any):
        super().__init__("Attribute account has invalid AWS account ID format", "account", value)


class InvalidRegionError(RecordValidationError):
    """Region is not one of the currently valid regions."""

    def __init__(self, value: Any):
        super().__init__("Attribute region has invalid AWS region", "region", value)


class SnapshotError(TenantCtlError):
    """Snapshot artifact cannot be read or written."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.path = path


# Pipeline execution and rollout


class ExecutionStartError(TenantCtlError):
    """Starting a pipeline did not yield an execution id."""

    def __init__(self, message: str, pipeline_name: str):
        super().__init__(message)
        self.pipeline_name = pipeline_name


class PollTimeoutError(TenantCtlError):
    """Waiting for a pipeline execution exceeded the maximum wait time."""

    def __init__(
        self,
        message: str,
        pipeline_name: str | None = None,
        execution_id: str | None = None,
        timeout_seconds: float | None = None,
    ):
        super().__init__(message)
        self.pipeline_name = pipeline_name
        self.execution_id = execution_id
        self.timeout_seconds = timeout_seconds


class ExecutionFailedError(TenantCtlError):
    """Pipeline execution ended in a non-success state."""

    def __init__(
        self,
        message: str,
        pipeline_name: str,
        execution_id: str | None = None,
        status: Any = None,
    ):
        super().__init__(message)
        self.pipeline_name = pipeline_name
        self.execution_id = execution_id
        self.status = status


class BudgetExhaustedError(TenantCtlError):
    """Rollout error budget is exhausted; the run is aborted."""

    def __init__(self, errors: int, error_budget: int, summary: Any = None):
        super().__init__(f"Error budget {error_budget} exhausted, aborting.")
        self.errors = errors
        self.error_budget = error_budget
        self.summary = summary


class ProvisioningError(TenantCtlError):
    """Provisioning a tenant pipeline failed."""

    def __init__(
        self,
        message: str,
        deployment_id: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.deployment_id = deployment_id

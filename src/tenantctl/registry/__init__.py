"""Deployment registry records, validation and snapshots."""

from tenantctl.registry.models import (
    Deployment,
    DeploymentRecord,
    DeploymentType,
    ValidatedRecord,
    pipeline_name,
)
from tenantctl.registry.snapshot import SnapshotStore, build_snapshot
from tenantctl.registry.validation import ValidationResult, validate, validate_record

__all__ = [
    "Deployment",
    "DeploymentRecord",
    "DeploymentType",
    "SnapshotStore",
    "ValidatedRecord",
    "ValidationResult",
    "build_snapshot",
    "pipeline_name",
    "validate",
    "validate_record",
]

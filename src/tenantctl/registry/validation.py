"""Admission rules for deployment registry records.

Checks run in a fixed order (id, type, account, region) and stop at the
first violation, so the reported error is always the earliest failing rule.
"""

import re
from collections.abc import Collection
from dataclasses import dataclass

from tenantctl.core.exceptions import (
    InvalidAccountError,
    InvalidIdError,
    InvalidRegionError,
    InvalidTypeError,
    MissingAttributeError,
    RecordValidationError,
)
from tenantctl.registry.models import DeploymentRecord, DeploymentType, ValidatedRecord

ACCOUNT_PATTERN = re.compile(r"[0-9]{12}")
WHITESPACE_PATTERN = re.compile(r"\s")


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a single record."""

    record: ValidatedRecord | None = None
    error: RecordValidationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _require(record: DeploymentRecord, field: str) -> str:
    value = getattr(record, field)
    if not value:
        raise MissingAttributeError(field, value)
    if not isinstance(value, str):
        # Non-string attributes (numbers, sets, maps) are malformed
        raise MissingAttributeError(field, value)
    return value


def validate_record(
    record: DeploymentRecord,
    valid_regions: Collection[str],
) -> ValidatedRecord:
    """Validate a raw registry record.

    Args:
        record: Record as read from the registry
        valid_regions: Region identifiers currently accepted

    Returns:
        The record re-typed as a ValidatedRecord

    Raises:
        RecordValidationError: Subclass naming the first violated rule
    """
    deployment_id = _require(record, "id")
    if WHITESPACE_PATTERN.search(deployment_id):
        raise InvalidIdError(deployment_id)

    deployment_type = _require(record, "type")
    try:
        kind = DeploymentType(deployment_type)
    except ValueError:
        raise InvalidTypeError(deployment_type)

    account = _require(record, "account")
    if not ACCOUNT_PATTERN.fullmatch(account):
        raise InvalidAccountError(account)

    region = _require(record, "region")
    if region not in valid_regions:
        raise InvalidRegionError(region)

    return ValidatedRecord(id=deployment_id, type=kind, account=account, region=region)


def validate(record: DeploymentRecord, valid_regions: Collection[str]) -> ValidationResult:
    """Validate a record, returning a tagged result instead of raising."""
    try:
        return ValidationResult(record=validate_record(record, valid_regions))
    except RecordValidationError as e:
        return ValidationResult(error=e)

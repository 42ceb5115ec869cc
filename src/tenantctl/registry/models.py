"""Tenant deployment record models."""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class DeploymentType(str, Enum):
    """Supported deployment topologies."""

    SILO = "silo"
    POOL = "pool"


def pipeline_name(deployment_type: str, deployment_id: str) -> str:
    """Name of the delivery pipeline (and its stack) for a deployment."""
    if isinstance(deployment_type, DeploymentType):
        deployment_type = deployment_type.value
    return f"{deployment_type}-{deployment_id}-pipeline"


@dataclass(frozen=True)
class DeploymentRecord:
    """Deployment record as read from the registry, before validation.

    Fields may be missing or carry unexpected types; nothing is enforced.
    """

    id: Any = None
    type: Any = None
    account: Any = None
    region: Any = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DeploymentRecord":
        """Create from a plain dictionary, ignoring unknown keys."""
        return cls(
            id=data.get("id"),
            type=data.get("type"),
            account=data.get("account"),
            region=data.get("region"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "account": self.account,
            "region": self.region,
        }


@dataclass(frozen=True)
class ValidatedRecord:
    """A deployment record that passed every admission rule."""

    id: str
    type: DeploymentType
    account: str
    region: str

    @property
    def pipeline_name(self) -> str:
        return pipeline_name(self.type, self.id)


@dataclass(frozen=True)
class Deployment:
    """Validated deployment tagged with its provisioning status."""

    id: str
    type: DeploymentType
    account: str
    region: str
    provisioned: bool = False

    @classmethod
    def from_validated(
        cls,
        record: ValidatedRecord,
        provisioned_pipeline_names: set[str] | frozenset[str],
    ) -> "Deployment":
        """Tag a validated record with whether its pipeline exists."""
        return cls(
            id=record.id,
            type=record.type,
            account=record.account,
            region=record.region,
            provisioned=record.pipeline_name in provisioned_pipeline_names,
        )

    @property
    def pipeline_name(self) -> str:
        return pipeline_name(self.type, self.id)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "type": self.type.value,
            "account": self.account,
            "region": self.region,
            "provisioned": self.provisioned,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Deployment":
        """Create from a snapshot entry.

        Snapshot entries were validated when the snapshot was built and are
        trusted as-is.
        """
        return cls(
            id=data["id"],
            type=DeploymentType(data["type"]),
            account=data["account"],
            region=data["region"],
            provisioned=bool(data.get("provisioned", False)),
        )

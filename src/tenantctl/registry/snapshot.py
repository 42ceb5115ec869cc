"""Registry snapshot building and persistence."""

import json
from collections.abc import Collection, Iterable
from pathlib import Path

from tenantctl.core.exceptions import SnapshotError
from tenantctl.core.logging import StructuredLogger
from tenantctl.registry.models import Deployment, DeploymentRecord
from tenantctl.registry.validation import validate

logger = StructuredLogger(__name__)

DEFAULT_SNAPSHOT_NAME = "deployments.json"


def build_snapshot(
    records: Iterable[DeploymentRecord],
    valid_regions: Collection[str],
    provisioned_pipeline_names: Collection[str],
) -> list[Deployment]:
    """Validate registry records and tag each with its provisioning status.

    Invalid records are logged and left out of the result. Surviving records
    keep their input order.

    Args:
        records: Raw records from the deployment registry
        valid_regions: Region identifiers currently accepted
        provisioned_pipeline_names: Names of pipelines that already exist

    Returns:
        Ordered list of Deployments
    """
    provisioned = frozenset(provisioned_pipeline_names)
    deployments: list[Deployment] = []

    for record in records:
        result = validate(record, valid_regions)
        if not result.ok:
            logger.error(
                f"Deployment database record {record.id} failed validation: "
                f"{result.error}. Ignoring record.",
                field=result.error.field,
            )
            continue
        deployments.append(Deployment.from_validated(result.record, provisioned))

    return deployments


class SnapshotStore:
    """Persist the validated deployment list as a JSON array."""

    def __init__(self, directory: str | Path | None = None):
        """Initialize snapshot store.

        Args:
            directory: Directory holding snapshot artifacts, defaults to
                ``build_output`` under the current directory
        """
        self._directory = Path(directory) if directory else Path.cwd() / "build_output"

    @property
    def directory(self) -> Path:
        return self._directory

    def path(self, name: str = DEFAULT_SNAPSHOT_NAME) -> Path:
        return self._directory / name

    def save(self, deployments: list[Deployment], name: str = DEFAULT_SNAPSHOT_NAME) -> Path:
        """Write the deployments to ``<directory>/<name>``.

        Returns:
            Path of the written artifact
        """
        snapshot_file = self.path(name)

        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            with open(snapshot_file, "w") as f:
                json.dump([d.to_dict() for d in deployments], f)
        except OSError as e:
            raise SnapshotError(f"Failed to save snapshot: {e}", path=str(snapshot_file))

        logger.debug("Saved snapshot", path=str(snapshot_file), deployments=len(deployments))
        return snapshot_file

    def load(self, name: str = DEFAULT_SNAPSHOT_NAME) -> list[Deployment]:
        """Read deployments back from ``<directory>/<name>``.

        A missing artifact is not an error and reads as an empty list.
        """
        snapshot_file = self.path(name)

        if not snapshot_file.exists():
            logger.info(f"No {snapshot_file} file present; proceeding with empty configuration.")
            return []

        try:
            with open(snapshot_file) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise SnapshotError(f"Failed to load snapshot: {e}", path=str(snapshot_file))

        if not isinstance(data, list):
            raise SnapshotError("Snapshot is not a JSON array", path=str(snapshot_file))

        try:
            return [Deployment.from_dict(entry) for entry in data]
        except (KeyError, TypeError, ValueError) as e:
            raise SnapshotError(f"Malformed snapshot entry: {e}", path=str(snapshot_file))

"""Tenant pipeline provisioning."""

from tenantctl.provisioning.provisioner import Provisioner, build_deploy_command
from tenantctl.provisioning.stream import ProvisioningTrigger, build_environment_overrides

__all__ = [
    "Provisioner",
    "ProvisioningTrigger",
    "build_deploy_command",
    "build_environment_overrides",
]

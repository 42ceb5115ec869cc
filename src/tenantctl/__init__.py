"""tenantctl - multi-tenant pipeline provisioning and rollout."""

__version__ = "0.1.0"

"""Core utilities and shared components for tenantctl."""

# Note: Import context lazily to avoid circular imports
# Use: from tenantctl.core.context import TenantCtlContext, pass_context
from tenantctl.core.exceptions import TenantCtlError, ConfigError, AWSError
from tenantctl.core.output import OutputFormatter

__all__ = [
    "TenantCtlError",
    "ConfigError",
    "AWSError",
    "OutputFormatter",
]

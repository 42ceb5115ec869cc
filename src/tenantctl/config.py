"""Configuration management for tenantctl using Pydantic.

Settings are read from YAML files and then from ``TENANTCTL_*`` environment
variables, later sources winning:

    ~/.tenantctl/config.yaml
    the nearest tenantctl.yaml in the working directory or a parent
    the file given with --config
    environment overrides, applied to the selected profile
"""

import os
from pathlib import Path
from typing import Any, Iterator, Mapping

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from tenantctl.core.exceptions import ConfigError
from tenantctl.core.output import OutputFormat
from tenantctl.core.logging import LogLevel


class AWSConfig(BaseModel):
    """AWS configuration."""

    profile: str | None = None
    region: str | None = None
    access_key_id: str | None = None
    secret_access_key: str | None = None
    session_token: str | None = None
    endpoint_url: str | None = None

    def get_profile(self) -> str | None:
        """Get AWS profile from config or environment."""
        return (
            os.environ.get("TENANTCTL_AWS_PROFILE")
            or os.environ.get("AWS_PROFILE")
            or self.profile
        )

    def get_region(self) -> str | None:
        """Get AWS region from config or environment."""
        return (
            os.environ.get("TENANTCTL_AWS_REGION")
            or os.environ.get("AWS_REGION")
            or os.environ.get("AWS_DEFAULT_REGION")
            or self.region
        )


class RegistryConfig(BaseModel):
    """Deployment registry (DynamoDB table) configuration."""

    table_name: str = "unicorn-deployments"
    stack_status_filter: list[str] = Field(
        default_factory=lambda: [
            "CREATE_COMPLETE",
            "ROLLBACK_COMPLETE",
            "UPDATE_COMPLETE",
            "UPDATE_ROLLBACK_COMPLETE",
        ]
    )


class SnapshotConfig(BaseModel):
    """Where the validated deployment snapshot is stored."""

    directory: Path = Path("build_output")
    name: str = "deployments.json"


class RolloutConfig(BaseModel):
    """Rollout coordination settings."""

    error_budget: int = Field(default=1, ge=1)
    max_wait_seconds: int = Field(default=30 * 60, gt=0)
    poll_interval: int = Field(default=20, gt=0)
    source_stage: str = "Source"


class ProvisioningConfig(BaseModel):
    """Tenant pipeline provisioning settings."""

    project_name: str = "provisioning-project"
    deploy_command: str = "npx cdk deploy"

    def get_project_name(self) -> str:
        """Get the CodeBuild project name from config or environment."""
        return os.environ.get("PROJECT_NAME") or self.project_name


class ProfileConfig(BaseModel):
    """Profile configuration grouping all service settings."""

    aws: AWSConfig = Field(default_factory=AWSConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    snapshot: SnapshotConfig = Field(default_factory=SnapshotConfig)
    rollout: RolloutConfig = Field(default_factory=RolloutConfig)
    provisioning: ProvisioningConfig = Field(default_factory=ProvisioningConfig)


class GlobalConfig(BaseModel):
    """Global settings."""

    output_format: OutputFormat = OutputFormat.TABLE
    verbosity: LogLevel = LogLevel.INFO
    dry_run: bool = False


class TenantCtlConfig(BaseModel):
    """Main configuration model."""

    model_config = {"populate_by_name": True}

    version: str = "1"
    global_settings: GlobalConfig = Field(default_factory=GlobalConfig, alias="global")
    profiles: dict[str, ProfileConfig] = Field(default_factory=lambda: {"default": ProfileConfig()})

    def get_profile(self, name: str | None = None) -> ProfileConfig:
        """Get a profile by name, defaulting to 'default'."""
        profile_name = name or "default"
        if profile_name not in self.profiles:
            raise ConfigError(f"Profile '{profile_name}' not found")
        return self.profiles[profile_name]


class ProvisioningEnvironment(BaseSettings):
    """Attributes of a new deployment record, passed in by the provisioning build."""

    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")

    deployment_id: str
    deployment_type: str
    component_account: str
    component_region: str


def load_provisioning_environment() -> ProvisioningEnvironment:
    """Read DEPLOYMENT_ID, DEPLOYMENT_TYPE, COMPONENT_ACCOUNT and COMPONENT_REGION.

    Raises:
        ConfigError: If any of the variables is missing
    """
    try:
        return ProvisioningEnvironment()
    except ValidationError as e:
        missing = [str(err["loc"][0]).upper() for err in e.errors() if err["type"] == "missing"]
        if missing:
            raise ConfigError(f"Missing required env variable {', '.join(missing)}")
        raise ConfigError(f"Invalid provisioning environment: {e}")


# Environment variable -> (profile section, field)
PROFILE_ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "TENANTCTL_DEPLOYMENT_TABLE": ("registry", "table_name"),
    "TENANTCTL_SNAPSHOT_DIR": ("snapshot", "directory"),
    "TENANTCTL_ERROR_BUDGET": ("rollout", "error_budget"),
    "TENANTCTL_MAX_WAIT": ("rollout", "max_wait_seconds"),
    "TENANTCTL_POLL_INTERVAL": ("rollout", "poll_interval"),
}


def merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge ``override`` into a copy of ``base``."""
    result = base.copy()
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = merge_dicts(result[key], value)
        else:
            result[key] = value
    return result


class ConfigLoader:
    """Loads configuration files and applies environment overrides."""

    CONFIG_FILENAMES = ("tenantctl.yaml", "tenantctl.yml", ".tenantctl.yaml", ".tenantctl.yml")

    def __init__(self, environ: Mapping[str, str] | None = None):
        self._environ = os.environ if environ is None else environ

    def load(
        self,
        config_file: str | Path | None = None,
        profile: str | None = None,
    ) -> TenantCtlConfig:
        """Load configuration for ``profile``.

        Args:
            config_file: Optional explicit config file path
            profile: Profile the environment overrides apply to, default 'default'

        Returns:
            Merged configuration

        Raises:
            ConfigError: For a missing explicit file, unreadable YAML,
                invalid values or an unknown profile
        """
        merged: dict[str, Any] = {}
        for path in self._sources(config_file):
            merged = merge_dicts(merged, self._read(path))

        self._apply_environment(merged, profile or "default")

        try:
            config = TenantCtlConfig.model_validate(merged)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}")

        if profile:
            config.get_profile(profile)
        return config

    def _sources(self, config_file: str | Path | None) -> Iterator[Path]:
        user_config = Path.home() / ".tenantctl" / "config.yaml"
        if user_config.exists():
            yield user_config

        project_config = self._find_project_config(Path.cwd())
        if project_config:
            yield project_config

        if config_file:
            path = Path(config_file)
            if not path.exists():
                raise ConfigError(f"Config file not found: {config_file}")
            yield path

    def _find_project_config(self, start: Path) -> Path | None:
        for directory in (start, *start.parents):
            for filename in self.CONFIG_FILENAMES:
                candidate = directory / filename
                if candidate.exists():
                    return candidate
        return None

    def _read(self, path: Path) -> dict[str, Any]:
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}")
        except OSError as e:
            raise ConfigError(f"Cannot read {path}: {e}")
        if not isinstance(data, dict):
            raise ConfigError(f"Expected a mapping at the top of {path}")
        return data

    def _apply_environment(self, merged: dict[str, Any], profile: str) -> None:
        overrides: dict[str, Any] = {}
        for variable, (section, field) in PROFILE_ENV_OVERRIDES.items():
            value = self._environ.get(variable)
            if value:
                overrides.setdefault(section, {})[field] = value
        if not overrides:
            return

        profiles = merged.get("profiles") or {}
        if profile not in profiles and profile != "default":
            return
        profiles[profile] =merge_dicts(profiles.get(profile) or {}, overrides)
        merged["profiles"] = profiles


def load_config(
    config_file: str | Path | None = None,
    profile: str | None = None,
) -> TenantCtlConfig:
    """Load tenantctl configuration from files and the environment."""
    return ConfigLoader().load(config_file, profile)

"""Pytest fixtures for tenantctl tests."""

import os
from typing import Generator

import pytest
from click.testing import CliRunner

from tenantctl.config import (
    TenantCtlConfig,
    ProfileConfig,
    AWSConfig,
    RolloutConfig,
    SnapshotConfig,
)
from tenantctl.core.context import TenantCtlContext
from tenantctl.core.output import OutputFormat
from tenantctl.rollout.models import ExecutionStatus


class FakeClock:
    """Clock whose sleep advances time instantly."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakePipelines:
    """In-memory pipeline control.

    Status sequences are consumed one entry per query; the last entry repeats
    once the sequence is exhausted.
    """

    def __init__(
        self,
        statuses: dict[str, list[ExecutionStatus]] | None = None,
        start_ids: dict[str, object] | None = None,
        latest_ids: dict[str, list[str | None]] | None = None,
    ):
        self.statuses = {k: list(v) for k, v in (statuses or {}).items()}
        self.start_ids = start_ids or {}
        self.latest_ids = {k: list(v) for k, v in (latest_ids or {}).items()}
        self.started: list[str] = []
        self.status_queries: list[tuple[str, str]] = []
        self.latest_queries: list[str] = []

    def start(self, pipeline_name: str) -> str | None:
        self.started.append(pipeline_name)
        result = self.start_ids.get(pipeline_name, f"exec-{pipeline_name}")
        if isinstance(result, Exception):
            raise result
        return result

    def get_execution_status(self, pipeline_name: str, execution_id: str) -> ExecutionStatus:
        self.status_queries.append((pipeline_name, execution_id))
        sequence = self.statuses.get(pipeline_name, [ExecutionStatus.SUCCEEDED])
        if len(sequence) > 1:
            return sequence.pop(0)
        return sequence[0]

    def get_latest_execution_id(self, pipeline_name: str) -> str | None:
        self.latest_queries.append(pipeline_name)
        ids = self.latest_ids.get(pipeline_name, [])
        return ids.pop(0) if ids else None


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Click CLI runner."""
    return CliRunner()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_pipelines():
    """Factory for FakePipelines."""
    return FakePipelines


@pytest.fixture
def mock_config(tmp_path) -> TenantCtlConfig:
    """Create a mock configuration."""
    return TenantCtlConfig(
        profiles={
            "default": ProfileConfig(
                aws=AWSConfig(region="us-east-1"),
                snapshot=SnapshotConfig(directory=tmp_path / "build_output"),
                rollout=RolloutConfig(poll_interval=1, max_wait_seconds=60),
            )
        }
    )


@pytest.fixture
def mock_context(mock_config: TenantCtlConfig) -> TenantCtlContext:
    """Create a mock TenantCtl context."""
    return TenantCtlContext(
        config=mock_config,
        profile="default",
        output_format=OutputFormat.TABLE,
        verbose=0,
        quiet=False,
        dry_run=False,
        color=False,
    )


@pytest.fixture(autouse=True)
def clean_env() -> Generator[None, None, None]:
    """Clean environment variables before each test."""
    env_vars = [
        "TENANTCTL_AWS_PROFILE",
        "TENANTCTL_AWS_REGION",
        "TENANTCTL_DEPLOYMENT_TABLE",
        "TENANTCTL_SNAPSHOT_DIR",
        "TENANTCTL_ERROR_BUDGET",
        "TENANTCTL_MAX_WAIT",
        "TENANTCTL_POLL_INTERVAL",
        "TENANTCTL_PROFILE",
        "TENANTCTL_CONFIG",
        "AWS_PROFILE",
        "AWS_REGION",
        "PROJECT_NAME",
        "DEPLOYMENT_ID",
        "DEPLOYMENT_TYPE",
        "COMPONENT_ACCOUNT",
        "COMPONENT_REGION",
    ]

    original = {k: os.environ.get(k) for k in env_vars}

    for k in env_vars:
        os.environ.pop(k, None)

    yield

    for k, v in original.items():
        if v is not None:
            os.environ[k] = v
        else:
            os.environ.pop(k, None)


@pytest.fixture
def temp_config_file(tmp_path):
    """Create a temporary config file."""
    config_content = f"""
version: "1"
global:
  output_format: table
profiles:
  default:
    aws:
      region: us-east-1
    snapshot:
      directory: {tmp_path / "build_output"}
    rollout:
      error_budget: 1
      poll_interval: 1
      max_wait_seconds: 60
"""
    config_file = tmp_path / "config.yaml"
    config_file.write_text(config_content)
    return str(config_file)

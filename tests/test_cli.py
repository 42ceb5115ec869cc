"""Tests for CLI commands and help output.

AWS collaborators are replaced on the context object, and the tracker runs
against a fake clock so rollouts complete instantly.
"""

import json
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
import yaml
from click.testing import CliRunner

from tenantctl.cli import cli
from tenantctl.core.context import TenantCtlContext
from tenantctl.core.exceptions import AWSError
from tenantctl.registry.models import Deployment, DeploymentRecord, DeploymentType
from tenantctl.registry.snapshot import SnapshotStore
from tenantctl.rollout.models import ExecutionStatus
from tenantctl.rollout.tracker import PipelineExecutionTracker

S = ExecutionStatus


@pytest.fixture
def fake_aws(monkeypatch, fake_clock, make_pipelines):
    """Install fake pipeline and registry collaborators on the context."""

    fake = SimpleNamespace(pipelines=make_pipelines(), registry=MagicMock())
    fake.registry.list_regions.return_value = ["us-east-1", "eu-west-1"]

    monkeypatch.setattr(TenantCtlContext, "pipelines", property(lambda self: fake.pipelines))
    monkeypatch.setattr(TenantCtlContext, "registry", property(lambda self: fake.registry))
    monkeypatch.setattr(
        "tenantctl.commands.rollout._tracker",
        lambda ctx: PipelineExecutionTracker(ctx.pipelines, poll_interval=20, clock=fake_clock),
    )
    return fake


def write_snapshot(tmp_path, deployments):
    SnapshotStore(tmp_path / "build_output").save(deployments)


def silo(deployment_id, provisioned=True):
    return Deployment(deployment_id, DeploymentType.SILO, "123456789012", "eu-west-1", provisioned)


# =============================================================================
# CLI Entry Point
# =============================================================================


class TestCLIEntryPoint:
    """Tests for main CLI entry point, flags, and options."""

    def test_help(self, cli_runner: CliRunner):
        result = cli_runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "TenantCtl" in result.output
        assert "deployments" in result.output
        assert "rollout" in result.output
        assert "provision" in result.output

    def test_version(self, cli_runner: CliRunner):
        result = cli_runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "tenantctl version" in result.output

    def test_config_command(self, cli_runner: CliRunner, temp_config_file):
        result = cli_runner.invoke(cli, ["--no-color", "-o", "json", "-c", temp_config_file, "config"])
        assert result.exit_code == 0
        assert "unicorn-deployments" in result.output

    def test_invalid_output_format(self, cli_runner: CliRunner):
        result = cli_runner.invoke(cli, ["-o", "xml", "config"])
        assert result.exit_code != 0

    def test_unknown_profile(self, cli_runner: CliRunner, temp_config_file):
        result = cli_runner.invoke(cli, ["-c", temp_config_file, "-p", "staging", "config"])
        assert result.exit_code == 1

    @pytest.mark.parametrize("group", ["deployments", "rollout"])
    def test_group_help(self, cli_runner: CliRunner, group):
        result = cli_runner.invoke(cli, [group, "--help"])
        assert result.exit_code == 0
        assert "Examples" in result.output


# =============================================================================
# Deployments
# =============================================================================


class TestDeploymentsCommands:
    def test_list_empty(self, cli_runner, temp_config_file):
        result = cli_runner.invoke(cli, ["--no-color", "-c", temp_config_file, "deployments", "list"])
        assert result.exit_code == 0
        assert "No deployments found" in result.output

    def test_list_empty_json(self, cli_runner, temp_config_file):
        result = cli_runner.invoke(cli, ["--no-color", "-o", "json", "-c", temp_config_file, "deployments", "list"])
        assert result.exit_code == 0
        assert json.loads(result.stdout) == []

    def test_list_provisioned_only(self, cli_runner, temp_config_file, tmp_path):
        write_snapshot(tmp_path, [silo("a"), silo("b", provisioned=False)])

        result = cli_runner.invoke(
            cli, ["-o", "raw", "-c", temp_config_file, "deployments", "list", "--provisioned"]
        )

        assert result.exit_code == 0
        assert "silo-a-pipeline" in result.output
        assert "silo-b-pipeline" not in result.output

    def test_validate_ok(self, cli_runner, temp_config_file, fake_aws):
        result = cli_runner.invoke(
            cli,
            [
                "--no-color",
                "-c",
                temp_config_file,
                "deployments",
                "validate",
                "--id",
                "t1",
                "--type",
                "pool",
                "--account",
                "123456789012",
                "--region",
                "eu-west-1",
            ],
        )
        assert result.exit_code == 0
        assert "pool-t1-pipeline" in result.output

    def test_validate_rejects(self, cli_runner, temp_config_file, fake_aws):
        result = cli_runner.invoke(
            cli,
            ["-c", temp_config_file, "deployments", "validate", "--id", "t1", "--type", "bridge"],
        )
        assert result.exit_code == 1

    def test_snapshot_json_stdout(self, cli_runner, temp_config_file, tmp_path, fake_aws):
        fake_aws.registry.list_stack_names.return_value = ["silo-t1-pipeline"]
        fake_aws.registry.scan_records.return_value = [
            DeploymentRecord(id="t1", type="silo", account="123456789012", region="eu-west-1"),
            DeploymentRecord(id="p1", type="pool", account="123456789012", region="us-east-1"),
            DeploymentRecord(id="bad", type="bridge", account="123456789012", region="us-east-1"),
        ]

        result = cli_runner.invoke(
            cli, ["--no-color", "-o", "json", "-c", temp_config_file, "deployments", "snapshot"]
        )

        assert result.exit_code == 0, result.output
        rows = json.loads(result.stdout)
        assert [(r["id"], r["provisioned"]) for r in rows] == [("t1", True), ("p1", False)]
        assert "Saved 2 of 3 deployment(s)" in result.stderr
        assert (tmp_path / "build_output" / "deployments.json").exists()

    def test_snapshot_registry_error(self, cli_runner, temp_config_file, fake_aws):
        fake_aws.registry.list_stack_names.side_effect = AWSError("AccessDenied: nope")

        result = cli_runner.invoke(cli, ["-c", temp_config_file, "deployments", "snapshot"])

        assert result.exit_code == 1


# =============================================================================
# Rollout
# =============================================================================


class TestRolloutCommands:
    def test_run_succeeds(self, cli_runner, temp_config_file, tmp_path, fake_aws):
        write_snapshot(tmp_path, [silo("a"), silo("b", provisioned=False)])

        result = cli_runner.invoke(cli, ["--no-color", "-c", temp_config_file, "rollout", "run"])

        assert result.exit_code == 0, result.output
        assert "Finished with 0 error(s)." in result.output
        assert fake_aws.pipelines.started == ["silo-a-pipeline"]

    def test_run_json_stdout(self, cli_runner, temp_config_file, tmp_path, fake_aws):
        write_snapshot(tmp_path, [silo("a"), silo("b", provisioned=False)])

        result = cli_runner.invoke(cli, ["--no-color", "-o", "json", "-c", temp_config_file, "rollout", "run"])

        assert result.exit_code == 0, result.output
        summary = json.loads(result.stdout)
        assert summary["error_count"] == 0
        assert [r["outcome"] for r in summary["results"]] == ["succeeded", "skipped"]
        assert "Finished with 0 error(s)." in result.stderr

    def test_run_yaml_stdout_on_abort(self, cli_runner, temp_config_file, tmp_path, fake_aws):
        fake_aws.pipelines.statuses["silo-a-pipeline"] = [S.FAILED]
        write_snapshot(tmp_path, [silo("a"), silo("b")])

        result = cli_runner.invoke(cli, ["--no-color", "-o", "yaml", "-c", temp_config_file, "rollout", "run"])

        assert result.exit_code == 1
        summary = yaml.safe_load(result.stdout)
        assert summary["aborted"] is True
        assert summary["error_count"] == 1

    def test_error_budget_from_environment(self, cli_runner, temp_config_file, tmp_path, fake_aws, monkeypatch):
        monkeypatch.setenv("TENANTCTL_ERROR_BUDGET", "2")
        fake_aws.pipelines.statuses["silo-a-pipeline"] = [S.FAILED]
        write_snapshot(tmp_path, [silo("a"), silo("b")])

        result = cli_runner.invoke(cli, ["--no-color", "-c", temp_config_file, "rollout", "run"])

        assert result.exit_code == 0, result.output
        assert fake_aws.pipelines.started == ["silo-a-pipeline", "silo-b-pipeline"]

    def test_run_without_snapshot(self, cli_runner, temp_config_file, fake_aws):
        result = cli_runner.invoke(cli, ["--no-color", "-c", temp_config_file, "rollout", "run"])

        assert result.exit_code == 0
        assert fake_aws.pipelines.started == []

    def test_budget_exhausted_exits_nonzero(self, cli_runner, temp_config_file, tmp_path, fake_aws):
        fake_aws.pipelines.statuses["silo-a-pipeline"] = [S.FAILED]
        write_snapshot(tmp_path, [silo("a"), silo("b")])

        result = cli_runner.invoke(cli, ["-c", temp_config_file, "rollout", "run"])

        assert result.exit_code == 1
        assert fake_aws.pipelines.started == ["silo-a-pipeline"]

    def test_error_budget_option(self, cli_runner, temp_config_file, tmp_path, fake_aws):
        fake_aws.pipelines.statuses["silo-a-pipeline"] = [S.FAILED]
        write_snapshot(tmp_path, [silo("a"), silo("b")])

        result = cli_runner.invoke(
            cli, ["--no-color", "-c", temp_config_file, "rollout", "run", "--error-budget", "2"]
        )

        assert result.exit_code == 0
        assert "Finished with 1 error(s)." in result.output
        assert fake_aws.pipelines.started == ["silo-a-pipeline", "silo-b-pipeline"]

    def test_error_budget_must_be_positive(self, cli_runner, temp_config_file):
        result = cli_runner.invoke(cli, ["-c", temp_config_file, "rollout", "run", "--error-budget", "0"])
        assert result.exit_code == 2

    def test_dry_run(self, cli_runner, temp_config_file, tmp_path, fake_aws):
        write_snapshot(tmp_path, [silo("a")])

        result = cli_runner.invoke(cli, ["-c", temp_config_file, "--dry-run", "rollout", "run"])

        assert result.exit_code == 0
        assert fake_aws.pipelines.started == []

    def test_watch_latest_execution(self, cli_runner, temp_config_file, fake_aws):
        fake_aws.pipelines.latest_ids["silo-a-pipeline"] = ["e-9"]

        result = cli_runner.invoke(
            cli, ["--no-color", "-c", temp_config_file, "rollout", "watch", "silo-a-pipeline"]
        )

        assert result.exit_code == 0
        assert fake_aws.pipelines.status_queries == [("silo-a-pipeline", "e-9")]

    def test_watch_without_executions(self, cli_runner, temp_config_file, fake_aws):
        result = cli_runner.invoke(cli, ["-c", temp_config_file, "rollout", "watch", "silo-a-pipeline"])
        assert result.exit_code == 1

    def test_watch_failure(self, cli_runner, temp_config_file, fake_aws):
        fake_aws.pipelines.statuses["silo-a-pipeline"] = [S.STOPPED]

        result = cli_runner.invoke(
            cli, ["-c", temp_config_file, "rollout", "watch", "silo-a-pipeline", "e-1"]
        )

        assert result.exit_code == 1


# =============================================================================
# Provision
# =============================================================================


class TestProvisionCommand:
    @pytest.fixture
    def provisioning_env(self, monkeypatch):
        monkeypatch.setenv("DEPLOYMENT_ID", "t1")
        monkeypatch.setenv("DEPLOYMENT_TYPE", "silo")
        monkeypatch.setenv("COMPONENT_ACCOUNT", "123456789012")
        monkeypatch.setenv("COMPONENT_REGION", "eu-west-1")

    def test_missing_environment(self, cli_runner, temp_config_file):
        result = cli_runner.invoke(cli, ["-c", temp_config_file, "provision"])
        assert result.exit_code == 1

    @patch("tenantctl.provisioning.provisioner.subprocess.run")
    def test_dry_run(self, mock_run, cli_runner, temp_config_file, fake_aws, provisioning_env):
        result = cli_runner.invoke(cli, ["--no-color", "-c", temp_config_file, "--dry-run", "provision"])

        assert result.exit_code == 0, result.output
        mock_run.assert_not_called()

    @patch("tenantctl.provisioning.provisioner.subprocess.run")
    def test_provisions(self, mock_run, cli_runner, temp_config_file, fake_aws, provisioning_env):
        result = cli_runner.invoke(cli, ["--no-color", "-c", temp_config_file, "provision"])

        assert result.exit_code == 0, result.output
        command = mock_run.call_args.args[0]
        assert "silo-t1-pipeline" in command
        assert "component_region=eu-west-1" in command

    @patch("tenantctl.provisioning.provisioner.subprocess.run")
    def test_invalid_region(self, mock_run, cli_runner, temp_config_file, fake_aws, provisioning_env, monkeypatch):
        monkeypatch.setenv("COMPONENT_REGION", "mars-1")

        result = cli_runner.invoke(cli, ["-c", temp_config_file, "provision"])

        assert result.exit_code == 1
        mock_run.assert_not_called()

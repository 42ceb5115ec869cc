"""API clients for AWS collaborators."""

from tenantctl.clients.aws import AWSClientFactory
from tenantctl.clients.codepipeline import PipelineClient
from tenantctl.clients.registry import DeploymentRegistryClient

__all__ = ["AWSClientFactory", "DeploymentRegistryClient", "PipelineClient"]

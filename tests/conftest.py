"""
Pytest configuration and shared fixtures.

Every test synthesizes a fresh CDK app in-process; nothing is deployed and no
AWS credentials are needed.
"""
import aws_cdk as cdk
import pytest

from orthanc_cdk.composer import Topology, compose_topology
from orthanc_cdk.config import FLAG_SOURCES, DeploymentConfig, FeatureFlags

_CONFIG_ENV_VARS = [
    *FLAG_SOURCES.values(),
    "ORTHANC_ACCESS_LOGS_BUCKET_ARN",
    "ORTHANC_IMAGE",
    "ORTHANC_DOMAIN_NAME",
    "ORTHANC_CERTIFICATE_ARN",
    "CDK_ENVIRONMENT",
    "CDK_DEFAULT_ACCOUNT",
    "CDK_ACCOUNT",
    "CDK_DEFAULT_REGION",
    "CDK_REGION",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's shell (CDK_DEFAULT_REGION etc.) out of config resolution."""
    for name in _CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def build_topology(account=None, region=None, domain_name=None, certificate_arn=None, **flags) -> Topology:
    """Compose the full topology in a new app with the given feature flags."""
    app = cdk.App()
    config = DeploymentConfig(
        flags=FeatureFlags(**flags),
        account=account,
        region=region,
        domain_name=domain_name,
        certificate_arn=certificate_arn,
    )
    return compose_topology(app, config)


@pytest.fixture
def topology_factory():
    return build_topology

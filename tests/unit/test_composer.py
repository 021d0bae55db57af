import itertools

import aws_cdk as cdk
import pytest
from aws_cdk.assertions import Match, Template

from orthanc_cdk.composer import (
    NETWORK_STACK_ID,
    SERVICE_STACK_ID,
    STORAGE_STACK_ID,
    compose_topology,
)
from orthanc_cdk.config import DeploymentConfig, FeatureFlags
from orthanc_cdk.errors import ConfigurationConflict, ProvisioningFailure

from helpers import ingress_rules, security_group_id

ACCESS_LOG_BUCKET_ARN = "arn:aws:s3:::orthanc-access-logs"
TEST_REGION = "eu-west-1"

ALL_FLAG_COMBINATIONS = [
    dict(zip(("use_object_storage_backend", "enable_multi_az", "enable_backup", "enable_flow_logs"), values))
    for values in itertools.product([True, False], repeat=4)
]


def _templates(topology):
    return (
        Template.from_stack(topology.network),
        Template.from_stack(topology.storage),
        Template.from_stack(topology.service),
    )


def test_stacks_are_named_and_ordered(topology_factory):
    topology = topology_factory()

    assert topology.network.stack_name == NETWORK_STACK_ID
    assert topology.storage.stack_name == STORAGE_STACK_ID
    assert topology.service.stack_name == SERVICE_STACK_ID
    assert topology.network.dependencies == []
    assert {stack.stack_name for stack in topology.storage.dependencies} == {NETWORK_STACK_ID}
    assert STORAGE_STACK_ID in {stack.stack_name for stack in topology.service.dependencies}


def test_network_stack_never_depends_on_its_dependents(topology_factory):
    topology = topology_factory()

    # storage and service only read network outputs, never the other way around
    network_json = Template.from_stack(topology.network).to_json()
    assert "Fn::ImportValue" not in str(network_json)


@pytest.mark.parametrize("flags", ALL_FLAG_COMBINATIONS, ids=lambda flags: "-".join(
    name for name, value in flags.items() if value) or "none")
def test_every_flag_combination_composes(topology_factory, flags):
    topology = topology_factory(**flags)
    network, storage, service = _templates(topology)

    bucket_count = len(storage.find_resources("AWS::S3::Bucket"))
    filesystem_count = len(storage.find_resources("AWS::EFS::FileSystem"))
    assert (bucket_count, filesystem_count) == ((1, 0) if flags["use_object_storage_backend"] else (0, 1))

    database_group = security_group_id(network, "Orthanc PostgreSQL database")
    service_group = security_group_id(network, "Orthanc Fargate service")
    database_rules = ingress_rules(network, database_group)
    assert [(rule["SourceSecurityGroupId"], rule["FromPort"]) for rule in database_rules] == [
        ({"Fn::GetAtt": [service_group, "GroupId"]}, 5432),
    ]

    service.has_resource_properties("AWS::ECS::Service", {
        "DesiredCount": 2 if flags["enable_multi_az"] else 1,
    })
    storage.has_resource_properties("AWS::RDS::DBInstance", {
        "MultiAZ": flags["enable_multi_az"],
        "BackupRetentionPeriod": 30 if flags["enable_backup"] else 0,
    })
    network.resource_count_is("AWS::EC2::FlowLog", 1 if flags["enable_flow_logs"] else 0)


def test_synthesis_is_repeatable(topology_factory):
    first = _templates(topology_factory(enable_multi_az=True))
    second = _templates(topology_factory(enable_multi_az=True))

    for before, after in zip(first, second):
        assert before.to_json() == after.to_json()


def test_composing_twice_in_one_app_is_a_provisioning_failure():
    app = cdk.App()
    compose_topology(app, DeploymentConfig())

    with pytest.raises(ProvisioningFailure, match=NETWORK_STACK_ID):
        compose_topology(app, DeploymentConfig())


def test_configuration_conflicts_are_not_wrapped():
    app = cdk.App()
    config = DeploymentConfig(flags=FeatureFlags(access_log_bucket_arn=ACCESS_LOG_BUCKET_ARN))

    with pytest.raises(ConfigurationConflict):
        compose_topology(app, config)


def test_access_logs_with_a_pinned_region(topology_factory):
    topology = topology_factory(region=TEST_REGION, access_log_bucket_arn=ACCESS_LOG_BUCKET_ARN)

    assert topology.service.region == TEST_REGION
    Template.from_stack(topology.service).resource_count_is("AWS::ElasticLoadBalancingV2::LoadBalancer", 1)


def test_minimal_filesystem_deployment(topology_factory):
    topology = topology_factory(
        use_object_storage_backend=False,
        enable_multi_az=False,
        enable_backup=False,
        enable_flow_logs=False,
    )
    network, storage, service = _templates(topology)

    storage.has_resource_properties("AWS::EFS::AccessPoint", {
        "PosixUser": {"Uid": "1000", "Gid": "1000"},
        "RootDirectory": {
            "Path": "/orthanc",
            "CreationInfo": {"OwnerUid": "1000", "OwnerGid": "1000", "Permissions": "750"},
        },
    })
    storage.has_resource_properties("AWS::RDS::DBInstance", {"MultiAZ": False, "BackupRetentionPeriod": 0})
    service.has_resource_properties("AWS::ECS::Service", {"DesiredCount": 1})
    network.resource_count_is("AWS::EC2::FlowLog", 0)
    storage.resource_count_is("AWS::S3::Bucket", 0)


def test_highly_available_object_store_deployment(topology_factory):
    topology = topology_factory(
        use_object_storage_backend=True,
        enable_multi_az=True,
        enable_backup=True,
    )
    _, storage, service = _templates(topology)

    storage.has_resource_properties("AWS::S3::Bucket", {
        "VersioningConfiguration": {"Status": "Enabled"},
    })
    storage.resource_count_is("AWS::EFS::FileSystem", 0)
    storage.has_resource_properties("AWS::RDS::DBInstance", {"MultiAZ": True, "BackupRetentionPeriod": 30})
    service.has_resource_properties("AWS::ECS::Service", {"DesiredCount": 2})


@pytest.mark.parametrize("stack_attr, resource_type", [
    ("network", "AWS::EC2::VPC"),
    ("storage", "AWS::RDS::DBInstance"),
    ("service", "AWS::ECS::Cluster"),
])
def test_every_stack_is_tagged(topology_factory, stack_attr, resource_type):
    template = Template.from_stack(getattr(topology_factory(), stack_attr))

    for key, value in (("application", "orthanc"), ("environment", "dev")):
        template.has_resource_properties(resource_type, {
            "Tags": Match.array_with([{"Key": key, "Value": value}]),
        })


def test_custom_domain_reaches_the_distribution(topology_factory):
    topology = topology_factory(
        domain_name="pacs.example.org",
        certificate_arn="arn:aws:acm:us-east-1:123456789012:certificate/0b1c2d3e-4f50-6172-8394-a5b6c7d8e9f0",
    )

    Template.from_stack(topology.service).has_resource_properties("AWS::CloudFront::Distribution", {
        "DistributionConfig": Match.object_like({
            "ViewerCertificate": Match.object_like({"MinimumProtocolVersion": "TLSv1.2_2021"}),
        }),
    })

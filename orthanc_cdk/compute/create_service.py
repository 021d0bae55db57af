from typing import Optional, Tuple

from aws_cdk import (
    Duration,
    Stack,
    Token,
    aws_ec2 as ec2,
    aws_ecs as ecs,
    aws_elasticloadbalancingv2 as elbv2,
    aws_s3 as s3,
)
from constructs import Construct

from ..config import validate_access_log_bucket_arn
from ..errors import ConfigurationConflict
from ..outputs import HealthCheckPolicy

ORTHANC_HEALTH_CHECK = HealthCheckPolicy()


def create_cluster(scope: Construct, vpc: ec2.IVpc) -> ecs.Cluster:
    return ecs.Cluster(scope, "OrthancCluster", vpc=vpc)


def create_load_balancer(
    scope: Construct,
    *,
    vpc: ec2.IVpc,
    security_group: ec2.ISecurityGroup,
    access_log_bucket_arn: Optional[str] = None,
) -> elbv2.ApplicationLoadBalancer:
    """
    Create the internet-facing load balancer in the public subnets.

    Access logging is only enabled when a bucket ARN is supplied. A missing or empty
    ARN just means no access logs; a malformed one is a configuration error.
    """
    validate_access_log_bucket_arn(access_log_bucket_arn)

    load_balancer = elbv2.ApplicationLoadBalancer(
        scope,
        "OrthancLoadBalancer",
        vpc=vpc,
        vpc_subnets=ec2.SubnetSelection(subnet_type=ec2.SubnetType.PUBLIC),
        security_group=security_group,
        internet_facing=True,
        drop_invalid_header_fields=True,
    )

    if access_log_bucket_arn:
        # ELB writes logs as a regional service account, so the region has to be known at synth
        if Token.is_unresolved(Stack.of(scope).region):
            raise ConfigurationConflict("access logging needs an explicit region; set CDK_DEFAULT_REGION or -c region=...")
        access_log_bucket = s3.Bucket.from_bucket_arn(scope, "AccessLogBucket", access_log_bucket_arn)
        load_balancer.log_access_logs(access_log_bucket, prefix="orthanc")

    return load_balancer


def create_fargate_service(
    scope: Construct,
    *,
    cluster: ecs.ICluster,
    load_balancer: elbv2.ApplicationLoadBalancer,
    task_definition: ecs.FargateTaskDefinition,
    security_group: ec2.ISecurityGroup,
    desired_count: int,
    health_check: HealthCheckPolicy = ORTHANC_HEALTH_CHECK,
) -> Tuple[ecs.FargateService, elbv2.ApplicationTargetGroup]:
    """
    Run the task in the private subnets and register it behind the load balancer.

    The listener is not opened to the world here: the load balancer security group
    already governs who can reach port 80. Targets receive traffic on the task's
    first published port (8042).

    Returns:
        Tuple containing the Fargate service and its target group
    """
    service = ecs.FargateService(
        scope,
        "OrthancService",
        cluster=cluster,
        task_definition=task_definition,
        desired_count=desired_count,
        platform_version=ecs.FargatePlatformVersion.VERSION1_4,
        security_groups=[security_group],
        vpc_subnets=ec2.SubnetSelection(subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS),
        assign_public_ip=False,
    )

    listener = load_balancer.add_listener("PublicListener", port=80, open=False)
    target_group = listener.add_targets(
        "OrthancTargets",
        port=8042,
        protocol=elbv2.ApplicationProtocol.HTTP,
        targets=[service],
        health_check=elbv2.HealthCheck(
            path=health_check.path,
            interval=Duration.seconds(health_check.interval_seconds),
            healthy_http_codes=health_check.healthy_http_codes,
        ),
    )

    return service, target_group

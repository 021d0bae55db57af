from aws_cdk import (
    Annotations,
    RemovalPolicy,
    aws_ec2 as ec2,
    aws_logs as logs,
)
from constructs import Construct
from jsii.errors import JSIIError

from ..logger import get_logger
from ..outputs import FlowLogResult

logger = get_logger(__name__)

FLOW_LOG_GROUP_ID = "OrthancVpcFlowLogGroup"
FLOW_LOG_ID = "OrthancVPCFlowLogs"


def create_vpc(scope: Construct) -> ec2.Vpc:
    """
    Create the isolated Orthanc VPC.

    Always spans two availability zones, whatever the feature flags say. Subnets are
    split in three tiers: public for the load balancer, private with egress for the
    Fargate tasks and EFS mount targets, isolated for the database.
    """
    return ec2.Vpc(
        scope,
        "OrthancVpc",
        max_azs=2,
        subnet_configuration=[
            ec2.SubnetConfiguration(name="Public", subnet_type=ec2.SubnetType.PUBLIC, cidr_mask=24),
            ec2.SubnetConfiguration(name="Application", subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS, cidr_mask=24),
            ec2.SubnetConfiguration(name="Database", subnet_type=ec2.SubnetType.PRIVATE_ISOLATED, cidr_mask=24),
        ],
    )


def attach_flow_logs(scope: Construct, vpc: ec2.IVpc) -> FlowLogResult:
    """
    Send all VPC traffic records to a CloudWatch log group.

    A failure here must not take the rest of the topology down with it. It is
    reported as a warning on the result, in the log and as a synth annotation, and
    the log group created for it is removed again.
    """
    try:
        log_group = logs.LogGroup(
            scope,
            FLOW_LOG_GROUP_ID,
            retention=logs.RetentionDays.ONE_MONTH,
            removal_policy=RemovalPolicy.DESTROY,
        )
        vpc.add_flow_log(
            FLOW_LOG_ID,
            destination=ec2.FlowLogDestination.to_cloud_watch_logs(log_group),
            traffic_type=ec2.FlowLogTrafficType.ALL,
        )
    except (JSIIError, RuntimeError) as exc:
        # a failed attach leaves nothing behind
        scope.node.try_remove_child(FLOW_LOG_GROUP_ID)
        if isinstance(vpc, Construct):
            vpc.node.try_remove_child(FLOW_LOG_ID)
        warning = f"Flow logs could not be attached to the VPC: {exc}"
        logger.warning(warning)
        Annotations.of(scope).add_warning_v2("orthanc:flowLogsNotAttached", warning)
        return FlowLogResult(requested=True, attached=False, warning=warning)

    return FlowLogResult(requested=True, attached=True)

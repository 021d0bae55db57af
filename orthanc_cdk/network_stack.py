from aws_cdk import Stack
from constructs import Construct

from .network.create_security_groups import create_security_groups
from .network.create_vpc import attach_flow_logs, create_vpc
from .outputs import FlowLogResult, NetworkOutputs


class NetworkStack(Stack):

    def __init__(self, scope: Construct, construct_id: str, *, enable_flow_logs: bool = False, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # Define the VPC; every other stack depends on it
        vpc = create_vpc(self)

        # Optional traffic audit sink
        if enable_flow_logs:
            flow_logs = attach_flow_logs(self, vpc)
        else:
            flow_logs = FlowLogResult(requested=False, attached=False)

        # Security group matrix, in dependency order
        groups = create_security_groups(self, vpc)

        self.outputs = NetworkOutputs(vpc=vpc, groups=groups, flow_logs=flow_logs)

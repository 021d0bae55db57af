"""
Typed records passed down the stack dependency graph.

Each stack publishes one frozen output record. Dependents receive it as a
constructor argument and only ever read from it, so the graph stays acyclic:
network -> storage -> service.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from aws_cdk import (
    aws_cloudfront as cloudfront,
    aws_ec2 as ec2,
    aws_efs as efs,
    aws_elasticloadbalancingv2 as elbv2,
    aws_iam as iam,
    aws_kms as kms,
    aws_rds as rds,
    aws_s3 as s3,
    aws_secretsmanager as secretsmanager,
)


@dataclass(frozen=True)
class SecurityGroups:
    lb: ec2.SecurityGroup
    service: ec2.SecurityGroup
    database: ec2.SecurityGroup
    filesystem: ec2.SecurityGroup


@dataclass(frozen=True)
class FlowLogResult:
    """Outcome of attaching VPC flow logs. A failed attach carries a warning instead of raising."""

    requested: bool
    attached: bool
    warning: Optional[str] = None


@dataclass(frozen=True)
class NetworkOutputs:
    vpc: ec2.IVpc
    groups: SecurityGroups
    flow_logs: FlowLogResult


@dataclass(frozen=True)
class ObjectStore:
    bucket: s3.IBucket
    kms_key: kms.IKey


@dataclass(frozen=True)
class SharedFilesystem:
    file_system: efs.IFileSystem
    access_point: efs.IAccessPoint
    kms_key: kms.IKey


# Exactly one variant exists per composition; the other is never declared.
StorageBackend = Union[ObjectStore, SharedFilesystem]


@dataclass(frozen=True)
class SecretGeneratorPolicy:
    generate_key: str
    excluded_characters: str = "'\"@/\\"
    length: int = 16
    template_fields: Optional[Dict[str, str]] = None


@dataclass(frozen=True)
class CredentialSecret:
    """
    A generated Secrets Manager secret plus the principals allowed to read it.

    Read access is never broad: every reader goes through ``grant_read`` and is
    recorded in ``granted_readers``.
    """

    name: str
    secret: secretsmanager.ISecret
    generator_policy: SecretGeneratorPolicy
    granted_readers: List[iam.IGrantable] = field(default_factory=list)

    def grant_read(self, principal: iam.IGrantable) -> None:
        self.secret.grant_read(principal)
        if not any(reader is principal for reader in self.granted_readers):
            self.granted_readers.append(principal)


@dataclass(frozen=True)
class StorageOutputs:
    database: rds.DatabaseInstance
    credential: CredentialSecret
    backend: StorageBackend


@dataclass(frozen=True)
class HealthCheckPolicy:
    path: str = "/"
    interval_seconds: int = 60
    # The unauthenticated root answers 401, so client errors still mean "up"
    healthy_http_codes: str = "200-499"


@dataclass(frozen=True)
class ServiceEndpoint:
    load_balancer: elbv2.ApplicationLoadBalancer
    distribution: cloudfront.Distribution
    health_check: HealthCheckPolicy


@dataclass(frozen=True)
class ServiceOutputs:
    endpoint: ServiceEndpoint
    application_credential: CredentialSecret

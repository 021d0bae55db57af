from aws_cdk import (
    Duration,
    RemovalPolicy,
    aws_ec2 as ec2,
    aws_rds as rds,
)
from constructs import Construct

from ..outputs import CredentialSecret

DATABASE_NAME = "OrthancDB"
BACKUP_RETENTION_DAYS = 30


def create_database(
    scope: Construct,
    *,
    vpc: ec2.IVpc,
    security_group: ec2.ISecurityGroup,
    credential: CredentialSecret,
    multi_az: bool,
    enable_backup: bool,
) -> rds.DatabaseInstance:
    """
    Create the PostgreSQL instance that holds the Orthanc index.

    Args:
        scope: The CDK construct scope
        vpc: VPC whose isolated subnets host the instance
        security_group: The database security group
        credential: Generated master credential
        multi_az: Run a standby replica in a second availability zone
        enable_backup: Keep automated backups for 30 days; when off retention is 0

    Returns:
        The created database instance
    """
    backup_retention = Duration.days(BACKUP_RETENTION_DAYS if enable_backup else 0)

    return rds.DatabaseInstance(
        scope,
        "orthanc-instance",
        engine=rds.DatabaseInstanceEngine.postgres(version=rds.PostgresEngineVersion.VER_15),
        database_name=DATABASE_NAME,
        instance_type=ec2.InstanceType.of(ec2.InstanceClass.BURSTABLE3, ec2.InstanceSize.MEDIUM),
        storage_type=rds.StorageType.GP3,
        allocated_storage=20,
        storage_encrypted=True,
        credentials=rds.Credentials.from_secret(credential.secret),
        vpc=vpc,
        vpc_subnets=ec2.SubnetSelection(subnet_type=ec2.SubnetType.PRIVATE_ISOLATED),
        publicly_accessible=False,
        security_groups=[security_group],
        multi_az=multi_az,
        backup_retention=backup_retention,
        # final snapshot on stack delete
        removal_policy=RemovalPolicy.SNAPSHOT,
    )
